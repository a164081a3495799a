import ftplib
import logging
import posixpath

import pytest

from eftp.result import Ok
from eftp.session import FTPSession, BadCredentialsError


class FakeSession(FTPSession):
    """In-memory FTPSession that records every call."""

    def __init__(self, files=None, listings=None, users=None):
        # files: {'/pub/report.csv': b'...'}
        self.files = files or {}
        self.listings = listings or {}
        self.users = users
        self.failures = {}
        self.calls = []
        self.cwd_path = '/'
        self.transfer_type = 'binary'
        self.closed = False

    @classmethod
    def open(cls, host, port=21, timeout=None):
        return cls()

    def fail(self, operation, exc, target=None):
        self.failures[(operation, target)] = exc

    def _check(self, operation, target=None):
        exc = self.failures.get((operation, target)) or self.failures.get((operation, None))
        if exc is not None:
            raise exc

    def login(self, username, password):
        self.calls.append(('login', username, password))
        self._check('login')
        if self.users is not None and self.users.get(username) != password:
            raise BadCredentialsError('530 Login incorrect.')

    def pwd(self):
        self.calls.append(('pwd',))
        self._check('pwd')
        return self.cwd_path

    def cwd(self, path):
        self.calls.append(('cwd', path))
        self._check('cwd', path)
        self.cwd_path = posixpath.normpath(posixpath.join(self.cwd_path, path))

    def set_transfer_type(self, mode):
        self.calls.append(('type', mode))
        self._check('type')
        self.transfer_type = mode

    def nlst(self, path=None):
        self.calls.append(('nlst', path))
        self._check('nlst', path)
        key = self.cwd_path if path is None else path
        if key not in self.listings:
            raise ftplib.error_perm(f'550 {key}: No such file or directory')
        return self.listings[key]

    def retrieve(self, remote_name, local_name):
        self.calls.append(('retrieve', remote_name, local_name))
        remote_path = self.cwd_path.rstrip('/') + '/' + remote_name
        exc = self.failures.get(('retrieve', remote_path))
        if exc is not None:
            with open(local_name, 'wb') as f:
                f.write(b'partial')
            raise exc
        if remote_path not in self.files:
            raise ftplib.error_perm(f'550 {remote_name}: No such file or directory')
        with open(local_name, 'wb') as f:
            f.write(self.files[remote_path])

    def close(self):
        self.calls.append(('close',))
        self.closed = True


@pytest.fixture
def fake_session():
    return FakeSession(
        files={
            '/pub/report.csv': b'id,value\n1,2\n',
            '/pub/a.txt': b'alpha',
            '/pub/b.txt': b'bravo',
            '/pub/c.txt': b'charlie',
        },
        listings={
            '/': 'pub\r\n',
            '/pub': 'report.csv\r\na.txt\r\nb.txt\r\nc.txt\r\n',
        },
        users={'user': 'pass'},
    )


@pytest.fixture
def session_result(fake_session):
    return Ok(fake_session)


@pytest.fixture
def session_factory(fake_session):
    """Factory for eftp.connect that hands out fake_session and records its arguments."""
    opened = []

    def factory(host, port, timeout):
        opened.append((host, port, timeout))
        return fake_session

    factory.opened = opened
    return factory


@pytest.fixture(autouse=True)
def reset_eftp_logger():
    yield
    logger = logging.getLogger('eftp')
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
