import ftplib
from abc import ABC, abstractmethod

DEFAULT_PORT = 21

TRANSFER_TYPES = {
    'binary': 'I',
    'ascii': 'A',
}


class SessionError(Exception):
    """Base class for errors raised by a session itself (not by ftplib)."""


class BadCredentialsError(SessionError):
    """The server rejected the username/password."""


# Everything a session may raise for a failed operation. The client functions
# turn these into error results; anything else is a bug and propagates.
# UnicodeError covers hosts that fail IDNA encoding and names that cannot be
# encoded in the control connection charset.
SESSION_ERRORS = ftplib.all_errors + (SessionError, UnicodeError)


class FTPSession(ABC):
    """Operations the client functions expect from an FTP connection.

    A session owns one control connection. It is not safe to share between
    threads; callers serialize access to it.
    """

    @classmethod
    @abstractmethod
    def open(cls, host, port=DEFAULT_PORT, timeout=None):
        """Open the control connection and return a session."""

    @abstractmethod
    def login(self, username, password):
        """Send credentials. Raises BadCredentialsError when rejected."""

    @abstractmethod
    def pwd(self):
        """Return the current remote directory."""

    @abstractmethod
    def cwd(self, path):
        pass

    @abstractmethod
    def set_transfer_type(self, mode):
        """Switch to 'binary' or 'ascii' transfers."""

    @abstractmethod
    def nlst(self, path=None):
        """Return the raw name listing, names separated by CRLF."""

    @abstractmethod
    def retrieve(self, remote_name, local_name):
        """Download ``remote_name`` from the current directory into ``local_name``."""

    @abstractmethod
    def close(self):
        pass


class FtplibSession(FTPSession):
    """FTPSession on top of ftplib.FTP (plain FTP, passive mode)."""

    def __init__(self, ftp: ftplib.FTP, blocksize: int = 8192):
        self.ftp = ftp
        self.blocksize = blocksize
        self.transfer_type = 'binary'

    @classmethod
    def open(cls, host, port=DEFAULT_PORT, timeout=None):
        ftp = ftplib.FTP()
        try:
            if timeout is None:
                ftp.connect(host, port)
            else:
                ftp.connect(host, port, timeout=timeout)
            ftp.set_pasv(True)
        except BaseException:
            # a rejected greeting leaves the socket open
            ftp.close()
            raise
        return cls(ftp)

    def login(self, username, password):
        try:
            self.ftp.login(user=username, passwd=password)
        except ftplib.error_perm as e:
            if str(e).startswith('530'):
                raise BadCredentialsError(str(e)) from e
            raise

    def pwd(self):
        return self.ftp.pwd()

    def cwd(self, path):
        self.ftp.cwd(path)

    def set_transfer_type(self, mode):
        if mode not in TRANSFER_TYPES:
            raise SessionError(f"Unknown transfer type: {mode}")
        self.ftp.voidcmd(f"TYPE {TRANSFER_TYPES[mode]}")
        self.transfer_type = mode

    def _retrlines_bytes(self, cmd, callback):
        """Like ftplib.FTP.retrlines, but hands raw byte lines to ``callback``.

        ftplib decodes every line with the control connection encoding, which
        fails on servers that send Latin-1 names or file contents.
        """
        self.ftp.voidcmd('TYPE A')
        with self.ftp.transfercmd(cmd) as conn, conn.makefile('rb') as fp:
            while True:
                line = fp.readline(self.ftp.maxline + 1)
                if len(line) > self.ftp.maxline:
                    raise ftplib.Error(f"got more than {self.ftp.maxline} bytes")
                if not line:
                    break
                if line[-2:] == b'\r\n':
                    line = line[:-2]
                elif line[-1:] == b'\n':
                    line = line[:-1]
                callback(line)
        self.ftp.voidresp()

    def nlst(self, path=None):
        cmd = f"NLST {path}" if path else 'NLST'
        lines = []
        self._retrlines_bytes(cmd, lines.append)
        # undecodable bytes survive as surrogates instead of raising
        names = [line.decode(self.ftp.encoding, errors='surrogateescape') for line in lines]
        return ''.join(f"{name}\r\n" for name in names)

    def retrieve(self, remote_name, local_name):
        if self.transfer_type == 'ascii':
            # line endings normalized to '\n', bytes written untouched
            with open(local_name, 'wb') as f:
                self._retrlines_bytes(f"RETR {remote_name}", lambda line: f.write(line + b'\n'))
        else:
            with open(local_name, 'wb') as f:
                self.ftp.retrbinary(f"RETR {remote_name}", f.write, self.blocksize)

    def close(self):
        try:
            self.ftp.quit()
        except ftplib.all_errors:
            self.ftp.close()
