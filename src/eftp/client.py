"""
FTP client functions.

Each function takes the result of the previous step, so a session is built up
as a pipeline::

    session = eftp.connect('ftp.example.net', 21)
    session = eftp.authenticate(session, 'user', 'pass')
    files = eftp.list_files(session, '/pub')
    saved = eftp.fetch(session, ['/pub/a.csv', '/pub/b.csv'], 'data/downloads')

An error result passed into any step is returned unchanged without touching
the network. Closing the session is left to the caller.
"""

import logging
import os
import posixpath
import re
import time

from eftp.result import (
    Ok,
    Err,
    CONNECTION_FAILURE,
    INVALID_PORT,
    INVALID_PROPS,
    AUTHENTICATION_FAILURE,
    INVALID_PATHNAME,
    INVALID_TRANSFER_TYPE,
)
from eftp.session import (
    DEFAULT_PORT,
    TRANSFER_TYPES,
    SESSION_ERRORS,
    BadCredentialsError,
    FtplibSession,
)

logger = logging.getLogger('eftp')

_PORT_PATTERN = re.compile(r'[+-]?\d+')


def connect(host, port=DEFAULT_PORT, timeout=None, session_factory=None):
    """
    Connect to an FTP server.

    Args:
        host: server hostname
        port: int, numeric string (leading digits are used) or None for 21
        timeout: socket timeout in seconds handed to the session
        session_factory: callable(host, port, timeout) returning a session,
            defaults to FtplibSession.open

    Returns:
        Ok(session), or Err with connection_failure, invalid_port or invalid_props
    """
    if not isinstance(host, str) or not host:
        return Err(INVALID_PROPS)

    if port is None:
        port = DEFAULT_PORT
    elif isinstance(port, str):
        match = _PORT_PATTERN.match(port)
        if not match:
            return Err(INVALID_PORT)
        port = int(match.group())
    elif isinstance(port, bool) or not isinstance(port, int):
        return Err(INVALID_PROPS)

    if not 0 < port < 65536:
        return Err(INVALID_PORT)

    session_factory = session_factory or FtplibSession.open
    logger.info(f"Connecting to {host}:{port}")
    try:
        session = session_factory(host, port, timeout)
    except SESSION_ERRORS as e:
        logger.warning(f"Connection to {host}:{port} failed: {e}")
        return Err(CONNECTION_FAILURE, detail=e)

    return Ok(session)


def authenticate(result, username, password):
    """
    Log in on a connected session. Returns the same Ok(session) on success.
    A rejected login becomes authentication_failure; other client errors are
    returned as they are.
    """
    if result.is_err():
        return result
    if not isinstance(username, str) or not isinstance(password, str):
        return Err(INVALID_PROPS)

    session = result.value
    try:
        session.login(username, password)
    except BadCredentialsError as e:
        logger.warning(f"Login rejected for user {username}: {e}")
        return Err(AUTHENTICATION_FAILURE, detail=e)
    except SESSION_ERRORS as e:
        logger.warning(f"Login failed for user {username}: {e}")
        return Err(e)

    logger.info(f"Logged in as {username}")
    return result


def list_files(result, remote_path=None):
    """
    Retrieve the names of the files in ``remote_path`` (the current remote
    directory when omitted), in the order the server sends them.
    """
    if result.is_err():
        return result
    if remote_path is not None and not isinstance(remote_path, str):
        return Err(INVALID_PATHNAME)

    session = result.value
    try:
        listing = session.nlst(remote_path)
    except SESSION_ERRORS as e:
        logger.warning(f"Listing {remote_path or 'current directory'} failed: {e}")
        return Err(e)

    files = [name for name in listing.split('\r\n') if name]
    logger.debug(f"Found {len(files)} files in {remote_path or 'current directory'}")
    return Ok(files)


def fetch(result, remote_files, local_path, transfer_type='binary'):
    """
    Fetch a remote file into the local directory ``local_path``. A list of
    remote paths can be passed instead; the files are then fetched one after
    the other and the first failure stops the batch.

    A local file that already exists is never overwritten: the new download
    is saved with the current unix time appended to its name.

    Returns:
        Ok(saved path) for a single file, Ok([saved paths]) for a list,
        or the Err of the failing step
    """
    if result.is_err():
        return result
    if not isinstance(local_path, (str, os.PathLike)):
        return Err(INVALID_PATHNAME)
    if transfer_type not in TRANSFER_TYPES:
        return Err(INVALID_TRANSFER_TYPE)

    session = result.value
    if isinstance(remote_files, str):
        batch = [remote_files]
    elif isinstance(remote_files, (list, tuple)) and all(isinstance(f, str) for f in remote_files):
        batch = list(remote_files)
    else:
        return Err(INVALID_PATHNAME)

    # relative names resolve against the directory current when the call
    # starts, not against the directory of the previous file
    start_dir = None
    if not all(posixpath.isabs(f) for f in batch):
        try:
            start_dir = session.pwd()
        except SESSION_ERRORS as e:
            logger.warning(f"Could not read the current remote directory: {e}")
            return Err(e)

    fetched = []
    for remote_file in batch:
        outcome = _fetch_one(session, remote_file, os.fspath(local_path), transfer_type, start_dir)
        if outcome.is_err():
            if fetched:
                logger.warning(f"Batch stopped at {remote_file}; already saved: {', '.join(fetched)}")
            return outcome
        fetched.append(outcome.value)

    if isinstance(remote_files, str):
        return Ok(fetched[0])
    return Ok(fetched)


def _fetch_one(session, remote_file, local_path, transfer_type, start_dir=None):
    dirname = posixpath.dirname(remote_file)
    filename = posixpath.basename(remote_file)
    if not filename:
        return Err(INVALID_PATHNAME)
    if not posixpath.isabs(dirname):
        dirname = posixpath.normpath(posixpath.join(start_dir or '.', dirname))

    save_name = _save_name(local_path, filename)

    try:
        session.cwd(dirname)
        session.set_transfer_type(transfer_type)
    except SESSION_ERRORS as e:
        logger.warning(f"Could not prepare transfer of {remote_file}: {e}")
        return Err(e)

    logger.info(f"Downloading {remote_file} to {save_name}")
    try:
        session.retrieve(filename, save_name)
    except SESSION_ERRORS as e:
        logger.warning(f"Download of {remote_file} failed: {e}")
        _remove_partial(save_name)
        return Err(e)
    except BaseException:
        _remove_partial(save_name)
        raise

    return Ok(save_name)


def _save_name(local_path, filename):
    # keep an existing local file untouched, the new one gets a timestamp
    save_name = os.path.join(local_path, filename)
    if os.path.exists(save_name):
        stamped = f"{save_name}-{unixtime()}"
        # two fetches of the same name within one second
        counter = 1
        candidate = stamped
        while os.path.exists(candidate):
            candidate = f"{stamped}-{counter}"
            counter += 1
        save_name = candidate
        logger.info(f"Local file exists, saving as {save_name}")
    return save_name


def _remove_partial(save_name):
    try:
        if os.path.exists(save_name):
            os.remove(save_name)
    except OSError as e:
        logger.warning(f"Failed to remove partial file {save_name}: {e}")


def unixtime():
    """Current unix time in seconds, as a string."""
    return str(int(time.time()))
