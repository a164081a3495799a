"""
eftp is a small wrapper around ftplib: connect, authenticate, list and fetch
files, with every step returning an Ok/Err result.
"""

from eftp.client import connect, authenticate, list_files, fetch
from eftp.result import Ok, Err, ResultError
from eftp.session import FTPSession, FtplibSession, BadCredentialsError, SessionError

__version__ = "0.3.0"


def version():
    """Return the application version"""
    return f"eftp-{__version__}"


__all__ = [
    'connect',
    'authenticate',
    'list_files',
    'fetch',
    'version',
    'Ok',
    'Err',
    'ResultError',
    'FTPSession',
    'FtplibSession',
    'BadCredentialsError',
    'SessionError',
]
