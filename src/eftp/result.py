"""Tagged success/error results passed between the client stages.

Every stage in ``eftp.client`` takes the previous stage's result and returns a
new one. An ``Err`` is never unpacked by a later stage; it is handed on as the
same object, so a failed connect falls straight through authenticate, list
and fetch.
"""

from dataclasses import dataclass
from typing import Any, Callable

# Error tags
CONNECTION_FAILURE = 'connection_failure'
INVALID_PORT = 'invalid_port'
INVALID_PROPS = 'invalid_props'
AUTHENTICATION_FAILURE = 'authentication_failure'
INVALID_PATHNAME = 'invalid_pathname'
INVALID_TRANSFER_TYPE = 'invalid_transfer_type'


class ResultError(Exception):
    """Raised when a result is unwrapped the wrong way."""


@dataclass(frozen=True)
class Ok:
    value: Any

    def is_ok(self):
        return True

    def is_err(self):
        return False

    def map(self, func: Callable[[Any], Any]):
        return Ok(func(self.value))

    def and_then(self, func: Callable[[Any], Any]):
        """Chain a stage that itself returns a result."""
        return func(self.value)

    def unwrap(self):
        return self.value

    def unwrap_or(self, default):
        return self.value


@dataclass(frozen=True)
class Err:
    """Failed outcome.

    ``reason`` is one of the error tags above, or the client exception itself
    when the failure is passed through. ``detail`` keeps the exception that
    caused a tagged failure, when there is one.
    """

    reason: Any
    detail: Any = None

    def is_ok(self):
        return False

    def is_err(self):
        return True

    def map(self, func):
        return self

    def and_then(self, func):
        return self

    def unwrap(self):
        raise ResultError(f"Called unwrap() on an error result: {self.reason!r}")

    def unwrap_or(self, default):
        return default

    def __str__(self):
        if self.detail is not None:
            return f"{self.reason}: {self.detail}"
        return str(self.reason)


def is_result(value):
    return isinstance(value, (Ok, Err))
