"""
Error taxonomy for the Kala command-line client.

Every error carries the process exit code it maps to, so the dispatcher
can report it and terminate without interpreting the error further.
"""

from typing import Optional


class KalaCLIError(Exception):
    """Base class for all client errors."""
    exit_code = 1

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self):
        return self.message

    def prefixed(self, context: str) -> 'KalaCLIError':
        """Prepend the operation that failed to the message."""
        self.message = f"{context}: {self.message}"
        self.args = (self.message,)
        return self


class UsageError(KalaCLIError):
    """Malformed or missing command-line input, detected locally."""
    exit_code = 255

    def __init__(self, message: str, command: Optional[str] = None):
        super().__init__(message)
        self.command = command


class TransportError(KalaCLIError):
    """The endpoint is unreachable, timed out, or sent an undecodable response."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class ServiceError(KalaCLIError):
    """The service answered but reported a failure."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(ServiceError):
    """The service reported that the requested job does not exist."""
