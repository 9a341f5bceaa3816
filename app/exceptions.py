"""Error hierarchy surfaced by the API as ``{"message": ...}`` bodies."""


class InterfaceMonitorError(Exception):
    """Base class for expected failures, each mapped to an HTTP status."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(InterfaceMonitorError):
    """Malformed or missing field on a write."""

    status_code = 400


class InvalidFilter(InterfaceMonitorError):
    """Malformed date or inverted date range in a log query."""

    status_code = 400


class InvalidWindow(InterfaceMonitorError):
    """Malformed, unknown or inverted metrics window."""

    status_code = 400


class NotFound(InterfaceMonitorError):
    """Requested interface run does not exist."""

    status_code = 404


class Unauthorized(InterfaceMonitorError):
    """Missing, invalid or expired credential, or deactivated account."""

    status_code = 401


class Locked(InterfaceMonitorError):
    """Account temporarily locked by the auth service."""

    status_code = 423


class StoreUnavailable(InterfaceMonitorError):
    """Database could not serve the request."""

    status_code = 500


class AuthUnavailable(InterfaceMonitorError):
    """Auth service could not be reached."""

    status_code = 503


class Timeout(InterfaceMonitorError):
    """Store call exceeded the statement timeout."""

    status_code = 504
