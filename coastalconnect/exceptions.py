class AuthBackendError(Exception):
    """Base error for calls to the external auth API."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class AuthUnavailableError(AuthBackendError):
    """The auth API could not be reached (network error, timeout)."""


class AuthRejectedError(AuthBackendError):
    """The auth API answered, but with a failure or a malformed payload."""
