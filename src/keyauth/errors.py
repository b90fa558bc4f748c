from abc import ABC


class KeyAuthError(ABC, Exception):
    """Base class for signed-request protocol failures."""


class ConfigurationError(KeyAuthError):
    """Raised when application keys are missing.

    Fatal: a request must never be sent unsigned.
    """

    def __init__(self, message: str = "Application secret key is not configured") -> None:
        super().__init__(message)


class NetworkError(KeyAuthError):
    """Transport-level failure (connect, DNS, timeout). Retryable by caller policy."""


class ServerError(KeyAuthError):
    """Raised when the API answers with a non-2xx status."""

    def __init__(self, status: int, message: str | None = None) -> None:
        super().__init__(message or f"Server error: {status}")
        self.status = status

    @property
    def invalidates_session(self) -> bool:
        """401 and 403 mean the session token is no longer accepted."""
        return self.status in (401, 403)


class DecodeError(KeyAuthError):
    """Raised when the response body is not valid JSON."""


class UserError(ABC, Exception):
    """Base class for user-related errors.

    All errors that inherit from UserError will have their messages
    displayed to the user. These errors should not contain any
    sensitive information.
    """


class NotFoundError(UserError):
    """Raised when a requested resource is not found."""

    def __init__(self, message: str = "Application not found") -> None:
        super().__init__(message)


class AuthenticationError(UserError):
    """Raised when authentication fails."""

    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(message)


class ValidationError(UserError):
    """Raised when user input fails validation."""
