"""Custom exceptions for the Dreamteller client."""

from typing import Any, Dict, Optional


class DreamtellerException(Exception):
    """Base exception for the Dreamteller client."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Initialize DreamtellerException.

        Args:
            message: Human-readable error message.
            status_code: HTTP status code, when the error came off the wire.
            error_code: Machine-readable error code.
            details: Additional error details.
        """
        self.message = message
        self.status_code = status_code
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)


# ── Network taxonomy ─────────────────────────────────────────────────


class APIError(DreamtellerException):
    """Base class for every failure raised by the API transport."""


class InvalidURLError(APIError):
    """Raised when the request URL cannot be built."""

    def __init__(self, message: str = "Invalid URL") -> None:
        super().__init__(message=message, error_code="INVALID_URL")


class NoDataError(APIError):
    """Raised when a 2xx response has no body but content was expected."""

    def __init__(self, message: str = "No data") -> None:
        super().__init__(message=message, error_code="NO_DATA")


class DecodingFailedError(APIError):
    """Raised when a 2xx body does not decode into the expected shape."""

    def __init__(self, message: str = "Decode error") -> None:
        super().__init__(message=message, error_code="DECODING_FAILED")


class UnauthorizedError(APIError):
    """Raised when no token is held or the server answers 401."""

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message=message, status_code=401, error_code="UNAUTHORIZED")


class ServerError(APIError):
    """Raised for any non-2xx status other than 401; carries the response body text."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message=message, status_code=status_code, error_code="SERVER_ERROR")


class UnknownAPIError(APIError):
    """Raised when no HTTP response was obtained (connect failure, timeout)."""

    def __init__(self, message: str = "Unknown error") -> None:
        super().__init__(message=message, error_code="UNKNOWN")


def map_api_error(exc: BaseException) -> str:
    """Translate any failure from a store operation into user-visible text."""
    if isinstance(exc, UnauthorizedError):
        return "Unauthorized"
    if isinstance(exc, NoDataError):
        return "No data"
    if isinstance(exc, DecodingFailedError):
        return "Decode error"
    if isinstance(exc, InvalidURLError):
        return "Invalid URL"
    if isinstance(exc, ServerError):
        return exc.message
    return "Unknown error"


# ── Identity taxonomy ────────────────────────────────────────────────


class AuthError(DreamtellerException):
    """Base class for identity failures shown to the user."""


class InvalidEmailError(AuthError):
    def __init__(self) -> None:
        super().__init__(message="Please enter a valid email.", error_code="INVALID_EMAIL")


class WeakPasswordError(AuthError):
    def __init__(self) -> None:
        super().__init__(message="Password must be at least 6 characters.", error_code="WEAK_PASSWORD")


class InvalidNameError(AuthError):
    def __init__(self) -> None:
        super().__init__(message="Please enter your name.", error_code="INVALID_NAME")


class UserNotFoundError(AuthError):
    def __init__(self) -> None:
        super().__init__(message="User not found.", error_code="USER_NOT_FOUND")


class WrongPasswordError(AuthError):
    def __init__(self) -> None:
        super().__init__(message="Incorrect password.", error_code="WRONG_PASSWORD")


class EmailAlreadyInUseError(AuthError):
    def __init__(self) -> None:
        super().__init__(message="Email already in use.", error_code="EMAIL_ALREADY_IN_USE")


class NoCurrentUserError(AuthError):
    def __init__(self) -> None:
        super().__init__(message="No authenticated user.", error_code="NO_CURRENT_USER")


class UnknownAuthError(AuthError):
    def __init__(self, message: str) -> None:
        super().__init__(message=message, error_code="UNKNOWN_AUTH_ERROR")


class IdentityProviderError(DreamtellerException):
    """Raised by identity provider implementations with the provider's own error code."""

    def __init__(self, code: str, message: Optional[str] = None) -> None:
        super().__init__(message=message or code, error_code=code)
        self.code = code


# Provider codes are matched on their prefix: Firebase appends detail after " : "
_PROVIDER_CODES = {
    "INVALID_EMAIL": InvalidEmailError,
    "MISSING_EMAIL": InvalidEmailError,
    "WEAK_PASSWORD": WeakPasswordError,
    "MISSING_PASSWORD": WeakPasswordError,
    "EMAIL_NOT_FOUND": UserNotFoundError,
    "USER_NOT_FOUND": UserNotFoundError,
    "INVALID_PASSWORD": WrongPasswordError,
    "INVALID_LOGIN_CREDENTIALS": WrongPasswordError,
    "EMAIL_EXISTS": EmailAlreadyInUseError,
}


def map_auth_error(exc: BaseException) -> AuthError:
    """Fold any identity provider failure into the closed AuthError taxonomy."""
    if isinstance(exc, AuthError):
        return exc
    if isinstance(exc, IdentityProviderError):
        code = exc.code.split(" ", 1)[0].strip()
        error_cls = _PROVIDER_CODES.get(code)
        if error_cls is not None:
            return error_cls()
        return UnknownAuthError(exc.message)
    return UnknownAuthError(str(exc) or exc.__class__.__name__)
