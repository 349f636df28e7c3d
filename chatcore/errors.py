"""Error taxonomy for the chat client core.

Expected failures (bad credentials, expired token, network trouble, server
errors, unexpected payloads) are `ChatClientError` subclasses carrying a
human-readable message. `NoTokenError` marks a contract violation: an
operation that needs a session was attempted without one. It is not an
`AuthError`, so handlers for expected auth failures never swallow it.
"""

from typing import Any, Optional

UNKNOWN_ERROR_MESSAGE = "An unknown error occurred."
MALFORMED_RESPONSE_MESSAGE = "The server sent an unexpected response."


class ChatClientError(Exception):
    """Base class for every failure raised by the client core."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        """Initialize ChatClientError.

        Args:
            message: Human-readable error message
            original_error: Original exception that caused this error (optional)
        """
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class AuthError(ChatClientError):
    """Bad credentials, or a token the server rejected as invalid/expired."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message, original_error=original_error)
        self.status_code = status_code

    @classmethod
    def invalid_credentials(cls, status_code: Optional[int] = None) -> "AuthError":
        """Create error for a rejected login."""
        return cls("Invalid email or password", status_code=status_code)

    @classmethod
    def token_rejected(cls, status_code: int, detail: Optional[str] = None) -> "AuthError":
        """Create error for a token the server no longer accepts."""
        message = detail or f"Session expired or invalid (status {status_code}). Please log in again."
        return cls(message, status_code=status_code)


class NoTokenError(ChatClientError):
    """An authenticated operation was attempted with no session token."""

    def __init__(self, message: str = "No token available"):
        super().__init__(message)


class TransportError(ChatClientError):
    """Network failure or timeout before a response was received."""

    @classmethod
    def from_exception(cls, error: Exception) -> "TransportError":
        """Create error from an httpx transport exception."""
        error_type = type(error).__name__
        detail = str(error) or error_type
        return cls(f"Network error ({error_type}): {detail}", original_error=error)


class ServerError(ChatClientError):
    """Non-2xx response that is not an authorization failure."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message, original_error=original_error)
        self.status_code = status_code

    @classmethod
    def from_status(cls, status_code: int, body: Any = None) -> "ServerError":
        """Create error from a status code and an optional decoded body.

        The body's `error` field wins, then `message`, `msg`, `detail`; otherwise a
        generic status message is used.
        """
        return cls(error_detail(body) or f"HTTP error! status: {status_code}", status_code=status_code)


class MalformedResponseError(ChatClientError):
    """2xx response whose body does not have the expected shape.

    The message is user-facing; the endpoint and cause are kept as attributes
    for logging.
    """

    def __init__(
        self,
        message: str = MALFORMED_RESPONSE_MESSAGE,
        endpoint: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message, original_error=original_error)
        self.endpoint = endpoint

    @classmethod
    def from_validation(cls, endpoint: str, error: Exception) -> "MalformedResponseError":
        """Create error for a body that failed to decode or validate."""
        return cls(endpoint=endpoint, original_error=error)


class StorageError(ChatClientError):
    """Durable key-value storage could not be read or written."""

    @classmethod
    def from_exception(cls, operation: str, error: Exception) -> "StorageError":
        return cls(f"Storage {operation} failed: {error}", original_error=error)


def error_detail(body: Any) -> Optional[str]:
    """Extract a server-supplied error description from a decoded body."""
    if not isinstance(body, dict):
        return None
    for key in ("error", "message", "msg", "detail"):
        value = body.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return None


def describe_error(error: BaseException) -> str:
    """Human-readable text for any failure, used for in-thread error messages."""
    if isinstance(error, ChatClientError):
        return error.message
    text = str(error)
    return text if text else UNKNOWN_ERROR_MESSAGE
