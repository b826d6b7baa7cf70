# =============================================================================
# app/exceptions.py - Client Error Taxonomy
# =============================================================================
# Every failure the sync core can surface is a MemeFeedException subclass.
# Each carries a machine-readable code, an actionable suggestion and a
# user_message that is safe to display (no internal detail leaks).
#
# Taxonomy:
#   UnauthorizedError       - API answered 401; session cleared, redirected
#   NotFoundError           - API answered 404 / unknown local item
#   TokenExpiredError       - local expiry check failed; session cleared
#   NotAuthenticatedError   - authenticated call attempted while signed out
#   ValidationFailureError  - client-side check blocked a submission
#   TransportOrServerError  - anything else (network, 5xx, bad payload)
#   WrongCredentialsError   - login rejected the username/password
#   UnknownLoginError       - login failed for any other reason
# =============================================================================

from typing import Any

GENERIC_ERROR_MESSAGE = "Something went wrong, please try again later"


class MemeFeedException(Exception):
    """
    Base exception for the meme feed client.

    All custom exceptions inherit from this class.
    """

    user_message: str = GENERIC_ERROR_MESSAGE

    def __init__(
        self,
        message: str,
        code: str = "MEMEFEED_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.suggestion = suggestion
        self.details = details or {}

    def __str__(self) -> str:
        result = f"[{self.code}] {self.message}"
        if self.suggestion:
            result += f" Suggestion: {self.suggestion}"
        return result

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a plain dict (for logs / UI error payloads)."""
        result = {
            "detail": self.message,
            "code": self.code,
        }
        if self.suggestion:
            result["suggestion"] = self.suggestion
        if self.details:
            result["details"] = self.details
        return result


# =============================================================================
# Session Exceptions
# =============================================================================

class UnauthorizedError(MemeFeedException):
    """Raised when the API rejects the bearer token (HTTP 401)."""

    user_message = "Your session has ended, please sign in again"

    def __init__(self, path: str):
        super().__init__(
            message=f"Unauthorized request: {path}",
            code="UNAUTHORIZED",
            suggestion="Sign in again to obtain a fresh token",
            details={"path": path}
        )


class TokenExpiredError(MemeFeedException):
    """Raised when the stored token's expiry instant has passed."""

    user_message = "Your session has expired, please sign in again"

    def __init__(self, expired_at: int | None = None):
        super().__init__(
            message="Token has expired",
            code="TOKEN_EXPIRED",
            suggestion="Sign in again to obtain a fresh token",
            details={"expired_at": expired_at} if expired_at is not None else None
        )


class NotAuthenticatedError(MemeFeedException):
    """Raised when an authenticated operation is attempted while signed out."""

    user_message = "Please sign in to continue"

    def __init__(self):
        super().__init__(
            message="User is not authenticated",
            code="NOT_AUTHENTICATED",
            suggestion="Call SessionStore.authenticate() or log in first"
        )


# =============================================================================
# Resource Exceptions
# =============================================================================

class NotFoundError(MemeFeedException):
    """Raised when the API answers 404 or a local item id is unknown."""

    user_message = "This content could not be found"

    def __init__(self, resource: str):
        super().__init__(
            message=f"Not found: {resource}",
            code="NOT_FOUND",
            suggestion="Check that the id is correct and the content still exists",
            details={"resource": resource}
        )


class ValidationFailureError(MemeFeedException):
    """Raised when a client-side check blocks a submission."""

    def __init__(self, field: str, reason: str):
        super().__init__(
            message=f"Invalid {field}: {reason}",
            code="VALIDATION_FAILURE",
            suggestion=f"Provide a valid {field} before submitting",
            details={"field": field, "reason": reason}
        )

    @property
    def user_message(self) -> str:  # type: ignore[override]
        return f"Please provide a {self.details['field']}"


class TransportOrServerError(MemeFeedException):
    """Raised for network failures and any unexpected API status."""

    def __init__(self, path: str, error: str, status_code: int | None = None):
        details: dict[str, Any] = {"path": path, "error": error}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(
            message=f"Request failed: {path}: {error}",
            code="TRANSPORT_OR_SERVER_ERROR",
            suggestion="Try again later or check API_BASE_URL",
            details=details
        )
        self.status_code = status_code


# =============================================================================
# Login Exceptions
# =============================================================================

class WrongCredentialsError(MemeFeedException):
    """Raised when the login endpoint rejects the username/password."""

    user_message = "Wrong credentials"

    def __init__(self, username: str):
        super().__init__(
            message=f"Wrong credentials for user: {username}",
            code="WRONG_CREDENTIALS",
            suggestion="Check the username and password",
            details={"username": username}
        )


class UnknownLoginError(MemeFeedException):
    """Raised when login fails for any reason other than bad credentials."""

    user_message = "An unknown error occurred, please try again later"

    def __init__(self, error: str):
        super().__init__(
            message=f"Login failed: {error}",
            code="LOGIN_FAILED",
            suggestion="Try again later",
            details={"error": error}
        )


# =============================================================================
# Helpers
# =============================================================================

def user_message_for(exc: BaseException) -> str:
    """
    Map any exception to a message that is safe to show to the user.

    Known client errors use their own wording; everything else degrades
    to the generic message.
    """
    if isinstance(exc, MemeFeedException):
        return exc.user_message
    return GENERIC_ERROR_MESSAGE
