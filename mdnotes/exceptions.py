"""Custom exception hierarchy for mdnotes."""

from enum import Enum
from typing import Optional, Dict, Any, List


class ErrorCode(str, Enum):
    """Standardized error codes for API responses."""

    # Not-found errors
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    GROUP_NOT_FOUND = "GROUP_NOT_FOUND"
    USER_NOT_FOUND = "USER_NOT_FOUND"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Uniqueness errors
    CONFLICT = "CONFLICT"

    # Auth
    UNAUTHORIZED = "UNAUTHORIZED"

    # Generic errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


class NoteException(Exception):
    """
    Base exception for all mdnotes errors.

    Provides structured error responses with:
    - Human-readable message
    - Machine-readable error code
    - HTTP status code
    - Optional additional details
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize exception.

        Args:
            message: Human-readable error message
            error_code: Machine-readable error code
            status_code: HTTP status code to return
            details: Optional additional context/details
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary for JSON response.

        Returns:
            Dictionary with error, message, and details fields
        """
        return {
            "error": self.error_code.value,
            "message": self.message,
            "details": self.details
        }


class NotFoundError(NoteException):
    """Entity is absent, owned by someone else, or in the wrong lifecycle state."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.FILE_NOT_FOUND,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_code, status_code=404, details=details)


class MarkdownFileNotFoundError(NotFoundError):
    """Markdown file not found for this owner."""

    def __init__(self, file_id: str, message: Optional[str] = None):
        super().__init__(
            message or f"File not found: {file_id}",
            ErrorCode.FILE_NOT_FOUND,
            details={"file_id": file_id}
        )


class GroupNotFoundError(NotFoundError):
    """Group not found for this owner."""

    def __init__(self, group_id: str):
        super().__init__(
            f"Group not found: {group_id}",
            ErrorCode.GROUP_NOT_FOUND,
            details={"group_id": group_id}
        )


class UserNotFoundError(NotFoundError):
    """User not found (or soft-deleted)."""

    def __init__(self, user_id: str):
        super().__init__(
            f"User not found: {user_id}",
            ErrorCode.USER_NOT_FOUND,
            details={"user_id": user_id}
        )


class ValidationError(NoteException):
    """Validation failed for user input."""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(
            message,
            ErrorCode.VALIDATION_ERROR,
            status_code=400,
            details=details
        )


class ConflictError(NoteException):
    """A uniqueness rule would be violated (title, group name, email, username).

    ``titles`` lists every conflicting value when a batch operation is refused.
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        titles: Optional[List[str]] = None,
    ):
        details: Dict[str, Any] = {}
        if field:
            details["field"] = field
        if titles is not None:
            details["titles"] = titles
        super().__init__(
            message,
            ErrorCode.CONFLICT,
            status_code=409,
            details=details
        )


class AuthenticationError(NoteException):
    """Request lacks valid authentication credentials."""

    def __init__(self, message: str = "Invalid or missing authentication token"):
        super().__init__(
            message,
            ErrorCode.UNAUTHORIZED,
            status_code=401,
        )


