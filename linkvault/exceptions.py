"""Custom exception hierarchy for LinkVault."""

from enum import Enum
from typing import Optional, Dict, Any


class ErrorCode(str, Enum):
    """Standardized error codes for API responses."""

    # Identity and scope errors
    UNAUTHORIZED = "UNAUTHORIZED"
    NO_ACTIVE_TEAM = "NO_ACTIVE_TEAM"
    SCOPE_MISMATCH = "SCOPE_MISMATCH"

    # Structural errors
    DUPLICATE_NAME = "DUPLICATE_NAME"
    CYCLIC_MOVE = "CYCLIC_MOVE"
    NOT_FOUND = "NOT_FOUND"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Generic errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


class LinkVaultException(Exception):
    """
    Base exception for all LinkVault errors.

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


class AuthenticationError(LinkVaultException):
    """Request lacks valid authentication credentials."""

    def __init__(self, message: str = "Invalid or missing authentication token"):
        super().__init__(
            message,
            ErrorCode.UNAUTHORIZED,
            status_code=401,
        )


class NoActiveTeamError(LinkVaultException):
    """TEAM scope requested by a caller who does not belong to a team."""

    def __init__(self, message: str = "You are not a member of a team"):
        super().__init__(
            message,
            ErrorCode.NO_ACTIVE_TEAM,
            status_code=403,
        )


class ScopeMismatchError(LinkVaultException):
    """A reference crosses owner scopes where that is not allowed."""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(
            message,
            ErrorCode.SCOPE_MISMATCH,
            status_code=400,
            details=details
        )


class DuplicateNameError(LinkVaultException):
    """A sibling folder or scope tag already uses this name."""

    def __init__(self, kind: str, name: str):
        super().__init__(
            f"A {kind} named '{name}' already exists here",
            ErrorCode.DUPLICATE_NAME,
            status_code=409,
            details={"kind": kind, "name": name}
        )


class CyclicMoveError(LinkVaultException):
    """Moving the folder would make it its own ancestor."""

    def __init__(self, folder_id: str, new_parent_id: str):
        super().__init__(
            "Cannot move a folder into itself or one of its descendants",
            ErrorCode.CYCLIC_MOVE,
            status_code=400,
            details={"folder_id": folder_id, "new_parent_id": new_parent_id}
        )


class NotFoundError(LinkVaultException):
    """Resource does not exist or is outside the caller's scopes.

    The two cases are deliberately indistinguishable to the caller.
    """

    def __init__(self, kind: str, resource_id: str):
        super().__init__(
            f"{kind.capitalize()} not found: {resource_id}",
            ErrorCode.NOT_FOUND,
            status_code=404,
            details={"kind": kind, "id": resource_id}
        )


class FolderNotFoundError(NotFoundError):
    def __init__(self, folder_id: str):
        super().__init__("folder", folder_id)


class LinkNotFoundError(NotFoundError):
    def __init__(self, link_id: str):
        super().__init__("link", link_id)


class TagNotFoundError(NotFoundError):
    def __init__(self, tag_id: str):
        super().__init__("tag", tag_id)


class ValidationError(LinkVaultException):
    """Validation failed for user input."""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(
            message,
            ErrorCode.VALIDATION_ERROR,
            status_code=400,
            details=details
        )
