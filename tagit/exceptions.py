"""Custom exception hierarchy for the tagger core."""

from enum import Enum
from typing import Optional, Dict, Any, List


class ErrorCode(str, Enum):
    """Standardized error codes surfaced to presentation layers."""

    # Input errors
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Lookup errors
    TAG_NOT_FOUND = "TAG_NOT_FOUND"
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    FOLDER_NOT_FOUND = "FOLDER_NOT_FOUND"

    # Selection state could not be carried across a structural change
    RECONCILIATION_FAILED = "RECONCILIATION_FAILED"

    # Persistence errors
    STORE_ERROR = "STORE_ERROR"

    # The user answered "no" to a required confirmation
    USER_DECLINED = "USER_DECLINED"


class TagitException(Exception):
    """
    Base exception for all tagger errors.

    Provides structured error information with:
    - Human-readable message
    - Machine-readable error code
    - Optional additional details
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to a dictionary for display or logging.

        Returns:
            Dictionary with error, message, and details fields
        """
        return {
            "error": self.error_code.value,
            "message": self.message,
            "details": self.details
        }


class ValidationError(TagitException):
    """Invalid tag or file name, duplicate sibling, unsupported extension."""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(
            message,
            ErrorCode.VALIDATION_ERROR,
            details=details
        )


class NotFoundError(TagitException):
    """An operation referenced a tag or file that no longer exists."""


class TagNotFoundError(NotFoundError):
    """Tag not found in the store (or never persisted)."""

    def __init__(self, tag_id: int):
        super().__init__(
            f"Tag not found: {tag_id}",
            ErrorCode.TAG_NOT_FOUND,
            details={"tag_id": tag_id}
        )


class FileRecordNotFoundError(NotFoundError):
    """File not found in the store."""

    def __init__(self, file_name: str):
        super().__init__(
            f"File not found: {file_name}",
            ErrorCode.FILE_NOT_FOUND,
            details={"file_name": file_name}
        )


class FolderNotFoundError(NotFoundError):
    """Managed folder not found in the registry."""

    def __init__(self, folder_name: str):
        super().__init__(
            f"Managed folder not found: {folder_name}",
            ErrorCode.FOLDER_NOT_FOUND,
            details={"folder": folder_name}
        )


class ReconciliationError(TagitException):
    """Selected tags could not be relocated after a structural change.

    Callers rebuild their selection from the currently checked tags instead
    of trusting the incremental delta.
    """

    def __init__(self, tag_ids: List[int]):
        super().__init__(
            f"Unable to relocate {len(tag_ids)} selected tag(s)",
            ErrorCode.RECONCILIATION_FAILED,
            details={"tag_ids": list(tag_ids)}
        )
        self.tag_ids = list(tag_ids)


class StoreError(TagitException):
    """Persistence operation failed."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        details = {}
        if original_error:
            details["original_error"] = str(original_error)

        super().__init__(
            message,
            ErrorCode.STORE_ERROR,
            details=details
        )
        self.original_error = original_error


class UserDeclinedError(TagitException):
    """The user declined a confirmation; the requested action had no effect."""

    def __init__(self, action: str, tag_name: Optional[str] = None):
        details = {"action": action}
        if tag_name is not None:
            details["tag"] = tag_name
        super().__init__(
            f"Cancelled by user: {action}",
            ErrorCode.USER_DECLINED,
            details=details
        )
        self.action = action
