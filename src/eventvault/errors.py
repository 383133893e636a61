"""
Error classification for eventvault.

Every failure surfaced to a user is an ``EventVaultError`` subclass. The
category decides how the REST layer answers (validation -> 400, not found ->
404, everything else -> 500); there is no recoverable/fatal split and no
retry policy attached to an error.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from .logging_config import log_error


class ErrorCategory(Enum):
    """Error categories for classification and handling."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    STORAGE = "storage"
    DATABASE = "database"
    UPLOAD = "upload"
    NETWORK = "network"
    CONFIGURATION = "configuration"
    UNKNOWN = "unknown"


_USER_MESSAGES = {
    ErrorCategory.VALIDATION: "Some of the submitted data is invalid. Please check it and try again.",
    ErrorCategory.NOT_FOUND: "The requested asset could not be found.",
    ErrorCategory.STORAGE: "The file storage service reported an error.",
    ErrorCategory.DATABASE: "The asset catalogue reported an error.",
    ErrorCategory.UPLOAD: "The upload could not be completed.",
    ErrorCategory.NETWORK: "A network error occurred. Please check your connection.",
    ErrorCategory.CONFIGURATION: "The application is not fully configured. Run the setup checks.",
    ErrorCategory.UNKNOWN: "An unexpected error occurred.",
}


@dataclass
class ErrorInfo:
    """Structured error information."""

    category: ErrorCategory
    code: str
    message: str
    user_message: str
    details: dict[str, Any]
    timestamp: datetime

    def to_dict(self) -> dict[str, Any]:
        """Convert error info to dictionary."""
        return {
            "category": self.category.value,
            "code": self.code,
            "message": self.message,
            "user_message": self.user_message,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
        }


class EventVaultError(Exception):
    """Base exception class for eventvault."""

    category = ErrorCategory.UNKNOWN

    def __init__(
        self,
        message: str,
        code: str | None = None,
        user_message: str | None = None,
        details: dict[str, Any] | None = None,
        original_exception: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or f"{self.category.value}_error"
        self.user_message = user_message or _USER_MESSAGES[self.category]
        self.details = details or {}
        self.original_exception = original_exception
        self.timestamp = datetime.now()

        self._log_error()

    def _log_error(self) -> None:
        error_context: dict[str, Any] = {"category": self.category.value, "code": self.code, "details": self.details}
        if self.original_exception:
            error_context["original_exception"] = str(self.original_exception)
        log_error(self, error_context)

    def get_error_info(self) -> ErrorInfo:
        """Get structured error information."""
        return ErrorInfo(
            category=self.category,
            code=self.code,
            message=self.message,
            user_message=self.user_message,
            details=self.details,
            timestamp=self.timestamp,
        )


class ValidationError(EventVaultError):
    """Invalid user input, caught before any I/O."""

    category = ErrorCategory.VALIDATION


class NotFoundError(EventVaultError):
    """A requested record does not exist."""

    category = ErrorCategory.NOT_FOUND


class StorageError(EventVaultError):
    """Object storage failures (signing, upload, delete, listing)."""

    category = ErrorCategory.STORAGE


class DatabaseError(EventVaultError):
    """Metadata store failures."""

    category = ErrorCategory.DATABASE


class UploadError(EventVaultError):
    """A step of the direct-upload workflow failed for a file."""

    category = ErrorCategory.UPLOAD


class NetworkError(EventVaultError):
    """Transport failures talking to the API or the object store."""

    category = ErrorCategory.NETWORK


class ConfigurationError(EventVaultError):
    """Missing or invalid configuration values."""

    category = ErrorCategory.CONFIGURATION


def error_message(error: Exception) -> str:
    """
    Human-readable text for an error, suitable for ``{"error": ...}`` payloads.

    Args:
        error: Any exception

    Returns:
        str: The error's own message, or a generic one when it has none
    """
    text = str(error)
    if text:
        return text
    if isinstance(error, EventVaultError):
        return error.user_message
    return _USER_MESSAGES[ErrorCategory.UNKNOWN]
