"""Custom exception classes and error handling."""

from typing import Any


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        code: str,
        message: str,
        details: dict[str, Any] | None = None,
    ):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Error payload in the standard shape."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(AppException):
    """Data validation failed."""

    def __init__(
        self,
        message: str = "Validation error",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            code="VALIDATION_ERROR",
            message=message,
            details=details,
        )


class UploadError(AppException):
    """Workbook upload could not be read."""

    def __init__(
        self,
        message: str = "Upload failed",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            code="UPLOAD_FAILED",
            message=message,
            details=details,
        )


class NotFoundError(AppException):
    """Resource not found."""

    def __init__(
        self,
        resource: str = "Resource",
        identifier: str | None = None,
    ):
        details = {}
        if identifier:
            details["identifier"] = identifier
        super().__init__(
            code="NOT_FOUND",
            message=f"{resource} not found",
            details=details,
        )


class PersistenceError(AppException):
    """Collection could not be written to the store."""

    def __init__(
        self,
        collection: str,
        message: str = "Failed to save collection",
        details: dict[str, Any] | None = None,
    ):
        details = dict(details or {})
        details["collection"] = collection
        super().__init__(
            code="PERSISTENCE_ERROR",
            message=message,
            details=details,
        )


class StorageQuotaError(PersistenceError):
    """Saving the collection would exceed the store quota."""

    def __init__(self, collection: str, required_bytes: int, quota_bytes: int):
        super().__init__(
            collection,
            message="Storage quota exceeded",
            details={
                "required_bytes": required_bytes,
                "quota_bytes": quota_bytes,
            },
        )
        self.code = "STORAGE_QUOTA_EXCEEDED"
