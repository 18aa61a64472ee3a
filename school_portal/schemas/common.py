"""Common schema utilities and base classes."""

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class BaseSchema(BaseModel):
    """Base schema with common configuration.

    Records are stored and exported with camelCase keys (``admissionNo``),
    the format the browser portal wrote, while Python code uses snake_case.
    """

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        str_strip_whitespace=True,
        alias_generator=to_camel,
    )

    def to_record(self) -> dict[str, Any]:
        """Dump to a JSON-ready dict with stored (camelCase) keys."""
        return self.model_dump(mode="json", by_alias=True)


T = TypeVar("T")


class ErrorDetail(BaseSchema):
    """Error detail structure."""

    code: str
    message: str
    details: dict[str, Any] = {}


class SaveResult(BaseSchema):
    """Outcome of persisting a whole collection."""

    success: bool = True
    collection: str
    count: int = 0
    error: ErrorDetail | None = None

    @property
    def message(self) -> str:
        if self.success:
            return f"Saved {self.count} {self.collection}."
        return f"Could not save {self.collection}: {self.error.message if self.error else 'unknown error'}"


class SkippedLine(BaseSchema):
    """An import line that was not turned into a record."""

    line: int
    reason: str
    raw: str = ""


class ImportResult(BaseSchema, Generic[T]):
    """Result of a tolerant bulk import."""

    imported: list[T] = []
    skipped: list[SkippedLine] = []

    @property
    def imported_count(self) -> int:
        return len(self.imported)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)

    @property
    def message(self) -> str:
        total = self.imported_count + self.skipped_count
        message = f"Imported {self.imported_count} of {total} rows."
        if self.skipped:
            message += f" {self.skipped_count} rows skipped."
        return message
