"""Student schemas."""

from pydantic import Field

from school_portal.schemas.common import BaseSchema


class Student(BaseSchema):
    """A registered learner."""

    id: str = Field(..., min_length=1)
    admission_no: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=255)
    gender: str | None = Field(None, max_length=20)
    grade: str = Field(..., min_length=1, max_length=20)
    stream: str = Field("", max_length=50)
    parent_name: str = Field("", max_length=255)
    parent_phone: str = Field("", max_length=50)
    term: int = Field(1, ge=1, le=3)
    year: int = 2024
    admission_date: str = ""


class StudentFilter(BaseSchema):
    """Student filter options."""

    grade: str | None = None
    stream: str | None = None
    search: str | None = None  # Search by name or admission number
