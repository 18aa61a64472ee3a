"""Assessment schemas."""

from pydantic import Field, model_validator

from school_portal.models.enums import PerformanceLevel
from school_portal.schemas.common import BaseSchema
from school_portal.services.grading import classify

AssessmentKey = tuple[str, str, int, int]


class Assessment(BaseSchema):
    """One learner's score in one subject for a term.

    ``level`` is always recomputed from ``score``; any supplied level is
    overwritten.
    """

    student_id: str = Field(..., min_length=1)
    subject_id: str = Field(..., min_length=1)
    term: int
    year: int
    score: int
    level: PerformanceLevel = PerformanceLevel.BELOW
    remarks: str = ""
    days_present: int | None = None
    total_days: int | None = None

    @model_validator(mode="after")
    def derive_level(self) -> "Assessment":
        self.level = classify(self.score)
        return self

    @property
    def key(self) -> AssessmentKey:
        return (self.student_id, self.subject_id, self.term, self.year)


class ScoreEntry(BaseSchema):
    """A score typed into the marks-entry form for one subject."""

    subject_id: str
    score: int = 0
    remarks: str = ""
    days_present: int | None = None
    total_days: int | None = None
