"""Report card and dashboard schemas."""

from school_portal.schemas.common import BaseSchema
from school_portal.schemas.student import Student


class SchoolInfo(BaseSchema):
    """School identity printed on the report card header."""

    name: str
    motto: str
    box: str
    email: str
    phone: str
    logo: str


class ReportCardRow(BaseSchema):
    """One subject line on a report card."""

    subject_id: str
    subject_name: str
    score: int | None = None
    level: str | None = None
    level_label: str = "-"
    remarks: str = ""


class AttendanceSummary(BaseSchema):
    """Days present out of days open."""

    days_present: int
    total_days: int

    @property
    def display(self) -> str:
        return f"{self.days_present} / {self.total_days} Days"


class ReportCard(BaseSchema):
    """Termly progress report for one learner."""

    school: SchoolInfo
    student: Student
    term: int
    year: int
    rows: list[ReportCardRow] = []
    attendance: AttendanceSummary
    mean_score: float | None = None
    rank: int | str = "unranked"
    cohort_size: int = 0


class GradeCount(BaseSchema):
    """Number of learners enrolled in a grade."""

    grade: str
    count: int


class DashboardSummary(BaseSchema):
    """Headline figures for the landing dashboard."""

    total_students: int = 0
    total_collected: int = 0
    mean_score: float | None = None
    outstanding_estimate: int = 0
    grade_distribution: list[GradeCount] = []
