"""Report card and dashboard assembly."""

import logging
from collections import Counter

from school_portal.core.config import settings
from school_portal.schemas.assessment import Assessment
from school_portal.schemas.finance import Payment
from school_portal.schemas.ranking import UNRANKED
from school_portal.schemas.report import (
    AttendanceSummary,
    DashboardSummary,
    GradeCount,
    ReportCard,
    ReportCardRow,
    SchoolInfo,
)
from school_portal.schemas.student import Student
from school_portal.schemas.subject import GRADES, Subject, subjects_for_grade
from school_portal.services.assessment import assessments_for_student
from school_portal.services.fees import total_collected
from school_portal.services.grading import level_label
from school_portal.services.ranking import mean_score, rank_of, rank_students

logger = logging.getLogger(__name__)


def school_info() -> SchoolInfo:
    """School identity from settings."""
    return SchoolInfo(
        name=settings.SCHOOL_NAME,
        motto=settings.SCHOOL_MOTTO,
        box=settings.SCHOOL_BOX,
        email=settings.SCHOOL_EMAIL,
        phone=settings.SCHOOL_PHONE,
        logo=settings.SCHOOL_LOGO,
    )


def _attendance(term_assessments: list[Assessment]) -> AttendanceSummary:
    for assessment in term_assessments:
        if assessment.days_present is not None and assessment.total_days is not None:
            return AttendanceSummary(
                days_present=assessment.days_present,
                total_days=assessment.total_days,
            )
    return AttendanceSummary(
        days_present=settings.DEFAULT_DAYS_PRESENT,
        total_days=settings.DEFAULT_TOTAL_DAYS,
    )


def build_report_card(
    student: Student,
    students: list[Student],
    subjects: list[Subject],
    assessments: list[Assessment],
    term: int,
    year: int,
    school: SchoolInfo | None = None,
) -> ReportCard:
    """Termly progress report for one student.

    Lists every subject of the student's grade (the default CBC subjects when
    none are configured), with "-" for subjects not yet assessed. Mean score
    and rank only count the report's term and year.
    """
    grade_subjects = [subject for subject in subjects if subject.grade == student.grade]
    if not grade_subjects:
        grade_subjects = subjects_for_grade(student.grade)

    term_assessments = assessments_for_student(assessments, student.id, term, year)
    by_subject = {assessment.subject_id: assessment for assessment in term_assessments}

    rows = []
    for subject in grade_subjects:
        assessment = by_subject.get(subject.id)
        if assessment is None:
            rows.append(ReportCardRow(subject_id=subject.id, subject_name=subject.name))
            continue
        rows.append(
            ReportCardRow(
                subject_id=subject.id,
                subject_name=subject.name,
                score=assessment.score,
                level=assessment.level.value,
                level_label=level_label(assessment.level),
                remarks=assessment.remarks,
            )
        )

    cohort = [s for s in students if s.grade == student.grade]
    entry = rank_of(rank_students(cohort, assessments, term=term, year=year), student.id)

    logger.debug(f"[REPORT CARD] {student.admission_no}: {len(term_assessments)} of {len(rows)} subjects assessed")
    return ReportCard(
        school=school or school_info(),
        student=student,
        term=term,
        year=year,
        rows=rows,
        attendance=_attendance(term_assessments),
        mean_score=mean_score(term_assessments),
        rank=entry.rank if entry else UNRANKED,
        cohort_size=len(cohort),
    )


def build_dashboard(
    students: list[Student],
    assessments: list[Assessment],
    payments: list[Payment],
    default_term_fee: int | None = None,
) -> DashboardSummary:
    """Headline counts, collections and the per-grade enrolment breakdown.

    The outstanding figure is the flat estimate ``students x default term
    fee - collected``, not a sum of per-student balances.
    """
    default_term_fee = settings.DEFAULT_TERM_FEE if default_term_fee is None else default_term_fee
    collected = total_collected(payments)
    average = mean_score(assessments)

    counts = Counter(student.grade for student in students)
    ordered = [grade for grade in GRADES if grade in counts]
    ordered += [grade for grade in counts if grade not in GRADES]

    return DashboardSummary(
        total_students=len(students),
        total_collected=collected,
        mean_score=round(average, 1) if average is not None else None,
        outstanding_estimate=len(students) * default_term_fee - collected,
        grade_distribution=[GradeCount(grade=grade, count=counts[grade]) for grade in ordered],
    )
