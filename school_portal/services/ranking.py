"""Per-grade leaderboards."""

import logging

from school_portal.schemas.assessment import Assessment
from school_portal.schemas.ranking import UNRANKED, RankedStudent
from school_portal.schemas.student import Student
from school_portal.services.assessment import assessments_for_student

logger = logging.getLogger(__name__)


def mean_score(assessments: list[Assessment]) -> float | None:
    """Average score, or None when there is nothing to average."""
    if not assessments:
        return None
    return sum(a.score for a in assessments) / len(assessments)


def rank_students(
    students: list[Student],
    assessments: list[Assessment],
    term: int | None = None,
    year: int | None = None,
) -> list[RankedStudent]:
    """Rank students by mean score within their grade.

    By default every assessment a student has, across all terms and years,
    counts towards the mean. Pass ``term`` and/or ``year`` to restrict it.

    Output is grouped by grade in order of first appearance. Within a grade,
    ranked students come first by descending mean with ties kept in input
    order (so ranks are always 1..n), then students with no assessments,
    who are "unranked".
    """
    cohorts: dict[str, list[RankedStudent]] = {}
    for student in students:
        own = assessments_for_student(assessments, student.id, term, year)
        cohorts.setdefault(student.grade, []).append(
            RankedStudent(
                **student.model_dump(),
                mean_score=mean_score(own),
                assessment_count=len(own),
            )
        )

    leaderboard: list[RankedStudent] = []
    for grade, cohort in cohorts.items():
        ranked = [s for s in cohort if s.assessment_count > 0]
        unranked = [s for s in cohort if s.assessment_count == 0]
        # list.sort is stable; equal means keep their input order
        ranked.sort(key=lambda s: s.mean_score, reverse=True)
        for position, entry in enumerate(ranked, start=1):
            entry.rank = position
        for entry in unranked:
            entry.rank = UNRANKED
        leaderboard.extend(ranked)
        leaderboard.extend(unranked)
        logger.debug(f"[RANKING] {grade}: {len(ranked)} ranked, {len(unranked)} unranked")

    return leaderboard


def rank_of(leaderboard: list[RankedStudent], student_id: str) -> RankedStudent | None:
    """Look up one student's entry in a leaderboard."""
    for entry in leaderboard:
        if entry.id == student_id:
            return entry
    return None
