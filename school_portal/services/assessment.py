"""Assessment entry and merge/upsert."""

import logging

from school_portal.schemas.assessment import Assessment, AssessmentKey, ScoreEntry
from school_portal.services.grading import clamp_score

logger = logging.getLogger(__name__)


def merge_assessments(
    existing: list[Assessment],
    incoming: list[Assessment],
) -> list[Assessment]:
    """Upsert ``incoming`` into ``existing`` by (student, subject, term, year).

    Incoming records are applied in order: a matching key is replaced in
    place, otherwise the record is appended. Within one batch the last record
    for a key wins. Neither input list is modified.
    """
    merged = list(existing)
    positions: dict[AssessmentKey, int] = {}
    for idx, record in enumerate(merged):
        positions.setdefault(record.key, idx)

    replaced = 0
    for record in incoming:
        idx = positions.get(record.key)
        if idx is None:
            positions[record.key] = len(merged)
            merged.append(record)
        else:
            merged[idx] = record
            replaced += 1

    logger.debug(
        f"[ASSESSMENT MERGE] {len(incoming)} incoming, {replaced} replaced, "
        f"{len(incoming) - replaced} appended"
    )
    return merged


def build_assessments(
    student_id: str,
    entries: list[ScoreEntry],
    term: int,
    year: int,
) -> list[Assessment]:
    """Turn marks-entry form values into assessments, clamping scores to 0-100."""
    return [
        Assessment(
            student_id=student_id,
            subject_id=entry.subject_id,
            term=term,
            year=year,
            score=clamp_score(entry.score),
            remarks=entry.remarks,
            days_present=entry.days_present,
            total_days=entry.total_days,
        )
        for entry in entries
    ]


def assessments_for_student(
    assessments: list[Assessment],
    student_id: str,
    term: int | None = None,
    year: int | None = None,
) -> list[Assessment]:
    """A student's assessments, optionally limited to a term and/or year."""
    return [
        a
        for a in assessments
        if a.student_id == student_id
        and (term is None or a.term == term)
        and (year is None or a.year == year)
    ]
