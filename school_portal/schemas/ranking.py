"""Ranking schemas."""

from typing import Literal

from school_portal.schemas.student import Student

UNRANKED = "unranked"


class RankedStudent(Student):
    """A student with their mean score and position in their grade."""

    mean_score: float | None = None
    assessment_count: int = 0
    rank: int | Literal["unranked"] = UNRANKED

    @property
    def is_ranked(self) -> bool:
        return self.rank != UNRANKED
