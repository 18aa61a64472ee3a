"""CBC grading bands."""

from school_portal.models.enums import PerformanceLevel

# Inclusive lower bound of each band, highest first
LEVEL_THRESHOLDS: list[tuple[int, PerformanceLevel]] = [
    (80, PerformanceLevel.EXCEEDING),
    (60, PerformanceLevel.MEETING),
    (40, PerformanceLevel.APPROACHING),
]


def classify(score: int) -> PerformanceLevel:
    """Map a score to its performance band.

    Does not validate the range: negative scores fall to Below Expectations
    and scores above 100 to Exceeding Expectations.
    """
    for lower_bound, level in LEVEL_THRESHOLDS:
        if score >= lower_bound:
            return level
    return PerformanceLevel.BELOW


def level_label(level: PerformanceLevel | str) -> str:
    """Short label printed in report tables ("Exceeding", "Meeting", ...)."""
    value = level.value if isinstance(level, PerformanceLevel) else str(level)
    return value.split(" ")[0]


def level_code(level: PerformanceLevel) -> str:
    return level.code


def clamp_score(score: int) -> int:
    """Clamp a form-entered score into 0-100."""
    return max(0, min(100, score))
