"""Tests for assessment merge/upsert."""

from school_portal.models.enums import PerformanceLevel
from school_portal.schemas.assessment import ScoreEntry
from school_portal.services.assessment import assessments_for_student, build_assessments, merge_assessments

from conftest import make_assessment


def test_matching_key_is_replaced_in_place():
    existing = [
        make_assessment("s1", "mat_up", 50),
        make_assessment("s1", "eng_up", 60),
        make_assessment("s2", "mat_up", 70),
    ]
    merged = merge_assessments(existing, [make_assessment("s1", "eng_up", 90)])

    assert [(a.student_id, a.subject_id, a.score) for a in merged] == [
        ("s1", "mat_up", 50),
        ("s1", "eng_up", 90),
        ("s2", "mat_up", 70),
    ]
    assert merged[1].level is PerformanceLevel.EXCEEDING


def test_new_keys_are_appended():
    existing = [make_assessment("s1", "mat_up", 50)]
    merged = merge_assessments(existing, [make_assessment("s1", "mat_up", 50, term=2)])
    assert len(merged) == 2
    assert merged[1].term == 2


def test_year_is_part_of_the_key():
    existing = [make_assessment("s1", "mat_up", 50, year=2023)]
    merged = merge_assessments(existing, [make_assessment("s1", "mat_up", 75, year=2024)])
    assert [a.score for a in merged] == [50, 75]


def test_last_entry_in_a_batch_wins():
    batch = [
        make_assessment("s1", "mat_up", 40),
        make_assessment("s1", "sci_up", 55),
        make_assessment("s1", "mat_up", 88),
    ]
    merged = merge_assessments([], batch)

    assert len(merged) == 2
    assert merged[0].subject_id == "mat_up"
    assert merged[0].score == 88


def test_merge_is_idempotent():
    existing = [make_assessment("s1", "mat_up", 50), make_assessment("s2", "mat_up", 65)]
    batch = [make_assessment("s1", "mat_up", 70), make_assessment("s3", "eng_up", 45)]

    once = merge_assessments(existing, batch)
    twice = merge_assessments(once, batch)

    assert twice == once
    assert len({a.key for a in twice}) == len(twice)


def test_inputs_are_not_modified():
    existing = [make_assessment("s1", "mat_up", 50)]
    batch = [make_assessment("s1", "mat_up", 70)]
    merge_assessments(existing, batch)
    assert existing[0].score == 50
    assert len(existing) == 1


def test_build_assessments_clamps_and_grades():
    entries = [
        ScoreEntry(subject_id="mat_up", score=120, remarks="Excellent"),
        ScoreEntry(subject_id="eng_up", score=-3),
        ScoreEntry(subject_id="sci_up", score=62, days_present=60, total_days=70),
    ]
    batch = build_assessments("s1", entries, term=2, year=2024)

    assert [(a.score, a.level) for a in batch] == [
        (100, PerformanceLevel.EXCEEDING),
        (0, PerformanceLevel.BELOW),
        (62, PerformanceLevel.MEETING),
    ]
    assert batch[0].remarks == "Excellent"
    assert batch[2].days_present == 60
    assert all(a.term == 2 and a.student_id == "s1" for a in batch)


def test_assessments_for_student_filters():
    records = [
        make_assessment("s1", "mat_up", 50, term=1),
        make_assessment("s1", "mat_up", 60, term=2),
        make_assessment("s2", "mat_up", 70, term=1),
    ]
    assert len(assessments_for_student(records, "s1")) == 2
    assert [a.score for a in assessments_for_student(records, "s1", term=2)] == [60]
    assert assessments_for_student(records, "s1", year=2023) == []
