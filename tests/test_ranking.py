"""Tests for per-grade ranking."""

import pytest

from school_portal.schemas.ranking import UNRANKED
from school_portal.services.ranking import mean_score, rank_of, rank_students

from conftest import make_assessment, make_student


def test_ties_keep_input_order(students):
    grade_four = students[:3]
    assessments = [
        make_assessment("s1", "mat_up", 70),
        make_assessment("s2", "mat_up", 90),
        make_assessment("s3", "mat_up", 70),
    ]
    leaderboard = rank_students(grade_four, assessments)

    assert [(entry.id, entry.mean_score, entry.rank) for entry in leaderboard] == [
        ("s2", 90.0, 1),
        ("s1", 70.0, 2),
        ("s3", 70.0, 3),
    ]


def test_students_without_assessments_are_unranked(students):
    assessments = [make_assessment("s2", "mat_up", 40)]
    leaderboard = rank_students(students[:3], assessments)

    assert [(entry.id, entry.rank) for entry in leaderboard] == [
        ("s2", 1),
        ("s1", UNRANKED),
        ("s3", UNRANKED),
    ]
    assert leaderboard[1].mean_score is None
    assert not leaderboard[1].is_ranked


def test_lone_student_without_assessments_is_unranked():
    solo = [make_student("x1", "ADM100", "Solo Learner", grade="PP1")]
    leaderboard = rank_students(solo, [])
    assert leaderboard[0].rank == UNRANKED
    assert leaderboard[0].assessment_count == 0


def test_ranks_are_per_grade(students):
    assessments = [
        make_assessment("s1", "mat_up", 60),
        make_assessment("s2", "mat_up", 80),
        make_assessment("s4", "mat_j", 30),
    ]
    leaderboard = rank_students(students, assessments)

    assert rank_of(leaderboard, "s2").rank == 1
    assert rank_of(leaderboard, "s1").rank == 2
    assert rank_of(leaderboard, "s4").rank == 1
    assert rank_of(leaderboard, "missing") is None


def test_mean_uses_all_history_by_default(students):
    assessments = [
        make_assessment("s1", "mat_up", 90, term=1),
        make_assessment("s1", "mat_up", 50, term=2),
        make_assessment("s1", "eng_up", 70, year=2023),
    ]
    entry = rank_of(rank_students(students[:1], assessments), "s1")
    assert entry.mean_score == pytest.approx(70.0)
    assert entry.assessment_count == 3


def test_term_and_year_filters_are_opt_in(students):
    assessments = [
        make_assessment("s1", "mat_up", 90, term=1),
        make_assessment("s1", "mat_up", 50, term=2),
        make_assessment("s2", "mat_up", 60, term=2),
    ]
    leaderboard = rank_students(students[:2], assessments, term=2, year=2024)

    assert [(entry.id, entry.mean_score, entry.rank) for entry in leaderboard] == [
        ("s2", 60.0, 1),
        ("s1", 50.0, 2),
    ]


def test_ranked_student_exports_camel_case(students):
    entry = rank_students(students[:1], [make_assessment("s1", "mat_up", 75)])[0]
    record = entry.to_record()
    assert record["meanScore"] == 75.0
    assert record["rank"] == 1
    assert record["admissionNo"] == "ADM001"


def test_mean_score_empty():
    assert mean_score([]) is None
