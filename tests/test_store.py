"""Tests for the collection store and repository."""

import pytest

from school_portal.core.exceptions import StorageQuotaError
from school_portal.services.store import CollectionStore, SchoolRepository

from conftest import make_assessment


def test_absent_collection_loads_empty(store):
    assert store.load("students") == []


def test_save_overwrites_whole_collection(store):
    store.save("payments", [{"id": "p1"}, {"id": "p2"}])
    store.save("payments", [{"id": "p3"}])
    assert store.load("payments") == [{"id": "p3"}]


def test_quota_exceeded_keeps_previous_content(session_factory):
    store = CollectionStore(session_factory=session_factory, quota_bytes=200)
    store.save("students", [{"id": "s1"}])

    with pytest.raises(StorageQuotaError) as exc_info:
        store.save("students", [{"id": "x" * 300}])

    assert exc_info.value.code == "STORAGE_QUOTA_EXCEEDED"
    assert exc_info.value.details["collection"] == "students"
    assert store.load("students") == [{"id": "s1"}]


def test_quota_counts_other_collections(session_factory):
    store = CollectionStore(session_factory=session_factory, quota_bytes=120)
    store.save("students", [{"id": "y" * 80}])
    with pytest.raises(StorageQuotaError):
        store.save("payments", [{"id": "z" * 50}])


def test_repository_round_trip_uses_stored_keys(repository, students, store):
    result = repository.save_students(students)

    assert result.success
    assert result.count == 4
    assert store.load("students")[0]["admissionNo"] == "ADM001"
    assert repository.load_students() == students


def test_repository_reports_failed_save(session_factory, students):
    repository = SchoolRepository(CollectionStore(session_factory=session_factory, quota_bytes=10))
    result = repository.save_students(students)

    assert not result.success
    assert result.error.code == "STORAGE_QUOTA_EXCEEDED"
    assert "Could not save students" in result.message
    assert repository.load_students() == []


def test_repository_skips_unreadable_items(store, repository):
    good = make_assessment("s1", "mat_up", 64).to_record()
    store.save("assessments", [good, {"studentId": "s2"}, "not a record"])

    loaded = repository.load_assessments()
    assert len(loaded) == 1
    assert loaded[0].score == 64


def test_absent_optional_keys_default(store, repository):
    store.save("subjects", [{"id": "mat_up", "name": "Mathematics"}])
    subject = repository.load_subjects()[0]
    assert subject.category.value == "Primary"
    assert subject.teacher_name is None
