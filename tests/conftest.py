"""Shared fixtures."""

import pytest
from sqlalchemy.pool import StaticPool

from school_portal.core.database import build_engine, build_session_factory, init_db
from school_portal.models.enums import PaymentMode
from school_portal.schemas.assessment import Assessment
from school_portal.schemas.finance import FeeItem, FeeStructure, Payment
from school_portal.schemas.student import Student
from school_portal.services.store import CollectionStore, SchoolRepository


def make_student(student_id: str, admission_no: str, name: str, grade: str = "Grade 4", **kwargs) -> Student:
    data = {
        "id": student_id,
        "admission_no": admission_no,
        "name": name,
        "grade": grade,
        "stream": "East",
        "parent_name": f"Parent of {name}",
        "parent_phone": "+254700000000",
        "term": 1,
        "year": 2024,
        "admission_date": "2024-01-08",
    }
    data.update(kwargs)
    return Student(**data)


def make_assessment(student_id: str, subject_id: str, score: int, term: int = 1, year: int = 2024, **kwargs) -> Assessment:
    return Assessment(student_id=student_id, subject_id=subject_id, score=score, term=term, year=year, **kwargs)


def make_payment(payment_id: str, student_id: str, amount: int, term: int = 1, date: str = "2024-02-01T08:00:00+00:00") -> Payment:
    return Payment(
        id=payment_id,
        student_id=student_id,
        amount=amount,
        date=date,
        mode=PaymentMode.MOBILE_MONEY,
        term=term,
        year=2024,
    )


def make_fee_structure(grade: str, term: int, *amounts: tuple[str, int]) -> FeeStructure:
    return FeeStructure(
        grade=grade,
        term=term,
        year=2024,
        items=[FeeItem(name=name, amount=amount) for name, amount in amounts],
    )


@pytest.fixture
def students() -> list[Student]:
    return [
        make_student("s1", "ADM001", "Amina Otieno"),
        make_student("s2", "ADM002", "Brian Kamau"),
        make_student("s3", "ADM003", "Chebet Rotich"),
        make_student("s4", "ADM004", "David Mwangi", grade="Grade 7"),
    ]


@pytest.fixture
def session_factory():
    engine = build_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    init_db(engine)
    yield build_session_factory(engine)
    engine.dispose()


@pytest.fixture
def store(session_factory) -> CollectionStore:
    return CollectionStore(session_factory=session_factory)


@pytest.fixture
def repository(store) -> SchoolRepository:
    return SchoolRepository(store)
