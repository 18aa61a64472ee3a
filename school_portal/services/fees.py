"""Fee structure lookup, balances and defaulters."""

import logging
from collections.abc import Iterable

from school_portal.core.config import settings
from school_portal.schemas.finance import DefaulterEntry, FeeStructure, Payment
from school_portal.schemas.student import Student

logger = logging.getLogger(__name__)


def find_fee_structure(
    fee_structures: Iterable[FeeStructure],
    grade: str,
    term: int,
) -> FeeStructure | None:
    """First structure matching (grade, term), or None."""
    for structure in fee_structures:
        if structure.grade == grade and structure.term == term:
            return structure
    return None


def structure_total(structure: FeeStructure) -> int:
    """Sum of item amounts. A structure with no items totals zero."""
    return sum(item.amount for item in structure.items)


def amount_paid(student: Student, payments: Iterable[Payment]) -> int:
    """Payments received from a student for their current term."""
    return sum(
        payment.amount
        for payment in payments
        if payment.student_id == student.id and payment.term == student.term
    )


def calculate_balance(
    student: Student,
    fee_structures: list[FeeStructure],
    payments: list[Payment],
    default_total: int | None = None,
) -> int:
    """Outstanding fees for the student's current grade and term.

    Falls back to ``default_total`` (``DEFAULT_TERM_FEE`` when omitted) if no
    structure is set for the grade. Negative results mean overpayment and are
    returned as is.
    """
    structure = find_fee_structure(fee_structures, student.grade, student.term)
    if structure is None:
        total_fees = settings.DEFAULT_TERM_FEE if default_total is None else default_total
    else:
        total_fees = structure_total(structure)
    return total_fees - amount_paid(student, payments)


def list_defaulters(
    students: list[Student],
    fee_structures: list[FeeStructure],
    payments: list[Payment],
    default_total: int | None = None,
) -> list[DefaulterEntry]:
    """Students with a positive balance, largest balance first."""
    entries = [
        DefaulterEntry(
            student=student,
            balance=calculate_balance(student, fee_structures, payments, default_total),
        )
        for student in students
    ]
    defaulters = [entry for entry in entries if entry.balance > 0]
    defaulters.sort(key=lambda entry: entry.balance, reverse=True)
    logger.debug(f"[DEFAULTERS] {len(defaulters)} of {len(students)} students owe fees")
    return defaulters


def upsert_fee_structure(
    fee_structures: list[FeeStructure],
    structure: FeeStructure,
) -> list[FeeStructure]:
    """Replace the structure for the same (grade, term), else append."""
    updated = [
        existing
        for existing in fee_structures
        if not (existing.grade == structure.grade and existing.term == structure.term)
    ]
    updated.append(structure)
    return updated


def total_collected(payments: Iterable[Payment]) -> int:
    return sum(payment.amount for payment in payments)
