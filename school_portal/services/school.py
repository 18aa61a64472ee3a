"""School records service.

Holds the loaded collections for one session and applies every change as
"compute the new collection, save it, then adopt it". The in-memory state is
only replaced after the store accepted the write, so a failed save leaves
memory and store in agreement.
"""

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from pydantic import ValidationError as SchemaValidationError

from school_portal.core.config import settings
from school_portal.core.exceptions import NotFoundError, ValidationError
from school_portal.models.enums import CollectionName, PaymentMode
from school_portal.schemas.assessment import Assessment, ScoreEntry
from school_portal.schemas.common import BaseSchema, ImportResult, SaveResult
from school_portal.schemas.finance import DefaulterEntry, FeeStructure, Payment
from school_portal.schemas.ranking import RankedStudent
from school_portal.schemas.report import DashboardSummary, ReportCard
from school_portal.schemas.student import Student, StudentFilter
from school_portal.schemas.subject import GRADES, Subject, subjects_for_grade
from school_portal.services.assessment import build_assessments, merge_assessments
from school_portal.services.export import export_filename, to_delimited_text, to_workbook
from school_portal.services.fees import calculate_balance, list_defaulters, upsert_fee_structure
from school_portal.services.imports import (
    Row,
    parse_marks_by_subject_id_rows,
    parse_marks_by_subject_name_rows,
    parse_student_rows,
    text_rows,
    workbook_rows,
)
from school_portal.services.ranking import rank_students
from school_portal.services.report import build_dashboard, build_report_card
from school_portal.services.store import SchoolRepository

logger = logging.getLogger(__name__)

COLLECTION_SCHEMAS: dict[CollectionName, type[BaseSchema]] = {
    CollectionName.STUDENTS: Student,
    CollectionName.SUBJECTS: Subject,
    CollectionName.ASSESSMENTS: Assessment,
    CollectionName.PAYMENTS: Payment,
    CollectionName.FEE_STRUCTURES: FeeStructure,
}


class SchoolService:
    """Student, academic and finance operations over one repository."""

    def __init__(
        self,
        repository: SchoolRepository,
        id_factory: Callable[[], str] | None = None,
    ):
        self.repository = repository
        self.id_factory = id_factory or (lambda: uuid4().hex)
        self.students: list[Student] = []
        self.subjects: list[Subject] = []
        self.assessments: list[Assessment] = []
        self.payments: list[Payment] = []
        self.fee_structures: list[FeeStructure] = []
        self.reload()

    def reload(self) -> None:
        """Load every collection from the store."""
        self.students = self.repository.load_students()
        self.subjects = self.repository.load_subjects()
        self.assessments = self.repository.load_assessments()
        self.payments = self.repository.load_payments()
        self.fee_structures = self.repository.load_fee_structures()
        logger.info(
            f"Loaded {len(self.students)} students, {len(self.assessments)} assessments, "
            f"{len(self.payments)} payments"
        )

    def _commit(self, name: CollectionName, records: list) -> SaveResult:
        """Save a collection and adopt it in memory if the save succeeded."""
        saver = {
            CollectionName.STUDENTS: self.repository.save_students,
            CollectionName.SUBJECTS: self.repository.save_subjects,
            CollectionName.ASSESSMENTS: self.repository.save_assessments,
            CollectionName.PAYMENTS: self.repository.save_payments,
            CollectionName.FEE_STRUCTURES: self.repository.save_fee_structures,
        }[name]
        result = saver(records)
        if result.success:
            setattr(self, name.value, records)
        return result

    def _commit_all(self, changes: list[tuple[CollectionName, list]]) -> list[SaveResult]:
        """Save several collections in order, all or nothing.

        Stops at the first failed save and writes the previous contents back
        to the collections already saved. The returned results end with the
        failure.
        """
        previous = {name: getattr(self, name.value) for name, _ in changes}
        results: list[SaveResult] = []
        for name, records in changes:
            result = self._commit(name, records)
            results.append(result)
            if not result.success:
                break
        else:
            return results

        for done in results[:-1]:
            name = CollectionName(done.collection)
            restored = self._commit(name, previous[name])
            if not restored.success:
                logger.error(f"Could not roll back {name.value}: {restored.message}")
        logger.warning(f"Aborted saving {len(changes)} collections: {results[-1].message}")
        return results

    # ==========================================
    # Students
    # ==========================================

    def get_student(self, student_id: str) -> Student:
        for student in self.students:
            if student.id == student_id:
                return student
        raise NotFoundError("Student", student_id)

    def _check_student(self, student: Student) -> None:
        if student.grade not in GRADES:
            raise ValidationError(
                f"Unknown grade: {student.grade}",
                details={"field": "grade", "value": student.grade},
            )
        for other in self.students:
            if other.id != student.id and other.admission_no.lower() == student.admission_no.lower():
                raise ValidationError(
                    f"Admission number {student.admission_no} is already registered",
                    details={"field": "admissionNo", "value": student.admission_no},
                )

    def register_student(self, student: Student) -> SaveResult:
        """Add a new student."""
        if any(existing.id == student.id for existing in self.students):
            raise ValidationError(f"Student {student.id} already exists", details={"field": "id"})
        self._check_student(student)
        return self._commit(CollectionName.STUDENTS, [*self.students, student])

    def replace_student(self, student: Student) -> SaveResult:
        """Replace a student's whole record."""
        self.get_student(student.id)
        self._check_student(student)
        updated = [student if existing.id == student.id else existing for existing in self.students]
        return self._commit(CollectionName.STUDENTS, updated)

    def delete_student(self, student_id: str) -> list[SaveResult]:
        """Delete a student together with their assessments and payments.

        Dependents are removed first and the student record last; if any save
        fails nothing is deleted.
        """
        self.get_student(student_id)
        results = self._commit_all([
            (
                CollectionName.ASSESSMENTS,
                [a for a in self.assessments if a.student_id != student_id],
            ),
            (
                CollectionName.PAYMENTS,
                [p for p in self.payments if p.student_id != student_id],
            ),
            (
                CollectionName.STUDENTS,
                [s for s in self.students if s.id != student_id],
            ),
        ])
        if results[-1].success:
            logger.info(f"Deleted student with ID: {student_id}")
        return results

    def search_students(self, filters: StudentFilter | None = None) -> list[Student]:
        """Filter students by grade, stream and a name/admission number search."""
        students = self.students
        if not filters:
            return list(students)
        if filters.grade:
            students = [s for s in students if s.grade == filters.grade]
        if filters.stream:
            students = [s for s in students if s.stream.lower() == filters.stream.lower()]
        if filters.search:
            term = filters.search.lower()
            students = [
                s for s in students
                if term in s.name.lower() or term in s.admission_no.lower()
            ]
        return list(students)

    def _rows(self, raw_text: str | None, file_content: bytes | None) -> list[Row]:
        if file_content is not None:
            return workbook_rows(file_content)
        if raw_text is not None:
            return text_rows(raw_text)
        raise ValueError("Provide raw_text or file_content")

    def import_students(
        self,
        raw_text: str | None = None,
        file_content: bytes | None = None,
    ) -> tuple[ImportResult[Student], SaveResult | None]:
        """Import students from pasted text or an Excel upload."""
        result = parse_student_rows(
            self._rows(raw_text, file_content),
            existing_students=self.students,
            id_factory=self.id_factory,
        )
        if not result.imported:
            return result, None
        return result, self._commit(CollectionName.STUDENTS, [*self.students, *result.imported])

    # ==========================================
    # Subjects
    # ==========================================

    def subject_catalog(self) -> list[Subject]:
        """Configured subjects, plus the default CBC subjects for grades with none."""
        configured_grades = {subject.grade for subject in self.subjects}
        catalog = list(self.subjects)
        for grade in GRADES:
            if grade not in configured_grades:
                catalog.extend(subjects_for_grade(grade))
        return catalog

    def save_subject(self, subject: Subject) -> SaveResult:
        """Add a subject or replace the one with the same id."""
        if any(existing.id == subject.id for existing in self.subjects):
            updated = [subject if existing.id == subject.id else existing for existing in self.subjects]
        else:
            updated = [*self.subjects, subject]
        return self._commit(CollectionName.SUBJECTS, updated)

    def delete_subject(self, subject_id: str) -> SaveResult:
        """Remove a subject. Its assessments are kept."""
        if not any(subject.id == subject_id for subject in self.subjects):
            raise NotFoundError("Subject", subject_id)
        return self._commit(
            CollectionName.SUBJECTS,
            [subject for subject in self.subjects if subject.id != subject_id],
        )

    # ==========================================
    # Assessments
    # ==========================================

    def save_assessments(self, batch: list[Assessment]) -> SaveResult:
        """Upsert a batch of assessments."""
        return self._commit(CollectionName.ASSESSMENTS, merge_assessments(self.assessments, batch))

    def record_scores(
        self,
        student_id: str,
        entries: list[ScoreEntry],
        term: int | None = None,
        year: int | None = None,
    ) -> SaveResult:
        """Save the marks-entry form for one student."""
        self.get_student(student_id)
        batch = build_assessments(
            student_id,
            entries,
            term=settings.CURRENT_TERM if term is None else term,
            year=settings.CURRENT_YEAR if year is None else year,
        )
        return self.save_assessments(batch)

    def import_marks(
        self,
        raw_text: str | None = None,
        file_content: bytes | None = None,
        by: str = "id",
        term: int | None = None,
        year: int | None = None,
    ) -> tuple[ImportResult[Assessment], SaveResult | None]:
        """Import marks keyed by subject id (``by="id"``) or name (``by="name"``)."""
        rows = self._rows(raw_text, file_content)
        if by == "id":
            result = parse_marks_by_subject_id_rows(
                rows, self.students, self.subject_catalog(), default_term=term, default_year=year
            )
        elif by == "name":
            result = parse_marks_by_subject_name_rows(
                rows, self.students, self.subject_catalog(), term=term, year=year
            )
        else:
            raise ValueError(f"Unknown marks layout: {by}")
        if not result.imported:
            return result, None
        return result, self.save_assessments(result.imported)

    # ==========================================
    # Finance
    # ==========================================

    def record_payment(
        self,
        student_id: str,
        amount: int,
        mode: PaymentMode | str = PaymentMode.CASH,
        term: int | None = None,
        year: int | None = None,
        paid_at: datetime | None = None,
    ) -> tuple[Payment, SaveResult]:
        """Record a fee payment against a student's term."""
        student = self.get_student(student_id)
        if amount <= 0:
            raise ValidationError("Amount must be positive", details={"field": "amount", "value": amount})
        if isinstance(mode, str) and not isinstance(mode, PaymentMode):
            try:
                mode = PaymentMode.from_string(mode)
            except ValueError as e:
                raise ValidationError(str(e), details={"field": "mode", "value": mode})

        try:
            payment = Payment(
                id=self.id_factory(),
                student_id=student.id,
                amount=amount,
                date=(paid_at or datetime.now(timezone.utc)).isoformat(),
                mode=mode,
                term=student.term if term is None else term,
                year=student.year if year is None else year,
            )
        except SchemaValidationError as e:
            raise ValidationError(
                "Invalid payment",
                details={"errors": e.errors(include_url=False)},
            )
        return payment, self._commit(CollectionName.PAYMENTS, [*self.payments, payment])

    def payment_history(self, student_id: str | None = None) -> list[Payment]:
        """Payments, newest first."""
        payments = [p for p in self.payments if student_id is None or p.student_id == student_id]
        return sorted(payments, key=lambda p: p.date, reverse=True)

    def save_fee_structure(self, structure: FeeStructure) -> SaveResult:
        """Set the fee structure for a grade and term, replacing any previous one."""
        return self._commit(
            CollectionName.FEE_STRUCTURES,
            upsert_fee_structure(self.fee_structures, structure),
        )

    def balance_for(self, student_id: str) -> int:
        return calculate_balance(
            self.get_student(student_id),
            self.fee_structures,
            self.payments,
            settings.DEFAULT_TERM_FEE,
        )

    def defaulters(self) -> list[DefaulterEntry]:
        return list_defaulters(self.students, self.fee_structures, self.payments, settings.DEFAULT_TERM_FEE)

    # ==========================================
    # Reports
    # ==========================================

    def rankings(self, term: int | None = None, year: int | None = None) -> list[RankedStudent]:
        return rank_students(self.students, self.assessments, term=term, year=year)

    def dashboard(self) -> DashboardSummary:
        return build_dashboard(self.students, self.assessments, self.payments, settings.DEFAULT_TERM_FEE)

    def report_card(self, student_id: str, term: int | None = None, year: int | None = None) -> ReportCard:
        return build_report_card(
            self.get_student(student_id),
            self.students,
            self.subjects,
            self.assessments,
            term=settings.CURRENT_TERM if term is None else term,
            year=settings.CURRENT_YEAR if year is None else year,
        )

    def export_collection(
        self,
        name: CollectionName,
        quote: bool = False,
        excel: bool = False,
    ) -> tuple[str, str | bytes]:
        """Export a collection as ``(file name, content)``."""
        records = getattr(self, name.value)
        if excel:
            return export_filename(name.value, "xlsx"), to_workbook(records, title=name.value)
        return export_filename(name.value), to_delimited_text(records, quote=quote)

    # ==========================================
    # Backup / restore
    # ==========================================

    def backup(self) -> dict[str, Any]:
        """Snapshot of every collection, ready for ``json.dumps``."""
        return {
            "exportedAt": datetime.now(timezone.utc).isoformat(),
            "collections": {
                name.value: [record.to_record() for record in getattr(self, name.value)]
                for name in CollectionName
            },
        }

    def restore(self, snapshot: dict[str, Any]) -> list[SaveResult]:
        """Replace every collection present in a backup snapshot.

        The whole snapshot is validated before anything is written, and a
        failed save puts back the collections already restored.
        """
        collections = snapshot.get("collections")
        if not isinstance(collections, dict):
            raise ValidationError("Backup has no collections")

        parsed: dict[CollectionName, list] = {}
        for name, schema in COLLECTION_SCHEMAS.items():
            if name.value not in collections:
                continue
            items = collections[name.value]
            if not isinstance(items, list):
                raise ValidationError(f"Backup collection {name.value} is not a list")
            try:
                parsed[name] = [schema.model_validate(item) for item in items]
            except SchemaValidationError as e:
                raise ValidationError(
                    f"Backup collection {name.value} is invalid",
                    details={"collection": name.value, "errors": e.errors(include_url=False)},
                )

        results = self._commit_all(list(parsed.items()))
        if results and results[-1].success:
            logger.info(f"Restored {len(results)} collections from backup")
        return results
