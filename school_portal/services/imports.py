"""Tolerant bulk importers for students and marks.

Every importer accepts comma-separated text (one record per line) or rows
read from an Excel workbook, and returns an ``ImportResult``: the records it
could build plus the lines it skipped and why. Bad input only ever means fewer
records, never an exception.
"""

import logging
from collections.abc import Callable, Iterable, Iterator
from datetime import date, datetime
from io import BytesIO
from uuid import uuid4

from openpyxl import Workbook, load_workbook
from openpyxl.styles import Font
from pydantic import ValidationError as SchemaValidationError

from school_portal.core.config import settings
from school_portal.core.exceptions import UploadError
from school_portal.schemas.assessment import Assessment
from school_portal.schemas.common import ImportResult, SkippedLine
from school_portal.schemas.student import Student
from school_portal.schemas.subject import GRADES, Subject

logger = logging.getLogger(__name__)

# (line number, trimmed fields, raw line)
Row = tuple[int, list[str], str]


# Column layouts: (field, header label, required)
STUDENT_IMPORT_COLUMNS = [
    ("name", "Name", True),
    ("admission_no", "AdmissionNo", True),
    ("gender", "Gender", False),
    ("grade", "Grade", True),
    ("stream", "Stream", False),
    ("parent_name", "ParentName", False),
    ("parent_phone", "ParentPhone", False),
    ("admission_date", "AdmissionDate", False),
    ("term", "Term", False),
    ("year", "Year", False),
]

MARKS_BY_ID_COLUMNS = [
    ("admission_no", "AdmissionNo", True),
    ("subject_id", "SubjectId", True),
    ("score", "Score", True),
    ("term", "Term", False),
    ("year", "Year", False),
]

MARKS_BY_NAME_COLUMNS = [
    ("admission_no", "AdmissionNo", True),
    ("subject_name", "SubjectName", True),
    ("score", "Score", True),
    ("remarks", "Remarks", False),
]

TEMPLATES = {
    "students": (
        STUDENT_IMPORT_COLUMNS,
        ["Jane Wanjiku", "ADM001", "F", "Grade 4", "East", "Mary Wanjiku", "+254700000001", "2024-01-08", "1", "2024"],
    ),
    "marks_by_id": (MARKS_BY_ID_COLUMNS, ["ADM001", "mat_up", "78", "1", "2024"]),
    "marks_by_name": (MARKS_BY_NAME_COLUMNS, ["ADM001", "Mathematics", "78", "Good grasp of fractions"]),
}


# ==========================================
# Row sources
# ==========================================

def text_rows(raw_text: str) -> list[Row]:
    """Split raw text into numbered, comma-split, trimmed rows."""
    rows: list[Row] = []
    for line_no, line in enumerate(raw_text.splitlines(), start=1):
        rows.append((line_no, [field.strip() for field in line.split(",")], line))
    return rows


def _cell_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value).strip()


def workbook_rows(file_content: bytes) -> list[Row]:
    """Read the active sheet of an Excel upload as rows of text fields."""
    try:
        workbook = load_workbook(filename=BytesIO(file_content), read_only=True, data_only=True)
        sheet = workbook.active
    except Exception as e:
        raise UploadError(f"Invalid Excel file: {str(e)}")

    if sheet is None:
        raise UploadError("Excel file has no active sheet")

    rows: list[Row] = []
    for row_idx, row in enumerate(sheet.iter_rows(values_only=True), start=1):
        fields = [_cell_text(value) for value in row]
        rows.append((row_idx, fields, ",".join(fields)))
    workbook.close()
    logger.debug(f"[EXCEL PARSE] Read {len(rows)} rows (including header)")
    return rows


def _normalize_label(value: str) -> str:
    return value.replace(" ", "").replace("_", "").lower()


def _data_rows(rows: Iterable[Row], header_label: str) -> Iterator[Row]:
    """Skip blank lines, ``#`` comments and a leading header row."""
    seen_content = False
    for line_no, fields, raw in rows:
        if not any(fields):
            continue
        if fields[0].startswith("#"):
            continue
        if not seen_content:
            seen_content = True
            if _normalize_label(fields[0]) == _normalize_label(header_label):
                continue
        yield line_no, fields, raw


def _field(fields: list[str], index: int) -> str:
    return fields[index] if index < len(fields) else ""


def parse_int(value: str, fallback: int = 0) -> int:
    """Parse an integer field; anything unparseable gives ``fallback``."""
    try:
        return int(value)
    except (TypeError, ValueError):
        pass
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return fallback


def _int_or_default(value: str, default: int) -> int:
    """Blank fields take the default; non-blank ones parse with it as fallback."""
    return parse_int(value, default) if value else default


def _match_grade(value: str) -> str | None:
    lowered = value.lower()
    for grade in GRADES:
        if grade.lower() == lowered:
            return grade
    return None


def _first_error(exc: SchemaValidationError) -> str:
    error = exc.errors()[0]
    location = ".".join(str(part) for part in error.get("loc", ()))
    return f"Invalid {location}: {error.get('msg')}" if location else str(error.get("msg"))


# ==========================================
# Students
# ==========================================

def parse_student_rows(
    rows: Iterable[Row],
    existing_students: Iterable[Student] = (),
    default_term: int | None = None,
    default_year: int | None = None,
    id_factory: Callable[[], str] | None = None,
) -> ImportResult[Student]:
    """Build students from ``Name, AdmissionNo, Gender, Grade, Stream,
    ParentName, ParentPhone, AdmissionDate, Term, Year`` rows."""
    default_term = settings.CURRENT_TERM if default_term is None else default_term
    default_year = settings.CURRENT_YEAR if default_year is None else default_year
    id_factory = id_factory or (lambda: uuid4().hex)
    taken = {student.admission_no.lower() for student in existing_students}

    imported: list[Student] = []
    skipped: list[SkippedLine] = []

    for line_no, fields, raw in _data_rows(rows, "Name"):
        name = _field(fields, 0)
        admission_no = _field(fields, 1)
        grade_value = _field(fields, 3)

        if not name or not admission_no or not grade_value:
            reason = "Name, admission number and grade are required"
        elif admission_no.lower() in taken:
            reason = f"Admission number {admission_no} already registered"
        elif _match_grade(grade_value) is None:
            reason = f"Unknown grade: {grade_value}"
        else:
            reason = None

        if reason:
            logger.warning(f"[STUDENT IMPORT] Line {line_no} SKIPPED - {reason}")
            skipped.append(SkippedLine(line=line_no, reason=reason, raw=raw))
            continue

        try:
            student = Student(
                id=id_factory(),
                admission_no=admission_no,
                name=name,
                gender=_field(fields, 2) or None,
                grade=_match_grade(grade_value),
                stream=_field(fields, 4),
                parent_name=_field(fields, 5),
                parent_phone=_field(fields, 6),
                admission_date=_field(fields, 7) or date.today().isoformat(),
                term=_int_or_default(_field(fields, 8), default_term),
                year=_int_or_default(_field(fields, 9), default_year),
            )
        except SchemaValidationError as e:
            reason = _first_error(e)
            logger.warning(f"[STUDENT IMPORT] Line {line_no} SKIPPED - {reason}")
            skipped.append(SkippedLine(line=line_no, reason=reason, raw=raw))
            continue

        taken.add(admission_no.lower())
        imported.append(student)

    logger.info(f"[STUDENT IMPORT] Imported {len(imported)} students, skipped {len(skipped)} lines")
    return ImportResult[Student](imported=imported, skipped=skipped)


def parse_students(
    raw_text: str,
    existing_students: Iterable[Student] = (),
    default_term: int | None = None,
    default_year: int | None = None,
    id_factory: Callable[[], str] | None = None,
) -> ImportResult[Student]:
    """Parse pasted student lines. See ``parse_student_rows``."""
    return parse_student_rows(
        text_rows(raw_text), existing_students, default_term, default_year, id_factory
    )


# ==========================================
# Marks
# ==========================================

def _students_by_admission(students: Iterable[Student]) -> dict[str, Student]:
    return {student.admission_no.lower(): student for student in students}


def _skip(skipped: list[SkippedLine], tag: str, line_no: int, reason: str, raw: str) -> None:
    logger.warning(f"[{tag}] Line {line_no} SKIPPED - {reason}")
    skipped.append(SkippedLine(line=line_no, reason=reason, raw=raw))


def parse_marks_by_subject_id_rows(
    rows: Iterable[Row],
    students: Iterable[Student],
    subjects: Iterable[Subject],
    default_term: int | None = None,
    default_year: int | None = None,
) -> ImportResult[Assessment]:
    """Build assessments from ``AdmissionNo, SubjectId, Score, Term, Year`` rows."""
    default_term = settings.CURRENT_TERM if default_term is None else default_term
    default_year = settings.CURRENT_YEAR if default_year is None else default_year
    by_admission = _students_by_admission(students)
    subject_ids = {subject.id for subject in subjects}

    imported: list[Assessment] = []
    skipped: list[SkippedLine] = []

    for line_no, fields, raw in _data_rows(rows, "AdmissionNo"):
        admission_no = _field(fields, 0)
        subject_id = _field(fields, 1)
        if not admission_no or not subject_id:
            _skip(skipped, "MARKS IMPORT", line_no, "Admission number and subject id are required", raw)
            continue

        student = by_admission.get(admission_no.lower())
        if student is None:
            _skip(skipped, "MARKS IMPORT", line_no, f"Unknown admission number: {admission_no}", raw)
            continue
        if subject_id not in subject_ids:
            _skip(skipped, "MARKS IMPORT", line_no, f"Unknown subject id: {subject_id}", raw)
            continue

        imported.append(
            Assessment(
                student_id=student.id,
                subject_id=subject_id,
                score=parse_int(_field(fields, 2)),
                term=_int_or_default(_field(fields, 3), default_term),
                year=_int_or_default(_field(fields, 4), default_year),
            )
        )

    logger.info(f"[MARKS IMPORT] Imported {len(imported)} marks, skipped {len(skipped)} lines")
    return ImportResult[Assessment](imported=imported, skipped=skipped)


def parse_marks_by_subject_id(
    raw_text: str,
    students: Iterable[Student],
    subjects: Iterable[Subject],
    default_term: int | None = None,
    default_year: int | None = None,
) -> ImportResult[Assessment]:
    """Parse pasted marks keyed by subject id. See ``parse_marks_by_subject_id_rows``."""
    return parse_marks_by_subject_id_rows(
        text_rows(raw_text), students, subjects, default_term, default_year
    )


def parse_marks_by_subject_name_rows(
    rows: Iterable[Row],
    students: Iterable[Student],
    subjects: Iterable[Subject],
    term: int | None = None,
    year: int | None = None,
) -> ImportResult[Assessment]:
    """Build assessments from ``AdmissionNo, SubjectName, Score, Remarks`` rows.

    The subject name is matched, ignoring case, among the subjects of the
    student's own grade. Any further commas are kept as part of the remarks.
    """
    term = settings.CURRENT_TERM if term is None else term
    year = settings.CURRENT_YEAR if year is None else year
    by_admission = _students_by_admission(students)
    by_grade_and_name: dict[tuple[str, str], Subject] = {}
    for subject in subjects:
        by_grade_and_name.setdefault((subject.grade, subject.name.lower()), subject)

    imported: list[Assessment] = []
    skipped: list[SkippedLine] = []

    for line_no, fields, raw in _data_rows(rows, "AdmissionNo"):
        admission_no = _field(fields, 0)
        subject_name = _field(fields, 1)
        if not admission_no or not subject_name:
            _skip(skipped, "MARKS IMPORT", line_no, "Admission number and subject name are required", raw)
            continue

        student = by_admission.get(admission_no.lower())
        if student is None:
            _skip(skipped, "MARKS IMPORT", line_no, f"Unknown admission number: {admission_no}", raw)
            continue
        subject = by_grade_and_name.get((student.grade, subject_name.lower()))
        if subject is None:
            _skip(skipped, "MARKS IMPORT", line_no, f"No subject {subject_name} in {student.grade}", raw)
            continue

        imported.append(
            Assessment(
                student_id=student.id,
                subject_id=subject.id,
                score=parse_int(_field(fields, 2)),
                term=term,
                year=year,
                remarks=", ".join(field for field in fields[3:] if field),
            )
        )

    logger.info(f"[MARKS IMPORT] Imported {len(imported)} marks, skipped {len(skipped)} lines")
    return ImportResult[Assessment](imported=imported, skipped=skipped)


def parse_marks_by_subject_name(
    raw_text: str,
    students: Iterable[Student],
    subjects: Iterable[Subject],
    term: int | None = None,
    year: int | None = None,
) -> ImportResult[Assessment]:
    """Parse pasted marks keyed by subject name. See ``parse_marks_by_subject_name_rows``."""
    return parse_marks_by_subject_name_rows(text_rows(raw_text), students, subjects, term, year)


# ==========================================
# Templates
# ==========================================

def generate_import_template(kind: str) -> bytes:
    """Generate an Excel template for one of the import layouts."""
    if kind not in TEMPLATES:
        raise ValueError(f"Unknown import template: {kind}")
    columns, sample_data = TEMPLATES[kind]

    wb = Workbook()
    ws = wb.active
    ws.title = kind.replace("_", " ").title()

    # Write headers
    for col_idx, (_, header, _) in enumerate(columns, start=1):
        cell = ws.cell(row=1, column=col_idx, value=header)
        cell.font = Font(bold=True)

    # Add sample row
    for col_idx, value in enumerate(sample_data, start=1):
        ws.cell(row=2, column=col_idx, value=value)

    for col_idx in range(1, len(columns) + 1):
        ws.column_dimensions[chr(64 + col_idx)].width = 18

    output = BytesIO()
    wb.save(output)
    output.seek(0)
    return output.getvalue()
