"""Flatten record lists into CSV text or Excel workbooks."""

import csv
import logging
from collections.abc import Iterable, Mapping
from io import BytesIO, StringIO
from typing import Any

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from pydantic import BaseModel

from school_portal.schemas.common import BaseSchema

logger = logging.getLogger(__name__)


def _as_mapping(record: Mapping[str, Any] | BaseModel) -> Mapping[str, Any]:
    if isinstance(record, BaseSchema):
        return record.to_record()
    if isinstance(record, BaseModel):
        return record.model_dump(mode="json", by_alias=True)
    return record


def _flatten(value: Any) -> str:
    """Render one cell. Nested values never contain commas: a mapping
    becomes its values joined by ":" and a list joins its items with ";"
    (fee items export as ``Tuition:10000;Lunch:2000``)."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Mapping):
        return ":".join(_flatten(item) for item in value.values())
    if isinstance(value, (list, tuple)):
        return ";".join(_flatten(item) for item in value)
    return str(value)


def _header(rows: list[Mapping[str, Any]], union_keys: bool) -> list[str]:
    if not union_keys:
        return list(rows[0].keys())
    header: list[str] = []
    seen: set[str] = set()
    for row in rows:
        for key in row:
            if key not in seen:
                seen.add(key)
                header.append(key)
    return header


def to_delimited_text(
    records: Iterable[Mapping[str, Any] | BaseModel],
    union_keys: bool = False,
    quote: bool = False,
) -> str:
    """Serialize records as comma-separated text, header line first.

    The header is the keys of the first record and every row follows that
    order; fields a record lacks are left empty. Nested fields are flattened
    without commas (see ``_flatten``); other values are joined verbatim, so
    embedded commas or newlines break the table. ``union_keys`` builds the
    header from every record's keys instead, and ``quote`` applies RFC 4180
    quoting.
    """
    rows = [_as_mapping(record) for record in records]
    if not rows:
        return ""
    header = _header(rows, union_keys)

    if quote:
        output = StringIO()
        writer = csv.writer(output, lineterminator="\n")
        writer.writerow(header)
        for row in rows:
            writer.writerow([_flatten(row.get(key)) for key in header])
        return output.getvalue().rstrip("\n")

    lines = [",".join(header)]
    for row in rows:
        lines.append(",".join(_flatten(row.get(key)) for key in header))
    logger.debug(f"[EXPORT] Serialized {len(rows)} records with {len(header)} columns")
    return "\n".join(lines)


def export_filename(context: str, extension: str = "csv") -> str:
    """Download file name for an export, e.g. ``students.csv``."""
    return f"{context}.{extension}"


def to_workbook(
    records: Iterable[Mapping[str, Any] | BaseModel],
    title: str = "Export",
    union_keys: bool = True,
) -> bytes:
    """Export records to an Excel workbook with a styled header row."""
    rows = [_as_mapping(record) for record in records]

    wb = Workbook()
    ws = wb.active
    ws.title = title[:31]

    if not rows:
        output = BytesIO()
        wb.save(output)
        return output.getvalue()

    header = _header(rows, union_keys)
    header_font = Font(bold=True, color="FFFFFF")
    header_fill = PatternFill(start_color="312E81", end_color="312E81", fill_type="solid")

    for col_idx, key in enumerate(header, start=1):
        cell = ws.cell(row=1, column=col_idx, value=key)
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = Alignment(horizontal="center")

    for row_idx, row in enumerate(rows, start=2):
        for col_idx, key in enumerate(header, start=1):
            value = row.get(key)
            if isinstance(value, (list, dict)):
                value = _flatten(value)
            ws.cell(row=row_idx, column=col_idx, value=value)

    for col_idx, key in enumerate(header, start=1):
        width = max(len(str(key)), *(len(_flatten(row.get(key))) for row in rows))
        ws.column_dimensions[get_column_letter(col_idx)].width = min(width + 2, 50)

    ws.freeze_panes = "A2"

    output = BytesIO()
    wb.save(output)
    output.seek(0)
    logger.info(f"[EXPORT] Workbook '{title}' with {len(rows)} rows")
    return output.getvalue()
