from __future__ import annotations

import io
from datetime import datetime
from typing import Any

import pandas as pd
from openpyxl.utils import get_column_letter

from ..models.field_schema import ImportKind, ImportSchema, get_schema
from ..models.processing_result import ImportResult
from .summary import rejection_breakdown

"""Results workbook export.

Always writes three sheets (Summary, Successfully Added, Rejected) so the
audit file has the same layout whether or not any row was rejected.
"""

__all__ = [
    "SUMMARY_SHEET",
    "ADDED_SHEET",
    "REJECTED_SHEET",
    "export_results",
    "results_filename",
]

SUMMARY_SHEET = "Summary"
ADDED_SHEET = "Successfully Added"
REJECTED_SHEET = "Rejected"

_EMPTY = "(empty)"


def _display(value: Any, placeholder: str = _EMPTY) -> Any:
    if value is None or (isinstance(value, str) and not value.strip()):
        return placeholder
    return value


def _key_columns(schema: ImportSchema) -> list[tuple[str, str]]:
    """(record key, column title) pairs shown in the result sheets."""
    return [(schema.field(name).key, schema.field(name).header) for name in schema.key_fields]


def _summary_frame(result: ImportResult, now: datetime) -> pd.DataFrame:
    s = result.summary
    rows: list[list[Any]] = [
        ["Bulk Import Summary", ""],
        ["Total Records", s.total],
        ["Successfully Added", s.added],
        ["Rejected", s.rejected],
        ["Success Rate", f"{s.success_rate}%"],
        ["Import Date", now.strftime("%Y-%m-%d %H:%M:%S")],
    ]
    if result.source_file:
        rows.append(["Source File", result.source_file])
    breakdown = rejection_breakdown(result)
    if breakdown:
        rows.append(["", ""])
        rows.append(["Rejections by Category", ""])
        rows.extend([category.value, count] for category, count in breakdown.items())
    return pd.DataFrame(rows)


def _added_frame(result: ImportResult, schema: ImportSchema) -> pd.DataFrame:
    columns = [(k, t) for k, t in _key_columns(schema) if k != "id"]
    status = f"✅ {schema.result_label}"
    rows = []
    for record in result.added:
        row = [record.row_number, record.id]
        for key, _ in columns:
            placeholder = "(no main category)" if key == "subcategory" else _EMPTY
            row.append(_display(record.data.get(key), placeholder))
        row.append(status)
        rows.append(row)
    return pd.DataFrame(rows, columns=["Row", "ID", *[title for _, title in columns], "Status"])


def _rejected_frame(result: ImportResult, schema: ImportSchema) -> pd.DataFrame:
    columns = [(k, t) for k, t in _key_columns(schema) if k != "id"]
    if "id" in schema.field_names:
        columns.insert(0, ("id", "ID"))
    rows = []
    for entry in result.rejected:
        row = [entry.row_number]
        row.extend(_display(entry.data.get(key)) for key, _ in columns)
        row.extend([entry.category.value, entry.source.value, entry.message])
        rows.append(row)
    return pd.DataFrame(
        rows,
        columns=["Row", *[title for _, title in columns], "Error Category", "Source", "Status & Reason"],
    )


def _set_widths(ws, widths: list[int]) -> None:
    for i, width in enumerate(widths):
        ws.column_dimensions[get_column_letter(i + 1)].width = width


def export_results(result: ImportResult, kind: ImportKind | str, now: datetime | None = None) -> bytes:
    """Render the three-sheet results workbook and return its bytes."""
    schema = get_schema(kind)
    now = now or result.created_at or datetime.now()
    summary = _summary_frame(result, now)
    added = _added_frame(result, schema)
    rejected = _rejected_frame(result, schema)

    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        summary.to_excel(writer, sheet_name=SUMMARY_SHEET, index=False, header=False)
        added.to_excel(writer, sheet_name=ADDED_SHEET, index=False)
        rejected.to_excel(writer, sheet_name=REJECTED_SHEET, index=False)
        _set_widths(writer.sheets[SUMMARY_SHEET], [24, 20])
        _set_widths(writer.sheets[ADDED_SHEET], [8, 16] + [22] * (added.shape[1] - 3) + [30])
        _set_widths(writer.sheets[REJECTED_SHEET], [8] + [22] * (rejected.shape[1] - 4) + [18, 10, 50])
    return buf.getvalue()


def results_filename(kind: ImportKind | str, now: datetime | None = None) -> str:
    """<kind>_import_results_<ISO-date>_<epoch-ms>.xlsx"""
    schema = get_schema(kind)
    now = now or datetime.now()
    stamp = int(now.timestamp() * 1000)
    return f"{schema.kind.value}_import_results_{now.date().isoformat()}_{stamp}.xlsx"
