from __future__ import annotations

import io
import logging
import math
from dataclasses import dataclass
from typing import Any

import numpy as np
import pandas as pd

from ..models.field_schema import FieldSchema, ImportKind, ImportSchema, get_schema
from ..models.row_data import RawRow

"""Spreadsheet parser.

Row 1 of the first sheet is the header row, data starts at row 2. Each logical
field is resolved to a column by exact header name, then keyword rules, then
position. Rows that are blank across every resolved column are dropped; rows
with at least one resolved value are kept even if a required field is blank so
the validator can report them.
"""

__all__ = [
    "ParseError",
    "ColumnMapping",
    "ParsedSheet",
    "read_first_sheet",
    "resolve_columns",
    "normalize_cell",
    "parse",
    "inspect_headers",
]

logger = logging.getLogger(__name__)


class ParseError(Exception):
    """Raised when the upload cannot be turned into rows at all."""


@dataclass(frozen=True)
class ColumnMapping:
    """Resolved column index per logical field (None = field not present)."""
    indices: dict[str, int | None]
    headers: list[str]  # original header text
    positional: tuple[str, ...] = ()  # fields resolved by position

    def header_for(self, field_name: str) -> str | None:
        idx = self.indices.get(field_name)
        if idx is None:
            return None
        return self.headers[idx]


@dataclass(frozen=True)
class ParsedSheet:
    rows: list[RawRow]
    mapping: ColumnMapping
    skipped_rows: int  # fully blank rows dropped


def read_first_sheet(source: bytes) -> pd.DataFrame:
    """Decode the first sheet of a workbook into a raw (header-less) DataFrame."""
    try:
        xls = pd.ExcelFile(io.BytesIO(source))
    except Exception as e:
        raise ParseError(f"Failed to parse Excel file: {e}") from e
    if not xls.sheet_names:
        raise ParseError("Failed to parse Excel file: workbook has no sheets")
    try:
        # keep_default_na=False: "NA" / "null" stay text, only truly empty cells are NaN
        return xls.parse(xls.sheet_names[0], header=None, keep_default_na=False, na_values=[""])
    except Exception as e:
        raise ParseError(f"Failed to parse Excel file: {e}") from e


def _normalize_header(value: Any) -> str:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return ""
    return str(value).strip().lower()


def resolve_columns(raw_headers: list[Any], schema: ImportSchema) -> ColumnMapping:
    """Map each schema field to a column index.

    Pass 1 exact names, pass 2 keyword rules, pass 3 positional fallback for
    fields declaring a position. When only optional fields are left over and
    the unrecognised columns match them one to one, they are paired up too.
    A column is claimed by at most one field.
    """
    headers = [_normalize_header(h) for h in raw_headers]
    original = ["" if _normalize_header(h) == "" else str(h).strip() for h in raw_headers]
    indices: dict[str, int | None] = {f.name: None for f in schema.fields}
    claimed: set[int] = set()

    def _claim(field: FieldSchema, predicate) -> None:
        for i, header in enumerate(headers):
            if i in claimed or not header:
                continue
            if predicate(field, header):
                indices[field.name] = i
                claimed.add(i)
                logger.debug(f"column {i} ({original[i]!r}) -> {field.name}")
                return

    for field in schema.fields:
        _claim(field, lambda f, h: f.matches_exact(h))
    for field in schema.fields:
        if indices[field.name] is None:
            _claim(field, lambda f, h: f.matches_keywords(h))

    for field in schema.fields:
        if indices[field.name] is None and field.required and field.position is None:
            raise ParseError(
                f"{field.label} column is required for {schema.kind.value} imports. "
                f'Please ensure your Excel file has an "{field.header}" column.'
            )

    unresolved = [
        f for f in schema.fields if indices[f.name] is None and f.position is not None
    ]
    positional: list[str] = []
    missing_required = [f for f in unresolved if f.required]
    if missing_required:
        if len(headers) < schema.min_columns:
            raise ParseError(
                f"Excel file must have at least {schema.min_columns} columns "
                f"({', '.join(f.header for f in schema.fields if f.required)}). "
                f"Found headers: {', '.join(h for h in original if h)}"
            )
        logger.warning("could not detect all column headers, using positional mapping")
        # headers were not recognised: every unresolved field falls back to its position
        for field in unresolved:
            idx = _positional_index(field, len(headers), claimed)
            if idx is None:
                continue
            indices[field.name] = idx
            claimed.add(idx)
            positional.append(field.name)
    else:
        # every header but the optional ones was recognised: leftover columns pair up
        # with the unresolved optional fields, own position first
        leftover = [i for i, h in enumerate(headers) if h and i not in claimed]
        if unresolved and len(leftover) == len(unresolved):
            for field in unresolved:
                idx = field.position if field.position in leftover else leftover[0]
                leftover.remove(idx)
                indices[field.name] = idx
                claimed.add(idx)
                positional.append(field.name)
                logger.debug(f"column {idx} ({original[idx]!r}) -> {field.name} by position")

    for field in schema.fields:
        if field.required and indices[field.name] is None:
            raise ParseError(
                f"Could not locate the {field.label} column. "
                f"Found headers: {', '.join(h for h in original if h)}"
            )

    return ColumnMapping(indices=indices, headers=original, positional=tuple(positional))


def _positional_index(field: FieldSchema, width: int, claimed: set[int]) -> int | None:
    if field.position is not None and field.position < width and field.position not in claimed:
        return field.position
    if not field.required:
        return None
    for i in range(width):
        if i not in claimed:
            return i
    return None


def normalize_cell(value: Any) -> Any:
    """Normalize one cell: blanks -> None, integral floats -> digit strings, text trimmed."""
    if value is None:
        return None
    if isinstance(value, np.generic):
        value = value.item()
    if not isinstance(value, str) and pd.isna(value):
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, float):
        if math.isnan(value):
            return None
        if value.is_integer():
            return str(int(value))
        return str(value)
    if isinstance(value, int):
        return str(value)
    if hasattr(value, "isoformat"):
        return value.isoformat()
    text = str(value).strip()
    return text or None


def parse(file_bytes: bytes, kind: ImportKind | str) -> ParsedSheet:
    """Parse spreadsheet bytes into RawRows for the given import kind.

    Raises:
        ParseError: empty file, undecodable payload or unresolvable columns
    """
    schema = get_schema(kind)
    if not file_bytes:
        raise ParseError("Excel file is empty")
    df = read_first_sheet(file_bytes)
    if df.shape[0] == 0:
        raise ParseError("Excel file is empty")

    mapping = resolve_columns(df.iloc[0].tolist(), schema)
    resolved = {name: idx for name, idx in mapping.indices.items() if idx is not None}
    field_headers = {name: mapping.headers[idx] for name, idx in resolved.items()}

    rows: list[RawRow] = []
    skipped = 0
    for offset, raw in enumerate(df.iloc[1:].itertuples(index=False, name=None)):
        values: dict[str, Any] = {}
        for name in schema.field_names:
            idx = resolved.get(name)
            values[name] = normalize_cell(raw[idx]) if idx is not None and idx < len(raw) else None
        if all(v is None for v in values.values()):
            skipped += 1
            continue
        rows.append(RawRow(row_number=offset + 2, values=values, headers=field_headers))

    logger.debug(
        f"parsed kind={schema.kind.value} rows={len(rows)} skipped={skipped} mapping={mapping.indices}"
    )
    return ParsedSheet(rows=rows, mapping=mapping, skipped_rows=skipped)


def inspect_headers(file_bytes: bytes, kind: ImportKind | str, sample: int = 3) -> dict[str, Any]:
    """Describe how the header row resolves, plus the first few parsed rows."""
    parsed = parse(file_bytes, kind)
    return {
        "columns": {
            name: parsed.mapping.header_for(name) for name in parsed.mapping.indices
        },
        "positional": list(parsed.mapping.positional),
        "rows": [{"row": r.row_number, **r.values} for r in parsed.rows[:sample]],
        "skipped_rows": parsed.skipped_rows,
    }
