from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from typing import Any

from ..models.error_record import ErrorCategory, RejectionEntry, RejectionSource
from ..models.field_schema import INVALID_CHARACTERS, FieldSchema, ImportKind, ImportSchema, get_schema
from ..models.processing_result import ValidationOutcome
from ..models.row_data import RawRow, ValidatedRecord
from .lookup import CategoryIndex, normalize_name

"""Row validator.

Pure and total: every RawRow ends up either as a ValidatedRecord or as exactly
one RejectionEntry. Rules run in a fixed order and the first failing rule wins:

1. required field empty
2. field longer than its max length
3. forbidden characters (< > " ' &)
   field formats (product code digits, update id)
4. natural key already seen earlier in this batch (first occurrence wins)
5. referential checks against the category lookup, when one is available
"""

__all__ = [
    "DUPLICATE_MESSAGE",
    "PRODUCT_CODE_MESSAGE",
    "key_component",
    "parse_bool",
    "validate",
]

logger = logging.getLogger(__name__)

DUPLICATE_MESSAGE = "duplicate of an earlier row in this import"
PRODUCT_CODE_MESSAGE = "Product code must be 6-11 digits"
ID_MESSAGE = "ID must be a positive whole number"

_PRODUCT_CODE_RE = re.compile(r"^\d{6,11}$")
_TRUE_VALUES = frozenset({"true", "1", "yes", "active", "enabled"})
_FALSE_VALUES = frozenset({"false", "0", "no", "inactive", "disabled"})


class _Rejected(Exception):
    def __init__(self, category: ErrorCategory, message: str, duplicate_of: int | None = None) -> None:
        super().__init__(message)
        self.category = category
        self.message = message
        self.duplicate_of = duplicate_of


def parse_bool(value: Any, default: bool = True) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return default
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    return default


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


def _check_structure(row: RawRow, schema: ImportSchema) -> None:
    for f in schema.fields:
        if f.required and _is_blank(row.get(f.name)):
            raise _Rejected(ErrorCategory.MISSING_REQUIRED, f"{f.label} is required and cannot be empty")
    text_fields = [f for f in schema.fields if f.value_type != "bool" and not _is_blank(row.get(f.name))]
    for f in text_fields:
        if len(_text(row.get(f.name))) > f.max_length:
            raise _Rejected(
                ErrorCategory.TOO_LONG, f"{f.label} exceeds maximum length of {f.max_length} characters"
            )
    for f in text_fields:
        if any(ch in INVALID_CHARACTERS for ch in _text(row.get(f.name))):
            raise _Rejected(ErrorCategory.INVALID_CHARACTERS, f"{f.label} contains invalid characters")


def _check_formats(row: RawRow, schema: ImportSchema) -> None:
    names = schema.field_names
    if "product_code" in names:
        code = _text(row.get("product_code"))
        if code and not _PRODUCT_CODE_RE.match(code):
            raise _Rejected(ErrorCategory.TOO_LONG, PRODUCT_CODE_MESSAGE)
    if "id" in names and _parse_id(row.get("id")) is None:
        raise _Rejected(ErrorCategory.INVALID_CHARACTERS, ID_MESSAGE)


def _parse_id(value: Any) -> int | None:
    text = _text(value)
    if not text.isdigit():
        return None
    number = int(text)
    return number if number > 0 else None


def _coerce(f: FieldSchema, value: Any) -> Any:
    if f.value_type == "bool":
        return parse_bool(value)
    if f.value_type == "int":
        return _parse_id(value)
    text = _text(value)
    return text or None


def _build_record(row: RawRow, schema: ImportSchema) -> dict[str, Any]:
    record: dict[str, Any] = {}
    for f in schema.fields:
        record[f.key] = _coerce(f, row.get(f.name))
    return record


def key_component(name: str, value: Any) -> str:
    """One natural-key part: ids by numeric value, names case- and space-folded."""
    if name == "id":
        number = _parse_id(value)
        if number is not None:
            return str(number)
    # empty main category takes part in the key as ""
    return normalize_name(value)


def _natural_key(row: RawRow, schema: ImportSchema) -> tuple[Any, ...]:
    return tuple(key_component(name, row.get(name)) for name in schema.natural_key)


def _partial_data(row: RawRow, schema: ImportSchema) -> dict[str, Any]:
    return {f.key: row.get(f.name) for f in schema.fields}


def _check_references(record: ValidatedRecord, schema: ImportSchema, index: CategoryIndex) -> ValidatedRecord:
    data = record.data
    if schema.kind is ImportKind.CATEGORIES:
        if index.has_pair(data.get("subcategory"), data.get("category")):
            message = f'Category "{data.get("category")}" already exists'
            if data.get("subcategory"):
                message += f' in main category "{data.get("subcategory")}"'
            raise _Rejected(ErrorCategory.ALREADY_EXISTS, message)
        return record
    name = data.get("category_name")
    if not index.has_category(name):
        raise _Rejected(ErrorCategory.REFERENTIAL_MISS, f'Category "{name}" does not exist')
    enriched = dict(data)
    enriched["category_id"] = index.category_id(name)
    return ValidatedRecord(row_number=record.row_number, data=enriched, natural_key=record.natural_key)


def validate(
    rows: Sequence[RawRow],
    kind: ImportKind | str,
    known_categories: CategoryIndex | None = None,
) -> ValidationOutcome:
    """Partition rows into valid records and local rejections.

    Never raises for bad row content; len(valid) + len(rejected) == len(rows).
    """
    schema = get_schema(kind)
    survivors: list[ValidatedRecord] = []
    rejected: list[RejectionEntry] = []
    seen: dict[tuple[Any, ...], int] = {}

    def _reject(row_number: int, data: dict[str, Any], err: _Rejected) -> None:
        rejected.append(
            RejectionEntry(
                row_number=row_number,
                data=data,
                error=err.message,
                category=err.category,
                source=RejectionSource.LOCAL,
                duplicate_of=err.duplicate_of,
            )
        )

    for row in rows:
        try:
            _check_structure(row, schema)
            _check_formats(row, schema)
            key = _natural_key(row, schema)
            if key in seen:
                raise _Rejected(ErrorCategory.DUPLICATE_IN_BATCH, DUPLICATE_MESSAGE, duplicate_of=seen[key])
        except _Rejected as err:
            _reject(row.row_number, _partial_data(row, schema), err)
            continue
        seen[key] = row.row_number
        survivors.append(
            ValidatedRecord(row_number=row.row_number, data=_build_record(row, schema), natural_key=key)
        )

    if known_categories is None:
        valid = survivors
    else:
        valid = []
        for record in survivors:
            try:
                valid.append(_check_references(record, schema, known_categories))
            except _Rejected as err:
                _reject(record.row_number, dict(record.data), err)

    rejected.sort(key=lambda r: r.row_number)
    logger.debug(f"validated kind={schema.kind.value} valid={len(valid)} rejected={len(rejected)}")
    return ValidationOutcome(valid=valid, rejected=rejected)
