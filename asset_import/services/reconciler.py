from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from ..api.client import ApiClient, ApiError
from ..models.error_record import ErrorCategory, RejectionEntry, RejectionSource
from ..models.field_schema import ImportKind, ImportSchema, get_schema
from ..models.processing_result import ReconcileOutcome
from ..models.row_data import AcceptedRecord, ValidatedRecord
from .error_translation import is_empty_main_category_duplicate, translate_errors
from .response_shapes import match_response
from .validator import key_component

"""Remote reconciler.

Submits the whole validated batch in one call and maps the server's
accepted / rejected lists back onto the submitted rows. A transport or HTTP
failure rejects every record of the batch; there is no retry and no chunking.
"""

__all__ = [
    "UNREPORTED_MESSAGE",
    "reconcile",
]

logger = logging.getLogger(__name__)

UNREPORTED_MESSAGE = "Server did not report a result for this row"
_ITEM_DATA_KEYS = ("category_data", "asset_data", "data")


class _Pending:
    """Submitted records not yet matched to a server item, in submission order."""

    def __init__(self, records: Sequence[ValidatedRecord]) -> None:
        self._records: list[ValidatedRecord] = list(records)

    def take_row(self, row_number: Any) -> ValidatedRecord | None:
        for i, rec in enumerate(self._records):
            if rec.row_number == row_number:
                return self._records.pop(i)
        return None

    def take_key(self, key: tuple[Any, ...]) -> ValidatedRecord | None:
        for i, rec in enumerate(self._records):
            if rec.natural_key == key:
                return self._records.pop(i)
        return None

    def take_next(self) -> ValidatedRecord | None:
        return self._records.pop(0) if self._records else None

    def remaining(self) -> list[ValidatedRecord]:
        rest, self._records = self._records, []
        return rest


def _item_data(item: Any) -> dict[str, Any]:
    if not isinstance(item, dict):
        return {}
    for key in _ITEM_DATA_KEYS:
        if isinstance(item.get(key), dict):
            return item[key]
    return item


def _item_key(item: Any, schema: ImportSchema) -> tuple[Any, ...] | None:
    data = _item_data(item)
    if not data:
        return None
    keys = [schema.field(name).key for name in schema.natural_key]
    if not any(k in data for k in keys):
        return None
    return tuple(key_component(name, data.get(k)) for name, k in zip(schema.natural_key, keys))


def _item_errors(item: Any) -> list[str]:
    if isinstance(item, str):
        return [item]
    if not isinstance(item, dict):
        return []
    errors = item.get("errors")
    if isinstance(errors, list):
        return [str(e) for e in errors]
    if isinstance(errors, str):
        return [errors]
    for key in ("error", "message", "reason"):
        if item.get(key):
            return [str(item[key])]
    return []


def _server_failure(records: Sequence[ValidatedRecord], error: ApiError) -> ReconcileOutcome:
    message = f"Server error: {error.message}"
    logger.error(f"bulk submit failed for {len(records)} record(s): {error.message}")
    return ReconcileOutcome(
        accepted=[],
        rejected=[
            RejectionEntry(
                row_number=r.row_number,
                data=dict(r.data),
                error=message,
                category=ErrorCategory.SERVER_ERROR,
                source=RejectionSource.REMOTE,
            )
            for r in records
        ],
    )


def reconcile(
    records: Sequence[ValidatedRecord],
    client: ApiClient,
    endpoint: str,
    kind: ImportKind | str,
) -> ReconcileOutcome:
    """Submit ``records`` and merge the server's verdict per row."""
    schema = get_schema(kind)
    if not records:
        return ReconcileOutcome(accepted=[], rejected=[])

    try:
        body = client.submit_bulk(endpoint, [r.data for r in records], method=schema.submit_method)
    except ApiError as e:
        return _server_failure(records, e)

    match = match_response(body)
    logger.debug(
        f"bulk submit response shape={match.shape} accepted={len(match.accepted)} rejected={len(match.rejected)}"
    )

    pending = _Pending(records)
    accepted: list[AcceptedRecord] = []
    rejected: list[RejectionEntry] = []

    def _handle(record: ValidatedRecord, item: Any, is_rejection: bool) -> None:
        if not is_rejection:
            data = dict(record.data)
            if isinstance(item, dict):
                data.update({k: v for k, v in item.items() if k not in _ITEM_DATA_KEYS})
            item_id = item.get("id") if isinstance(item, dict) else item
            accepted.append(AcceptedRecord(row_number=record.row_number, data=data, id=item_id))
            return
        errors = _item_errors(item)
        if schema.kind is ImportKind.CATEGORIES and is_empty_main_category_duplicate(errors):
            logger.info(
                f"row {record.row_number}: treating blank main-category duplicate report as accepted"
            )
            accepted.append(
                AcceptedRecord(
                    row_number=record.row_number,
                    data=dict(record.data),
                    id=f"synthetic-{record.row_number}",
                    synthetic=True,
                )
            )
            return
        translated = translate_errors(errors)
        rejected.append(
            RejectionEntry(
                row_number=record.row_number,
                data=dict(record.data),
                error=translated.message,
                category=translated.category,
                source=RejectionSource.REMOTE,
                raw_errors=tuple(errors),
            )
        )

    items = [(item, False) for item in match.accepted] + [(item, True) for item in match.rejected]
    leftovers: list[tuple[Any, bool]] = []
    for item, is_rejection in items:
        record = None
        if isinstance(item, dict):
            explicit_row = item.get("row_number", item.get("row"))
            if explicit_row is not None:
                record = pending.take_row(explicit_row)
        if record is None:
            key = _item_key(item, schema)
            if key is not None:
                record = pending.take_key(key)
        if record is None:
            leftovers.append((item, is_rejection))
            continue
        _handle(record, item, is_rejection)

    for item, is_rejection in leftovers:
        record = pending.take_next()
        if record is None:
            logger.warning(f"server reported a result matching no submitted row: {item!r}")
            continue
        _handle(record, item, is_rejection)

    for record in pending.remaining():
        rejected.append(
            RejectionEntry(
                row_number=record.row_number,
                data=dict(record.data),
                error=UNREPORTED_MESSAGE,
                category=ErrorCategory.UNKNOWN,
                source=RejectionSource.REMOTE,
            )
        )

    accepted.sort(key=lambda a: a.row_number)
    rejected.sort(key=lambda r: r.row_number)
    return ReconcileOutcome(accepted=accepted, rejected=rejected)
