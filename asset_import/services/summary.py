from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

from ..models.error_record import ErrorCategory, RejectionEntry
from ..models.processing_result import ImportResult, ImportSummary, success_rate
from ..models.row_data import AcceptedRecord

"""Result aggregation and SUMMARY line rendering.

summarize() is the only place an ImportResult is built, so the
total == added + rejected and unique row number guarantees live here.
"""

__all__ = [
    "summarize",
    "rejection_breakdown",
    "render_summary_fields",
    "render_summary_line",
    "to_view_model",
]


def summarize(
    accepted: Sequence[AcceptedRecord],
    rejected: Sequence[RejectionEntry],
    *,
    kind: str | None = None,
    source_file: str | None = None,
    skipped_rows: int = 0,
    created_at: datetime | None = None,
) -> ImportResult:
    """Aggregate accepted and rejected rows into an ImportResult.

    Raises:
        ValueError: a row number appears more than once
    """
    seen: dict[int, str] = {}
    for label, rows in (("accepted", accepted), ("rejected", rejected)):
        for row in rows:
            if row.row_number in seen:
                raise ValueError(
                    f"row {row.row_number} reported twice ({seen[row.row_number]} and {label})"
                )
            seen[row.row_number] = label

    added = sorted(accepted, key=lambda a: a.row_number)
    rejects = sorted(rejected, key=lambda r: r.row_number)
    total = len(added) + len(rejects)
    summary = ImportSummary(
        total=total,
        added=len(added),
        rejected=len(rejects),
        success_rate=success_rate(len(added), total),
    )
    return ImportResult(
        summary=summary,
        added=added,
        rejected=rejects,
        created_at=created_at or datetime.now(UTC),
        kind=kind,
        source_file=source_file,
        skipped_rows=skipped_rows,
    )


def rejection_breakdown(result: ImportResult) -> dict[ErrorCategory, int]:
    """Rejected row count per category, in taxonomy order, non-zero only."""
    counts = Counter(r.category for r in result.rejected)
    return {category: counts[category] for category in ErrorCategory if counts[category]}


def render_summary_fields(result: ImportResult) -> str:
    """total=<n> added=<n> rejected=<n> success_rate=<n>% [<Category>=<n> ...]"""
    s = result.summary
    line = (
        f"total={s.total} "
        f"added={s.added} "
        f"rejected={s.rejected} "
        f"success_rate={s.success_rate}%"
    )
    for category, count in rejection_breakdown(result).items():
        line += f" {category.value}={count}"
    return line


def render_summary_line(result: ImportResult) -> str:
    """The full SUMMARY line, label included."""
    return f"SUMMARY {render_summary_fields(result)}"


def to_view_model(result: ImportResult) -> dict[str, Any]:
    s = result.summary
    return {
        "kind": result.kind,
        "source_file": result.source_file,
        "summary": {
            "total": s.total,
            "added": s.added,
            "rejected": s.rejected,
            "success_rate": s.success_rate,
        },
        "breakdown": {c.value: n for c, n in rejection_breakdown(result).items()},
        "added": [
            {"row_number": a.row_number, "id": a.id, "data": dict(a.data)} for a in result.added
        ],
        "rejected": [
            {**r.to_dict(), "message": r.message} for r in result.rejected
        ],
    }
