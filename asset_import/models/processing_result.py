from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from .error_record import RejectionEntry
from .row_data import AcceptedRecord, ValidatedRecord

"""Result models for one import run.

ValidationOutcome and ReconcileOutcome are the intermediate partitions produced
by the validator and the reconciler; ImportResult is the aggregate handed to the
reporting layer.
"""

__all__ = [
    "ValidationOutcome",
    "ReconcileOutcome",
    "ImportSummary",
    "ImportResult",
    "success_rate",
]


def success_rate(added: int, total: int) -> int:
    """Percentage of accepted rows, 0 for an empty import."""
    if total == 0:
        return 0
    # round-half-up, matching Math.round on the dashboard
    return int(100 * added / total + 0.5)


@dataclass(frozen=True)
class ValidationOutcome:
    valid: list[ValidatedRecord]
    rejected: list[RejectionEntry]

    @property
    def total(self) -> int:
        return len(self.valid) + len(self.rejected)


@dataclass(frozen=True)
class ReconcileOutcome:
    accepted: list[AcceptedRecord]
    rejected: list[RejectionEntry]


@dataclass(frozen=True)
class ImportSummary:
    total: int
    added: int
    rejected: int
    success_rate: int  # 0..100


@dataclass(frozen=True)
class ImportResult:
    """Aggregate root of one import (total == added + rejected)."""
    summary: ImportSummary
    added: list[AcceptedRecord]
    rejected: list[RejectionEntry]
    created_at: datetime | None = None
    kind: str | None = None
    source_file: str | None = None
    skipped_rows: int = 0  # fully empty rows dropped by the parser
    notes: list[str] = field(default_factory=list)
