from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

"""Row models flowing through one import run.

RawRow is produced by the spreadsheet parser, ValidatedRecord by the validator.
Both are frozen; neither outlives the import run that created them.
"""

__all__ = [
    "RawRow",
    "ValidatedRecord",
    "AcceptedRecord",
]


@dataclass(frozen=True)
class RawRow:
    """One data row of the uploaded sheet, keyed by logical field name.

    ``row_number`` is the 1-based sheet row (header = 1, first data row = 2).
    ``headers`` keeps the original header text of each resolved field.
    """
    row_number: int
    values: dict[str, Any]
    headers: dict[str, str] = field(default_factory=dict)

    def get(self, name: str, default: Any = None) -> Any:
        return self.values.get(name, default)


@dataclass(frozen=True)
class ValidatedRecord:
    """A RawRow mapped onto the shape the bulk endpoint expects."""
    row_number: int
    data: dict[str, Any]
    natural_key: tuple[Any, ...]


@dataclass(frozen=True)
class AcceptedRecord:
    """A record the server (or the empty-main-category workaround) accepted."""
    row_number: int
    data: dict[str, Any]
    id: Any = None
    synthetic: bool = False  # True when the id was synthesized client-side
