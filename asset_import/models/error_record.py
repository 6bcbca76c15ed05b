from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

"""Rejection taxonomy and RejectionEntry model.

Local validation and server-response translation share the same ErrorCategory
values so results can be grouped and filtered by category instead of by raw
message text. The rendered message carries a leading glyph for quick scanning.
"""

__all__ = [
    "ErrorCategory",
    "RejectionSource",
    "RejectionEntry",
]


class ErrorCategory(Enum):
    MISSING_REQUIRED = "MissingRequired"
    TOO_LONG = "TooLong"
    INVALID_CHARACTERS = "InvalidCharacters"
    DUPLICATE_IN_BATCH = "DuplicateInBatch"
    ALREADY_EXISTS = "AlreadyExists"
    REFERENTIAL_MISS = "ReferentialMiss"
    SERVER_ERROR = "ServerError"
    UNKNOWN = "Unknown"

    @property
    def glyph(self) -> str:
        return _GLYPHS[self]


_GLYPHS = {
    ErrorCategory.MISSING_REQUIRED: "❌",
    ErrorCategory.TOO_LONG: "❌",
    ErrorCategory.INVALID_CHARACTERS: "❌",
    ErrorCategory.DUPLICATE_IN_BATCH: "⚠️",
    ErrorCategory.ALREADY_EXISTS: "⚠️",
    ErrorCategory.REFERENTIAL_MISS: "❌",
    ErrorCategory.SERVER_ERROR: "🔧",
    ErrorCategory.UNKNOWN: "❌",
}


class RejectionSource(Enum):
    LOCAL = "local"
    REMOTE = "remote"


@dataclass(frozen=True)
class RejectionEntry:
    """A row that did not make it into the accepted set.

    Attributes:
        row_number: sheet row (1-based, header = 1)
        data: partial record as parsed / submitted
        error: plain human-readable reason, no glyph
        category: taxonomy tag used for grouping and filtering
        source: local (validator) or remote (reconciler)
    """
    row_number: int
    data: dict[str, Any]
    error: str
    category: ErrorCategory
    source: RejectionSource = RejectionSource.LOCAL
    raw_errors: tuple[str, ...] = field(default_factory=tuple)  # untranslated server strings
    duplicate_of: int | None = None  # earlier row holding the same natural key

    @property
    def message(self) -> str:
        return f"{self.category.glyph} {self.error}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "row_number": self.row_number,
            "data": dict(self.data),
            "error": self.error,
            "category": self.category.value,
            "source": self.source.value,
            "duplicate_of": self.duplicate_of,
        }

    def to_json_line(self, kind: str) -> str:
        """Serialize for the rejection log (fixed key set)."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        payload = {
            "timestamp": ts,
            "kind": kind,
            "row": self.row_number,
            "category": self.category.value,
            "source": self.source.value,
            "message": self.error,
        }
        return json.dumps(payload, ensure_ascii=False)
