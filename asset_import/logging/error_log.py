from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from ..models.error_record import RejectionEntry

"""Rejection log buffering.

- JSON Lines, fixed key set (see RejectionEntry.to_json_line)
- One file per run: ``<dir>/rejections-YYYYMMDD-HHMMSS.log`` (UTC)
- Buffered in memory, written on flush(); nothing is created for a clean run
"""

__all__ = [
    "ErrorLogBuffer",
]

TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


class ErrorLogBuffer:
    """In-memory buffer of rejections for one import kind. Serial use only."""

    def __init__(self, kind: str, directory: Path = Path("./logs")) -> None:
        self.kind = kind
        self.directory = directory
        self._records: list[RejectionEntry] = []
        self._file_path: Path | None = None

    @property
    def file_path(self) -> Path:
        if self._file_path is None:
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self.directory / f"rejections-{stamp}.log"
        return self._file_path

    def append(self, record: RejectionEntry) -> None:
        self._records.append(record)

    def extend(self, records: list[RejectionEntry]) -> None:
        self._records.extend(records)

    def __len__(self) -> int:  # pragma: no cover (trivial)
        return len(self._records)

    def flush(self) -> Path | None:
        """Append buffered records to the log file; None when nothing was buffered."""
        if not self._records:
            return None
        fp = self.file_path
        fp.parent.mkdir(parents=True, exist_ok=True)
        with fp.open("a", encoding="utf-8") as f:
            for r in self._records:
                f.write(r.to_json_line(self.kind) + "\n")
        self._records.clear()
        return fp
