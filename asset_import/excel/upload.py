from __future__ import annotations

from pathlib import Path

from .reader import ParseError

"""Upload pre-checks run before a file is parsed (extension, MIME type, size)."""

__all__ = [
    "ALLOWED_CONTENT_TYPES",
    "ALLOWED_SUFFIXES",
    "DEFAULT_MAX_BYTES",
    "UploadError",
    "validate_upload",
    "validate_upload_path",
]

ALLOWED_CONTENT_TYPES = frozenset(
    {
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",  # .xlsx
        "application/vnd.ms-excel",  # .xls
    }
)
ALLOWED_SUFFIXES = frozenset({".xlsx", ".xls"})
DEFAULT_MAX_BYTES = 5 * 1024 * 1024


class UploadError(ParseError):
    """The file is not an acceptable spreadsheet upload."""


def _format_limit(max_bytes: int) -> str:
    mb = max_bytes / (1024 * 1024)
    return f"{int(mb)}MB" if mb == int(mb) else f"{mb:.1f}MB"


def validate_upload(
    name: str,
    size: int,
    content_type: str | None = None,
    max_bytes: int = DEFAULT_MAX_BYTES,
) -> None:
    if Path(name).suffix.lower() not in ALLOWED_SUFFIXES:
        raise UploadError("Please upload a valid Excel file (.xlsx or .xls)")
    if content_type is not None and content_type not in ALLOWED_CONTENT_TYPES:
        raise UploadError("Please upload a valid Excel file (.xlsx or .xls)")
    if size > max_bytes:
        raise UploadError(f"File size must be less than {_format_limit(max_bytes)}")


def validate_upload_path(path: Path, max_bytes: int = DEFAULT_MAX_BYTES) -> None:
    if not path.is_file():
        raise UploadError(f"file not found: {path}")
    validate_upload(path.name, path.stat().st_size, max_bytes=max_bytes)
