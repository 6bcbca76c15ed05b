from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from ..api.client import ApiClient
from ..excel.reader import ParseError, parse
from ..excel.upload import validate_upload, validate_upload_path
from ..logging.error_log import ErrorLogBuffer
from ..models.config_models import ImportConfig
from ..models.field_schema import ImportKind, get_schema
from ..models.processing_result import ImportResult
from .lookup import CategoryLookup
from .progress import StageProgress
from .reconciler import reconcile
from .report import export_results, results_filename
from .summary import summarize
from .validator import validate

logger = logging.getLogger(__name__)

"""Import orchestration.

Runs one import strictly in sequence:
upload check -> parse -> category lookup -> validate -> submit/reconcile ->
summarize -> export -> rejection log. Upload and parse failures abort the run;
everything after that is reported per row.
"""

__all__ = [
    "ImportAbortedError",
    "ImportOutcome",
    "run_import",
    "run_import_bytes",
]


class ImportAbortedError(Exception):
    """Fatal condition after parsing (result could not be assembled or written)."""


@dataclass(frozen=True)
class ImportOutcome:
    result: ImportResult
    results_file: Path | None = None
    error_log: Path | None = None

    @property
    def has_rejections(self) -> bool:
        return self.result.summary.rejected > 0


def run_import_bytes(
    kind: ImportKind | str,
    data: bytes,
    filename: str,
    config: ImportConfig,
    client: ApiClient,
    *,
    content_type: str | None = None,
    export: bool = True,
    now: datetime | None = None,
) -> ImportOutcome:
    """Import an uploaded spreadsheet held in memory.

    Raises:
        UploadError / ParseError: the file is rejected as a whole
        ImportAbortedError: the result could not be summarized or written
    """
    schema = get_schema(kind)
    kind_name = schema.kind.value
    now = now or datetime.now(UTC)
    validate_upload(filename, len(data), content_type, max_bytes=config.max_file_size_bytes)
    logger.info(f"Importing {kind_name} from: {filename}")

    with StageProgress(description=f"Importing {kind_name}") as progress:
        progress.start("parse")
        parsed = parse(data, schema.kind)
        progress.finish("parse", rows=len(parsed.rows))
        if parsed.mapping.positional:
            logger.warning(f"columns resolved by position: {', '.join(parsed.mapping.positional)}")
        logger.info(f"parsed rows={len(parsed.rows)} skipped_empty={parsed.skipped_rows}")

        progress.start("lookup")
        known = None
        if parsed.rows:
            lookup = CategoryLookup(
                client, config.endpoints.category_lookup, page_size=config.lookup_page_size
            )
            known = lookup.try_fetch()
        progress.finish("lookup")

        progress.start("validate")
        validation = validate(parsed.rows, schema.kind, known_categories=known)
        progress.finish("validate", valid=len(validation.valid), rejected=len(validation.rejected))
        logger.info(f"validated valid={len(validation.valid)} local_rejected={len(validation.rejected)}")

        progress.start("submit")
        endpoint = config.endpoints.for_key(schema.endpoint_key)
        remote = reconcile(validation.valid, client, endpoint, schema.kind)
        progress.finish("submit", accepted=len(remote.accepted))

        try:
            result = summarize(
                remote.accepted,
                [*validation.rejected, *remote.rejected],
                kind=kind_name,
                source_file=filename,
                skipped_rows=parsed.skipped_rows,
                created_at=now,
            )
        except ValueError as e:
            raise ImportAbortedError(f"inconsistent import result: {e}") from e

        progress.start("report")
        results_file = None
        if export:
            results_file = _write_results(result, schema.kind, Path(config.output_directory), now)
        progress.finish("report")

    for entry in result.rejected:
        logger.debug(f"row {entry.row_number} rejected [{entry.category.value}/{entry.source.value}]: {entry.error}")

    error_log = ErrorLogBuffer(kind_name, Path(config.error_log_directory))
    error_log.extend(result.rejected)
    try:
        log_path = error_log.flush()
    except OSError as e:
        logger.warning(f"failed writing rejection log: {e}")
        log_path = None

    return ImportOutcome(result=result, results_file=results_file, error_log=log_path)


def _write_results(result: ImportResult, kind: ImportKind, directory: Path, now: datetime) -> Path:
    try:
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / results_filename(kind, now)
        path.write_bytes(export_results(result, kind, now))
    except OSError as e:
        raise ImportAbortedError(f"failed writing results workbook: {e}") from e
    logger.info(f"results written: {path}")
    return path


def run_import(
    kind: ImportKind | str,
    file_path: Path,
    config: ImportConfig,
    client: ApiClient,
    *,
    export: bool = True,
    now: datetime | None = None,
) -> ImportOutcome:
    """Import a spreadsheet from disk (see run_import_bytes)."""
    validate_upload_path(file_path, max_bytes=config.max_file_size_bytes)
    try:
        data = file_path.read_bytes()
    except OSError as e:
        raise ParseError(f"Failed to read file: {e}") from e
    return run_import_bytes(kind, data, file_path.name, config, client, export=export, now=now)
