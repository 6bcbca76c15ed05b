from __future__ import annotations

import argparse
import json
import sys
from datetime import date
from pathlib import Path

from dotenv import load_dotenv

from asset_import.api.client import ApiClient, ApiError
from asset_import.config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from asset_import.excel.reader import ParseError, inspect_headers
from asset_import.excel.templates import template_filename, write_asset_update_template, write_template
from asset_import.logging.init import log_summary, set_debug, setup_logging
from asset_import.models.field_schema import ImportKind
from asset_import.services.lookup import fetch_all_pages
from asset_import.services.orchestrator import ImportAbortedError, run_import
from asset_import.services.summary import render_summary_fields

"""CLI entrypoint.

Commands:
- import <kind> <file>   parse, validate, submit and reconcile one spreadsheet
- template <kind>        write a header-only template workbook
                         (--prefill: asset_updates filled with the existing assets)
- inspect <kind> <file>  show how the header row resolves (no network)
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1

_KIND_CHOICES = [k.value for k in ImportKind]


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env so ASSET_API_URL / ASSET_API_TOKEN win over the YAML config."""
    try:
        if path.exists():
            load_dotenv(dotenv_path=path, override=override)
    except OSError as e:  # pragma: no cover
        print(f"WARNING: failed to load .env: {e}")


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="asset-import", description="Spreadsheet bulk importer for the asset inventory API")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Path to import.yml")
    sub = p.add_subparsers(dest="command", required=True)

    imp = sub.add_parser("import", help="Import a spreadsheet")
    imp.add_argument("kind", choices=_KIND_CHOICES)
    imp.add_argument("file", type=Path)
    imp.add_argument("--no-export", action="store_true", help="Do not write the results workbook")

    tpl = sub.add_parser("template", help="Write an empty template workbook")
    tpl.add_argument("kind", choices=_KIND_CHOICES)
    tpl.add_argument("--output", type=Path, default=Path("."), help="Output directory")
    tpl.add_argument(
        "--prefill", action="store_true", help="Fill an asset_updates template with the assets on the server"
    )

    ins = sub.add_parser("inspect", help="Print resolved columns and first rows then exit")
    ins.add_argument("kind", choices=_KIND_CHOICES)
    ins.add_argument("file", type=Path)
    return p.parse_args(argv)


def _prefilled_update_template(config_path: Path) -> bytes:
    cfg = load_config(config_path)
    with ApiClient(cfg.api) as client:
        categories = fetch_all_pages(client, cfg.endpoints.category_lookup, cfg.lookup_page_size)
        assets = fetch_all_pages(client, cfg.endpoints.asset_lookup, cfg.lookup_page_size)
    return write_asset_update_template(assets, categories)


def _write_template(args: argparse.Namespace, logger) -> int:
    if args.prefill and args.kind != ImportKind.ASSET_UPDATES.value:
        logger.error("template: --prefill is only available for asset_updates")
        return EXIT_FATAL
    try:
        content = _prefilled_update_template(args.config) if args.prefill else write_template(args.kind)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL
    except ApiError as e:
        logger.error(f"template: could not fetch existing assets: {e.message}")
        return EXIT_FATAL
    try:
        args.output.mkdir(parents=True, exist_ok=True)
        path = args.output / template_filename(args.kind, date.today())
        path.write_bytes(content)
    except OSError as e:
        logger.error(f"template: {e}")
        return EXIT_FATAL
    logger.info(f"template written: {path}")
    return EXIT_SUCCESS_ALL


def _inspect(args: argparse.Namespace, logger) -> int:
    try:
        report = inspect_headers(args.file.read_bytes(), args.kind)
    except (OSError, ParseError) as e:
        logger.error(f"inspect: {e}")
        return EXIT_FATAL
    print(f"FILE: {args.file.name} kind={args.kind}")
    for field_name, header in report["columns"].items():
        marker = " (positional)" if field_name in report["positional"] else ""
        print(f"  {field_name} <- {header!r}{marker}")
    print(f"  skipped_empty_rows={report['skipped_rows']}")
    print("  sample_rows=", json.dumps(report["rows"], ensure_ascii=False, default=str))
    return EXIT_SUCCESS_ALL


def _import(args: argparse.Namespace, logger) -> int:
    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    with ApiClient(cfg.api) as client:
        try:
            outcome = run_import(args.kind, args.file, cfg, client, export=not args.no_export)
        except ParseError as e:
            logger.error(f"import: {e}")
            return EXIT_FATAL
        except ImportAbortedError as e:
            logger.error(f"import aborted: {e}")
            return EXIT_FATAL

    if outcome.error_log is not None:
        logger.info(f"rejections logged: {outcome.error_log}")
    log_summary(render_summary_fields(outcome.result))
    return EXIT_PARTIAL_FAILURE if outcome.has_rejections else EXIT_SUCCESS_ALL


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # only fall back to sys.argv when no argv was given (an empty list is a valid call)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    if args.debug:
        set_debug(True)
        logger.debug("debug mode enabled")

    if args.command == "template":
        return _write_template(args, logger)
    if args.command == "inspect":
        return _inspect(args, logger)
    return _import(args, logger)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
