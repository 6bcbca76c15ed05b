from __future__ import annotations

import io
from collections.abc import Iterable, Mapping
from datetime import date
from typing import Any

import pandas as pd
from openpyxl.utils import get_column_letter

from ..models.field_schema import ImportKind, get_schema

"""Downloadable spreadsheet templates.

Templates carry exactly the headers the parser resolves by exact name, so a
filled-in template always maps without heuristics.
"""

__all__ = [
    "write_template",
    "write_asset_update_template",
    "template_filename",
]

_FILENAME_PREFIX = {
    ImportKind.CATEGORIES: "categories_template",
    ImportKind.ASSETS: "assets_template",
    ImportKind.ASSET_UPDATES: "assets_update_template",
}


def _write_sheet(df: pd.DataFrame, sheet_name: str, widths: list[int]) -> bytes:
    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=sheet_name, index=False)
        ws = writer.sheets[sheet_name]
        for i, width in enumerate(widths):
            ws.column_dimensions[get_column_letter(i + 1)].width = width
    return buf.getvalue()


def write_template(kind: ImportKind | str) -> bytes:
    """Header-only workbook for the given import kind."""
    schema = get_schema(kind)
    df = pd.DataFrame(columns=schema.headers)
    return _write_sheet(df, schema.template_sheet, [f.width for f in schema.fields])


def write_asset_update_template(
    assets: Iterable[Mapping[str, Any]],
    categories: Iterable[Mapping[str, Any]],
) -> bytes:
    """Update template pre-filled with existing assets (category id -> name)."""
    schema = get_schema(ImportKind.ASSET_UPDATES)
    names_by_id = {c.get("id"): c.get("category") for c in categories}
    rows = []
    for asset in assets:
        rows.append(
            [
                asset.get("id") or "",
                asset.get("name_en") or "",
                asset.get("name_ar") or "",
                names_by_id.get(asset.get("category_id")) or "",
                asset.get("product_code") or "",
                "true" if asset.get("is_active") else "false",
            ]
        )
    df = pd.DataFrame(rows, columns=schema.headers)
    return _write_sheet(df, schema.template_sheet, [f.width for f in schema.fields])


def template_filename(kind: ImportKind | str, today: date | None = None) -> str:
    schema = get_schema(kind)
    today = today or date.today()
    return f"{_FILENAME_PREFIX[schema.kind]}_{today.isoformat()}.xlsx"
