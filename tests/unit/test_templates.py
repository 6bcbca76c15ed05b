from __future__ import annotations

import io
from datetime import date

import pandas as pd
import pytest

from asset_import.excel.reader import parse
from asset_import.excel.templates import template_filename, write_asset_update_template, write_template
from asset_import.models.field_schema import ImportKind, get_schema


@pytest.mark.parametrize("kind", list(ImportKind))
def test_template_has_schema_headers_and_no_rows(kind: ImportKind):
    schema = get_schema(kind)
    sheets = pd.read_excel(io.BytesIO(write_template(kind)), sheet_name=None)
    assert list(sheets) == [schema.template_sheet]
    df = sheets[schema.template_sheet]
    assert list(df.columns) == schema.headers
    assert len(df) == 0


def test_category_template_headers():
    df = pd.read_excel(io.BytesIO(write_template("categories")))
    assert list(df.columns) == ["Main Category", "Category"]


@pytest.mark.parametrize(
    "kind,expected",
    [
        ("categories", "categories_template_2026-10-18.xlsx"),
        ("assets", "assets_template_2026-10-18.xlsx"),
        ("asset-updates", "assets_update_template_2026-10-18.xlsx"),
    ],
)
def test_template_filename(kind: str, expected: str):
    assert template_filename(kind, date(2026, 10, 18)) == expected


def test_update_template_prefills_assets_and_parses_back(category_items):
    assets = [
        {
            "id": 7,
            "name_en": "Laptop",
            "name_ar": "حاسوب",
            "category_id": 1,
            "product_code": "1234567",
            "is_active": True,
        },
        {"id": 8, "name_en": "Chair", "name_ar": "كرسي", "category_id": 2, "is_active": False},
    ]
    data = write_asset_update_template(assets, category_items)
    sheet = parse(data, "asset_updates")
    assert sheet.mapping.positional == ()
    first, second = sheet.rows
    assert first.values == {
        "id": "7",
        "name_en": "Laptop",
        "name_ar": "حاسوب",
        "category": "Laptops",
        "product_code": "1234567",
        "is_active": "true",
    }
    assert second.get("category") == "Chairs"
    assert second.get("product_code") is None
    assert second.get("is_active") == "false"
