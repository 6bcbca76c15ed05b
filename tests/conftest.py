# Shared pytest fixtures
from __future__ import annotations

import io
import json
import logging
from collections.abc import Callable
from pathlib import Path

import httpx
import pandas as pd
import pytest

from asset_import.api.client import ApiClient
from asset_import.logging.init import APP_LOGGER_NAME, reset_logging
from asset_import.models.config_models import ApiConfig, ImportConfig

API_BASE = "http://api.test"


def _make_xlsx(rows: list[list[object]], sheet: str = "Sheet1") -> bytes:
    """Build workbook bytes whose first sheet holds ``rows`` verbatim (row 0 = header)."""
    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        pd.DataFrame(rows).to_excel(writer, sheet_name=sheet, header=False, index=False)
    return buf.getvalue()


def _make_client(handler: Callable[[httpx.Request], httpx.Response]) -> ApiClient:
    return ApiClient(ApiConfig(base_url=API_BASE), transport=httpx.MockTransport(handler))


def _request_json(request: httpx.Request):
    return json.loads(request.content.decode("utf-8"))


@pytest.fixture(autouse=True)
def _clean_logging():
    yield
    logger = logging.getLogger(APP_LOGGER_NAME)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
    reset_logging()


@pytest.fixture()
def temp_workdir(tmp_path: Path, monkeypatch) -> Path:
    (tmp_path / "config").mkdir()
    (tmp_path / "data").mkdir()
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("ASSET_API_URL", raising=False)
    monkeypatch.delenv("ASSET_API_TOKEN", raising=False)
    return tmp_path


@pytest.fixture()
def sample_config_yaml() -> str:
    return """api:
  base_url: http://api.test
  token: secret-token
endpoints:
  categories: /categories/bulk
  assets: /assets/bulk
  asset_updates: /assets/bulk-update
  category_lookup: /categories/
  asset_lookup: /assets/
lookup_page_size: 100
max_file_size_mb: 5
output_directory: ./results
error_log_directory: ./logs
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def category_items() -> list[dict]:
    return [
        {"id": 1, "category": "Laptops", "subcategory": "Electronics"},
        {"id": 2, "category": "Chairs", "subcategory": None},
        {"id": 3, "category": "Printers", "subcategory": "Electronics"},
    ]


@pytest.fixture()
def make_xlsx():
    return _make_xlsx


@pytest.fixture()
def make_client():
    return _make_client


@pytest.fixture()
def request_json():
    return _request_json


@pytest.fixture()
def import_config():
    return ImportConfig(
        api=ApiConfig(base_url=API_BASE),
        output_directory="./results",
        error_log_directory="./logs",
    )
