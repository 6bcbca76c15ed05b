from __future__ import annotations

import json
from pathlib import Path

import jsonschema
import pytest
import yaml
from jsonschema.exceptions import ValidationError

from asset_import.config.loader import SCHEMA_PATH

"""Config schema contract: the packaged schema is valid and accepts the shipped sample."""

PROJECT_ROOT = Path(__file__).resolve().parents[2]


def _schema() -> dict:
    return json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))


def test_schema_is_valid_draft7():
    jsonschema.Draft7Validator.check_schema(_schema())


def test_shipped_sample_config_validates():
    config = yaml.safe_load((PROJECT_ROOT / "config" / "import.yml").read_text(encoding="utf-8"))
    jsonschema.validate(config, _schema())


@pytest.mark.parametrize(
    "config",
    [
        {},
        {"api": {}},
        {"api": {"base_url": ""}},
        {"api": {"base_url": "http://x", "timeout_seconds": 0}},
        {"api": {"base_url": "http://x"}, "max_file_size_mb": -1},
        {"api": {"base_url": "http://x", "password": "nope"}},
    ],
)
def test_schema_rejects_invalid(config: dict):
    with pytest.raises(ValidationError):
        jsonschema.validate(config, _schema())
