from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import ApiConfig, EndpointConfig, ImportConfig

"""Config loader.

Responsibilities:
- Load YAML config (default config/import.yml)
- Validate against the packaged config_schema.json
- Apply defaults for optional keys
- Let ASSET_API_URL / ASSET_API_TOKEN override the api section
"""

__all__ = [
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "SCHEMA_PATH",
    "load_config",
]

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")
DEFAULT_CONFIG_PATH = Path("config/import.yml")

ENV_API_URL = "ASSET_API_URL"
ENV_API_TOKEN = "ASSET_API_TOKEN"


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: schema file missing / not JSON, or the data violates it
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> ImportConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping, got {type(data).__name__}")

    _validate_config_schema(data)

    api_raw = data["api"]
    api = ApiConfig(
        base_url=os.getenv(ENV_API_URL) or api_raw["base_url"],
        token=os.getenv(ENV_API_TOKEN) or api_raw.get("token"),
        timeout_seconds=api_raw.get("timeout_seconds"),
    )
    endpoints = EndpointConfig(**(data.get("endpoints") or {}))
    defaults = ImportConfig(api=api)
    return ImportConfig(
        api=api,
        endpoints=endpoints,
        lookup_page_size=data.get("lookup_page_size", defaults.lookup_page_size),
        max_file_size_mb=data.get("max_file_size_mb", defaults.max_file_size_mb),
        output_directory=data.get("output_directory", defaults.output_directory),
        error_log_directory=data.get("error_log_directory", defaults.error_log_directory),
    )
