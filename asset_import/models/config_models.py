from __future__ import annotations

from dataclasses import dataclass, field

"""Config dataclasses for the bulk importer.

Populated by asset_import.config.loader after schema validation. Defaults here
mirror the defaults declared in config_schema.json.
"""

__all__ = [
    "ApiConfig",
    "EndpointConfig",
    "ImportConfig",
]


@dataclass(frozen=True)
class ApiConfig:
    """Connection settings for the inventory REST API.

    ASSET_API_URL / ASSET_API_TOKEN environment variables take precedence
    over the values in the YAML file.
    """
    base_url: str
    token: str | None = None
    timeout_seconds: float | None = None  # None -> httpx default


@dataclass(frozen=True)
class EndpointConfig:
    categories: str = "/categories/bulk"
    assets: str = "/assets/bulk"
    asset_updates: str = "/assets/bulk-update"
    category_lookup: str = "/categories/"
    asset_lookup: str = "/assets/"

    def for_key(self, key: str) -> str:
        try:
            return getattr(self, key)
        except AttributeError as e:
            raise KeyError(f"unknown endpoint key: {key}") from e


@dataclass(frozen=True)
class ImportConfig:
    api: ApiConfig
    endpoints: EndpointConfig = field(default_factory=EndpointConfig)
    lookup_page_size: int = 1000
    max_file_size_mb: float = 5
    output_directory: str = "./results"
    error_log_directory: str = "./logs"

    @property
    def max_file_size_bytes(self) -> int:
        return int(self.max_file_size_mb * 1024 * 1024)
