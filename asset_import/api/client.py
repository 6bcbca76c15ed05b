from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import httpx

from ..models.config_models import ApiConfig

"""HTTP client for the inventory REST API.

Thin wrapper over httpx.Client: JSON bodies, bearer auth, and a single
ApiError type for both transport failures and non-2xx answers. Error text is
pulled from the response body in the order message -> error -> errors -> msg.
"""

__all__ = [
    "ApiError",
    "ApiClient",
    "parse_error_message",
]

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Raised for network failures and non-2xx responses."""

    def __init__(self, message: str, status: int | None = None, data: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.data = data

    @property
    def is_network_error(self) -> bool:
        return self.status is None


def parse_error_message(error_data: Any, default: str = "An error occurred") -> str:
    if isinstance(error_data, str):
        return error_data or default
    if isinstance(error_data, dict):
        if error_data.get("message"):
            return str(error_data["message"])
        if error_data.get("error"):
            return str(error_data["error"])
        errors = error_data.get("errors")
        if isinstance(errors, dict) and errors:
            first_field = next(iter(errors))
            first_error = errors[first_field]
            if isinstance(first_error, list) and first_error:
                return f"{first_field}: {first_error[0]}"
            return f"{first_field}: {first_error}"
        if error_data.get("msg"):
            return str(error_data["msg"])
    return default


class ApiClient:
    """Synchronous JSON client bound to one API base URL."""

    def __init__(
        self,
        config: ApiConfig,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        headers = {"Accept": "application/json", "Content-Type": "application/json"}
        if config.token:
            headers["Authorization"] = f"Bearer {config.token}"
        kwargs: dict[str, Any] = {"base_url": config.base_url.rstrip("/"), "headers": headers}
        if config.timeout_seconds is not None:
            kwargs["timeout"] = config.timeout_seconds
        if transport is not None:
            kwargs["transport"] = transport
        self._client = httpx.Client(**kwargs)

    def request(
        self,
        method: str,
        endpoint: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        try:
            response = self._client.request(method, endpoint, params=params, json=json)
        except httpx.HTTPError as e:
            logger.debug(f"{method} {endpoint} transport failure: {e!r}")
            raise ApiError(f"Network error: {e}") from e

        if response.is_success:
            if not response.content:
                return {}
            try:
                return response.json()
            except ValueError:
                return response.text

        status = response.status_code
        try:
            error_data: Any = response.json()
        except ValueError:
            error_data = {"error": response.text or f"HTTP {status}: {response.reason_phrase}"}
        message = parse_error_message(error_data, f"HTTP {status}: {response.reason_phrase}")
        if status == 401:
            message = "Session expired. Please log in again."
        elif status == 403:
            message = "You do not have permission to perform this action."
        elif status == 404 and "not found" not in message.lower():
            message = "The requested resource was not found."
        elif status >= 500:
            message = "Internal server error. Please try again later."
        logger.debug(f"{method} {endpoint} -> {status}: {message}")
        raise ApiError(message, status=status, data=error_data)

    def get(self, endpoint: str, params: dict[str, Any] | None = None) -> Any:
        return self.request("GET", endpoint, params=params)

    def submit_bulk(self, endpoint: str, records: Sequence[dict[str, Any]], method: str = "POST") -> Any:
        """Send one batch of records to a bulk create/update endpoint."""
        return self.request(method, endpoint, json=list(records))

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> ApiClient:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
