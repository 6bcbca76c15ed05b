from __future__ import annotations

import httpx
import pytest

from asset_import.api.client import ApiClient, ApiError, parse_error_message
from asset_import.models.config_models import ApiConfig


@pytest.mark.parametrize(
    "payload,expected",
    [
        ({"message": "Bad input", "error": "ignored"}, "Bad input"),
        ({"error": "Something broke"}, "Something broke"),
        ({"errors": {"name_en": ["too long", "other"]}}, "name_en: too long"),
        ({"errors": {"product_code": "invalid"}}, "product_code: invalid"),
        ({"msg": "legacy"}, "legacy"),
        ({}, "fallback"),
        ("plain text", "plain text"),
        (None, "fallback"),
    ],
)
def test_parse_error_message(payload, expected):
    assert parse_error_message(payload, "fallback") == expected


def test_success_returns_json_and_sends_bearer_token():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers.get("Authorization")
        seen["path"] = request.url.path
        return httpx.Response(200, json={"items": []})

    client = ApiClient(ApiConfig(base_url="http://api.test/", token="abc"), transport=httpx.MockTransport(handler))
    assert client.get("/categories/") == {"items": []}
    assert seen == {"auth": "Bearer abc", "path": "/categories/"}


def test_no_token_no_authorization_header(make_client):
    def handler(request: httpx.Request) -> httpx.Response:
        assert "Authorization" not in request.headers
        return httpx.Response(204)

    with make_client(handler) as client:
        assert client.request("DELETE", "/x") == {}


def test_submit_bulk_sends_json_array(make_client, request_json):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["body"] = request_json(request)
        return httpx.Response(201, json=[{"id": 1}])

    client = make_client(handler)
    assert client.submit_bulk("/assets/bulk-update", [{"id": 1}], method="PUT") == [{"id": 1}]
    assert seen == {"method": "PUT", "body": [{"id": 1}]}


@pytest.mark.parametrize(
    "status,body,expected",
    [
        (400, {"message": "Category name is required"}, "Category name is required"),
        (401, {"message": "token expired"}, "Session expired. Please log in again."),
        (403, {}, "You do not have permission to perform this action."),
        (404, {"message": "Asset not found"}, "Asset not found"),
        (404, {"message": "gone"}, "The requested resource was not found."),
        (500, {"message": "db down"}, "Internal server error. Please try again later."),
    ],
)
def test_http_errors_map_to_api_error(make_client, status, body, expected):
    client = make_client(lambda request: httpx.Response(status, json=body))
    with pytest.raises(ApiError) as exc:
        client.get("/categories/")
    assert exc.value.message == expected
    assert exc.value.status == status
    assert not exc.value.is_network_error


def test_non_json_error_body_uses_text(make_client):
    client = make_client(lambda request: httpx.Response(422, text="unprocessable row"))
    with pytest.raises(ApiError, match="unprocessable row"):
        client.get("/categories/")


def test_transport_failure_is_network_error(make_client):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = make_client(handler)
    with pytest.raises(ApiError) as exc:
        client.get("/categories/")
    assert exc.value.is_network_error
    assert exc.value.message.startswith("Network error:")
