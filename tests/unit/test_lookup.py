from __future__ import annotations

import httpx

from asset_import.services.lookup import CategoryIndex, CategoryLookup, normalize_name


def test_normalize_name():
    assert normalize_name(None) == ""
    assert normalize_name("  Laptops ") == "laptops"
    assert normalize_name("STRASSE") == normalize_name("straße")


def test_index_from_items(category_items):
    index = CategoryIndex.from_items(category_items + [{"id": 9, "category": ""}])
    assert len(index) == 3
    assert index.category_id("LAPTOPS") == 1
    assert index.has_category(" chairs ")
    assert not index.has_category("Tablets")
    assert index.has_pair("electronics", "printers")
    assert index.has_pair(None, "Chairs")
    assert not index.has_pair("", "Laptops")


def test_fetch_walks_pages_until_short_page(make_client):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        page = int(request.url.params["page"])
        calls.append((page, int(request.url.params["per_page"])))
        pages = {
            1: [{"id": 1, "category": "A"}, {"id": 2, "category": "B"}],
            2: [{"id": 3, "category": "C"}],
        }
        return httpx.Response(200, json={"items": pages.get(page, [])})

    lookup = CategoryLookup(make_client(handler), "/categories/", page_size=2)
    index = lookup.fetch()
    assert calls == [(1, 2), (2, 2)]
    assert len(index) == 3
    # cached for the rest of the run
    assert lookup.fetch() is index
    assert len(calls) == 2


def test_fetch_stops_at_reported_page_count(make_client):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.params["page"])
        return httpx.Response(200, json={"data": [{"id": 1, "category": "A"}], "pages": 1})

    index = CategoryLookup(make_client(handler), "/categories/", page_size=1).fetch()
    assert calls == ["1"]
    assert index.has_category("a")


def test_fetch_follows_page_count_when_server_caps_page_size(make_client):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        page = int(request.url.params["page"])
        calls.append(page)
        pages = {
            1: [{"id": 1, "category": "Laptops"}, {"id": 2, "category": "Desks"}],
            2: [{"id": 3, "category": "Monitors"}],
        }
        return httpx.Response(200, json={"items": pages.get(page, []), "pages": 2})

    index = CategoryLookup(make_client(handler), "/categories/", page_size=1000).fetch()
    assert calls == [1, 2]
    assert index.has_category("Monitors")
    assert len(index) == 3


def test_fetch_accepts_bare_list(make_client, category_items):
    lookup = CategoryLookup(make_client(lambda r: httpx.Response(200, json=category_items)), "/categories/")
    assert len(lookup.fetch()) == 3


def test_try_fetch_failure_returns_none(make_client, caplog):
    lookup = CategoryLookup(make_client(lambda r: httpx.Response(503, json={})), "/categories/")
    with caplog.at_level("WARNING", logger="asset_import.services.lookup"):
        assert lookup.try_fetch() is None
