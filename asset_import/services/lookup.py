from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from ..api.client import ApiClient, ApiError

"""Known-category lookup used for referential checks.

Fetched once per import run (all pages) and discarded with the run. The page
walker is shared with the pre-filled update template.
"""

__all__ = [
    "CategoryIndex",
    "CategoryLookup",
    "fetch_all_pages",
    "normalize_name",
]

logger = logging.getLogger(__name__)


def normalize_name(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip().casefold()


@dataclass
class CategoryIndex:
    """Normalized category name -> id, plus the existing (main, category) pairs."""
    ids_by_name: dict[str, Any] = field(default_factory=dict)
    pairs: set[tuple[str, str]] = field(default_factory=set)

    @classmethod
    def from_items(cls, items: list[dict[str, Any]]) -> CategoryIndex:
        index = cls()
        for item in items:
            name = normalize_name(item.get("category"))
            if not name:
                continue
            index.ids_by_name.setdefault(name, item.get("id"))
            index.pairs.add((normalize_name(item.get("subcategory")), name))
        return index

    def category_id(self, name: Any) -> Any:
        return self.ids_by_name.get(normalize_name(name))

    def has_category(self, name: Any) -> bool:
        return normalize_name(name) in self.ids_by_name

    def has_pair(self, main: Any, category: Any) -> bool:
        return (normalize_name(main), normalize_name(category)) in self.pairs

    def __len__(self) -> int:
        return len(self.ids_by_name)


class CategoryLookup:
    """Paginated fetch of every category, cached after the first call."""

    def __init__(self, client: ApiClient, endpoint: str, page_size: int = 1000) -> None:
        self.client = client
        self.endpoint = endpoint
        self.page_size = page_size
        self._index: CategoryIndex | None = None

    def fetch(self) -> CategoryIndex:
        if self._index is not None:
            return self._index
        items = fetch_all_pages(self.client, self.endpoint, self.page_size)
        logger.debug(f"category lookup: {len(items)} categories")
        self._index = CategoryIndex.from_items(items)
        return self._index

    def try_fetch(self) -> CategoryIndex | None:
        """Like fetch(), but a failed lookup only disables referential checks."""
        try:
            return self.fetch()
        except ApiError as e:
            logger.warning(f"category lookup failed, skipping referential checks: {e.message}")
            return None


def fetch_all_pages(client: ApiClient, endpoint: str, page_size: int = 1000) -> list[dict[str, Any]]:
    """Collect every item of a paginated list endpoint (page / per_page)."""
    items: list[dict[str, Any]] = []
    page = 1
    while True:
        payload = client.get(endpoint, params={"page": page, "per_page": page_size})
        page_items = _extract_items(payload)
        items.extend(page_items)
        pages = payload.get("pages") if isinstance(payload, dict) else None
        if not page_items:
            break
        if isinstance(pages, int):
            # the server may cap per_page below what was asked for
            if page >= pages:
                break
        elif len(page_items) < page_size:
            break
        page += 1
    logger.debug(f"{endpoint}: {len(items)} item(s) over {page} page(s)")
    return items


def _extract_items(payload: Any) -> list[dict[str, Any]]:
    if isinstance(payload, list):
        return [i for i in payload if isinstance(i, dict)]
    if isinstance(payload, dict):
        items = payload.get("items")
        if items is None:
            items = payload.get("data")
        if isinstance(items, list):
            return [i for i in items if isinstance(i, dict)]
    return []
