from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

"""Bulk-submit response shapes.

One logical endpoint answers in several shapes depending on the resource.
Shapes are tried in priority order; the first whose predicate matches extracts
the accepted and rejected lists. A body carrying only a rejected list (every
row refused) is matched by its rejected key alone. When no keyed shape matches,
the response is taken as the accepted list itself, then ``data``, then the
first list-valued property.
"""

__all__ = [
    "ResponseShape",
    "ShapeMatch",
    "KNOWN_SHAPES",
    "match_response",
]


@dataclass(frozen=True)
class ShapeMatch:
    shape: str
    accepted: list[Any]
    rejected: list[Any]
    summary: dict[str, Any] | None = None


@dataclass(frozen=True)
class ResponseShape:
    name: str
    predicate: Callable[[Any], bool]
    extractor: Callable[[Any], tuple[list[Any], list[Any]]]


def _as_list(value: Any) -> list[Any]:
    return list(value) if isinstance(value, list) else []


def _keyed(accepted_key: str, rejected_key: str) -> ResponseShape:
    return ResponseShape(
        name=f"{accepted_key}/{rejected_key}",
        predicate=lambda body: isinstance(body, dict) and accepted_key in body,
        extractor=lambda body: (_as_list(body.get(accepted_key)), _as_list(body.get(rejected_key))),
    )


def _rejected_only(rejected_key: str) -> ResponseShape:
    return ResponseShape(
        name=rejected_key,
        predicate=lambda body: isinstance(body, dict) and rejected_key in body,
        extractor=lambda body: ([], _as_list(body.get(rejected_key))),
    )


def _first_list_property(body: Any) -> list[Any] | None:
    for value in body.values():
        if isinstance(value, list):
            return value
    return None


KNOWN_SHAPES: tuple[ResponseShape, ...] = (
    _keyed("added_categories", "rejected_categories"),
    _keyed("added_assets", "rejected_assets"),
    _keyed("updated_assets", "rejected_assets"),
    _rejected_only("rejected_categories"),
    _rejected_only("rejected_assets"),
    ResponseShape(
        name="array",
        predicate=lambda body: isinstance(body, list),
        extractor=lambda body: (list(body), []),
    ),
    ResponseShape(
        name="data",
        predicate=lambda body: isinstance(body, dict) and isinstance(body.get("data"), list),
        extractor=lambda body: (list(body["data"]), []),
    ),
    ResponseShape(
        name="first_array_property",
        predicate=lambda body: isinstance(body, dict) and _first_list_property(body) is not None,
        extractor=lambda body: (list(_first_list_property(body) or []), []),
    ),
)


def match_response(body: Any, shapes: tuple[ResponseShape, ...] = KNOWN_SHAPES) -> ShapeMatch:
    summary = body.get("summary") if isinstance(body, dict) and isinstance(body.get("summary"), dict) else None
    for shape in shapes:
        if shape.predicate(body):
            accepted, rejected = shape.extractor(body)
            return ShapeMatch(shape=shape.name, accepted=accepted, rejected=rejected, summary=summary)
    return ShapeMatch(shape="none", accepted=[], rejected=[], summary=summary)
