from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

"""Field schemas describing each spreadsheet import kind.

A FieldSchema lists how a logical field is found in the header row:

1. exact normalized names (lowercase, trimmed)
2. keyword rules, evaluated top-to-bottom
3. positional fallback (``position``), only when the field allows it

The ImportSchema ties the fields of one import kind together with its natural
key, the endpoint it is submitted to and the HTTP method used.
"""

__all__ = [
    "MAX_FIELD_LENGTH",
    "INVALID_CHARACTERS",
    "ImportKind",
    "KeywordRule",
    "FieldSchema",
    "ImportSchema",
    "SCHEMAS",
    "get_schema",
]

MAX_FIELD_LENGTH = 255
INVALID_CHARACTERS = frozenset('<>"\'&')


class ImportKind(Enum):
    """Spreadsheet import flows supported by the bulk endpoints."""
    CATEGORIES = "categories"
    ASSETS = "assets"
    ASSET_UPDATES = "asset_updates"

    @classmethod
    def parse(cls, value: str) -> ImportKind:
        normalized = value.strip().lower().replace("-", "_")
        for kind in cls:
            if kind.value == normalized:
                return kind
        raise ValueError(f"unknown import kind: {value!r} (expected one of {[k.value for k in cls]})")


@dataclass(frozen=True)
class KeywordRule:
    """Substring predicate over a normalized header.

    Matches when every ``all_of`` keyword is present, at least one ``any_of``
    keyword is present (if any are given) and no ``none_of`` keyword is present.
    """
    all_of: tuple[str, ...] = ()
    any_of: tuple[str, ...] = ()
    none_of: tuple[str, ...] = ()

    def matches(self, header: str) -> bool:
        if not all(k in header for k in self.all_of):
            return False
        if self.any_of and not any(k in header for k in self.any_of):
            return False
        return not any(k in header for k in self.none_of)


@dataclass(frozen=True)
class FieldSchema:
    name: str  # logical field name (RawRow key)
    label: str  # human label used in messages
    header: str  # header written to templates
    exact_headers: tuple[str, ...] = ()
    keyword_rules: tuple[KeywordRule, ...] = ()
    required: bool = False
    position: int | None = None  # positional fallback column, None = must be found by name
    max_length: int = MAX_FIELD_LENGTH
    value_type: str = "text"  # text | bool | int
    record_key: str | None = None  # key in the submitted record (defaults to name)
    width: int = 25  # template column width

    @property
    def key(self) -> str:
        return self.record_key or self.name

    def matches_exact(self, header: str) -> bool:
        return header in self.exact_headers

    def matches_keywords(self, header: str) -> bool:
        return any(rule.matches(header) for rule in self.keyword_rules)


@dataclass(frozen=True)
class ImportSchema:
    kind: ImportKind
    fields: tuple[FieldSchema, ...]
    natural_key: tuple[str, ...]
    endpoint_key: str
    submit_method: str = "POST"
    min_columns: int = 2
    template_sheet: str = "Template"
    result_label: str = "Successfully created"
    key_fields: tuple[str, ...] = field(default_factory=tuple)  # columns shown in result sheets

    def field(self, name: str) -> FieldSchema:
        for f in self.fields:
            if f.name == name:
                return f
        raise KeyError(name)

    @property
    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]

    @property
    def headers(self) -> list[str]:
        return [f.header for f in self.fields]


_MAIN_CATEGORY = FieldSchema(
    name="subcategory",
    label="Main category",
    header="Main Category",
    exact_headers=("main category", "maincategory"),
    keyword_rules=(
        KeywordRule(all_of=("main", "category")),
        KeywordRule(all_of=("parent", "category")),
    ),
    position=0,
)

_CATEGORY = FieldSchema(
    name="category",
    label="Category",
    header="Category",
    exact_headers=("category", "subcategory"),
    keyword_rules=(
        KeywordRule(all_of=("category",), none_of=("main", "parent")),
        KeywordRule(all_of=("sub", "category")),
    ),
    required=True,
    position=1,
)


def _asset_fields(offset: int) -> tuple[FieldSchema, ...]:
    return (
        FieldSchema(
            name="name_en",
            label="Asset Name (English)",
            header="Asset Name (English)",
            exact_headers=("asset name (english)", "name_en", "name en"),
            keyword_rules=(KeywordRule(all_of=("name",), any_of=("english", "en")),),
            required=True,
            position=offset,
            width=30,
        ),
        FieldSchema(
            name="name_ar",
            label="Asset Name (Arabic)",
            header="Asset Name (Arabic)",
            exact_headers=("asset name (arabic)", "name_ar", "name ar"),
            keyword_rules=(KeywordRule(all_of=("name",), any_of=("arabic", "ar")),),
            required=True,
            position=offset + 1,
            width=30,
        ),
        FieldSchema(
            name="category",
            label="Category Name",
            header="Category Name",
            exact_headers=("category name", "category"),
            keyword_rules=(
                KeywordRule(all_of=("category", "name")),
                KeywordRule(all_of=("category",)),
            ),
            required=True,
            position=offset + 2,
            record_key="category_name",
        ),
        FieldSchema(
            name="product_code",
            label="Product Code",
            header="Product Code",
            exact_headers=("product code", "product_code"),
            keyword_rules=(
                KeywordRule(all_of=("product", "code")),
                KeywordRule(all_of=("code",)),
            ),
            position=offset + 3,
            width=20,
        ),
        FieldSchema(
            name="is_active",
            label="Is Active",
            header="Is Active",
            exact_headers=("is active", "is_active", "active"),
            keyword_rules=(KeywordRule(any_of=("active", "status")),),
            position=offset + 4,
            value_type="bool",
            width=15,
        ),
    )


_ASSET_ID = FieldSchema(
    name="id",
    label="ID",
    header="ID",
    exact_headers=("id", "asset id"),
    required=True,
    value_type="int",
    width=10,
)

SCHEMAS: dict[ImportKind, ImportSchema] = {
    ImportKind.CATEGORIES: ImportSchema(
        kind=ImportKind.CATEGORIES,
        fields=(_MAIN_CATEGORY, _CATEGORY),
        natural_key=("subcategory", "category"),
        endpoint_key="categories",
        min_columns=2,
        template_sheet="Categories Template",
        key_fields=("subcategory", "category"),
    ),
    ImportKind.ASSETS: ImportSchema(
        kind=ImportKind.ASSETS,
        fields=_asset_fields(0),
        natural_key=("name_en", "name_ar"),
        endpoint_key="assets",
        min_columns=3,
        template_sheet="Assets Template",
        key_fields=("name_en", "name_ar", "category"),
    ),
    ImportKind.ASSET_UPDATES: ImportSchema(
        kind=ImportKind.ASSET_UPDATES,
        fields=(_ASSET_ID,) + _asset_fields(1),
        natural_key=("id",),
        endpoint_key="asset_updates",
        submit_method="PUT",
        min_columns=4,
        template_sheet="Assets Update Template",
        result_label="Successfully updated",
        key_fields=("id", "name_en", "name_ar", "category"),
    ),
}


def get_schema(kind: ImportKind | str) -> ImportSchema:
    if isinstance(kind, str):
        kind = ImportKind.parse(kind)
    return SCHEMAS[kind]
