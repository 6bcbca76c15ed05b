from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass

from ..models.error_record import ErrorCategory

"""Translate server rejection strings into the shared error taxonomy.

Best-effort keyword matching over the lowercased text; rules are checked in
order and unrecognised text maps to ErrorCategory.UNKNOWN with the original
message kept verbatim.
"""

__all__ = [
    "Translation",
    "translate_error",
    "translate_errors",
    "is_empty_main_category_duplicate",
]


@dataclass(frozen=True)
class _Rule:
    category: ErrorCategory
    all_of: tuple[str, ...] = ()
    any_of: tuple[str, ...] = ()

    def matches(self, text: str) -> bool:
        if not all(k in text for k in self.all_of):
            return False
        return not self.any_of or any(k in text for k in self.any_of)


_RULES: tuple[_Rule, ...] = (
    _Rule(ErrorCategory.DUPLICATE_IN_BATCH, all_of=("batch",), any_of=("duplicat",)),
    _Rule(ErrorCategory.ALREADY_EXISTS, any_of=("already exists", "duplicate")),
    _Rule(ErrorCategory.REFERENTIAL_MISS, any_of=("does not exist", "not found", "unknown category", "no such")),
    _Rule(ErrorCategory.MISSING_REQUIRED, any_of=("required", "missing", "cannot be empty")),
    _Rule(ErrorCategory.TOO_LONG, any_of=("too long", "maximum length", "length")),
    _Rule(ErrorCategory.INVALID_CHARACTERS, any_of=("invalid characters", "special characters")),
    _Rule(ErrorCategory.SERVER_ERROR, any_of=("network", "connection", "server", "internal")),
)

# "Category '' is duplicated in this batch": two blank main categories reported as duplicates
_EMPTY_MAIN_DUPLICATE_RE = re.compile(r"""category\s+(''|""|)\s+is\s+duplicated\s+in\s+this\s+batch\.?""", re.I)


@dataclass(frozen=True)
class Translation:
    category: ErrorCategory
    message: str


def translate_error(text: str) -> Translation:
    lowered = text.lower()
    for rule in _RULES:
        if rule.matches(lowered):
            return Translation(rule.category, text)
    return Translation(ErrorCategory.UNKNOWN, text)


def translate_errors(errors: Sequence[str]) -> Translation:
    """Join several server strings; the first recognised one sets the category."""
    cleaned = [str(e).strip() for e in errors if e is not None and str(e).strip()]
    if not cleaned:
        return Translation(ErrorCategory.UNKNOWN, "Rejected by server without a reason")
    message = "; ".join(cleaned)
    for text in cleaned:
        translated = translate_error(text)
        if translated.category is not ErrorCategory.UNKNOWN:
            return Translation(translated.category, message)
    return Translation(ErrorCategory.UNKNOWN, message)


def is_empty_main_category_duplicate(errors: Sequence[str]) -> bool:
    """True when every reason is the blank-main-category duplicate false positive."""
    cleaned = [str(e).strip() for e in errors if e is not None and str(e).strip()]
    return bool(cleaned) and all(_EMPTY_MAIN_DUPLICATE_RE.fullmatch(e) for e in cleaned)
