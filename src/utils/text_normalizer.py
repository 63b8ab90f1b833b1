"""Text normalization helpers for catalog metadata and query parameters.

Catalog records store text in two shapes: multi-valued fields (titles,
descriptions, legal names arrive as a string or a list of strings) and
comma-separated keyword strings.  Query parameters use the same comma
convention.  Every filter stage and facet builder goes through these
helpers so that "Seismology ", "seismology" and "SEISMOLOGY" compare equal
everywhere.
"""

from __future__ import annotations

import base64
from typing import Any, Iterable


def split_terms(value: str | None, lower: bool = False) -> list[str]:
    """Split a comma-separated parameter into trimmed, non-empty terms.

    Args:
        value: Raw parameter text, e.g. ``"alpha, beta"``.
        lower: Lower-case every term.

    Returns:
        The terms in input order with duplicates removed.
    """
    if not value:
        return []
    terms: list[str] = []
    for raw in value.split(","):
        term = raw.strip()
        if lower:
            term = term.lower()
        if term and term not in terms:
            terms.append(term)
    return terms


def keyword_set(raw: str | None) -> set[str]:
    """Normalize a comma-separated keyword string into a lower-case set."""
    return set(split_terms(raw, lower=True))


def as_text_list(value: Any) -> list[str]:
    """Return a multi-valued text field as a list of strings.

    ``None`` becomes ``[]``, a plain string becomes a one-element list and
    non-string scalars are stringified.
    """
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple, set)):
        return [str(v) for v in value if v is not None]
    return [str(value)]


def join_values(value: Any, separator: str = ";") -> str | None:
    """Join a multi-valued text field for display, ``None`` when empty."""
    values = as_text_list(value)
    if not values:
        return None
    return separator.join(values)


def contains_term(haystacks: Iterable[str], term: str) -> bool:
    """Case-insensitive substring test of *term* against any haystack."""
    return any(term in text.lower() for text in haystacks)


def keyword_id(keyword: str) -> str:
    """Opaque, stable facet id for a keyword (base64 of its UTF-8 bytes)."""
    return base64.b64encode(keyword.encode("utf-8")).decode("ascii")
