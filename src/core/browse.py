# core/browse.py
from __future__ import annotations

from typing import Iterable

from core.models import Track, TrackType

FILTER_ALL = "all"

# Order of the filter buttons in the browser.
BROWSE_FILTERS: tuple[str, ...] = (FILTER_ALL,) + tuple(t.value for t in TrackType)


def normalize_filter(value) -> str:
    """Accept "all", a TrackType or its string value. Anything else is rejected."""
    if isinstance(value, TrackType):
        return value.value
    v = str(value or FILTER_ALL).strip().lower()
    if v not in BROWSE_FILTERS:
        raise ValueError(f"Unknown browse filter: {value!r}")
    return v


def filter_tracks(catalog: Iterable[Track], browse_filter: str = FILTER_ALL) -> list[Track]:
    f = normalize_filter(browse_filter)
    if f == FILTER_ALL:
        return list(catalog)
    return [t for t in catalog if t.type.value == f]
