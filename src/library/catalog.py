# src/library/catalog.py
from __future__ import annotations

import json
import logging
import os
from typing import Any, Iterable

from mutagen import File as MutagenFile, MutagenError

from core.models import Track, TrackType
from core.utils import fmt_time

logger = logging.getLogger(__name__)


class CatalogError(ValueError):
    """The catalog file is missing or holds malformed track records."""


def probe_duration(source: str) -> str | None:
    """
    Read the length of a local audio file and render it as "M:SS".
    Returns None for URLs, missing files and anything mutagen cannot parse.
    """
    if not source or "://" in source or not os.path.isfile(source):
        return None
    try:
        audio = MutagenFile(source)
    except (MutagenError, OSError) as e:
        logger.debug("probe_duration(): cannot read %s: %s", source, e)
        return None
    if audio is None or getattr(audio, "info", None) is None:
        return None
    length = getattr(audio.info, "length", None)
    if not length:
        return None
    return fmt_time(float(length))


def _resolve_source(raw: str, base_dir: str | None) -> str:
    if not raw or "://" in raw or os.path.isabs(raw) or not base_dir:
        return raw
    return os.path.normpath(os.path.join(base_dir, raw))


def track_from_dict(data: dict[str, Any], base_dir: str | None = None) -> Track:
    if not isinstance(data, dict):
        raise CatalogError(f"Track record must be an object, got {type(data).__name__}")

    try:
        track_id = int(data["id"])
    except (KeyError, TypeError, ValueError):
        raise CatalogError(f"Track record has no usable id: {data!r}") from None

    try:
        track_type = TrackType(str(data.get("type", "")).lower())
    except ValueError:
        raise CatalogError(f"Track {track_id}: unknown type {data.get('type')!r}") from None

    tags = data.get("tags") or []
    if not isinstance(tags, list):
        tags = []

    source = _resolve_source(str(data.get("src") or data.get("source") or ""), base_dir)

    duration = str(data.get("duration") or "").strip()
    if not duration:
        duration = probe_duration(source) or "0:00"

    return Track(
        id=track_id,
        title=str(data.get("title") or ""),
        type=track_type,
        tags=tuple(str(t) for t in tags),
        duration=duration,
        source=source,
    )


def parse_catalog(records: Iterable[dict[str, Any]], base_dir: str | None = None) -> tuple[Track, ...]:
    tracks: list[Track] = []
    seen: set[int] = set()
    for rec in records:
        t = track_from_dict(rec, base_dir)
        if t.id in seen:
            raise CatalogError(f"Duplicate track id: {t.id}")
        seen.add(t.id)
        tracks.append(t)
    return tuple(tracks)


def load_catalog(path: str) -> tuple[Track, ...]:
    """
    Load the track catalog from a JSON array. Relative `src` entries are
    resolved against the catalog file's directory.
    """
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
    except FileNotFoundError:
        raise CatalogError(f"Catalog file not found: {path}") from None
    except json.JSONDecodeError as e:
        raise CatalogError(f"Catalog file is not valid JSON: {path}: {e}") from None

    if isinstance(data, dict):
        data = data.get("tracks", [])
    if not isinstance(data, list):
        raise CatalogError(f"Catalog must be a list of tracks: {path}")

    tracks = parse_catalog(data, base_dir=os.path.dirname(os.path.abspath(path)))
    logger.info("Loaded %d tracks from %s", len(tracks), path)
    return tracks
