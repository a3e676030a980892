# core/selection.py
from __future__ import annotations

import logging
import random
from typing import Iterable, Optional, Sequence

from core.models import ModeFlags, Track
from core.playlist import PlaylistSet

logger = logging.getLogger(__name__)


def pick_random(pool: Sequence[Track], exclude_id: int | None, rng=None) -> Optional[Track]:
    """
    Uniform pick from `pool`, avoiding `exclude_id` when possible.
    If excluding it empties the pool, the full pool is used (replay).
    """
    if not pool:
        return None
    candidates = [t for t in pool if t.id != exclude_id]
    if not candidates:
        candidates = list(pool)
    return (rng or random).choice(candidates)


def pick_sequential(pool: Sequence[Track], current_id: int | None) -> Optional[Track]:
    if not pool:
        return None
    index = -1
    for i, t in enumerate(pool):
        if t.id == current_id:
            index = i
            break
    return pool[(index + 1) % len(pool)]


def resolve_playlist(catalog: Iterable[Track], playlist: PlaylistSet | Sequence[int]) -> list[Track]:
    """Playlist tracks in playlist order. Ids missing from the catalog are skipped."""
    by_id = {t.id: t for t in catalog}
    return [by_id[i] for i in playlist if i in by_id]


def _pick(pool: Sequence[Track], current: Track, shuffle: bool, rng) -> Optional[Track]:
    if shuffle:
        return pick_random(pool, current.id, rng)
    return pick_sequential(pool, current.id)


def select_next(
    catalog: Sequence[Track],
    playlist: PlaylistSet | Sequence[int],
    current_track: Track | None,
    mode: ModeFlags,
    visible: Sequence[Track],
    rng=None,
) -> Optional[Track]:
    """
    Decide which track follows `current_track` after it finished on its own.

    Rules are tried in order and the first one with a non-empty pool wins:
      1. repeat_one is handled by the controller, never here
      2. playlist_loop: the playlist, in playlist order
      3. type_continuous: catalog tracks sharing the current track's type
      4. shuffle alone: the currently visible (filtered) list
      5. nothing: playback ends

    `rng` only needs a `choice()` method; pass a seeded `random.Random`
    for reproducible draws.
    """
    if current_track is None:
        return None

    if mode.playlist_loop:
        pool = resolve_playlist(catalog, playlist)
        if pool:
            nxt = _pick(pool, current_track, mode.shuffle, rng)
            logger.debug("Playlist loop: %s -> %s", current_track.id, nxt.id)
            return nxt

    if mode.type_continuous:
        pool = [t for t in catalog if t.type == current_track.type]
        if pool:
            nxt = _pick(pool, current_track, mode.shuffle, rng)
            logger.debug("Type continuous (%s): %s -> %s", current_track.type.value, current_track.id, nxt.id)
            return nxt

    if mode.shuffle:
        nxt = pick_random(list(visible), current_track.id, rng)
        if nxt is not None:
            logger.debug("Shuffle over visible list: %s -> %s", current_track.id, nxt.id)
            return nxt

    return None
