# core/playlist.py
from __future__ import annotations

from typing import Iterable, Iterator


class PlaylistSet:
    """
    User-curated ordered set of track ids.

    Insertion order is significant: sequential playlist looping walks the ids
    in the order they were added, so removals never re-sort what remains.
    """

    def __init__(self, track_ids: Iterable[int] = ()):
        self._ids: list[int] = []
        for track_id in track_ids:
            track_id = int(track_id)
            if track_id not in self._ids:
                self._ids.append(track_id)

    def toggle(self, track_id: int) -> bool:
        """Flip membership. Returns True if the id is now in the playlist."""
        track_id = int(track_id)
        if track_id in self._ids:
            self._ids.remove(track_id)
            return False
        self._ids.append(track_id)
        return True

    def contains(self, track_id: int) -> bool:
        return int(track_id) in self._ids

    def as_ordered_list(self) -> list[int]:
        return list(self._ids)

    def clear(self) -> None:
        self._ids.clear()

    def __contains__(self, track_id: object) -> bool:
        return track_id in self._ids

    def __iter__(self) -> Iterator[int]:
        return iter(list(self._ids))

    def __len__(self) -> int:
        return len(self._ids)

    def __repr__(self) -> str:
        return f"PlaylistSet({self._ids!r})"
