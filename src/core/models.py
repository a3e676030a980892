# core/models.py
from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from enum import Enum, auto


class TrackType(str, Enum):
    SHORT = "short"
    LONG = "long"
    ENGLISH = "english"
    INST = "inst"


@dataclass(frozen=True)
class Track:
    id: int
    title: str
    type: TrackType
    tags: tuple[str, ...] = ()
    duration: str = "0:00"  # display string, e.g. "3:41"
    source: str = ""        # file path or URL


@dataclass(frozen=True)
class ModeFlags:
    repeat_one: bool = False
    playlist_loop: bool = False
    type_continuous: bool = False
    shuffle: bool = False

    @classmethod
    def names(cls) -> tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    def with_flag(self, name: str, value: bool) -> "ModeFlags":
        if name not in self.names():
            raise ValueError(f"Unknown mode flag: {name!r}")
        return replace(self, **{name: bool(value)})


class PlaybackState(Enum):
    IDLE = auto()
    PLAYING = auto()
    PAUSED = auto()


@dataclass(frozen=True)
class PlaybackSnapshot:
    """
    Read-only view of the controller state handed to the presentation layer.
    `total_time` is None while the duration is unknown.
    """
    current_track: Track | None = None
    state: PlaybackState = PlaybackState.IDLE
    current_time: float = 0.0
    total_time: float | None = 0.0
    progress_percent: float = 0.0
    mode_flags: ModeFlags = field(default_factory=ModeFlags)
    playlist_ids: tuple[int, ...] = ()
    browse_filter: str = "all"
    last_error: str | None = None

    @property
    def is_playing(self) -> bool:
        return self.state == PlaybackState.PLAYING
