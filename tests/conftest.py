from __future__ import annotations

import random

import pytest
from PySide6.QtCore import QCoreApplication

from core.models import Track, TrackType
from player.controller import PlaybackController
from player.session import AudioSession, AudioSessionError


@pytest.fixture(scope="session", autouse=True)
def qapp():
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


class FakeAudioSession(AudioSession):
    """
    Records commands and lets tests fire events by hand. Disposal does NOT
    detach callbacks, so tests can replay events queued by a dead session.
    """

    def __init__(self, duration: float | None = 200.0, fail_sources: frozenset[str] = frozenset(),
                 invalid_sources: frozenset[str] = frozenset()):
        self.calls: list[tuple] = []
        self.source: str | None = None
        self.position = 0.0
        self.duration = duration
        self.playing = False
        self.disposed = False
        self.fail_sources = fail_sources
        self.invalid_sources = invalid_sources
        self._progress_cb = None
        self._ended_cb = None
        self._error_cb = None

    def load(self, source):
        self.calls.append(("load", source))
        if source in self.fail_sources:
            raise AudioSessionError(f"Audio file not found: {source}")
        if source in self.invalid_sources:
            # backends may report broken media before load() returns
            self._error_cb("Invalid media")
        self.source = source

    def play(self):
        self.calls.append(("play",))
        self.playing = True

    def pause(self):
        self.calls.append(("pause",))
        self.playing = False

    def seek_to(self, seconds):
        self.calls.append(("seek_to", seconds))
        self.position = seconds

    def current_position(self):
        return self.position

    def total_duration(self):
        return self.duration

    def on_progress(self, callback):
        self._progress_cb = callback

    def on_ended(self, callback):
        self._ended_cb = callback

    def on_error(self, callback):
        self._error_cb = callback

    def dispose(self):
        self.calls.append(("dispose",))
        self.disposed = True
        self.playing = False

    # ---- test drivers ----

    def emit_progress(self, current, total="default"):
        total = self.duration if total == "default" else total
        self._progress_cb(current, total)

    def emit_ended(self):
        self._ended_cb()

    def emit_error(self, message):
        self._error_cb(message)


class FakeSessionFactory:
    def __init__(self):
        self.sessions: list[FakeAudioSession] = []
        self.duration: float | None = 200.0
        self.fail_sources: set[str] = set()
        self.invalid_sources: set[str] = set()

    def __call__(self) -> FakeAudioSession:
        s = FakeAudioSession(
            duration=self.duration,
            fail_sources=frozenset(self.fail_sources),
            invalid_sources=frozenset(self.invalid_sources),
        )
        self.sessions.append(s)
        return s

    @property
    def last(self) -> FakeAudioSession:
        return self.sessions[-1]

    def live(self) -> list[FakeAudioSession]:
        return [s for s in self.sessions if not s.disposed]


def make_track(track_id: int, track_type: TrackType, title: str | None = None) -> Track:
    return Track(
        id=track_id,
        title=title or f"Track {track_id}",
        type=track_type,
        tags=("tag",),
        duration="3:00",
        source=f"/music/{track_id}.mp3",
    )


@pytest.fixture
def catalog() -> tuple[Track, ...]:
    return (
        make_track(1, TrackType.SHORT, "A"),
        make_track(2, TrackType.SHORT, "B"),
        make_track(3, TrackType.LONG, "C"),
        make_track(4, TrackType.ENGLISH, "D"),
        make_track(5, TrackType.SHORT, "E"),
    )


@pytest.fixture
def sessions() -> FakeSessionFactory:
    return FakeSessionFactory()


@pytest.fixture
def controller(catalog, sessions) -> PlaybackController:
    return PlaybackController(catalog, session_factory=sessions, rng=random.Random(7))
