# src/player/controller.py
from __future__ import annotations

import logging
import math
from typing import Callable, Iterable, Optional

from PySide6.QtCore import QObject, Signal

from core.browse import FILTER_ALL, filter_tracks, normalize_filter
from core.models import ModeFlags, PlaybackSnapshot, PlaybackState, Track
from core.playlist import PlaylistSet
from core.selection import select_next
from core.utils import progress_percent

from .session import AudioSession, QtAudioSession

logger = logging.getLogger(__name__)


class PlaybackController(QObject):
    """
    Owns the single live AudioSession and the observable playback state.

    Every session gets a generation id when it is created. Callbacks carry the
    generation they were registered with and are dropped unless it is still the
    current one, so a superseded or stopped session can never touch the state.
    """

    snapshotChanged = Signal(object)    # PlaybackSnapshot
    trackChanged = Signal(object)       # Track | None
    playbackFailed = Signal(str)        # error message

    def __init__(
        self,
        catalog: Iterable[Track],
        session_factory: Callable[[], AudioSession] | None = None,
        playlist: PlaylistSet | None = None,
        mode: ModeFlags | None = None,
        rng=None,
        parent: QObject | None = None,
    ):
        super().__init__(parent)
        self.catalog: tuple[Track, ...] = tuple(catalog)
        self.playlist = playlist if playlist is not None else PlaylistSet()

        self._session_factory = session_factory or QtAudioSession
        self._rng = rng

        self._mode = mode or ModeFlags()
        self._browse_filter = FILTER_ALL

        self._session: AudioSession | None = None
        self._generation = 0

        self._track: Track | None = None
        self._state = PlaybackState.IDLE
        self._current_time = 0.0
        self._total_time: float | None = 0.0
        self._progress = 0.0
        self._last_error: str | None = None

    # ----------------------------
    # Observable state
    # ----------------------------

    @property
    def current_track(self) -> Track | None:
        return self._track

    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def is_playing(self) -> bool:
        return self._state == PlaybackState.PLAYING

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def mode_flags(self) -> ModeFlags:
        return self._mode

    @property
    def browse_filter(self) -> str:
        return self._browse_filter

    @property
    def last_error(self) -> str | None:
        return self._last_error

    def snapshot(self) -> PlaybackSnapshot:
        return PlaybackSnapshot(
            current_track=self._track,
            state=self._state,
            current_time=self._current_time,
            total_time=self._total_time,
            progress_percent=self._progress,
            mode_flags=self._mode,
            playlist_ids=tuple(self.playlist.as_ordered_list()),
            browse_filter=self._browse_filter,
            last_error=self._last_error,
        )

    def visible_tracks(self) -> list[Track]:
        return filter_tracks(self.catalog, self._browse_filter)

    def track_by_id(self, track_id: int) -> Optional[Track]:
        for t in self.catalog:
            if t.id == int(track_id):
                return t
        return None

    # ----------------------------
    # Transport
    # ----------------------------

    def play_track(self, track: Track | None) -> None:
        if track is None:
            return

        self._dispose_session()
        self._generation += 1
        generation = self._generation

        self._track = track
        self._state = PlaybackState.PLAYING
        self._current_time = 0.0
        self._total_time = 0.0
        self._progress = 0.0
        self._last_error = None
        self.trackChanged.emit(track)

        try:
            session = self._session_factory()
            self._session = session
            session.on_progress(lambda current, total: self._on_session_progress(generation, current, total))
            session.on_ended(lambda: self._on_session_ended(generation))
            session.on_error(lambda message: self._on_session_error(generation, message))
            session.load(track.source)
            if self._session is not session:
                return
            session.play()
        except Exception as e:
            logger.warning("Failed to start track %s (%s): %s", track.id, track.source, e)
            self._fail(str(e) or e.__class__.__name__)
            return

        # The session may have reported an error synchronously while starting.
        if self._session is not session:
            return

        logger.info("Playing track %s '%s' (generation %d)", track.id, track.title, generation)
        self._emit_snapshot()

    def play_track_id(self, track_id: int) -> None:
        track = self.track_by_id(track_id)
        if track is None:
            logger.debug("play_track_id(): unknown track id %s", track_id)
            return
        self.play_track(track)

    def pause(self) -> None:
        if self._state != PlaybackState.PLAYING or self._session is None:
            return
        self._session.pause()
        self._state = PlaybackState.PAUSED
        self._emit_snapshot()

    def resume(self) -> None:
        if self._state == PlaybackState.PAUSED and self._session is not None:
            try:
                self._session.play()
            except Exception as e:
                logger.warning("Failed to resume track %s: %s", self._track.id if self._track else None, e)
                self._fail(str(e) or e.__class__.__name__)
                return
            self._state = PlaybackState.PLAYING
            self._emit_snapshot()
            return

        # Stopped or finished: the last track starts over.
        if self._state == PlaybackState.IDLE and self._track is not None:
            self.play_track(self._track)

    def stop(self) -> None:
        self._dispose_session()
        self._generation += 1
        self._state = PlaybackState.IDLE
        self._current_time = 0.0
        self._progress = 0.0
        self._emit_snapshot()

    def seek(self, percent: float) -> None:
        if self._session is None:
            return
        try:
            percent = float(percent)
        except (TypeError, ValueError):
            return
        if math.isnan(percent):
            return

        total = self._session.total_duration()
        if total is None or math.isnan(total) or total <= 0:
            return

        percent = max(0.0, min(100.0, percent))
        new_time = total * percent / 100.0
        self._session.seek_to(new_time)

        self._current_time = new_time
        self._total_time = total
        self._progress = percent
        self._emit_snapshot()

    # ----------------------------
    # Modes, playlist, browse filter
    # ----------------------------

    def set_mode_flag(self, name: str, value: bool) -> None:
        self._mode = self._mode.with_flag(name, value)
        logger.debug("Mode flags: %s", self._mode)
        self._emit_snapshot()

    def toggle_mode_flag(self, name: str) -> bool:
        self.set_mode_flag(name, not getattr(self._mode, name, False))
        return getattr(self._mode, name)

    def toggle_playlist(self, track_id: int) -> bool:
        track_id = int(track_id)
        if track_id not in self.playlist and self.track_by_id(track_id) is None:
            logger.debug("toggle_playlist(): ignoring unknown track id %s", track_id)
            return False
        in_playlist = self.playlist.toggle(track_id)
        self._emit_snapshot()
        return in_playlist

    def set_visible_filter(self, value) -> None:
        self._browse_filter = normalize_filter(value)
        self._emit_snapshot()

    # ----------------------------
    # Session callbacks
    # ----------------------------

    def _is_stale(self, generation: int, event: str) -> bool:
        if generation != self._generation:
            logger.debug("Dropping stale %s event (generation %d, current %d)", event, generation, self._generation)
            return True
        return False

    def _on_session_progress(self, generation: int, current: float, total: float | None) -> None:
        if self._is_stale(generation, "progress"):
            return

        try:
            current = float(current)
        except (TypeError, ValueError):
            current = 0.0
        if math.isnan(current) or current < 0:
            current = 0.0
        if total is not None and math.isnan(total):
            total = None

        self._current_time = current
        self._total_time = total
        self._progress = progress_percent(current, total)
        self._emit_snapshot()

    def _on_session_ended(self, generation: int) -> None:
        if self._is_stale(generation, "ended"):
            return

        self._current_time = 0.0
        self._progress = 0.0

        if self._mode.repeat_one and self._session is not None:
            try:
                self._session.seek_to(0.0)
                self._session.play()
            except Exception as e:
                logger.warning("Failed to repeat track %s: %s", self._track.id if self._track else None, e)
                self._fail(str(e) or e.__class__.__name__)
                return
            self._state = PlaybackState.PLAYING
            self._emit_snapshot()
            return

        nxt = select_next(
            self.catalog,
            self.playlist,
            self._track,
            self._mode,
            self.visible_tracks(),
            rng=self._rng,
        )
        if nxt is not None:
            self.play_track(nxt)
            return

        logger.info("No next track, playback finished")
        self._dispose_session()
        self._generation += 1
        self._state = PlaybackState.IDLE
        self._emit_snapshot()

    def _on_session_error(self, generation: int, message: str) -> None:
        if self._is_stale(generation, "error"):
            return
        logger.warning("Playback error on track %s: %s", self._track.id if self._track else None, message)
        self._fail(message or "Playback error")

    # ----------------------------
    # Helpers
    # ----------------------------

    def _fail(self, message: str) -> None:
        self._dispose_session()
        self._generation += 1
        self._state = PlaybackState.IDLE
        self._current_time = 0.0
        self._progress = 0.0
        self._last_error = message
        self.playbackFailed.emit(message)
        self._emit_snapshot()

    def _dispose_session(self) -> None:
        session, self._session = self._session, None
        if session is None:
            return
        try:
            session.dispose()
        except Exception:
            logger.exception("Failed to dispose audio session")

    def _emit_snapshot(self) -> None:
        self.snapshotChanged.emit(self.snapshot())
