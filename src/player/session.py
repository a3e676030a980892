# src/player/session.py
from __future__ import annotations

import logging
import os
from typing import Callable, Optional

from PySide6.QtCore import QUrl
from PySide6.QtMultimedia import QAudioOutput, QMediaPlayer

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float, Optional[float]], None]
EndedCallback = Callable[[], None]
ErrorCallback = Callable[[str], None]


class AudioSessionError(RuntimeError):
    """Raised when a session cannot load or start its source."""


class AudioSession:
    """
    One playback of one source. A session is never reused: the controller
    creates a fresh one per track and disposes it when done.

    Times are in seconds. `total_duration()` is None while unknown.
    Callbacks must be delivered on the thread that owns the controller.
    """

    def load(self, source: str) -> None:
        raise NotImplementedError

    def play(self) -> None:
        raise NotImplementedError

    def pause(self) -> None:
        raise NotImplementedError

    def seek_to(self, seconds: float) -> None:
        raise NotImplementedError

    def current_position(self) -> float:
        raise NotImplementedError

    def total_duration(self) -> Optional[float]:
        raise NotImplementedError

    def on_progress(self, callback: ProgressCallback) -> None:
        raise NotImplementedError

    def on_ended(self, callback: EndedCallback) -> None:
        raise NotImplementedError

    def on_error(self, callback: ErrorCallback) -> None:
        raise NotImplementedError

    def dispose(self) -> None:
        raise NotImplementedError


def source_to_url(source: str) -> QUrl:
    """
    Locators with a scheme ("file://", "qrc:/", "https://") are used as-is,
    anything else is a local path.
    """
    if "://" in source or source.startswith("qrc:"):
        return QUrl(source)
    return QUrl.fromLocalFile(os.path.abspath(source))


class QtAudioSession(AudioSession):
    """AudioSession backed by a private QMediaPlayer/QAudioOutput pair."""

    def __init__(self, volume_0_to_1: float = 0.7):
        self._progress_cb: ProgressCallback | None = None
        self._ended_cb: EndedCallback | None = None
        self._error_cb: ErrorCallback | None = None
        self._disposed = False

        self.audio = QAudioOutput()
        self.media = QMediaPlayer()
        self.media.setAudioOutput(self.audio)
        self.audio.setVolume(min(1.0, max(0.0, float(volume_0_to_1))))

        self.media.positionChanged.connect(self._on_position_or_duration)
        self.media.durationChanged.connect(self._on_position_or_duration)
        self.media.mediaStatusChanged.connect(self._on_media_status)
        self.media.errorOccurred.connect(self._on_error_occurred)

    # ---- commands ----

    def load(self, source: str) -> None:
        if not source:
            raise AudioSessionError("Track has no audio source.")
        url = source_to_url(source)
        if url.isLocalFile() and not os.path.isfile(url.toLocalFile()):
            raise AudioSessionError(f"Audio file not found: {url.toLocalFile()}")
        self.media.setSource(url)

    def play(self) -> None:
        self.media.play()

    def pause(self) -> None:
        self.media.pause()

    def seek_to(self, seconds: float) -> None:
        self.media.setPosition(max(0, int(seconds * 1000.0)))

    # ---- getters ----

    def current_position(self) -> float:
        return self.media.position() / 1000.0

    def total_duration(self) -> Optional[float]:
        # QMediaPlayer reports 0 until the media metadata is parsed.
        ms = int(self.media.duration())
        return ms / 1000.0 if ms > 0 else None

    # ---- callbacks ----

    def on_progress(self, callback: ProgressCallback) -> None:
        self._progress_cb = callback

    def on_ended(self, callback: EndedCallback) -> None:
        self._ended_cb = callback

    def on_error(self, callback: ErrorCallback) -> None:
        self._error_cb = callback

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True

        # Drop callbacks first so anything emitted while tearing down goes nowhere.
        self._progress_cb = None
        self._ended_cb = None
        self._error_cb = None

        self.media.stop()
        self.media.setSource(QUrl())
        self.media.deleteLater()
        self.audio.deleteLater()

    # ---- Qt handlers ----

    def _on_position_or_duration(self, _value: int) -> None:
        if self._progress_cb:
            self._progress_cb(self.current_position(), self.total_duration())

    def _on_media_status(self, status: QMediaPlayer.MediaStatus) -> None:
        if status == QMediaPlayer.MediaStatus.EndOfMedia:
            if self._ended_cb:
                self._ended_cb()
        elif status == QMediaPlayer.MediaStatus.InvalidMedia:
            if self._error_cb:
                self._error_cb(self.media.errorString() or "Invalid media")

    def _on_error_occurred(self, error: QMediaPlayer.Error, message: str) -> None:
        if error == QMediaPlayer.Error.NoError:
            return
        logger.warning("QMediaPlayer error %s: %s", error, message)
        if self._error_cb:
            self._error_cb(message or str(error))
