from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import partial

from PySide6.QtCore import QObject, Signal, Slot

from core.config import AppConfig, load_config
from core.playlist import PlaylistSet
from library.catalog import CatalogError, load_catalog
from player.controller import PlaybackController
from player.session import QtAudioSession

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notify:
    message: str
    notify_type: str = "info"   # info/success/warn/error


class AppState(QObject):
    notification = Signal(object)   # emits Notify

    def __init__(self):
        super().__init__()
        self.config: AppConfig | None = None
        self.catalog = ()
        self.playlist = PlaylistSet()
        self.controller: PlaybackController | None = None
        self.queued_notifications: list[Notify] = []

    @Slot(str, str)
    def notify(self, message: str, notify_type: str = "info"):
        self.notification.emit(Notify(message=message, notify_type=notify_type))

    def _on_playback_failed(self, message: str) -> None:
        self.notify(f"Playback failed: {message}", "error")


def init_app_state(config: AppConfig | None = None, session_factory=None) -> AppState:
    """
    Build the application state: config, logging, catalog and the playback
    controller. The presentation layer calls this once after creating its
    QApplication and wires its widgets to `app_state.controller`.
    """
    app_state = AppState()
    app_state.config = config = config or load_config()

    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        app_state.catalog = load_catalog(config.catalog_path)
    except CatalogError as e:
        logger.error("Catalog not loaded: %s", e)
        app_state.catalog = ()
        app_state.queued_notifications.append(
            Notify(message=f"Failed to load track catalog: {e}", notify_type="error")
        )

    factory = session_factory or partial(QtAudioSession, config.volume)
    app_state.controller = PlaybackController(
        app_state.catalog,
        session_factory=factory,
        playlist=app_state.playlist,
    )
    app_state.controller.playbackFailed.connect(app_state._on_playback_failed)

    return app_state
