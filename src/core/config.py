# core/config.py
from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from PySide6.QtCore import QStandardPaths

logger = logging.getLogger(__name__)

DEFAULT_VOLUME = 0.7


def get_app_data_dir() -> str:
    base = QStandardPaths.writableLocation(QStandardPaths.AppDataLocation)
    os.makedirs(base, exist_ok=True)
    return base


@dataclass
class AppConfig:
    catalog_path: str
    volume: float = DEFAULT_VOLUME   # 0.0 - 1.0
    log_level: str = "INFO"


def _env_volume(raw: str | None) -> float:
    if raw is None or not raw.strip():
        return DEFAULT_VOLUME
    try:
        v = float(raw)
    except ValueError:
        logger.warning("Ignoring invalid TRACKDECK_VOLUME=%r", raw)
        return DEFAULT_VOLUME
    return min(1.0, max(0.0, v))


def load_config(environ: dict[str, str] | None = None) -> AppConfig:
    """
    Build the config from environment variables:
      TRACKDECK_CATALOG    path to the catalog JSON (default: <app data>/tracks.json)
      TRACKDECK_VOLUME     0.0 - 1.0
      TRACKDECK_LOG_LEVEL  logging level name
    """
    env = os.environ if environ is None else environ

    catalog_path = env.get("TRACKDECK_CATALOG") or os.path.join(get_app_data_dir(), "tracks.json")
    log_level = (env.get("TRACKDECK_LOG_LEVEL") or "INFO").upper()
    if not isinstance(logging.getLevelName(log_level), int):
        log_level = "INFO"

    return AppConfig(
        catalog_path=catalog_path,
        volume=_env_volume(env.get("TRACKDECK_VOLUME")),
        log_level=log_level,
    )
