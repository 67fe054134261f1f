"""User settings consumed read-only by the tracker."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_READING_SPEED = 200


@dataclass(frozen=True)
class Settings:
    """Reading speed and which page widgets to drive."""

    reading_speed: int = DEFAULT_READING_SPEED
    show_badge: bool = True
    show_progress_bar: bool = True
    show_resume_notification: bool = True

    @classmethod
    def from_dict(cls, raw: dict | None) -> Settings:
        """Build from the stored camelCase object, defaulting absent or bad values."""
        raw = raw or {}
        speed = raw.get("readingSpeed", DEFAULT_READING_SPEED)
        if isinstance(speed, bool) or not isinstance(speed, (int, float)) or speed <= 0:
            logger.warning("Invalid readingSpeed %r, using %d", speed, DEFAULT_READING_SPEED)
            speed = DEFAULT_READING_SPEED
        return cls(
            reading_speed=int(speed),
            show_badge=_flag(raw, "showBadge"),
            show_progress_bar=_flag(raw, "showProgressBar"),
            show_resume_notification=_flag(raw, "showResumeNotification"),
        )

    def to_dict(self) -> dict:
        return {
            "readingSpeed": self.reading_speed,
            "showBadge": self.show_badge,
            "showProgressBar": self.show_progress_bar,
            "showResumeNotification": self.show_resume_notification,
        }


def _flag(raw: dict, key: str) -> bool:
    value = raw.get(key, True)
    return value if isinstance(value, bool) else True


def load_settings(path: Path | str | None = None) -> Settings:
    """Read settings from a JSON file (default: READTIME_SETTINGS_PATH).

    A missing or unreadable file yields the defaults.
    """
    if path is None:
        env_path = os.environ.get("READTIME_SETTINGS_PATH")
        if not env_path:
            return Settings()
        path = env_path

    settings_path = Path(path).expanduser()
    if not settings_path.exists():
        logger.info("Settings file not found at %s, using defaults", settings_path)
        return Settings()

    try:
        raw = json.loads(settings_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning("Failed reading settings from %s: %s", settings_path, e)
        return Settings()

    # The options page stores the object under a "settings" key.
    if isinstance(raw, dict) and isinstance(raw.get("settings"), dict):
        raw = raw["settings"]
    if not isinstance(raw, dict):
        logger.warning("Settings file %s does not hold an object", settings_path)
        return Settings()
    return Settings.from_dict(raw)
