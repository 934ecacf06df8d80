"""
Player configuration with explicit load and save.

The configuration is loaded once at startup and written back only when
a value actually changes. Nothing re-reads the file per frame.

Usage:
    store = ConfigStore("config.json", event_bus=bus)
    config = store.load()
    store.update(text_playback_speed=80)
"""

from __future__ import annotations

import json
import logging
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from frameg.core.errors import FramegError
from frameg.core.events import ConfigEvent, EventBus

logger = logging.getLogger(__name__)


class WindowScale(str, Enum):
    """Window presets offered by the settings screen."""
    SMALL = "small"
    BIG = "big"
    LARGE = "large"
    FULL_SCREEN = "full_screen"

    @property
    def size(self) -> Optional[tuple[int, int]]:
        """Window size in pixels, or None for full screen."""
        return _WINDOW_SIZES.get(self)

    @property
    def zoom(self) -> float:
        """Layout zoom factor applied to authored UI coordinates."""
        return _WINDOW_ZOOM[self]

    @property
    def is_fullscreen(self) -> bool:
        return self is WindowScale.FULL_SCREEN


_WINDOW_SIZES = {
    WindowScale.SMALL: (400, 225),
    WindowScale.BIG: (800, 450),
    WindowScale.LARGE: (1600, 900),
}

_WINDOW_ZOOM = {
    WindowScale.SMALL: 0.25,
    WindowScale.BIG: 0.5,
    WindowScale.LARGE: 1.0,
    WindowScale.FULL_SCREEN: 1.0,
}


class Config(BaseModel):
    """
    Persisted player settings.

    Volumes and the text playback speed are percentages. The playback
    speed scales how fast dialog text is revealed.
    """

    model_config = ConfigDict(validate_assignment=True, extra='forbid')

    character_volume: int = Field(default=70, ge=0, le=100)
    sound_effect_volume: int = Field(default=50, ge=0, le=100)
    music_volume: int = Field(default=100, ge=0, le=100)
    text_playback_speed: int = Field(default=60, ge=0, le=100)
    window_scale: WindowScale = WindowScale.FULL_SCREEN


class ConfigError(FramegError):
    """Raised when the configuration file cannot be parsed."""


class ConfigStore:
    """
    Owns the process-wide Config and its file.

    load() reads the file (creating it with defaults when missing).
    update() and reset() change values and save immediately.
    """

    def __init__(self, path: Path | str, event_bus: Optional[EventBus] = None):
        self.path = Path(path)
        self.event_bus = event_bus
        self._config: Optional[Config] = None

    @property
    def config(self) -> Config:
        if self._config is None:
            raise RuntimeError("ConfigStore.load() has not been called")
        return self._config

    @property
    def is_loaded(self) -> bool:
        return self._config is not None

    def load(self) -> Config:
        """Load the configuration, writing defaults if the file is missing."""
        if not self.path.exists():
            logger.info(f"No config at {self.path}, writing defaults")
            self._config = Config()
            self.save()
        else:
            try:
                with open(self.path, 'r', encoding='utf-8') as f:
                    data = json.load(f)
                self._config = Config.model_validate(data)
            except (json.JSONDecodeError, ValidationError) as e:
                raise ConfigError(f"Failed to load config {self.path}: {e}") from e

        if self.event_bus:
            self.event_bus.publish(ConfigEvent.CONFIG_LOADED, config=self._config)
        return self._config

    def save(self) -> None:
        """Write the current configuration to disk."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, 'w', encoding='utf-8') as f:
            f.write(self.config.model_dump_json(indent=2))

    def update(self, **changes: Any) -> Config:
        """
        Apply changes and save if anything differs.

        Raises:
            pydantic.ValidationError: if a value is out of range
        """
        current = self.config
        updated = Config.model_validate({**current.model_dump(), **changes})
        if updated == current:
            return current

        self._config = updated
        self.save()
        changed = {
            k: getattr(updated, k) for k in changes
            if getattr(updated, k) != getattr(current, k)
        }
        if self.event_bus:
            self.event_bus.publish(ConfigEvent.CONFIG_CHANGED, config=updated, changes=changed)
        return updated

    def reset(self) -> Config:
        """Restore defaults and save."""
        self._config = Config()
        self.save()
        if self.event_bus:
            self.event_bus.publish(ConfigEvent.CONFIG_RESET, config=self._config)
        return self._config
