"""
Core runtime module.

Exports:
- EventBus, Event and the event enums
- Action: input actions
- Config, ConfigStore, WindowScale: player configuration
- Error taxonomy
"""

from frameg.core.actions import Action
from frameg.core.config import Config, ConfigError, ConfigStore, WindowScale
from frameg.core.errors import (
    ContentError,
    ContentIntegrityError,
    ContentLoadError,
    FramegError,
    ProgressError,
    SaveLoadError,
    UnknownStoryError,
)
from frameg.core.events import (
    ConfigEvent,
    Event,
    EventBus,
    NarrativeEvent,
    ProgressEvent,
)

__all__ = [
    "Action",
    "Config",
    "ConfigError",
    "ConfigStore",
    "WindowScale",
    "ContentError",
    "ContentIntegrityError",
    "ContentLoadError",
    "FramegError",
    "ProgressError",
    "SaveLoadError",
    "UnknownStoryError",
    "ConfigEvent",
    "Event",
    "EventBus",
    "NarrativeEvent",
    "ProgressEvent",
]
