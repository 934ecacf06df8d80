"""
Frameg

Runtime infrastructure for the Frameg visual novel player: typed
events, input actions, player configuration and the error taxonomy.
The narrative engine itself lives in the ``narrative`` package.

Quick Start:
    from frameg import ConfigStore, EventBus
    from narrative import NarrativeStateMachine, load_content

    bus = EventBus()
    config = ConfigStore("config.json", event_bus=bus).load()
    content = load_content("resources")
    machine = NarrativeStateMachine(content.store, progress, event_bus=bus)
    machine.start(content.entry.start_story)
"""

__version__ = "0.1.0"

from frameg.core import (
    Action,
    Config,
    ConfigStore,
    ContentError,
    ContentIntegrityError,
    ContentLoadError,
    Event,
    EventBus,
    FramegError,
    NarrativeEvent,
    UnknownStoryError,
    WindowScale,
)

__all__ = [
    "Action",
    "Config",
    "ConfigStore",
    "ContentError",
    "ContentIntegrityError",
    "ContentLoadError",
    "Event",
    "EventBus",
    "FramegError",
    "NarrativeEvent",
    "UnknownStoryError",
    "WindowScale",
]
