"""
Playback - the narrative state machine and its presenter boundary.

Provides:
- Step-by-step story progression with branches, gates and endings
- Typewriter text reveal
- Ordered draw lists for renderers
- Input-driven playback driver
"""

from narrative.playback.state import ControllerState, PlaybackSnapshot, PlaybackState
from narrative.playback.machine import DEFAULT_BASE_RATE, IfFallback, NarrativeStateMachine
from narrative.playback.presenter import (
    AssetResolver,
    DrawItem,
    DriverEvent,
    PlaybackDriver,
    PlaybackFrame,
    Presenter,
    active_choices,
    build_frame,
    visible_content,
)

__all__ = [
    "ControllerState",
    "PlaybackSnapshot",
    "PlaybackState",
    "DEFAULT_BASE_RATE",
    "IfFallback",
    "NarrativeStateMachine",
    "AssetResolver",
    "DrawItem",
    "DriverEvent",
    "PlaybackDriver",
    "PlaybackFrame",
    "Presenter",
    "active_choices",
    "build_frame",
    "visible_content",
]
