"""
Frameg narrative framework.

Provides visual novel playback built on the frameg runtime:
- Story (content model, graph store, locks, loading, script compiler)
- Playback (state machine, presenter adapter, input driver)
- Progress (completions, endings, chapters)
- Save (playback save slots)
"""

from narrative.story import (
    EntryManifest,
    LockEvaluator,
    Story,
    StoryGraphStore,
    load_content,
)
from narrative.playback import NarrativeStateMachine, PlaybackDriver
from narrative.progress import ProgressTracker, ProgressView
from narrative.save import SaveManager

__all__ = [
    "EntryManifest",
    "LockEvaluator",
    "Story",
    "StoryGraphStore",
    "load_content",
    "NarrativeStateMachine",
    "PlaybackDriver",
    "ProgressTracker",
    "ProgressView",
    "SaveManager",
]
