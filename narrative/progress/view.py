"""
Read-only view of persisted player progress.

The narrative engine reads progress through this protocol and never
writes it. ProgressTracker implements it; tests and tools may pass any
object with the same methods.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable


@runtime_checkable
class ProgressView(Protocol):
    """What the engine may ask about the player's history."""

    def completion_count(self, story_id: str) -> int:
        """How many times the story has been played to its end."""
        ...

    def unlocked_endings(self) -> frozenset[str]:
        """Ending identifiers the player has reached."""
        ...

    def is_chapter_completed(self, index: int) -> bool:
        """Whether the chapter at ``index`` has been completed."""
        ...


@dataclass(frozen=True)
class ProgressSnapshot:
    """Immutable copy of progress, safe to hand to any number of readers."""
    completions: dict[str, int] = field(default_factory=dict)
    endings: frozenset[str] = frozenset()
    chapters: frozenset[int] = frozenset()

    def completion_count(self, story_id: str) -> int:
        return self.completions.get(story_id, 0)

    def unlocked_endings(self) -> frozenset[str]:
        return self.endings

    def is_chapter_completed(self, index: int) -> bool:
        return index in self.chapters
