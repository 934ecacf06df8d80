"""
Progress tracker - persisted record of what the player has finished.

Tracks:
- How many times each story was completed (MultiTimesPlay locks)
- Which endings were unlocked (UnlockedDifferentEnd locks)
- Which chapters were completed (chapter gating)

The narrative engine only reads progress. The game shell writes it,
typically from the state machine's end callback:

    def on_end(story_id, step):
        tracker.record_completion(story_id)
        tracker.save()

    machine.on_end(on_end)
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from frameg.core.events import EventBus, ProgressEvent
from narrative.progress.checksum import verify_checksum, with_checksum
from narrative.progress.view import ProgressSnapshot

logger = logging.getLogger(__name__)


class ProgressTracker:
    """
    Mutable, persisted player progress implementing ProgressView.

    Hand a snapshot() to playback sessions when they must not observe
    writes made during play.
    """

    VERSION = "1.0"

    def __init__(
        self,
        path: Path | str = "saves/progress.json",
        event_bus: Optional[EventBus] = None,
    ):
        self.path = Path(path)
        self.event_bus = event_bus

        self._completions: dict[str, int] = {}
        self._endings: set[str] = set()
        self._chapters: set[int] = set()

    # ProgressView

    def completion_count(self, story_id: str) -> int:
        return self._completions.get(story_id, 0)

    def unlocked_endings(self) -> frozenset[str]:
        return frozenset(self._endings)

    def is_chapter_completed(self, index: int) -> bool:
        return index in self._chapters

    def snapshot(self) -> ProgressSnapshot:
        """Immutable copy of the current progress."""
        return ProgressSnapshot(
            completions=dict(self._completions),
            endings=frozenset(self._endings),
            chapters=frozenset(self._chapters),
        )

    # Writes

    def record_completion(self, story_id: str) -> int:
        """Count one more completion of a story; returns the new count."""
        count = self._completions.get(story_id, 0) + 1
        self._completions[story_id] = count
        logger.info(f"Story {story_id!r} completed ({count} times)")
        if self.event_bus:
            self.event_bus.publish(ProgressEvent.STORY_COMPLETED, story_id=story_id, count=count)
        return count

    def unlock_ending(self, ending_id: str) -> bool:
        """Record an ending; returns False if it was already unlocked."""
        if ending_id in self._endings:
            return False
        self._endings.add(ending_id)
        if self.event_bus:
            self.event_bus.publish(ProgressEvent.ENDING_UNLOCKED, ending_id=ending_id)
        return True

    def complete_chapter(self, index: int) -> bool:
        """Mark a chapter completed; returns False if it already was."""
        if index in self._chapters:
            return False
        self._chapters.add(index)
        if self.event_bus:
            self.event_bus.publish(ProgressEvent.CHAPTER_COMPLETED, index=index)
        return True

    def clear(self) -> None:
        self._completions.clear()
        self._endings.clear()
        self._chapters.clear()

    # Persistence

    def to_dict(self) -> dict:
        return {
            'version': self.VERSION,
            'timestamp': datetime.now().isoformat(),
            'completions': dict(sorted(self._completions.items())),
            'endings': sorted(self._endings),
            'chapters': sorted(self._chapters),
        }

    def save(self) -> bool:
        """
        Write progress to disk.

        Returns:
            True if the file was written
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, 'w', encoding='utf-8') as f:
                json.dump(with_checksum(self.to_dict()), f, indent=2)
            return True
        except OSError as e:
            logger.error(f"Failed to save progress to {self.path}: {e}")
            return False

    def load(self, validate: bool = True) -> bool:
        """
        Read progress from disk, replacing what is in memory.

        A missing, unreadable or tampered file leaves progress empty, so
        every lock stays closed.

        Returns:
            True if progress was loaded
        """
        self.clear()

        if not self.path.exists():
            logger.info(f"No progress file at {self.path}")
            return False

        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)

            if validate and not verify_checksum(data):
                logger.warning(f"Progress file {self.path} failed checksum validation")
                return False

            self._completions = {str(k): int(v) for k, v in data.get('completions', {}).items()}
            self._endings = {str(e) for e in data.get('endings', [])}
            self._chapters = {int(c) for c in data.get('chapters', [])}
            return True

        except (OSError, ValueError, TypeError, AttributeError) as e:
            logger.error(f"Failed to load progress from {self.path}: {e}")
            self.clear()
            return False
