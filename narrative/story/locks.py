"""
Lock evaluation - decides whether a conditional redirect may fire.

Evaluation is a pure read of the player's progress. Anything missing
from the progress data counts as "not satisfied" rather than raising.
"""

from __future__ import annotations

import logging
from enum import Enum, auto
from typing import Optional

from narrative.progress.view import ProgressView
from narrative.story.model import MultiTimesPlay, StoryLock, UnlockedDifferentEnd

logger = logging.getLogger(__name__)


class EndingMatch(Enum):
    """How UnlockedDifferentEnd combines its listed endings."""
    ALL = auto()  # every listed ending must be unlocked
    ANY = auto()  # one listed ending is enough


class LockEvaluator:
    """
    Evaluates StoryLocks against a ProgressView.

    Usage:
        evaluator = LockEvaluator()
        if evaluator.satisfied(lock, progress, story_id="prologue"):
            ...
    """

    def __init__(self, ending_match: EndingMatch = EndingMatch.ALL):
        self.ending_match = ending_match

    def satisfied(
        self,
        lock: StoryLock,
        progress: Optional[ProgressView],
        story_id: str,
    ) -> bool:
        """
        Check a lock.

        Args:
            lock: The lock to evaluate
            progress: Player progress (None counts as no progress)
            story_id: Story owning the lock; MultiTimesPlay counts its completions

        Returns:
            True if the redirect guarded by the lock may fire
        """
        if progress is None:
            logger.warning(f"No progress available for lock in {story_id!r}; treating as locked")
            return False

        try:
            if isinstance(lock, MultiTimesPlay):
                count = progress.completion_count(story_id)
                if count is None:
                    return False
                return count >= lock.threshold

            if isinstance(lock, UnlockedDifferentEnd):
                unlocked = progress.unlocked_endings()
                if unlocked is None:
                    return False
                if self.ending_match is EndingMatch.ALL:
                    return all(ending in unlocked for ending in lock.endings)
                return any(ending in unlocked for ending in lock.endings)

        except LookupError as e:
            logger.warning(f"Missing progress data for lock in {story_id!r}: {e}")
            return False

        raise TypeError(f"Unknown lock type: {type(lock).__name__}")


def is_satisfied(
    lock: StoryLock,
    progress: Optional[ProgressView],
    story_id: str,
    ending_match: EndingMatch = EndingMatch.ALL,
) -> bool:
    """Evaluate a lock with a throwaway evaluator."""
    return LockEvaluator(ending_match).satisfied(lock, progress, story_id)
