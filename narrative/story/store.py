"""
Story graph store - read-only, step-indexed access to loaded stories.

The store is built once after loading and never changes. It can be
shared by any number of playback sessions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional

from frameg.core.errors import ContentIntegrityError, UnknownStoryError
from narrative.progress.view import ProgressView
from narrative.story.entry import Chapter, Locked, Prelude
from narrative.story.model import Story, StoryController, controller_targets

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _StepIndex:
    """Everything authored at one step of a story."""
    components: tuple
    controller: Optional[StoryController]


class StoryGraphStore:
    """
    Holds the immutable set of stories.

    Components of every entry at a step are merged in authored order.
    At most one controller may be attached to a step; two different
    controllers at the same step are rejected at construction.

    Usage:
        store = StoryGraphStore(stories, chapters=entry.chapters)
        store.validate_references()
        store.components_at("prologue", 0)
    """

    def __init__(
        self,
        stories: Iterable[Story],
        chapters: Optional[Mapping[int, Chapter]] = None,
    ):
        self._stories: dict[str, Story] = {}
        self._index: dict[str, dict[int, _StepIndex]] = {}
        self._chapters: dict[int, Chapter] = dict(chapters or {})

        for story in stories:
            if story.id in self._stories:
                raise ContentIntegrityError("Duplicate story id", story_id=story.id)
            self._stories[story.id] = story
            self._index[story.id] = self._build_index(story)

        logger.info(f"Story graph holds {len(self._stories)} stories, {len(self._chapters)} chapters")

    @staticmethod
    def _build_index(story: Story) -> dict[int, _StepIndex]:
        components: dict[int, list] = {}
        controllers: dict[int, StoryController] = {}

        for entry in story.entries:
            components.setdefault(entry.step, []).extend(entry.components)
            if entry.controller is None:
                continue
            existing = controllers.get(entry.step)
            if existing is not None and existing != entry.controller:
                raise ContentIntegrityError(
                    f"Conflicting controllers {existing.kind!r} and {entry.controller.kind!r}",
                    story_id=story.id,
                    step=entry.step,
                )
            controllers[entry.step] = entry.controller

        return {
            step: _StepIndex(tuple(parts), controllers.get(step))
            for step, parts in components.items()
        }

    # Lookup

    def story(self, story_id: str) -> Story:
        """Get a story, raising UnknownStoryError if it was never loaded."""
        try:
            return self._stories[story_id]
        except KeyError:
            raise UnknownStoryError(story_id) from None

    def has_story(self, story_id: str) -> bool:
        return story_id in self._stories

    @property
    def story_ids(self) -> list[str]:
        return list(self._stories)

    def components_at(self, story_id: str, step: int) -> tuple:
        """Ordered components at a step (empty if nothing is authored there)."""
        index = self._story_index(story_id)
        entry = index.get(step)
        return entry.components if entry else ()

    def controller_at(self, story_id: str, step: int) -> Optional[StoryController]:
        """The controller attached to a step, if any."""
        entry = self._story_index(story_id).get(step)
        return entry.controller if entry else None

    def last_step(self, story_id: str) -> int:
        """Highest authored step of a story (-1 for an empty story)."""
        index = self._story_index(story_id)
        return max(index) if index else -1

    def _story_index(self, story_id: str) -> dict[int, _StepIndex]:
        try:
            return self._index[story_id]
        except KeyError:
            raise UnknownStoryError(story_id) from None

    # Integrity

    def validate_references(self) -> None:
        """
        Check every story reference in the graph.

        Raises:
            UnknownStoryError: naming the story and step with the bad reference
            ContentIntegrityError: if a chapter points at a missing story
        """
        for story_id, index in self._index.items():
            for step, entry in sorted(index.items()):
                for target in controller_targets(entry.controller):
                    if target not in self._stories:
                        raise UnknownStoryError(target, story_id=story_id, step=step)

        for chapter_index, chapter in self._chapters.items():
            if chapter.story_id not in self._stories:
                raise ContentIntegrityError(
                    f"Chapter {chapter_index} references unknown story {chapter.story_id!r}"
                )

    # Chapters

    @property
    def chapters(self) -> dict[int, Chapter]:
        return dict(self._chapters)

    def chapter(self, index: int) -> Chapter:
        try:
            return self._chapters[index]
        except KeyError:
            raise ContentIntegrityError(f"Unknown chapter index {index}") from None

    def chapter_is_unlocked(self, index: int, progress: Optional[ProgressView]) -> bool:
        """
        Whether a chapter can be picked from the chapter index.

        Prelude chapters are always open. Locked chapters open once their
        fore chapter is completed; missing progress keeps them closed.
        """
        condition = self.chapter(index).condition

        if isinstance(condition, Prelude):
            return True

        if isinstance(condition, Locked):
            if progress is None:
                return False
            try:
                return bool(progress.is_chapter_completed(condition.fore_chapter))
            except LookupError:
                logger.warning(f"No completion data for chapter {condition.fore_chapter}")
                return False

        raise TypeError(f"Unknown chapter condition: {type(condition).__name__}")

    def unlocked_chapters(self, progress: Optional[ProgressView]) -> list[int]:
        """Indexes of chapters currently selectable, ascending."""
        return [i for i in sorted(self._chapters) if self.chapter_is_unlocked(i, progress)]
