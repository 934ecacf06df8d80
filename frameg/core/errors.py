"""
Exception taxonomy for the narrative engine.

Content errors are fatal: they mean the authored story data is broken
and playback cannot continue safely. Progress errors come from the
persistence collaborators and are reported to the caller.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class FramegError(Exception):
    """Base exception for the engine."""


class ContentError(FramegError):
    """Authored content is missing, malformed or inconsistent."""


class ContentLoadError(ContentError):
    """Raised when a content file cannot be read or fails validation."""

    def __init__(self, path: Path | str, message: str):
        self.path = Path(path)
        super().__init__(f"{self.path}: {message}")


class ContentIntegrityError(ContentError):
    """
    Raised when loaded stories reference each other inconsistently.

    Attributes:
        story_id: Story the problem was found in (if known)
        step: Step the problem was found at (if known)
    """

    def __init__(
        self,
        message: str,
        story_id: Optional[str] = None,
        step: Optional[int] = None,
    ):
        self.story_id = story_id
        self.step = step
        location = []
        if story_id is not None:
            location.append(f"story={story_id!r}")
        if step is not None:
            location.append(f"step={step}")
        suffix = f" ({', '.join(location)})" if location else ""
        super().__init__(f"{message}{suffix}")


class UnknownStoryError(ContentIntegrityError):
    """Raised when a story id is not present in the graph store."""

    def __init__(
        self,
        missing_id: str,
        story_id: Optional[str] = None,
        step: Optional[int] = None,
    ):
        self.missing_id = missing_id
        super().__init__(f"Unknown story id {missing_id!r}", story_id, step)


class ProgressError(FramegError):
    """Base exception for progress and save persistence."""


class SaveLoadError(ProgressError):
    """Raised when a progress file or save slot cannot be read or written."""
