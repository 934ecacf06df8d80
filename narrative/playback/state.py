"""
Playback state - where a session is in the story graph.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum, auto
from typing import Optional

from narrative.story.model import Choice


class ControllerState(Enum):
    """What the current step's controller is waiting for."""
    NONE = auto()             # reading; confirm advances
    AWAITING_BRANCH = auto()  # choices open; only a selection advances
    ENDED = auto()            # story finished; nothing advances until reset


@dataclass
class PlaybackState:
    """
    Mutable state of one playback session.

    Attributes:
        story_id: Story being played (None before start)
        step: Current step within the story
        controller_state: What the session is waiting for
        choices: Visible choices while awaiting a branch
        text_reveal_progress: Characters revealed so far (fractional)
        gate_pending: A blocking conditional gate holds this step
    """
    story_id: Optional[str] = None
    step: int = 0
    controller_state: ControllerState = ControllerState.NONE
    choices: tuple[Choice, ...] = ()
    text_reveal_progress: float = 0.0
    gate_pending: bool = False

    @property
    def is_started(self) -> bool:
        return self.story_id is not None

    @property
    def is_ended(self) -> bool:
        return self.controller_state == ControllerState.ENDED

    @property
    def is_awaiting_choice(self) -> bool:
        return self.controller_state == ControllerState.AWAITING_BRANCH

    def copy(self) -> PlaybackState:
        return replace(self)

    def enter(self, story_id: str, step: int) -> None:
        """Move to a step, clearing controller and reveal state."""
        self.story_id = story_id
        self.step = step
        self.controller_state = ControllerState.NONE
        self.choices = ()
        self.text_reveal_progress = 0.0
        self.gate_pending = False


@dataclass(frozen=True)
class PlaybackSnapshot:
    """
    Serializable position of a session, used by save slots.

    Restoring a snapshot re-enters the step, so the step's controller is
    evaluated again (a branch re-opens its choices).
    """
    story_id: str
    step: int
    text_reveal_progress: float = 0.0

    def to_dict(self) -> dict:
        return {
            'story_id': self.story_id,
            'step': self.step,
            'text_reveal_progress': self.text_reveal_progress,
        }

    @classmethod
    def from_dict(cls, data: dict) -> PlaybackSnapshot:
        return cls(
            story_id=data['story_id'],
            step=int(data['step']),
            text_reveal_progress=float(data.get('text_reveal_progress', 0.0)),
        )
