"""
Narrative state machine - drives a player through the story graph.

The machine is query-driven: callers feed it confirm and choice events
and ticks of time, and read back what should be on screen. It owns no
render loop and no threads.

Transitions:
- confirm() while reading moves to the next step.
- A step with Next redirects to the target story immediately.
- A step with If redirects when its lock is satisfied; otherwise the
  step plays normally (or blocks, see IfFallback).
- A step with Branch waits for select_choice().
- A step with End stops playback and signals the caller once.

Every event is applied to a working copy of the state and committed
only when it resolves cleanly, so a content error never leaves the
session half moved.
"""

from __future__ import annotations

import logging
import math
from enum import Enum, auto
from typing import Any, Callable, Optional

from frameg.core.errors import ContentIntegrityError, UnknownStoryError
from frameg.core.events import EventBus, NarrativeEvent
from narrative.progress.view import ProgressView
from narrative.story.locks import LockEvaluator
from narrative.story.model import (
    Branch,
    Choice,
    End,
    If,
    Next,
    SimpleText,
    StoryController,
)
from narrative.story.store import StoryGraphStore
from narrative.playback.state import ControllerState, PlaybackSnapshot, PlaybackState

logger = logging.getLogger(__name__)

# Characters revealed per tick at 100% playback speed
DEFAULT_BASE_RATE = 0.1

# Absorbs float drift when summing fractional reveal rates
_REVEAL_EPSILON = 1e-9

EndCallback = Callable[[str, int], None]
_PendingEvents = list[tuple[NarrativeEvent, dict[str, Any]]]


class IfFallback(Enum):
    """What an If step does while its lock is not satisfied."""
    FALL_THROUGH = auto()  # play the step, next confirm advances as usual
    BLOCK = auto()         # confirm re-checks the lock and stays put while locked


class NarrativeStateMachine:
    """
    Playback engine for one session.

    Usage:
        machine = NarrativeStateMachine(store, progress, event_bus=bus)
        machine.on_end(lambda story_id, step: show_main_menu())
        machine.start("prologue")

        machine.tick()
        machine.confirm()
        if machine.is_awaiting_choice:
            machine.select_choice(0)

    Sessions must not share a machine; give each save slot its own.
    """

    def __init__(
        self,
        store: StoryGraphStore,
        progress: Optional[ProgressView] = None,
        lock_evaluator: Optional[LockEvaluator] = None,
        event_bus: Optional[EventBus] = None,
        if_fallback: IfFallback = IfFallback.FALL_THROUGH,
        base_rate: float = DEFAULT_BASE_RATE,
        playback_speed: int = 100,
    ):
        self.store = store
        self.progress = progress
        self.locks = lock_evaluator or LockEvaluator()
        self.events = event_bus
        self.if_fallback = if_fallback
        self.base_rate = base_rate
        self.playback_speed = playback_speed

        self._state = PlaybackState()
        self._end_signalled = False
        self._end_callbacks: list[EndCallback] = []

    # State queries

    @property
    def state(self) -> PlaybackState:
        """A copy of the current state."""
        return self._state.copy()

    @property
    def story_id(self) -> Optional[str]:
        return self._state.story_id

    @property
    def step(self) -> int:
        return self._state.step

    @property
    def controller_state(self) -> ControllerState:
        return self._state.controller_state

    @property
    def text_reveal_progress(self) -> float:
        return self._state.text_reveal_progress

    @property
    def is_started(self) -> bool:
        return self._state.is_started

    @property
    def is_ended(self) -> bool:
        return self._state.is_ended

    @property
    def is_awaiting_choice(self) -> bool:
        return self._state.is_awaiting_choice

    @property
    def is_gated(self) -> bool:
        """A blocking If step is holding playback."""
        return self._state.gate_pending

    @property
    def is_past_end(self) -> bool:
        """Reading has run beyond the last authored step."""
        if not self.is_started:
            return False
        return self._state.step > self.store.last_step(self._state.story_id)

    def components(self) -> tuple:
        """Components authored at the current step, in authored order."""
        if not self.is_started:
            return ()
        return self.store.components_at(self._state.story_id, self._state.step)

    def active_choices(self) -> tuple[Choice, ...]:
        """Choices on offer (empty unless awaiting a branch)."""
        return self._state.choices if self.is_awaiting_choice else ()

    # Session control

    def start(self, story_id: str, step: int = 0) -> None:
        """
        Begin a fresh session at a story step.

        Raises:
            UnknownStoryError: if the story is not loaded
            ContentIntegrityError: if the entry step redirects into broken content
            ValueError: if step is negative
        """
        if step < 0:
            raise ValueError(f"Step must be non-negative, got {step}")
        self.store.story(story_id)

        state = PlaybackState()
        pending: _PendingEvents = [(NarrativeEvent.STORY_STARTED, {'story_id': story_id, 'step': step})]
        pending.extend(self._enter(state, story_id, step))

        self._end_signalled = False
        logger.info(f"Starting story {story_id!r} at step {step}")
        self._commit(state, pending)

    def reset(self, story_id: Optional[str] = None, step: int = 0) -> None:
        """Start over at a story, or clear the session when no story is given."""
        if story_id is not None:
            self.start(story_id, step)
            return
        self._state = PlaybackState()
        self._end_signalled = False

    def snapshot(self) -> PlaybackSnapshot:
        """Position of the session, for save slots."""
        if not self.is_started:
            raise RuntimeError("Cannot snapshot a session that has not started")
        return PlaybackSnapshot(
            story_id=self._state.story_id,
            step=self._state.step,
            text_reveal_progress=self._state.text_reveal_progress,
        )

    def restore(self, snapshot: PlaybackSnapshot) -> None:
        """Resume from a snapshot."""
        self.start(snapshot.story_id, snapshot.step)
        if self._state.story_id == snapshot.story_id and self._state.step == snapshot.step:
            self._state.text_reveal_progress = snapshot.text_reveal_progress

    def on_end(self, callback: EndCallback) -> None:
        """Register a callback for when playback reaches End."""
        self._end_callbacks.append(callback)

    # Input events

    def confirm(self) -> bool:
        """
        Advance past the current step.

        Ignored while choices are open, after End, and before start.

        Returns:
            True if the session moved
        """
        state = self._state
        if not state.is_started or state.is_ended:
            logger.debug("Confirm ignored: no active story")
            return False
        if state.is_awaiting_choice:
            logger.debug("Confirm ignored: waiting for a choice")
            return False

        work = state.copy()

        if work.gate_pending:
            controller = self.store.controller_at(work.story_id, work.step)
            if not isinstance(controller, If):
                raise ContentIntegrityError(
                    "Gate pending on a step without an If controller",
                    story_id=work.story_id,
                    step=work.step,
                )
            if not self.locks.satisfied(controller.lock, self.progress, work.story_id):
                logger.debug(f"Gate at {work.story_id!r} step {work.step} still locked")
                return False
            pending = self._redirect(work, controller)
        else:
            pending = self._enter(work, work.story_id, work.step + 1)

        self._commit(work, pending)
        return True

    def select_choice(self, index: int) -> Optional[Choice]:
        """
        Pick one of the open choices.

        Args:
            index: Position among the visible choices

        Returns:
            The chosen Choice, or None if no branch is open or the index is invalid
        """
        state = self._state
        if not state.is_awaiting_choice:
            logger.debug("Choice ignored: no branch open")
            return None
        if not 0 <= index < len(state.choices):
            logger.warning(f"Choice index {index} out of range (0..{len(state.choices) - 1})")
            return None

        choice = state.choices[index]
        origin = (state.story_id, state.step)
        if not self.store.has_story(choice.next_story):
            raise UnknownStoryError(choice.next_story, story_id=origin[0], step=origin[1])

        work = state.copy()
        pending: _PendingEvents = [(NarrativeEvent.CHOICE_SELECTED, {
            'story_id': origin[0],
            'step': origin[1],
            'index': index,
            'choice': choice,
        })]
        pending.extend(self._enter(work, choice.next_story, 0))

        logger.info(f"Choice {index} ({choice.text!r}) -> story {choice.next_story!r}")
        self._commit(work, pending)
        return choice

    # Text reveal

    def tick(self, count: int = 1) -> int:
        """
        Advance the typewriter by ``count`` ticks.

        Each tick reveals ``base_rate * playback_speed / 100`` characters.

        Returns:
            Number of characters now revealed
        """
        if self.is_started and count > 0:
            rate = self.base_rate * (self.playback_speed / 100.0)
            self._state.text_reveal_progress += rate * count
        return self.revealed_chars()

    def active_text(self) -> Optional[SimpleText]:
        """The dialog line being revealed at this step (the first one authored)."""
        for component in self.components():
            if isinstance(component, SimpleText):
                return component
        return None

    def revealed_chars(self) -> int:
        """Characters of the active text to draw, clamped to its length."""
        text = self.active_text()
        if text is None:
            return 0
        revealed = math.floor(self._state.text_reveal_progress + _REVEAL_EPSILON)
        return max(0, min(len(text.text), revealed))

    def revealed_text(self) -> str:
        text = self.active_text()
        return text.text[:self.revealed_chars()] if text else ""

    @property
    def is_text_complete(self) -> bool:
        text = self.active_text()
        return text is None or self.revealed_chars() >= len(text.text)

    def reveal_all(self) -> None:
        """Show the whole active text at once."""
        text = self.active_text()
        if text is not None:
            self._state.text_reveal_progress = max(
                self._state.text_reveal_progress, float(len(text.text))
            )

    def apply_playback_speed(self, percent: int) -> None:
        self.playback_speed = percent

    # Transition internals

    def _enter(self, state: PlaybackState, story_id: str, step: int) -> _PendingEvents:
        """Move ``state`` to a step and follow redirects until playback can rest."""
        pending: _PendingEvents = []
        visited: set[tuple[str, int]] = set()

        while True:
            if (story_id, step) in visited:
                raise ContentIntegrityError("Redirect cycle", story_id=story_id, step=step)
            visited.add((story_id, step))

            state.enter(story_id, step)
            pending.append((NarrativeEvent.STEP_ENTERED, {'story_id': story_id, 'step': step}))

            controller = self.store.controller_at(story_id, step)
            target = self._resolve(state, controller)

            if target is None:
                break

            if not self.store.has_story(target):
                raise UnknownStoryError(target, story_id=story_id, step=step)

            pending.append((NarrativeEvent.STORY_REDIRECTED, {
                'from_story': story_id,
                'from_step': step,
                'to_story': target,
                'controller': controller.kind,
            }))
            logger.info(f"Redirect {story_id!r} step {step} -> {target!r} ({controller.kind})")
            story_id, step = target, 0

        if state.is_awaiting_choice:
            pending.append((NarrativeEvent.BRANCH_OPENED, {
                'story_id': state.story_id,
                'step': state.step,
                'choices': state.choices,
            }))

        return pending

    def _redirect(self, state: PlaybackState, controller: If) -> _PendingEvents:
        """Follow an If gate that has just opened."""
        origin = (state.story_id, state.step)
        if not self.store.has_story(controller.target):
            raise UnknownStoryError(controller.target, story_id=origin[0], step=origin[1])

        pending: _PendingEvents = [(NarrativeEvent.STORY_REDIRECTED, {
            'from_story': origin[0],
            'from_step': origin[1],
            'to_story': controller.target,
            'controller': controller.kind,
        })]
        pending.extend(self._enter(state, controller.target, 0))
        return pending

    def _resolve(
        self,
        state: PlaybackState,
        controller: Optional[StoryController],
    ) -> Optional[str]:
        """
        Apply the controller of the step ``state`` just entered.

        Returns:
            Story id to redirect to, or None to rest on this step
        """
        if controller is None:
            return None

        if isinstance(controller, Next):
            return controller.target

        if isinstance(controller, If):
            if self.locks.satisfied(controller.lock, self.progress, state.story_id):
                return controller.target
            if self.if_fallback is IfFallback.BLOCK:
                state.gate_pending = True
            return None

        if isinstance(controller, Branch):
            state.controller_state = ControllerState.AWAITING_BRANCH
            state.choices = controller.choices
            return None

        if isinstance(controller, End):
            state.controller_state = ControllerState.ENDED
            return None

        raise ContentIntegrityError(
            f"Malformed controller {controller!r}",
            story_id=state.story_id,
            step=state.step,
        )

    def _commit(self, state: PlaybackState, pending: _PendingEvents) -> None:
        self._state = state

        if state.step == self.store.last_step(state.story_id) + 1:
            logger.warning(
                f"Story {state.story_id!r} has no step {state.step}; "
                f"content ends at {self.store.last_step(state.story_id)} without End"
            )

        if self.events:
            for event_type, data in pending:
                self.events.publish(event_type, **data)

        if state.is_ended and not self._end_signalled:
            self._end_signalled = True
            self._signal_end(state.story_id, state.step)

    def _signal_end(self, story_id: str, step: int) -> None:
        logger.info(f"Story {story_id!r} ended at step {step}")
        if self.events:
            self.events.publish(NarrativeEvent.STORY_ENDED, story_id=story_id, step=step)
        for callback in list(self._end_callbacks):
            callback(story_id, step)
