"""
Playback presenter adapter - the boundary between engine and renderer.

The engine hands out an ordered draw list and the open choices; the
renderer hands back confirm and choice events. How anything is drawn,
and how asset references become images, is up to the Presenter and
AssetResolver implementations supplied by the GUI layer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING, Optional, Protocol

from frameg.core.actions import Action
from frameg.core.config import Config
from frameg.core.errors import SaveLoadError
from frameg.core.events import ConfigEvent, Event, EventBus
from frameg.input.handler import InputHandler
from narrative.story.model import Character, Choice, SimpleText
from narrative.playback.machine import NarrativeStateMachine

if TYPE_CHECKING:
    from narrative.save.manager import SaveManager

logger = logging.getLogger(__name__)


class DriverEvent(Enum):
    """Playback driver events."""
    MENU_REQUESTED = auto()


@dataclass(frozen=True)
class DrawItem:
    """A component and the layer it is drawn on."""
    component: object
    z_order: int


def visible_content(machine: NarrativeStateMachine) -> tuple[DrawItem, ...]:
    """
    Components of the current step in draw order.

    Scenery (Background, CutIn) first, then character sprites, then
    screen effects, then text. Authored order is kept within a layer.
    """
    items = [
        DrawItem(component=component, z_order=int(component.render_layer))
        for component in machine.components()
    ]
    return tuple(sorted(items, key=lambda item: item.z_order))


def active_choices(machine: NarrativeStateMachine) -> tuple[Choice, ...]:
    """Choices to show (empty unless the machine awaits a branch)."""
    return machine.active_choices()


@dataclass(frozen=True)
class PlaybackFrame:
    """Everything a renderer needs for one frame of playback."""
    story_id: Optional[str]
    step: int
    draw_list: tuple[DrawItem, ...]
    choices: tuple[Choice, ...]
    highlighted_choice: int
    speaker: Optional[str]
    revealed_text: str
    text_complete: bool
    ended: bool


def build_frame(machine: NarrativeStateMachine, highlighted_choice: int = 0) -> PlaybackFrame:
    """Snapshot the machine into a frame."""
    text: Optional[SimpleText] = machine.active_text()
    return PlaybackFrame(
        story_id=machine.story_id,
        step=machine.step,
        draw_list=visible_content(machine),
        choices=active_choices(machine),
        highlighted_choice=highlighted_choice,
        speaker=text.speaker.name if text else None,
        revealed_text=machine.revealed_text(),
        text_complete=machine.is_text_complete,
        ended=machine.is_ended,
    )


class Presenter(Protocol):
    """Draws frames. Implemented by the GUI layer."""

    def present(self, frame: PlaybackFrame) -> None:
        ...


class AssetResolver(Protocol):
    """
    Turns content references into renderable handles.

    Resolution failures are the presenter's to report; the engine only
    passes references through.
    """

    def resolve_image(self, image_ref: str) -> object:
        ...

    def resolve_character(self, character: Character) -> object:
        ...


class PlaybackDriver:
    """
    Connects input, the state machine and a presenter, once per frame.

    Handles:
    - Typewriter ticks at the configured playback speed
    - Confirm to advance, or to pick the highlighted choice
    - Menu up/down to move the highlight
    - Number keys to pick a choice directly
    - Skip to reveal the whole line
    - Quick save and quick load, when given a SaveManager
    - Menu key, published as DriverEvent.MENU_REQUESTED

    Usage:
        driver = PlaybackDriver(machine, input_handler, presenter, event_bus=bus, saves=saves)
        driver.apply_config(config_store.config)

        # each frame, after input_handler.update()
        driver.update()
    """

    def __init__(
        self,
        machine: NarrativeStateMachine,
        input_handler: InputHandler,
        presenter: Optional[Presenter] = None,
        event_bus: Optional[EventBus] = None,
        saves: Optional[SaveManager] = None,
    ):
        self.machine = machine
        self.input = input_handler
        self.presenter = presenter
        self.event_bus = event_bus
        self.saves = saves
        self.highlighted_choice = 0

        if event_bus:
            event_bus.subscribe(ConfigEvent.CONFIG_LOADED, self._on_config_event)
            event_bus.subscribe(ConfigEvent.CONFIG_CHANGED, self._on_config_event)
            event_bus.subscribe(ConfigEvent.CONFIG_RESET, self._on_config_event)

    def apply_config(self, config: Config) -> None:
        """Use the player's text playback speed."""
        self.machine.apply_playback_speed(config.text_playback_speed)

    def _on_config_event(self, event: Event) -> None:
        config = event.get('config')
        if config is not None:
            self.apply_config(config)

    def update(self) -> Optional[PlaybackFrame]:
        """
        Run one frame.

        Returns:
            The frame handed to the presenter, or None before start
        """
        if not self.machine.is_started:
            return None

        self.machine.tick()
        self._handle_input()

        frame = build_frame(self.machine, self.highlighted_choice)
        if self.presenter:
            self.presenter.present(frame)
        return frame

    def _handle_input(self) -> None:
        machine = self.machine

        # Still live after End, so an ending can be quick-loaded away
        if self._handle_system_input():
            return

        if machine.is_ended:
            return

        if self.input.is_action_just_pressed(Action.SKIP_TEXT):
            machine.reveal_all()

        if machine.is_awaiting_choice:
            self._handle_choice_input()
            return

        if self.input.is_action_just_pressed(Action.CONFIRM):
            if machine.confirm():
                self.highlighted_choice = 0

    def _handle_system_input(self) -> bool:
        """Menu, quick save and quick load. True if the frame's input is used up."""
        if self.input.is_action_just_pressed(Action.MENU):
            logger.debug("Menu requested")
            if self.event_bus:
                self.event_bus.publish(
                    DriverEvent.MENU_REQUESTED,
                    story_id=self.machine.story_id,
                    step=self.machine.step,
                )
            return True

        if self.saves is None:
            return False

        if self.input.is_action_just_pressed(Action.QUICKSAVE):
            try:
                self.saves.quick_save(self.machine)
            except SaveLoadError as e:
                logger.error(f"Quick save failed: {e}")
            return True

        if self.input.is_action_just_pressed(Action.QUICKLOAD):
            try:
                snapshot = self.saves.load_slot(self.saves.QUICK_SAVE_SLOT)
            except SaveLoadError as e:
                logger.warning(f"Quick load failed: {e}")
                return True
            self.machine.restore(snapshot)
            self.highlighted_choice = 0
            return True

        return False

    def _handle_choice_input(self) -> None:
        choices = self.machine.active_choices()

        shortcut = self.input.get_choice_shortcut()
        if shortcut is not None and shortcut < len(choices):
            self._select(shortcut)
            return

        direction = self.input.get_menu_direction()
        if direction:
            self.highlighted_choice = (self.highlighted_choice + direction) % len(choices)

        if self.input.is_action_just_pressed(Action.CONFIRM):
            self._select(self.highlighted_choice)

    def _select(self, index: int) -> None:
        if self.machine.select_choice(index) is not None:
            self.highlighted_choice = 0
