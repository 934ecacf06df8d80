"""
Input handler with action-based abstraction.

Turns raw pygame keyboard, mouse and gamepad events into the semantic
Actions story playback understands. Playback code polls actions once
per frame and never looks at keys.

Usage:
    for event in pygame.event.get():
        input_handler.process_event(event)
    input_handler.update()

    if input_handler.is_action_just_pressed(Action.CONFIRM):
        machine.confirm()
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, Optional

import pygame

from frameg.core.actions import (
    Action,
    CHOICE_ACTIONS,
    DEFAULT_KEY_BINDINGS,
    DEFAULT_GAMEPAD_BINDINGS,
    DEFAULT_GAMEPAD_HAT_BINDINGS,
)
from frameg.core.events import EventBus

# Left mouse button advances text like CONFIRM
CLICK_BUTTON = 1


class InputEvent(Enum):
    """Input-specific events."""
    ACTION_PRESSED = "input.action_pressed"
    ACTION_RELEASED = "input.action_released"
    GAMEPAD_CONNECTED = "input.gamepad_connected"


@dataclass
class InputState:
    """Held and edge-triggered actions for the current frame."""
    actions_pressed: set[Action] = field(default_factory=set)
    actions_just_pressed: set[Action] = field(default_factory=set)
    actions_just_released: set[Action] = field(default_factory=set)

    # raw keys, so an action bound to two keys survives releasing one
    keys_pressed: set[int] = field(default_factory=set)

    mouse_pos: tuple[int, int] = (0, 0)
    mouse_clicked: bool = False


class InputHandler:
    """
    Collects one frame of player input for story playback.

    Keyboard, gamepad buttons, the gamepad hat and the left mouse button
    all feed the same action set. Number keys pick choices directly.
    """

    def __init__(self, event_bus: EventBus | None = None):
        self.event_bus = event_bus

        self._state = InputState()
        self._prev_actions: set[Action] = set()

        self._key_bindings = {a: list(keys) for a, keys in DEFAULT_KEY_BINDINGS.items()}
        self._actions_by_key: dict[int, list[Action]] = {}
        self._index_keys()

        self._button_bindings = {a: list(b) for a, b in DEFAULT_GAMEPAD_BINDINGS.items()}
        self._hat_bindings = dict(DEFAULT_GAMEPAD_HAT_BINDINGS)
        self._gamepads: dict[int, pygame.joystick.JoystickType] = {}

        self._handlers: dict[int, Callable[[pygame.event.Event], None]] = {
            pygame.KEYDOWN: lambda e: self._on_key(e.key, down=True),
            pygame.KEYUP: lambda e: self._on_key(e.key, down=False),
            pygame.MOUSEMOTION: self._on_mouse_motion,
            pygame.MOUSEBUTTONDOWN: lambda e: self._on_mouse_button(e.button, down=True),
            pygame.MOUSEBUTTONUP: lambda e: self._on_mouse_button(e.button, down=False),
            pygame.JOYBUTTONDOWN: lambda e: self._on_gamepad_button(e.button, down=True),
            pygame.JOYBUTTONUP: lambda e: self._on_gamepad_button(e.button, down=False),
            pygame.JOYHATMOTION: lambda e: self._on_hat(tuple(e.value)),
            pygame.JOYDEVICEADDED: lambda e: self._on_gamepad_change(connected=True),
            pygame.JOYDEVICEREMOVED: lambda e: self._on_gamepad_change(connected=False),
        }

        pygame.joystick.init()
        self._scan_gamepads()

    def _index_keys(self) -> None:
        self._actions_by_key = {}
        for action, keys in self._key_bindings.items():
            for key in keys:
                self._actions_by_key.setdefault(key, []).append(action)

    def _scan_gamepads(self) -> None:
        self._gamepads = {}
        for index in range(pygame.joystick.get_count()):
            pad = pygame.joystick.Joystick(index)
            pad.init()
            self._gamepads[pad.get_instance_id()] = pad

    # Queries

    def is_action_pressed(self, action: Action) -> bool:
        """Check if an action is currently held down."""
        return action in self._state.actions_pressed

    def is_action_just_pressed(self, action: Action) -> bool:
        """Check if an action went down this frame."""
        return action in self._state.actions_just_pressed

    def is_action_just_released(self, action: Action) -> bool:
        return action in self._state.actions_just_released

    def get_choice_shortcut(self) -> Optional[int]:
        """
        Get the choice index picked by a number key this frame.

        Returns:
            Zero-based index into the visible choices, or None
        """
        for index, action in enumerate(CHOICE_ACTIONS):
            if self.is_action_just_pressed(action):
                return index
        return None

    def get_menu_direction(self) -> int:
        """Vertical menu movement this frame: -1 up, 1 down, 0 none."""
        up = self.is_action_just_pressed(Action.MENU_UP)
        down = self.is_action_just_pressed(Action.MENU_DOWN)
        return int(down) - int(up)

    @property
    def mouse_pos(self) -> tuple[int, int]:
        return self._state.mouse_pos

    # Bindings

    def bind_key(self, action: Action, key: int) -> None:
        """Add a key binding for an action."""
        keys = self._key_bindings.setdefault(action, [])
        if key not in keys:
            keys.append(key)
            self._index_keys()

    def unbind_key(self, action: Action, key: int) -> None:
        """Remove a key binding for an action."""
        keys = self._key_bindings.get(action, [])
        if key in keys:
            keys.remove(key)
            self._index_keys()

    def get_bindings(self, action: Action) -> list[int]:
        return list(self._key_bindings.get(action, []))

    # Frame processing

    def process_event(self, event: pygame.event.Event) -> None:
        """Feed one pygame event; unrelated event types are ignored."""
        handler = self._handlers.get(event.type)
        if handler is not None:
            handler(event)

    def update(self) -> None:
        """
        Close the current frame.

        Call once per frame after feeding all pygame events. Edge sets
        compare against the previous frame's held actions.
        """
        held = self._state.actions_pressed
        self._state.actions_just_pressed = held - self._prev_actions
        self._state.actions_just_released = self._prev_actions - held

        if self.event_bus:
            self._publish(InputEvent.ACTION_PRESSED, self._state.actions_just_pressed)
            self._publish(InputEvent.ACTION_RELEASED, self._state.actions_just_released)

        self._prev_actions = set(held)
        self._state.mouse_clicked = False

    def reset(self) -> None:
        """Forget everything held, e.g. after the window loses focus."""
        self._state = InputState(mouse_pos=self._state.mouse_pos)
        self._prev_actions = set()

    def _publish(self, event_type: InputEvent, actions: Iterable[Action]) -> None:
        for action in actions:
            self.event_bus.publish(event_type, action=action)

    # Event handlers

    def _press(self, actions: Iterable[Action]) -> None:
        self._state.actions_pressed.update(actions)

    def _release(self, actions: Iterable[Action]) -> None:
        """Release actions unless another bound key still holds them."""
        for action in actions:
            still_held = any(
                key in self._state.keys_pressed
                for key in self._key_bindings.get(action, [])
            )
            if not still_held:
                self._state.actions_pressed.discard(action)

    def _on_key(self, key: int, down: bool) -> None:
        actions = self._actions_by_key.get(key, [])
        if down:
            self._state.keys_pressed.add(key)
            self._press(actions)
        else:
            self._state.keys_pressed.discard(key)
            self._release(actions)

    def _on_mouse_motion(self, event: pygame.event.Event) -> None:
        self._state.mouse_pos = tuple(event.pos)

    def _on_mouse_button(self, button: int, down: bool) -> None:
        if button != CLICK_BUTTON:
            return
        if down:
            self._state.mouse_clicked = True
            self._press([Action.CONFIRM])
        else:
            self._release([Action.CONFIRM])

    def _on_gamepad_button(self, button: int, down: bool) -> None:
        actions = [a for a, buttons in self._button_bindings.items() if button in buttons]
        if down:
            self._press(actions)
        else:
            self._state.actions_pressed.difference_update(actions)

    def _on_hat(self, value: tuple[int, int]) -> None:
        # The hat reports absolute positions, so clear every hat action first
        self._state.actions_pressed.difference_update(self._hat_bindings.values())
        action = self._hat_bindings.get(value)
        if action is not None:
            self._press([action])

    def _on_gamepad_change(self, connected: bool) -> None:
        self._scan_gamepads()
        if connected and self.event_bus:
            self.event_bus.publish(InputEvent.GAMEPAD_CONNECTED)
