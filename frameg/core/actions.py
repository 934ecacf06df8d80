"""
Input action definitions.

Actions abstract raw keys and buttons into what the player means.
Playback code asks for Action.CONFIRM, never for K_RETURN, so bindings
can change without touching the narrative engine.

Usage:
    if input.is_action_just_pressed(Action.CONFIRM):
        machine.confirm()
"""

from enum import Enum, auto

import pygame


class Action(Enum):
    """Semantic input actions for story playback."""

    # Reading
    CONFIRM = auto()
    SKIP_TEXT = auto()

    # Choice menu
    MENU_UP = auto()
    MENU_DOWN = auto()
    CHOICE_1 = auto()
    CHOICE_2 = auto()
    CHOICE_3 = auto()
    CHOICE_4 = auto()
    CHOICE_5 = auto()

    # System
    MENU = auto()
    QUICKSAVE = auto()
    QUICKLOAD = auto()


# Direct choice shortcuts, in slot order
CHOICE_ACTIONS: tuple[Action, ...] = (
    Action.CHOICE_1,
    Action.CHOICE_2,
    Action.CHOICE_3,
    Action.CHOICE_4,
    Action.CHOICE_5,
)


DEFAULT_KEY_BINDINGS: dict[Action, list[int]] = {
    Action.CONFIRM: [pygame.K_RETURN, pygame.K_SPACE, pygame.K_KP_ENTER],
    Action.SKIP_TEXT: [pygame.K_LCTRL, pygame.K_RCTRL],

    Action.MENU_UP: [pygame.K_UP, pygame.K_w],
    Action.MENU_DOWN: [pygame.K_DOWN, pygame.K_s],
    Action.CHOICE_1: [pygame.K_1, pygame.K_KP1],
    Action.CHOICE_2: [pygame.K_2, pygame.K_KP2],
    Action.CHOICE_3: [pygame.K_3, pygame.K_KP3],
    Action.CHOICE_4: [pygame.K_4, pygame.K_KP4],
    Action.CHOICE_5: [pygame.K_5, pygame.K_KP5],

    Action.MENU: [pygame.K_ESCAPE],
    Action.QUICKSAVE: [pygame.K_F5],
    Action.QUICKLOAD: [pygame.K_F9],
}

# Gamepad button bindings (SDL controller layout)
DEFAULT_GAMEPAD_BINDINGS: dict[Action, list[int]] = {
    Action.CONFIRM: [0],    # A
    Action.SKIP_TEXT: [5],  # Right bumper
    Action.MENU: [7],       # Start
}

# D-pad bindings (hat)
DEFAULT_GAMEPAD_HAT_BINDINGS: dict[tuple[int, int], Action] = {
    (0, 1): Action.MENU_UP,
    (0, -1): Action.MENU_DOWN,
}
