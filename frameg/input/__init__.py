"""Input handling - pygame events to semantic actions."""

from frameg.input.handler import InputHandler, InputEvent, InputState

__all__ = ["InputHandler", "InputEvent", "InputState"]
