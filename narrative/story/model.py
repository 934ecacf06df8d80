"""
Story content model.

Authored stories are immutable pydantic models. Every tagged variant
(components, controllers, locks) carries a ``kind`` literal and is
grouped into a discriminated union, so adding a variant means adding a
class here and a branch everywhere the union is matched.

A story maps ``(controller, step)`` keys to ordered component lists:

    story.content[(None, 0)]        -> [Background, SimpleText]
    story.content[(End(), 4)]       -> [SimpleText]
"""

from __future__ import annotations

from enum import IntEnum
from typing import Annotated, Any, ClassVar, Literal, Mapping, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Branch controllers offer at most this many choices
MAX_CHOICES = 5


class ContentModel(BaseModel):
    """Base for authored content: frozen, hashable, strict about fields."""

    model_config = ConfigDict(frozen=True, extra='forbid')


class RenderLayer(IntEnum):
    """Draw order of components sharing a step (lowest first)."""
    SCENERY = 0
    SPRITE = 1
    EFFECT = 2
    TEXT = 3


# Speakers and sprites

class CharacterName(ContentModel):
    """Identifies who is speaking a line of dialog."""
    name: str


class Character(ContentModel):
    """
    A character sprite placement.

    Attributes:
        name: Character identifier (used to resolve sprite assets)
        face: Expression identifier
        position: Screen position (x, y) in layout units
        scale: Sprite size (width, height) in layout units
    """
    name: str
    face: str
    position: tuple[float, float] = (0.0, 0.0)
    scale: tuple[float, float] = (1.0, 1.0)


# Story components

class SimpleText(ContentModel):
    """A line of dialog attributed to a speaker."""
    kind: Literal["simple_text"] = "simple_text"
    text: str
    speaker: CharacterName

    render_layer: ClassVar[RenderLayer] = RenderLayer.TEXT


class Background(ContentModel):
    """Full screen scenery image."""
    kind: Literal["background"] = "background"
    image_ref: str
    step: int = Field(default=0, ge=0)

    render_layer: ClassVar[RenderLayer] = RenderLayer.SCENERY


class CutIn(ContentModel):
    """Event illustration (CG) drawn in place of the background."""
    kind: Literal["cut_in"] = "cut_in"
    image_ref: str
    step: int = Field(default=0, ge=0)

    render_layer: ClassVar[RenderLayer] = RenderLayer.SCENERY


class ScreenEffect(ContentModel):
    """Screen-wide effect such as a flash or shake."""
    kind: Literal["screen_effect"] = "screen_effect"
    effect_ref: str
    step: int = Field(default=0, ge=0)

    render_layer: ClassVar[RenderLayer] = RenderLayer.EFFECT


class CharacterSprite(ContentModel):
    """A character drawn on screen."""
    kind: Literal["character_sprite"] = "character_sprite"
    character: Character
    step: int = Field(default=0, ge=0)

    render_layer: ClassVar[RenderLayer] = RenderLayer.SPRITE


StoryComponent = Annotated[
    Union[SimpleText, Background, CutIn, ScreenEffect, CharacterSprite],
    Field(discriminator="kind"),
]


# Locks

class MultiTimesPlay(ContentModel):
    """Satisfied once the owning story has been completed ``threshold`` times."""
    kind: Literal["multi_times_play"] = "multi_times_play"
    threshold: int = Field(ge=0)


class UnlockedDifferentEnd(ContentModel):
    """Satisfied depending on which endings the player has unlocked."""
    kind: Literal["unlocked_different_end"] = "unlocked_different_end"
    endings: tuple[str, ...] = ()


StoryLock = Annotated[
    Union[MultiTimesPlay, UnlockedDifferentEnd],
    Field(discriminator="kind"),
]


# Controllers

class Choice(ContentModel):
    """A selectable branch option."""
    text: str
    next_story: str


class Branch(ContentModel):
    """
    Presents choices and waits for the player to pick one.

    Authored content may use the sparse form ``{"slots": [choice, null,
    ...]}`` with up to five slots. Empty slots are dropped here, once, and
    the present choices keep their relative order, so index ``n`` of
    ``choices`` is the n-th visible option.
    """
    kind: Literal["branch"] = "branch"
    choices: tuple[Choice, ...] = Field(min_length=1, max_length=MAX_CHOICES)

    @model_validator(mode="before")
    @classmethod
    def _compact_slots(cls, data: Any) -> Any:
        if isinstance(data, dict) and "slots" in data:
            if "choices" in data:
                raise ValueError("branch takes either 'slots' or 'choices', not both")
            data = dict(data)
            slots = data.pop("slots")
            if len(slots) > MAX_CHOICES:
                raise ValueError(f"branch has {len(slots)} slots, at most {MAX_CHOICES} allowed")
            data["choices"] = [slot for slot in slots if slot is not None]
        return data

    @classmethod
    def from_slots(cls, slots: Sequence[Optional[Choice]]) -> Branch:
        return cls.model_validate({"slots": list(slots)})


class Next(ContentModel):
    """Redirects to another story without waiting for input."""
    kind: Literal["next"] = "next"
    target: str


class If(ContentModel):
    """Redirects to ``target`` only while ``lock`` is satisfied."""
    kind: Literal["if"] = "if"
    lock: StoryLock
    target: str


class End(ContentModel):
    """Terminates playback."""
    kind: Literal["end"] = "end"


StoryController = Annotated[
    Union[Branch, Next, If, End],
    Field(discriminator="kind"),
]


def controller_targets(controller: Optional[StoryController]) -> tuple[str, ...]:
    """Story ids a controller can lead to."""
    if controller is None or isinstance(controller, End):
        return ()
    if isinstance(controller, Branch):
        return tuple(choice.next_story for choice in controller.choices)
    if isinstance(controller, (Next, If)):
        return (controller.target,)
    raise TypeError(f"Unknown controller type: {type(controller).__name__}")


# Stories

ContentKey = tuple[Optional[StoryController], int]


class StoryEntry(ContentModel):
    """Components shown at one step, with the controller attached to it."""
    step: int = Field(ge=0)
    controller: Optional[StoryController] = None
    components: tuple[StoryComponent, ...] = ()

    @property
    def key(self) -> ContentKey:
        return (self.controller, self.step)


class Story(ContentModel):
    """
    One authored story.

    Entries are kept in authored order; each ``(controller, step)`` key
    may appear only once.
    """
    id: str = Field(min_length=1)
    entries: tuple[StoryEntry, ...] = ()

    @model_validator(mode="after")
    def _check_unique_keys(self) -> Story:
        seen: set[ContentKey] = set()
        for entry in self.entries:
            if entry.key in seen:
                raise ValueError(
                    f"story {self.id!r} has duplicate entries for step {entry.step}"
                )
            seen.add(entry.key)
        return self

    @property
    def content(self) -> dict[ContentKey, list]:
        """The ``(controller, step) -> components`` mapping."""
        return {entry.key: list(entry.components) for entry in self.entries}

    @property
    def steps(self) -> list[int]:
        """Distinct authored steps, ascending."""
        return sorted({entry.step for entry in self.entries})

    @classmethod
    def from_content(
        cls,
        story_id: str,
        content: Mapping[ContentKey, Sequence[Any]],
    ) -> Story:
        """Build a story from a ``(controller, step) -> components`` mapping."""
        entries = [
            StoryEntry(step=step, controller=controller, components=tuple(components))
            for (controller, step), components in content.items()
        ]
        return cls(id=story_id, entries=tuple(entries))
