"""
Entry manifest - title, UI layout and chapter gating.

The manifest is the top-level content file. Single-story games name the
story to start; multi-story games list chapters, each gated by a
ChapterCondition.
"""

from __future__ import annotations

from typing import Annotated, Literal, Optional, Union

from pydantic import Field, model_validator

from narrative.story.model import ContentModel


class Prelude(ContentModel):
    """Always playable."""
    kind: Literal["prelude"] = "prelude"


class Locked(ContentModel):
    """Playable once chapter ``fore_chapter`` has been completed."""
    kind: Literal["locked"] = "locked"
    fore_chapter: int = Field(ge=0)


ChapterCondition = Annotated[
    Union[Prelude, Locked],
    Field(discriminator="kind"),
]


class Chapter(ContentModel):
    """A selectable story in the chapter index."""
    condition: ChapterCondition = Field(default_factory=Prelude)
    story_id: str
    title: str = ""


class WidgetLayout(ContentModel):
    """Placement of one UI widget, in unzoomed layout units."""
    position: tuple[float, float] = (0.0, 0.0)
    scale: tuple[float, float] = (1.0, 1.0)
    text_size: Optional[float] = None

    def zoomed(self, zoom: float) -> WidgetLayout:
        """Layout scaled for a window preset."""
        return WidgetLayout(
            position=(self.position[0] * zoom, self.position[1] * zoom),
            scale=(self.scale[0] * zoom, self.scale[1] * zoom),
            text_size=self.text_size * zoom if self.text_size is not None else None,
        )


class EntryManifest(ContentModel):
    """
    Top-level game description.

    Attributes:
        name: Window title
        has_multi_story: Whether the player picks chapters from an index
        start_story: Story played by "New Game" in single-story mode
        ui: Named screens mapping widget names to layouts
        chapters: Chapter index -> chapter (multi-story mode)
    """
    name: str
    has_multi_story: bool = False
    start_story: Optional[str] = None
    ui: dict[str, dict[str, WidgetLayout]] = Field(default_factory=dict)
    chapters: dict[int, Chapter] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check_mode(self) -> EntryManifest:
        if self.has_multi_story:
            if not self.chapters:
                raise ValueError("multi-story manifest must declare chapters")
        elif not self.start_story:
            raise ValueError("single-story manifest must name start_story")

        for index, chapter in self.chapters.items():
            condition = chapter.condition
            if isinstance(condition, Locked):
                if condition.fore_chapter == index:
                    raise ValueError(f"chapter {index} is locked behind itself")
                if condition.fore_chapter not in self.chapters:
                    raise ValueError(
                        f"chapter {index} is locked behind unknown chapter {condition.fore_chapter}"
                    )
        return self

    def widget(self, screen: str, name: str) -> Optional[WidgetLayout]:
        """Get a widget layout, or None if the manifest omits it."""
        return self.ui.get(screen, {}).get(name)

    @property
    def story_ids(self) -> list[str]:
        """Stories the manifest refers to."""
        ids = [chapter.story_id for _, chapter in sorted(self.chapters.items())]
        if self.start_story and self.start_story not in ids:
            ids.insert(0, self.start_story)
        return ids
