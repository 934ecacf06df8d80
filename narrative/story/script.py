"""
Story script parser - compiles human-editable text scripts to stories.

Script format:

```
= prologue
// comments start with two slashes

@ 0
bg forest_day
sprite alice smile at 0.3, 0.8 scale 1.0, 1.0
alice: We should turn back.

@ 1
fx shake
cg wolf_attack
bob: Run!
>> Hide in the cave -> cave
>> Climb the tree -> tree

@ 2
alice: Something feels familiar.
?? plays 2 -> secret_path

@ 3
?? endings good, true -> true_route

@ 4
-> epilogue

@ 5
!end
```

``= id`` names the story (defaults to the file name). ``@ n`` opens the
block for step ``n``. A step carries at most one controller: choices
(``>>``), a redirect (``->``), a conditional redirect (``??``) or
``!end``.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from frameg.core.errors import ContentLoadError
from narrative.story.model import (
    Background,
    Branch,
    Character,
    CharacterName,
    CharacterSprite,
    Choice,
    CutIn,
    End,
    If,
    MultiTimesPlay,
    Next,
    ScreenEffect,
    SimpleText,
    Story,
    StoryEntry,
    UnlockedDifferentEnd,
)

logger = logging.getLogger(__name__)


@dataclass
class _StepBlock:
    """A step being assembled."""
    step: int
    line: int
    components: list = field(default_factory=list)
    choices: list[Choice] = field(default_factory=list)
    controller: Optional[object] = None


class StoryScriptParser:
    """
    Parses story scripts from the text format above.
    """

    ID_PATTERN = re.compile(r'^=\s*(\S+)\s*$')
    STEP_PATTERN = re.compile(r'^@\s*(\d+)\s*$')
    IMAGE_PATTERN = re.compile(r'^(bg|cg|fx)\s+(\S+)\s*$')
    SPRITE_PATTERN = re.compile(
        r'^sprite\s+(\S+)\s+(\S+)'
        r'(?:\s+at\s+(-?\d+(?:\.\d+)?)\s*,\s*(-?\d+(?:\.\d+)?))?'
        r'(?:\s+scale\s+(\d+(?:\.\d+)?)\s*,\s*(\d+(?:\.\d+)?))?\s*$'
    )
    CHOICE_PATTERN = re.compile(r'^>>\s*(.+?)\s*->\s*(\S+)\s*$')
    NEXT_PATTERN = re.compile(r'^->\s*(\S+)\s*$')
    IF_PATTERN = re.compile(r'^\?\?\s*(plays|endings)\s+(.+?)\s*->\s*(\S+)\s*$')
    END_PATTERN = re.compile(r'^!end\s*$')
    DIALOG_PATTERN = re.compile(r'^([^:>@=?!]+?)\s*:\s*(.+)$')

    def parse_file(self, path: str | Path) -> Story:
        """Parse a story script file."""
        path = Path(path)
        try:
            with open(path, 'r', encoding='utf-8') as f:
                content = f.read()
        except FileNotFoundError:
            raise ContentLoadError(path, "file not found") from None

        return self.parse_string(content, default_id=path.stem, source=path)

    def parse_string(
        self,
        content: str,
        default_id: str = "parsed",
        source: str | Path = "<string>",
    ) -> Story:
        """Parse a story script string."""
        story_id = default_id
        blocks: list[_StepBlock] = []
        current: Optional[_StepBlock] = None

        for number, raw in enumerate(content.split('\n'), start=1):
            line = raw.strip()

            if not line or line.startswith('//'):
                continue

            def fail(message: str) -> ContentLoadError:
                return ContentLoadError(source, f"line {number}: {message}")

            match = self.ID_PATTERN.match(line)
            if match:
                if blocks:
                    raise fail("story id must come before the first step")
                story_id = match.group(1)
                continue

            match = self.STEP_PATTERN.match(line)
            if match:
                step = int(match.group(1))
                if any(block.step == step for block in blocks):
                    raise fail(f"step {step} declared twice")
                current = _StepBlock(step=step, line=number)
                blocks.append(current)
                continue

            if current is None:
                raise fail("content before the first '@ step' marker")

            if self._parse_component(line, current):
                continue

            if self._parse_controller(line, current, fail):
                continue

            raise fail(f"unrecognised line: {line!r}")

        return self._build_story(story_id, blocks, source)

    def _parse_component(self, line: str, block: _StepBlock) -> bool:
        """Append a component described by ``line``; False if it isn't one."""
        match = self.IMAGE_PATTERN.match(line)
        if match:
            tag, ref = match.groups()
            if tag == 'bg':
                block.components.append(Background(image_ref=ref, step=block.step))
            elif tag == 'cg':
                block.components.append(CutIn(image_ref=ref, step=block.step))
            else:
                block.components.append(ScreenEffect(effect_ref=ref, step=block.step))
            return True

        match = self.SPRITE_PATTERN.match(line)
        if match:
            name, face, x, y, w, h = match.groups()
            character = Character(
                name=name,
                face=face,
                position=(float(x), float(y)) if x is not None else (0.0, 0.0),
                scale=(float(w), float(h)) if w is not None else (1.0, 1.0),
            )
            block.components.append(CharacterSprite(character=character, step=block.step))
            return True

        match = self.DIALOG_PATTERN.match(line)
        if match:
            speaker, text = match.groups()
            block.components.append(
                SimpleText(text=text, speaker=CharacterName(name=speaker))
            )
            return True

        return False

    def _parse_controller(self, line: str, block: _StepBlock, fail) -> bool:
        """Attach the controller described by ``line``; False if it isn't one."""
        match = self.CHOICE_PATTERN.match(line)
        if match:
            if block.controller is not None:
                raise fail(f"step {block.step} already has a controller")
            block.choices.append(Choice(text=match.group(1), next_story=match.group(2)))
            return True

        controller = None
        match = self.NEXT_PATTERN.match(line)
        if match:
            controller = Next(target=match.group(1))

        match = self.IF_PATTERN.match(line)
        if match:
            mode, argument, target = match.groups()
            if mode == 'plays':
                if not argument.isdigit():
                    raise fail(f"play count must be a number, got {argument!r}")
                controller = If(lock=MultiTimesPlay(threshold=int(argument)), target=target)
            else:
                endings = tuple(part.strip() for part in argument.split(',') if part.strip())
                controller = If(lock=UnlockedDifferentEnd(endings=endings), target=target)

        if self.END_PATTERN.match(line):
            controller = End()

        if controller is None:
            return False

        if block.controller is not None or block.choices:
            raise fail(f"step {block.step} already has a controller")
        block.controller = controller
        return True

    def _build_story(self, story_id: str, blocks: list[_StepBlock], source) -> Story:
        entries = []
        for block in blocks:
            controller = block.controller
            if block.choices:
                try:
                    controller = Branch(choices=tuple(block.choices))
                except ValidationError as e:
                    raise ContentLoadError(
                        source, f"line {block.line}: invalid choices for step {block.step}: {e.errors()[0]['msg']}"
                    ) from e
            entries.append(
                StoryEntry(step=block.step, controller=controller, components=tuple(block.components))
            )

        return Story(id=story_id, entries=tuple(entries))


def compile_story_file(input_path: str | Path, output_path: Optional[str | Path] = None) -> Path:
    """
    Compile a story script to JSON.

    Args:
        input_path: Path to a .story file
        output_path: Path to the output .json file (default: same name with .json)

    Returns:
        The path written
    """
    from narrative.story.loader import story_to_dict

    input_path = Path(input_path)
    output_path = input_path.with_suffix('.json') if output_path is None else Path(output_path)

    story = StoryScriptParser().parse_file(input_path)
    with open(output_path, 'w', encoding='utf-8') as f:
        json.dump(story_to_dict(story), f, indent=2, ensure_ascii=False)

    logger.info(f"Compiled {input_path} -> {output_path}")
    return output_path
