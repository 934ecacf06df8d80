"""
Content loading - stories and the entry manifest.

Layout of a content root:

    resources/
        entry.json          manifest (title, UI layout, chapters)
        stories/
            prologue.json   one file per story, keyed by story id
            epilogue.story  text scripts are compiled on load

Every document is checked against its JSON Schema, then turned into
pydantic models. Any failure is fatal and names the offending file:
broken content means a broken install, not a runtime condition.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import jsonschema
from pydantic import ValidationError

from frameg.core.errors import ContentIntegrityError, ContentLoadError
from narrative.story.entry import EntryManifest
from narrative.story.model import Story
from narrative.story.schemas import ENTRY_SCHEMA, STORY_SCHEMA
from narrative.story.store import StoryGraphStore

logger = logging.getLogger(__name__)

STORY_SUFFIX = ".json"
SCRIPT_SUFFIX = ".story"


def _read_json(path: Path) -> Any:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except FileNotFoundError:
        raise ContentLoadError(path, "file not found") from None
    except json.JSONDecodeError as e:
        raise ContentLoadError(path, f"invalid JSON: {e}") from e


def _validate_schema(data: Any, schema: dict, source: Path | str) -> None:
    try:
        jsonschema.validate(instance=data, schema=schema)
    except jsonschema.ValidationError as e:
        location = "/".join(str(part) for part in e.absolute_path) or "<root>"
        raise ContentLoadError(source, f"schema violation at {location}: {e.message}") from e


def _format_validation_error(error: ValidationError) -> str:
    first = error.errors()[0]
    location = "/".join(str(part) for part in first["loc"]) or "<root>"
    return f"{location}: {first['msg']}"


# Stories

def story_from_dict(data: Any, source: Path | str = "<memory>") -> Story:
    """Build a Story from its JSON form."""
    _validate_schema(data, STORY_SCHEMA, source)
    try:
        return Story.model_validate(data)
    except ValidationError as e:
        raise ContentLoadError(source, _format_validation_error(e)) from e


def story_to_dict(story: Story) -> dict:
    """JSON form of a Story; story_from_dict() reads it back unchanged."""
    return story.model_dump(mode="json")


def load_story(path: Path | str) -> Story:
    """Load one story file (JSON or text script)."""
    path = Path(path)

    if path.suffix == SCRIPT_SUFFIX:
        from narrative.story.script import StoryScriptParser
        return StoryScriptParser().parse_file(path)

    story = story_from_dict(_read_json(path), source=path)
    if story.id != path.stem:
        logger.warning(f"Story id {story.id!r} does not match file name {path.name}")
    return story


def dump_story(story: Story, path: Path | str) -> None:
    """Write a story as JSON."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(story_to_dict(story), f, indent=2, ensure_ascii=False)


def load_stories(directory: Path | str) -> list[Story]:
    """
    Load every story in a directory.

    Raises:
        ContentLoadError: if the directory is missing or a file is invalid
        ContentIntegrityError: if two files declare the same story id
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise ContentLoadError(directory, "story directory not found")

    paths = sorted(
        p for p in directory.iterdir()
        if p.suffix in (STORY_SUFFIX, SCRIPT_SUFFIX) and p.is_file()
    )

    stories: dict[str, Story] = {}
    for path in paths:
        story = load_story(path)
        if story.id in stories:
            raise ContentIntegrityError(f"Duplicate story id in {path.name}", story_id=story.id)
        stories[story.id] = story

    logger.info(f"Loaded {len(stories)} stories from {directory}")
    return list(stories.values())


# Manifest

def load_entry(path: Path | str) -> EntryManifest:
    """Load the entry manifest."""
    path = Path(path)
    data = _read_json(path)
    _validate_schema(data, ENTRY_SCHEMA, path)
    try:
        return EntryManifest.model_validate(data)
    except ValidationError as e:
        raise ContentLoadError(path, _format_validation_error(e)) from e


def dump_entry(entry: EntryManifest, path: Path | str) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        f.write(entry.model_dump_json(indent=2))


@dataclass(frozen=True)
class LoadedContent:
    """Everything loaded from a content root."""
    entry: EntryManifest
    store: StoryGraphStore


def load_content(
    root: Path | str,
    entry_name: str = "entry.json",
    stories_dir: str = "stories",
) -> LoadedContent:
    """
    Load and cross-check a content root.

    Raises:
        ContentError: on any unreadable, invalid or inconsistent content
    """
    root = Path(root)
    entry = load_entry(root / entry_name)
    stories = load_stories(root / stories_dir)

    store = StoryGraphStore(stories, chapters=entry.chapters)
    store.validate_references()

    if entry.start_story and not store.has_story(entry.start_story):
        raise ContentIntegrityError(f"Manifest start story {entry.start_story!r} is not loaded")

    logger.info(f"Loaded '{entry.name}' from {root}")
    return LoadedContent(entry=entry, store=store)
