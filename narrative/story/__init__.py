"""
Story content - data model, graph store, locks and loading.
"""

from narrative.story.model import (
    MAX_CHOICES,
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
    RenderLayer,
    ScreenEffect,
    SimpleText,
    Story,
    StoryComponent,
    StoryController,
    StoryEntry,
    StoryLock,
    UnlockedDifferentEnd,
)
from narrative.story.entry import Chapter, ChapterCondition, EntryManifest, Locked, Prelude, WidgetLayout
from narrative.story.locks import EndingMatch, LockEvaluator, is_satisfied
from narrative.story.store import StoryGraphStore
from narrative.story.loader import (
    LoadedContent,
    dump_entry,
    dump_story,
    load_content,
    load_entry,
    load_stories,
    load_story,
    story_from_dict,
    story_to_dict,
)
from narrative.story.script import StoryScriptParser, compile_story_file

__all__ = [
    "MAX_CHOICES",
    "Background",
    "Branch",
    "Character",
    "CharacterName",
    "CharacterSprite",
    "Choice",
    "CutIn",
    "End",
    "If",
    "MultiTimesPlay",
    "Next",
    "RenderLayer",
    "ScreenEffect",
    "SimpleText",
    "Story",
    "StoryComponent",
    "StoryController",
    "StoryEntry",
    "StoryLock",
    "UnlockedDifferentEnd",
    "Chapter",
    "ChapterCondition",
    "EntryManifest",
    "Locked",
    "Prelude",
    "WidgetLayout",
    "EndingMatch",
    "LockEvaluator",
    "is_satisfied",
    "StoryGraphStore",
    "LoadedContent",
    "dump_entry",
    "dump_story",
    "load_content",
    "load_entry",
    "load_stories",
    "load_story",
    "story_from_dict",
    "story_to_dict",
    "StoryScriptParser",
    "compile_story_file",
]
