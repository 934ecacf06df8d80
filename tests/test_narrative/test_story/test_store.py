import pytest
from frameg.core.errors import ContentIntegrityError, UnknownStoryError
from narrative.progress.view import ProgressSnapshot
from narrative.story.entry import Chapter, Locked, Prelude
from narrative.story.model import (
    Background,
    Branch,
    CharacterName,
    Choice,
    End,
    Next,
    SimpleText,
    Story,
    StoryEntry,
)
from narrative.story.store import StoryGraphStore

def test_components_at(store):
    components = store.components_at("prologue", 0)

    assert [c.kind for c in components] == ["simple_text", "background"]
    # Repeated queries return the same content
    assert store.components_at("prologue", 0) == components

def test_components_at_missing_step(store):
    assert store.components_at("prologue", 42) == ()
    assert store.controller_at("prologue", 42) is None

def test_unknown_story(store):
    assert not store.has_story("nowhere")
    with pytest.raises(UnknownStoryError) as exc:
        store.components_at("nowhere", 0)
    assert exc.value.missing_id == "nowhere"
    with pytest.raises(UnknownStoryError):
        store.story("nowhere")

def test_last_step(store):
    assert store.last_step("prologue") == 2
    assert store.last_step("secret") == 0

    empty = StoryGraphStore([Story(id="empty")])
    assert empty.last_step("empty") == -1

def test_entries_at_same_step_merge():
    line = SimpleText(text="Hi", speaker=CharacterName(name="a"))
    story = Story(id="s", entries=(
        StoryEntry(step=0, components=(Background(image_ref="bg"),)),
        StoryEntry(step=0, controller=End(), components=(line,)),
    ))
    store = StoryGraphStore([story])

    assert store.components_at("s", 0) == (Background(image_ref="bg"), line)
    assert store.controller_at("s", 0) == End()

def test_conflicting_controllers_rejected():
    story = Story(id="s", entries=(
        StoryEntry(step=0, controller=End()),
        StoryEntry(step=0, controller=Next(target="s")),
    ))
    with pytest.raises(ContentIntegrityError) as exc:
        StoryGraphStore([story])
    assert exc.value.story_id == "s"
    assert exc.value.step == 0

def test_duplicate_story_ids_rejected():
    with pytest.raises(ContentIntegrityError):
        StoryGraphStore([Story(id="a"), Story(id="a")])

def test_validate_references(store):
    store.validate_references()

def test_validate_references_names_origin():
    story = Story(id="s", entries=(
        StoryEntry(step=0),
        StoryEntry(step=3, controller=Branch(choices=(Choice(text="?", next_story="ghost"),))),
    ))
    store = StoryGraphStore([story])

    with pytest.raises(UnknownStoryError) as exc:
        store.validate_references()
    assert exc.value.missing_id == "ghost"
    assert exc.value.story_id == "s"
    assert exc.value.step == 3

def test_validate_chapter_references():
    store = StoryGraphStore([Story(id="a")], chapters={0: Chapter(story_id="missing")})
    with pytest.raises(ContentIntegrityError):
        store.validate_references()

def test_chapter_gating():
    chapters = {
        0: Chapter(story_id="a", condition=Prelude()),
        1: Chapter(story_id="b", condition=Locked(fore_chapter=0)),
        2: Chapter(story_id="c", condition=Locked(fore_chapter=1)),
    }
    store = StoryGraphStore([Story(id="a"), Story(id="b"), Story(id="c")], chapters=chapters)

    fresh = ProgressSnapshot()
    assert store.unlocked_chapters(fresh) == [0]

    after_first = ProgressSnapshot(chapters=frozenset({0}))
    assert store.chapter_is_unlocked(1, after_first)
    assert not store.chapter_is_unlocked(2, after_first)
    assert store.unlocked_chapters(after_first) == [0, 1]

    # Missing progress keeps locked chapters closed
    assert store.unlocked_chapters(None) == [0]

def test_chapter_lookup_error_counts_as_locked():
    class BrokenProgress:
        def completion_count(self, story_id):
            return 0

        def unlocked_endings(self):
            return frozenset()

        def is_chapter_completed(self, index):
            raise KeyError(index)

    chapters = {0: Chapter(story_id="a"), 1: Chapter(story_id="a", condition=Locked(fore_chapter=0))}
    store = StoryGraphStore([Story(id="a")], chapters=chapters)

    assert not store.chapter_is_unlocked(1, BrokenProgress())

def test_unknown_chapter(store):
    with pytest.raises(ContentIntegrityError):
        store.chapter(7)
