import json
from pathlib import Path
import pytest
from frameg.core.errors import ContentIntegrityError, ContentLoadError, UnknownStoryError
from narrative.story.loader import (
    dump_entry,
    dump_story,
    load_content,
    load_entry,
    load_stories,
    load_story,
    story_from_dict,
    story_to_dict,
)
from narrative.story.model import (
    Branch,
    CharacterName,
    CharacterSprite,
    End,
    If,
    SimpleText,
    Story,
    StoryEntry,
    UnlockedDifferentEnd,
)

RESOURCES = Path(__file__).parents[3] / "resources"

def write_json(path, data):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")
    return path

def minimal_story(story_id, controller=None):
    return {
        "id": story_id,
        "entries": [{
            "step": 0,
            "controller": controller or {"kind": "end"},
            "components": [{"kind": "simple_text", "text": "...", "speaker": {"name": "a"}}],
        }],
    }

def test_story_round_trip(stories, tmp_path):
    for story in stories:
        path = tmp_path / f"{story.id}.json"
        dump_story(story, path)
        loaded = load_story(path)
        assert loaded == story
        assert loaded.content == story.content

def test_story_round_trip_shared_step_and_endings_lock(tmp_path):
    gate = If(lock=UnlockedDifferentEnd(endings=("good", "true")), target="true_route")
    story = Story(id="finale", entries=(
        StoryEntry(step=0, components=(
            SimpleText(text="It ends here.", speaker=CharacterName(name="alice")),
        )),
        StoryEntry(step=0, controller=gate, components=(
            SimpleText(text="Unless...", speaker=CharacterName(name="bob")),
        )),
        StoryEntry(step=1, controller=End()),
    ))
    path = tmp_path / "finale.json"

    dump_story(story, path)
    loaded = load_story(path)

    assert loaded == story
    assert loaded.content == story.content
    assert set(loaded.content) == {(None, 0), (gate, 0), (End(), 1)}
    assert loaded.entries[1].controller.lock.endings == ("good", "true")

def test_story_from_dict_sparse_branch():
    story = story_from_dict({
        "id": "pick",
        "entries": [{
            "step": 0,
            "controller": {"kind": "branch", "slots": [
                {"text": "A", "next_story": "a"}, None, {"text": "B", "next_story": "b"},
            ]},
        }],
    })
    branch = story.entries[0].controller
    assert isinstance(branch, Branch)
    assert [c.next_story for c in branch.choices] == ["a", "b"]
    # Serialized form is the compacted one
    assert "choices" in story_to_dict(story)["entries"][0]["controller"]

def test_schema_violation_names_location():
    with pytest.raises(ContentLoadError) as exc:
        story_from_dict({"id": "bad", "entries": [{"step": -1}]}, source="bad.json")
    message = str(exc.value)
    assert "bad.json" in message
    assert "entries/0/step" in message

def test_unknown_field_rejected():
    with pytest.raises(ContentLoadError):
        story_from_dict({"id": "bad", "entries": [], "extra": 1})

def test_model_violation_reported_as_load_error():
    data = minimal_story("bad")
    data["entries"].append(dict(data["entries"][0]))
    with pytest.raises(ContentLoadError) as exc:
        story_from_dict(data, source="bad.json")
    assert "duplicate" in str(exc.value)

def test_too_many_slots_rejected():
    data = minimal_story("bad", {"kind": "branch", "slots": [None] * 6})
    with pytest.raises(ContentLoadError):
        story_from_dict(data)

def test_missing_and_invalid_files(tmp_path):
    with pytest.raises(ContentLoadError):
        load_story(tmp_path / "missing.json")

    broken = tmp_path / "broken.json"
    broken.write_text("{", encoding="utf-8")
    with pytest.raises(ContentLoadError) as exc:
        load_story(broken)
    assert exc.value.path == broken

def test_load_stories_mixed_formats(tmp_path):
    write_json(tmp_path / "a.json", minimal_story("a"))
    (tmp_path / "b.story").write_text("@ 0\nbob: Hi.\n!end\n", encoding="utf-8")
    (tmp_path / "notes.txt").write_text("ignored", encoding="utf-8")

    stories = load_stories(tmp_path)

    assert sorted(s.id for s in stories) == ["a", "b"]

def test_load_stories_duplicate_ids(tmp_path):
    write_json(tmp_path / "a.json", minimal_story("same"))
    write_json(tmp_path / "b.json", minimal_story("same"))
    with pytest.raises(ContentIntegrityError):
        load_stories(tmp_path)

def test_load_stories_missing_directory(tmp_path):
    with pytest.raises(ContentLoadError):
        load_stories(tmp_path / "nope")

def test_entry_round_trip(tmp_path):
    path = write_json(tmp_path / "entry.json", {
        "name": "Game",
        "has_multi_story": True,
        "chapters": {
            "0": {"story_id": "a"},
            "1": {"story_id": "b", "condition": {"kind": "locked", "fore_chapter": 0}},
        },
    })
    entry = load_entry(path)
    assert entry.chapters[1].condition.fore_chapter == 0

    out = tmp_path / "copy" / "entry.json"
    dump_entry(entry, out)
    assert load_entry(out) == entry

def test_entry_bad_chapter_key(tmp_path):
    path = write_json(tmp_path / "entry.json", {
        "name": "Game",
        "has_multi_story": True,
        "chapters": {"first": {"story_id": "a"}},
    })
    with pytest.raises(ContentLoadError):
        load_entry(path)

def test_load_content(tmp_path):
    write_json(tmp_path / "entry.json", {"name": "Game", "start_story": "a"})
    write_json(tmp_path / "stories" / "a.json", minimal_story("a", {"kind": "next", "target": "b"}))
    write_json(tmp_path / "stories" / "b.json", minimal_story("b"))

    content = load_content(tmp_path)

    assert content.entry.name == "Game"
    assert sorted(content.store.story_ids) == ["a", "b"]

def test_load_content_dangling_reference(tmp_path):
    write_json(tmp_path / "entry.json", {"name": "Game", "start_story": "a"})
    write_json(tmp_path / "stories" / "a.json", minimal_story("a", {"kind": "next", "target": "ghost"}))

    with pytest.raises(UnknownStoryError) as exc:
        load_content(tmp_path)
    assert exc.value.missing_id == "ghost"
    assert exc.value.story_id == "a"

def test_load_content_missing_start_story(tmp_path):
    write_json(tmp_path / "entry.json", {"name": "Game", "start_story": "ghost"})
    write_json(tmp_path / "stories" / "a.json", minimal_story("a"))

    with pytest.raises(ContentIntegrityError):
        load_content(tmp_path)

def test_load_content_bad_script_number(tmp_path):
    write_json(tmp_path / "entry.json", {"name": "Game", "start_story": "a"})
    (tmp_path / "stories").mkdir()
    (tmp_path / "stories" / "a.story").write_text(
        "@ 0\nsprite al smile at ., 4\n!end\n", encoding="utf-8"
    )

    with pytest.raises(ContentLoadError) as exc:
        load_content(tmp_path)
    assert "a.story" in str(exc.value)
    assert "line 2" in str(exc.value)

def test_bundled_resources_load():
    content = load_content(RESOURCES)

    store = content.store
    assert content.entry.has_multi_story
    assert store.has_story("prologue")

    gate = store.controller_at("tree", 0)
    assert isinstance(gate, If)
    assert isinstance(store.controller_at("home", 0), End)

    branch = store.controller_at("morning", 1)
    assert [c.next_story for c in branch.choices] == ["home", "lights"]

    sprites = [c for c in store.components_at("prologue", 0) if isinstance(c, CharacterSprite)]
    assert sprites[0].character.position == (0.3, 0.8)
