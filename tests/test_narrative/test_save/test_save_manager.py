import json
import pytest
from frameg.core.errors import SaveLoadError
from narrative.playback.machine import NarrativeStateMachine
from narrative.save.manager import SaveEvent, SaveManager

@pytest.fixture
def saves(tmp_path, event_bus):
    return SaveManager(tmp_path / "saves", event_bus=event_bus)

@pytest.fixture
def machine(store, progress):
    machine = NarrativeStateMachine(store, progress)
    machine.start("prologue", step=1)
    machine.tick(40)
    return machine

def test_save_and_load_slot(saves, machine, store, progress):
    metadata = saves.save_slot(0, machine, name="At the fork")

    assert metadata.story_id == "prologue"
    assert metadata.step == 1
    assert metadata.preview == "Which way?"

    snapshot = saves.load_slot(0)
    session = NarrativeStateMachine(store, progress)
    session.restore(snapshot)

    assert session.story_id == "prologue"
    assert session.step == 1
    assert session.revealed_chars() == machine.revealed_chars()

def test_save_events(saves, machine, event_bus):
    events = []
    def on_event(event):
        events.append(event.type)
    for event_type in SaveEvent:
        event_bus.subscribe(event_type, on_event)

    saves.save_slot(1, machine)
    saves.load_slot(1)
    with pytest.raises(SaveLoadError):
        saves.load_slot(2)

    assert events == [SaveEvent.SAVE_COMPLETED, SaveEvent.LOAD_COMPLETED, SaveEvent.LOAD_FAILED]

def test_load_empty_slot(saves):
    with pytest.raises(SaveLoadError):
        saves.load_slot(3)

def test_invalid_slot(saves, machine):
    with pytest.raises(ValueError):
        saves.save_slot(10, machine)
    with pytest.raises(ValueError):
        saves.load_slot(-1)

def test_tampered_slot(saves, machine):
    saves.save_slot(0, machine)
    path = saves._get_slot_path(0)
    data = json.loads(path.read_text())
    data["playback"]["step"] = 2
    path.write_text(json.dumps(data))

    assert not saves.validate_save(0)
    with pytest.raises(SaveLoadError):
        saves.load_slot(0)
    assert saves.load_slot(0, validate=False).step == 2

def test_malformed_slot(saves):
    saves.save_path.mkdir(parents=True)
    saves._get_slot_path(0).write_text(json.dumps({"version": "1.0"}))
    with pytest.raises(SaveLoadError):
        saves.load_slot(0)

def test_non_object_slot(saves, event_bus):
    failures = []
    def on_failed(event):
        failures.append(event["slot"])
    event_bus.subscribe(SaveEvent.LOAD_FAILED, on_failed)

    saves.save_path.mkdir(parents=True)
    for document in ([1, 2], "text", None):
        saves._get_slot_path(0).write_text(json.dumps(document))

        with pytest.raises(SaveLoadError, match="malformed"):
            saves.load_slot(0)
        assert not saves.validate_save(0)
        assert saves.get_save_slots()[0] is None

    assert failures == [0, 0, 0]

def test_get_save_slots(saves, machine):
    saves.save_slot(2, machine, name="Second")

    slots = saves.get_save_slots()

    assert len(slots) == SaveManager.MAX_SLOTS
    assert slots[0] is None
    assert slots[2].name == "Second"

def test_quick_save_and_delete(saves, machine):
    assert not saves.has_quick_save()
    saves.quick_save(machine)
    assert saves.has_quick_save()
    assert saves.load_slot(SaveManager.QUICK_SAVE_SLOT).story_id == "prologue"

    assert saves.delete_save(SaveManager.QUICK_SAVE_SLOT)
    assert not saves.delete_save(SaveManager.QUICK_SAVE_SLOT)

def test_delete_invalid_slot(saves, machine):
    saves.save_slot(0, machine)
    with pytest.raises(ValueError):
        saves.delete_save(10)
    with pytest.raises(ValueError):
        saves.delete_save(-1)
    assert saves.validate_save(0)

def test_save_requires_started_session(saves, store):
    with pytest.raises(RuntimeError):
        saves.save_slot(0, NarrativeStateMachine(store))
