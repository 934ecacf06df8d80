"""
Save/Load system - playback positions in save slots.

Provides:
- Save/load of a session's story position to JSON files
- Multiple save slots (10 by default) plus a quick-save slot
- Save integrity validation (checksum)
- Slot metadata for the "continue" screen
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from enum import Enum, auto
from pathlib import Path
from typing import Optional

from frameg.core.errors import SaveLoadError
from frameg.core.events import EventBus
from narrative.playback.machine import NarrativeStateMachine
from narrative.playback.state import PlaybackSnapshot
from narrative.progress.checksum import verify_checksum, with_checksum

logger = logging.getLogger(__name__)


class SaveEvent(Enum):
    """Save system events."""
    SAVE_COMPLETED = auto()
    SAVE_FAILED = auto()
    LOAD_COMPLETED = auto()
    LOAD_FAILED = auto()


@dataclass
class SaveMetadata:
    """What the continue screen shows about a slot."""
    slot: int
    name: str
    timestamp: str
    story_id: str
    step: int
    preview: str = ""


class SaveManager:
    """
    Manages playback save slots.

    Each slot holds one PlaybackSnapshot. Loading returns the snapshot;
    restoring it into a fresh NarrativeStateMachine gives that slot its
    own independent session.

    Usage:
        saves = SaveManager("saves", event_bus=bus)
        saves.save_slot(0, machine, name="Before the cave")

        snapshot = saves.load_slot(0)
        session = NarrativeStateMachine(store, progress)
        session.restore(snapshot)
    """

    VERSION = "1.0"
    MAX_SLOTS = 10
    QUICK_SAVE_SLOT = 99

    def __init__(self, save_path: Path | str = "saves", event_bus: Optional[EventBus] = None):
        self.save_path = Path(save_path)
        self.event_bus = event_bus

    def _get_slot_path(self, slot: int) -> Path:
        return self.save_path / f"save_{slot:02d}.json"

    def _check_slot(self, slot: int) -> None:
        if not (0 <= slot < self.MAX_SLOTS or slot == self.QUICK_SAVE_SLOT):
            raise ValueError(f"Invalid save slot {slot}")

    def save_slot(self, slot: int, machine: NarrativeStateMachine, name: str = "Save") -> SaveMetadata:
        """
        Save a session's position.

        Raises:
            SaveLoadError: if the slot cannot be written
        """
        self._check_slot(slot)
        snapshot = machine.snapshot()
        text = machine.active_text()

        metadata = SaveMetadata(
            slot=slot,
            name=name,
            timestamp=datetime.now().isoformat(),
            story_id=snapshot.story_id,
            step=snapshot.step,
            preview=text.text[:40] if text else "",
        )
        document = with_checksum({
            'version': self.VERSION,
            'metadata': asdict(metadata),
            'playback': snapshot.to_dict(),
        })

        try:
            self.save_path.mkdir(parents=True, exist_ok=True)
            with open(self._get_slot_path(slot), 'w', encoding='utf-8') as f:
                json.dump(document, f, indent=2)
        except OSError as e:
            logger.error(f"Save to slot {slot} failed: {e}")
            if self.event_bus:
                self.event_bus.publish(SaveEvent.SAVE_FAILED, slot=slot, error=str(e))
            raise SaveLoadError(f"Failed to write slot {slot}: {e}") from e

        logger.info(f"Saved {snapshot.story_id!r} step {snapshot.step} to slot {slot}")
        if self.event_bus:
            self.event_bus.publish(SaveEvent.SAVE_COMPLETED, slot=slot)
        return metadata

    def quick_save(self, machine: NarrativeStateMachine) -> SaveMetadata:
        return self.save_slot(self.QUICK_SAVE_SLOT, machine, name="Quick Save")

    def load_slot(self, slot: int, validate: bool = True) -> PlaybackSnapshot:
        """
        Read a slot's playback position.

        Raises:
            SaveLoadError: if the slot is empty, unreadable or fails its checksum
        """
        self._check_slot(slot)
        try:
            document = self._read(slot)
            if validate and not verify_checksum(document):
                raise SaveLoadError(f"Slot {slot} is corrupted: checksum mismatch")
            snapshot = PlaybackSnapshot.from_dict(document['playback'])
        except SaveLoadError as e:
            self._publish_load_failed(slot, e)
            raise
        except (KeyError, TypeError, ValueError) as e:
            self._publish_load_failed(slot, e)
            raise SaveLoadError(f"Slot {slot} is malformed: {e}") from e

        if self.event_bus:
            self.event_bus.publish(SaveEvent.LOAD_COMPLETED, slot=slot)
        return snapshot

    def _publish_load_failed(self, slot: int, error: Exception) -> None:
        logger.warning(f"Load from slot {slot} failed: {error}")
        if self.event_bus:
            self.event_bus.publish(SaveEvent.LOAD_FAILED, slot=slot, error=str(error))

    def _read(self, slot: int) -> dict:
        path = self._get_slot_path(slot)
        if not path.exists():
            raise SaveLoadError(f"Slot {slot} is empty")
        try:
            with open(path, 'r', encoding='utf-8') as f:
                document = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise SaveLoadError(f"Slot {slot} is unreadable: {e}") from e
        if not isinstance(document, dict):
            raise SaveLoadError(f"Slot {slot} is malformed: expected an object")
        return document

    def get_save_slots(self) -> list[Optional[SaveMetadata]]:
        """Metadata for every regular slot (None for empty or unreadable slots)."""
        slots: list[Optional[SaveMetadata]] = []
        for i in range(self.MAX_SLOTS):
            try:
                slots.append(SaveMetadata(**self._read(i)['metadata']))
            except (SaveLoadError, KeyError, TypeError):
                slots.append(None)
        return slots

    def validate_save(self, slot: int) -> bool:
        """True if the slot exists and its checksum matches."""
        try:
            return verify_checksum(self._read(slot))
        except SaveLoadError:
            return False

    def delete_save(self, slot: int) -> bool:
        """Delete a slot; returns False if it was already empty."""
        self._check_slot(slot)
        path = self._get_slot_path(slot)
        if not path.exists():
            return False
        path.unlink()
        return True

    def has_quick_save(self) -> bool:
        return self._get_slot_path(self.QUICK_SAVE_SLOT).exists()
