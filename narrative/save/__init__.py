"""
Save module - playback positions in save slots.
"""

from narrative.save.manager import SaveEvent, SaveManager, SaveMetadata

__all__ = ["SaveEvent", "SaveManager", "SaveMetadata"]
