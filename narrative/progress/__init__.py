"""
Progress - what the player has completed, read by locks and chapter gates.
"""

from narrative.progress.view import ProgressSnapshot, ProgressView
from narrative.progress.tracker import ProgressTracker

__all__ = ["ProgressSnapshot", "ProgressView", "ProgressTracker"]
