"""Geofence services."""

from .detector import detect_transitions, state_key
from .service import track_positions

__all__ = ["detect_transitions", "state_key", "track_positions"]
