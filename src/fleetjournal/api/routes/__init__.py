"""Route group exports."""

from . import geofences, gps, health, journal, routes

__all__ = ["journal", "geofences", "routes", "gps", "health"]
