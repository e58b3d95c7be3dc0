"""GPS vendor integration."""

from .client import GPSApiError, GPSAuthError, GPSClient
from .sync import SyncResult, build_journal_entries, sync_vehicle_trips

__all__ = [
    "GPSClient",
    "GPSApiError",
    "GPSAuthError",
    "SyncResult",
    "build_journal_entries",
    "sync_vehicle_trips",
]
