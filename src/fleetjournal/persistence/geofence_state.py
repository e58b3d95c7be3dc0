"""Stores for the last known inside/outside state per entity and geofence."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable, Mapping

from ..db.supabase import get_supabase_client
from ..models.domain import split_state_key

logger = logging.getLogger(__name__)

STATE_TABLE = "geofence_states"


class InMemoryGeofenceStateStore:
    """Process-local store, used in tests and when no database is configured."""

    def __init__(self, initial: Mapping[str, bool] | None = None) -> None:
        self._states: dict[str, bool] = dict(initial or {})

    def load(self, keys: Iterable[str] | None = None) -> dict[str, bool]:
        if keys is None:
            return dict(self._states)
        return {key: self._states[key] for key in keys if key in self._states}

    def save(self, states: Mapping[str, bool]) -> None:
        self._states.update(states)


class SupabaseGeofenceStateStore:
    """Keeps geofence states in the ``geofence_states`` table keyed by ``entity:geofence``."""

    def __init__(self, client=None) -> None:
        self._client = client

    @property
    def client(self):
        return self._client or get_supabase_client()

    def load(self, keys: Iterable[str] | None = None) -> dict[str, bool]:
        supabase = self.client
        if not supabase:
            return {}
        try:
            query = supabase.table(STATE_TABLE).select("key,inside")
            if keys is not None:
                key_list = list(keys)
                if not key_list:
                    return {}
                query = query.in_("key", key_list)
            response = query.execute()
        except Exception as e:
            logger.warning(f"Failed to load geofence states: {e}")
            return {}
        return {str(row["key"]): bool(row["inside"]) for row in response.data or [] if "key" in row}

    def save(self, states: Mapping[str, bool]) -> None:
        supabase = self.client
        if not supabase or not states:
            return
        now = datetime.now(timezone.utc).isoformat()
        rows = []
        for key, inside in states.items():
            entity_id, geofence_id = split_state_key(key)
            rows.append(
                {
                    "key": key,
                    "entity_id": entity_id,
                    "geofence_id": geofence_id,
                    "inside": inside,
                    "updated_at": now,
                }
            )
        # write errors propagate to the caller
        supabase.table(STATE_TABLE).upsert(rows, on_conflict="entity_id,geofence_id").execute()


def get_state_store():
    """Database-backed store when Supabase is configured, otherwise the shared in-memory one."""
    if get_supabase_client():
        return SupabaseGeofenceStateStore()
    logger.warning("Supabase not configured - geofence state is kept in process memory and lost on restart")
    return _fallback_store


_fallback_store = InMemoryGeofenceStateStore()
