"""Database persistence for journal policies, trips, geofences and vehicles."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Sequence

from ..db.supabase import get_supabase_client
from ..models.domain import Geofence, JournalPolicy, MileagePolicy, TripRecord, Vehicle

logger = logging.getLogger(__name__)

POLICY_TABLE = "journal_policies"
JOURNAL_TABLE = "driving_journal_entries"
GEOFENCE_TABLE = "geofences"
VEHICLE_TABLE = "vehicles"
MILEAGE_POLICY_TABLE = "mileage_policies"
USER_TABLE = "users"


def load_journal_policy() -> JournalPolicy | None:
    """Return the first stored journal policy, or None when none exists."""
    supabase = get_supabase_client()
    if not supabase:
        return None
    try:
        response = supabase.table(POLICY_TABLE).select("*").limit(1).execute()
    except Exception as e:
        logger.warning(f"Failed to load journal policy: {e}")
        return None
    if not response.data:
        return None
    return JournalPolicy.from_mapping(response.data[0])


def list_journal_entries(
    trip_type: str | None = None,
    status: str | None = None,
    vehicle_id: str | None = None,
    entry_ids: Sequence[str] | None = None,
    driver_email: str | None = None,
    limit: int | None = None,
) -> list[TripRecord]:
    """Fetch journal entries matching every supplied filter."""
    supabase = get_supabase_client()
    if not supabase:
        return []
    try:
        query = supabase.table(JOURNAL_TABLE).select("*")
        if trip_type:
            query = query.eq("trip_type", trip_type)
        if status:
            query = query.eq("status", status)
        if vehicle_id:
            query = query.eq("vehicle_id", vehicle_id)
        if driver_email:
            query = query.eq("driver_email", driver_email)
        if entry_ids:
            query = query.in_("id", list(entry_ids))
        query = query.order("start_time", desc=True)
        if limit:
            query = query.limit(limit)
        response = query.execute()
    except Exception as e:
        logger.warning(f"Failed to load journal entries: {e}")
        return []

    entries: list[TripRecord] = []
    for row in response.data or []:
        try:
            entries.append(TripRecord.from_mapping(row))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Skipping invalid journal row {row.get('id')!r}: {e}")
    return entries


def update_journal_entry(entry_id: str, data: dict[str, Any]) -> bool:
    supabase = get_supabase_client()
    if not supabase:
        return False
    try:
        supabase.table(JOURNAL_TABLE).update(data).eq("id", entry_id).execute()
        return True
    except Exception as e:
        logger.error(f"Failed to update journal entry {entry_id}: {e}")
        return False


def insert_journal_entries(rows: Iterable[dict[str, Any]]) -> int:
    """Insert new journal rows, returning how many were written."""
    payload = list(rows)
    if not payload:
        return 0
    supabase = get_supabase_client()
    if not supabase:
        logger.info("Supabase not configured - journal entries were not stored")
        return 0
    try:
        response = supabase.table(JOURNAL_TABLE).insert(payload).execute()
    except Exception as e:
        logger.error(f"Failed to insert {len(payload)} journal entries: {e}")
        return 0
    return len(response.data or payload)


def list_geofences(active_only: bool = True) -> list[Geofence]:
    supabase = get_supabase_client()
    if not supabase:
        return []
    try:
        query = supabase.table(GEOFENCE_TABLE).select("*")
        if active_only:
            query = query.eq("is_active", True)
        response = query.execute()
    except Exception as e:
        logger.warning(f"Failed to load geofences: {e}")
        return []
    return [Geofence.from_mapping(row) for row in response.data or []]


def list_vehicles() -> list[Vehicle]:
    supabase = get_supabase_client()
    if not supabase:
        return []
    try:
        response = supabase.table(VEHICLE_TABLE).select("*").execute()
    except Exception as e:
        logger.warning(f"Failed to load vehicles: {e}")
        return []
    return [Vehicle.from_mapping(row) for row in response.data or []]


def get_vehicle(vehicle_id: str) -> Vehicle | None:
    supabase = get_supabase_client()
    if not supabase:
        return None
    try:
        response = supabase.table(VEHICLE_TABLE).select("*").eq("id", vehicle_id).limit(1).execute()
    except Exception as e:
        logger.warning(f"Failed to load vehicle {vehicle_id}: {e}")
        return None
    if not response.data:
        return None
    return Vehicle.from_mapping(response.data[0])


def list_mileage_policies(active_only: bool = True) -> list[MileagePolicy]:
    supabase = get_supabase_client()
    if not supabase:
        return []
    try:
        query = supabase.table(MILEAGE_POLICY_TABLE).select("*")
        if active_only:
            query = query.eq("is_active", True)
        response = query.execute()
    except Exception as e:
        logger.warning(f"Failed to load mileage policies: {e}")
        return []

    policies: list[MileagePolicy] = []
    for row in response.data or []:
        try:
            policies.append(
                MileagePolicy(
                    id=str(row["id"]),
                    vehicle_type=str(row["vehicle_type"]),
                    rate_per_km=float(row["rate_per_km"]),
                    is_active=bool(row.get("is_active", True)),
                )
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Skipping invalid mileage policy row: {e}")
    return policies


def find_user_by_email(email: str) -> dict[str, Any] | None:
    supabase = get_supabase_client()
    if not supabase or not email:
        return None
    try:
        response = supabase.table(USER_TABLE).select("*").eq("email", email).limit(1).execute()
    except Exception as e:
        logger.warning(f"Could not look up user {email}: {e}")
        return None
    return response.data[0] if response.data else None
