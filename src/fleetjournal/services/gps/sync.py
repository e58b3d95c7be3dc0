"""Turn GPS vendor trips into pending driving-journal entries."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Optional, Sequence

from ...models.domain import STATUS_PENDING_REVIEW, TRIP_PENDING, TripRecord, Vehicle
from ...persistence import database
from .client import GPSClient

logger = logging.getLogger(__name__)

MATCH_WINDOW = timedelta(minutes=5)
LONG_TRIP_KM = 500.0
LONG_SYNC_DURATION_MINUTES = 720


@dataclass(slots=True)
class SyncResult:
    new_entries: list[dict] = field(default_factory=list)
    skipped: list[dict] = field(default_factory=list)
    backfilled: dict[str, str] = field(default_factory=dict)


def _location(lat: Any, lon: Any) -> Optional[dict]:
    if lat in (None, "") or lon in (None, ""):
        return None
    try:
        latitude, longitude = float(lat), float(lon)
    except (TypeError, ValueError):
        return None
    return {"latitude": latitude, "longitude": longitude, "address": f"{latitude}, {longitude}"}


def _find_match(trip_id: Optional[str], start: datetime, existing: Sequence[TripRecord]) -> Optional[TripRecord]:
    for entry in existing:
        if trip_id and entry.gps_trip_id == trip_id:
            return entry
        if entry.start_time is not None and entry.start_time.tzinfo is not None:
            if abs(entry.start_time - start) < MATCH_WINDOW:
                return entry
    return None


def build_journal_entries(
    vehicle: Vehicle,
    trips: Sequence[Mapping[str, Any]],
    existing: Sequence[TripRecord],
    driver: Mapping[str, Any] | None = None,
) -> SyncResult:
    """Map vendor trips to new journal rows, skipping trips already in the journal."""
    result = SyncResult()
    for trip in trips:
        raw_id = trip.get("tripid")
        trip_id = str(raw_id) if raw_id is not None else None
        try:
            begin = datetime.fromtimestamp(float(trip["begintime"]), tz=timezone.utc)
            end = datetime.fromtimestamp(float(trip["endtime"]), tz=timezone.utc)
        except (KeyError, TypeError, ValueError):
            result.skipped.append({"trip_id": trip_id, "reason": "Missing trip times"})
            continue

        match = _find_match(trip_id, begin, existing)
        if match is not None:
            if trip_id and not match.gps_trip_id:
                result.backfilled[match.id] = trip_id
            result.skipped.append({"trip_id": trip_id, "reason": "Already exists or matched"})
            continue

        reasons: list[str] = []
        if not driver:
            reasons.append("Driver could not be identified automatically")

        distance_km = round(float(trip.get("mileage") or 0.0), 2)
        duration_minutes = round((end - begin).total_seconds() / 60)
        if distance_km > LONG_TRIP_KM:
            reasons.append(f"Unusually long trip (over {LONG_TRIP_KM:g} km)")
        if duration_minutes > LONG_SYNC_DURATION_MINUTES:
            reasons.append(f"Unusually long duration (over {LONG_SYNC_DURATION_MINUTES // 60} hours)")

        entry: dict[str, Any] = {
            "vehicle_id": vehicle.id,
            "registration_number": vehicle.registration_number,
            "gps_trip_id": trip_id,
            "start_time": begin.isoformat(),
            "end_time": end.isoformat(),
            "distance_km": distance_km,
            "duration_minutes": duration_minutes,
            "trip_type": TRIP_PENDING,
            "status": STATUS_PENDING_REVIEW,
            "is_anomaly": bool(reasons),
            "anomaly_reason": ". ".join(reasons) or None,
            "start_location": _location(trip.get("slat"), trip.get("slon")),
            "end_location": _location(trip.get("elat"), trip.get("elon")),
        }
        if driver:
            entry["driver_email"] = driver.get("email")
            entry["driver_name"] = driver.get("full_name")
        result.new_entries.append(entry)
    return result


def sync_vehicle_trips(vehicle_id: str, start: datetime, end: datetime, client: GPSClient) -> SyncResult:
    """Fetch a vehicle's trips from the vendor and store the ones not yet journaled."""
    vehicle = database.get_vehicle(vehicle_id)
    if vehicle is None:
        raise LookupError(f"Vehicle '{vehicle_id}' not found.")
    if not vehicle.gps_device_id:
        raise ValueError(f"No GPS device ID configured for vehicle '{vehicle_id}'.")

    trips = client.query_trips(vehicle.gps_device_id, start, end)
    driver = database.find_user_by_email(vehicle.assigned_driver) if vehicle.assigned_driver else None
    existing = database.list_journal_entries(vehicle_id=vehicle.id)

    result = build_journal_entries(vehicle, trips, existing, driver)
    for entry_id, trip_id in result.backfilled.items():
        database.update_journal_entry(entry_id, {"gps_trip_id": trip_id})
    stored = database.insert_journal_entries(result.new_entries)
    logger.info(
        f"GPS sync for vehicle {vehicle.id}: {len(trips)} trips, {stored} stored, "
        f"{len(result.skipped)} skipped"
    )
    return result
