"""Mileage allowance for business trips."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

from ..models.domain import TRIP_BUSINESS, MileagePolicy, TripRecord, Vehicle
from ..persistence import database

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class AllowanceResult:
    updates: dict[str, dict] = field(default_factory=dict)
    total_allowance: float = 0.0


def calculate_allowances(
    entries: Sequence[TripRecord],
    vehicles: Sequence[Vehicle],
    policies: Sequence[MileagePolicy],
) -> AllowanceResult:
    """Price business trips at the active rate for the vehicle's type.

    Private trips, trips on unknown vehicles and vehicle types without an
    active policy are left out.
    """
    vehicle_map = {vehicle.id: vehicle for vehicle in vehicles}
    policy_map: dict[str, MileagePolicy] = {}
    for policy in policies:
        if policy.is_active:
            policy_map.setdefault(policy.vehicle_type, policy)

    result = AllowanceResult()
    for entry in entries:
        if entry.trip_type != TRIP_BUSINESS:
            continue
        vehicle = vehicle_map.get(entry.vehicle_id or "")
        if vehicle is None or not vehicle.vehicle_type:
            continue
        policy = policy_map.get(vehicle.vehicle_type)
        if policy is None:
            continue
        allowance = round((entry.distance_km or 0.0) * policy.rate_per_km, 2)
        result.updates[entry.id] = {"mileage_allowance": allowance, "mileage_policy_id": policy.id}
        result.total_allowance += allowance

    result.total_allowance = round(result.total_allowance, 2)
    return result


def apply_allowances(entry_ids: Sequence[str]) -> AllowanceResult:
    entries = database.list_journal_entries(entry_ids=entry_ids)
    result = calculate_allowances(entries, database.list_vehicles(), database.list_mileage_policies())
    for entry_id, update in result.updates.items():
        database.update_journal_entry(entry_id, update)
    logger.info(f"Mileage allowance stored for {len(result.updates)} of {len(entries)} entries")
    return result
