"""Rule-based trip classification, completeness flags and auto-approval."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Sequence

from ...config import settings
from ...models.domain import (
    STATUS_APPROVED,
    TRIP_BUSINESS,
    TRIP_PENDING,
    TRIP_PRIVATE,
    Geofence,
    JournalPolicy,
    OfficeLocation,
    TripRecord,
)
from ..geospatial import within_any_office
from ..worktime import is_work_day, is_work_hours
from .history import Suggestion, suggest_classification

SYSTEM_REVIEWER = "system"


@dataclass(slots=True)
class TripEvaluation:
    classification: Optional[str]
    flags: list[str] = field(default_factory=list)
    auto_approved: bool = False
    suggestion: Optional[Suggestion] = None
    update: dict = field(default_factory=dict)

    @property
    def flagged(self) -> bool:
        return bool(self.flags)


def _proximity_targets(policy: JournalPolicy, geofences: Sequence[Geofence]) -> list[OfficeLocation]:
    targets = list(policy.office_locations)
    for geofence in geofences:
        if geofence.is_active and geofence.auto_classify_as == TRIP_BUSINESS:
            targets.append(
                OfficeLocation(
                    latitude=geofence.latitude,
                    longitude=geofence.longitude,
                    radius_meters=geofence.radius_meters,
                    name=geofence.name,
                )
            )
    return targets


def touches_office(record: TripRecord, policy: JournalPolicy, geofences: Sequence[Geofence] = ()) -> bool:
    """True when the trip starts or ends within range of an office or business geofence."""
    targets = _proximity_targets(policy, geofences)
    if not targets:
        return False
    radius = settings.default_office_radius_m
    for location in (record.start_location, record.end_location):
        if location is None or not location.has_coordinates:
            continue
        if within_any_office(location.latitude, location.longitude, targets, radius):
            return True
    return False


def classify_trip(
    record: TripRecord,
    policy: JournalPolicy,
    geofences: Sequence[Geofence] = (),
    tz_name: str | None = None,
) -> Optional[str]:
    """Label a trip business or private from its start time and end points.

    Returns None when the trip happens during work time but away from every
    office; such trips are left for a human to classify. The record's current
    ``trip_type`` is never consulted.
    """
    if record.start_time is None:
        return None

    work_day = is_work_day(record.start_time, policy, tz_name)
    work_hours = is_work_hours(record.start_time, policy, tz_name)

    if work_day and work_hours and touches_office(record, policy, geofences):
        return TRIP_BUSINESS
    if not work_day or not work_hours:
        return TRIP_PRIVATE
    return None


def check_completeness(record: TripRecord, policy: JournalPolicy) -> list[str]:
    """Return human-readable reasons the trip needs attention."""
    flags: list[str] = []
    distance = record.distance_km or 0.0
    duration = record.duration_minutes or 0.0

    if not record.driver_name or not record.driver_email:
        flags.append("Missing driver name")

    threshold = policy.require_purpose_over_km
    if threshold and distance > threshold:
        purpose = (record.purpose or "").strip() if isinstance(record.purpose, str) else ""
        if len(purpose) < settings.min_purpose_length:
            flags.append(f"Missing purpose (trip > {threshold:g} km)")

    if distance > settings.long_trip_km:
        flags.append(f"Unusually long trip (> {settings.long_trip_km:g} km)")

    if duration > settings.long_duration_minutes:
        flags.append(f"Unusually long duration (> {settings.long_duration_minutes / 60:g} hours)")

    return flags


def should_auto_approve(
    record: TripRecord,
    classification: Optional[str],
    flags: Sequence[str],
    policy: JournalPolicy,
) -> bool:
    threshold = policy.auto_approve_threshold_km
    if threshold is None or not record.distance_km:
        return False
    if flags or record.is_anomaly:
        return False
    if classification in (None, TRIP_PENDING):
        return False
    return record.distance_km < threshold


def evaluate_trip(
    record: TripRecord,
    policy: JournalPolicy,
    geofences: Sequence[Geofence] = (),
    history: Sequence[TripRecord] | None = None,
    now: datetime | None = None,
    tz_name: str | None = None,
) -> TripEvaluation:
    """Classify, flag and review one trip, returning the field update to persist."""
    update: dict = {}
    notes = record.notes or ""

    classification = classify_trip(record, policy, geofences, tz_name)
    suggestion = None
    if classification is not None:
        update["trip_type"] = classification
        notes += f"\n[Auto] Classified as {classification} from time and location"
        update["notes"] = notes
    elif history:
        # history only settles trips the rules leave open
        suggestion = suggest_classification(record, history)
        if suggestion is not None:
            classification = suggestion.trip_type
            update["trip_type"] = classification
            update["suggested_classification"] = suggestion.to_dict()
            notes += f"\n[Auto] Suggested classification based on {suggestion.reasoning}"
            update["notes"] = notes

    if classification == TRIP_BUSINESS and history:
        details = suggestion or suggest_classification(record, history)
        if details is not None and details.trip_type == TRIP_BUSINESS:
            if details.purpose and not record.purpose:
                update["purpose"] = details.purpose
            if details.project_code and not record.project_code:
                update["project_code"] = details.project_code
            if details.customer and not record.customer:
                update["customer"] = details.customer

    flags = check_completeness(record, policy)
    if flags:
        update["is_anomaly"] = True
        update["anomaly_reason"] = ". ".join(flags)

    approved = should_auto_approve(record, classification, flags, policy)
    if approved:
        reviewed_at = now or datetime.now(timezone.utc)
        update["status"] = STATUS_APPROVED
        update["reviewed_by"] = SYSTEM_REVIEWER
        update["reviewed_at"] = reviewed_at.isoformat()
        update["review_comment"] = (
            f"Automatically approved (short trip < {policy.auto_approve_threshold_km:g} km)"
        )

    return TripEvaluation(
        classification=classification,
        flags=flags,
        auto_approved=approved,
        suggestion=suggestion,
        update=update,
    )
