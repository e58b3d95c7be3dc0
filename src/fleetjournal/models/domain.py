"""Domain models for journal policies, trips, geofences and position samples."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping, Optional
from urllib.parse import quote, unquote

logger = logging.getLogger(__name__)

TRIP_PENDING = "pending"
TRIP_BUSINESS = "business"
TRIP_PRIVATE = "private"
TRIP_TYPES = (TRIP_PENDING, TRIP_BUSINESS, TRIP_PRIVATE)

STATUS_PENDING_REVIEW = "pending_review"
STATUS_SUBMITTED = "submitted"
STATUS_APPROVED = "approved"

EVENT_ENTERED = "entered"
EVENT_EXITED = "exited"


def state_key(entity_id: str, geofence_id: str) -> str:
    """Key for one (entity, geofence) pair; each id is percent-encoded so ":" never collides."""
    return quote(str(entity_id), safe="") + ":" + quote(str(geofence_id), safe="")


def split_state_key(key: str) -> tuple[str, str]:
    entity, _, geofence = key.partition(":")
    return unquote(entity), unquote(geofence)


def _coerce_float(value: Any) -> Optional[float]:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _coerce_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 string or epoch seconds into a datetime, None when unparseable."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(float(value), tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


@dataclass(slots=True)
class Location:
    """A trip end point. Coordinates and address are each optional."""

    latitude: Optional[float] = None
    longitude: Optional[float] = None
    address: Optional[str] = None

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any] | None) -> Optional["Location"]:
        if not row or not isinstance(row, Mapping):
            return None
        return cls(
            latitude=_coerce_float(row.get("latitude")),
            longitude=_coerce_float(row.get("longitude")),
            address=_coerce_str(row.get("address")),
        )

    def to_dict(self) -> dict:
        return {"latitude": self.latitude, "longitude": self.longitude, "address": self.address}


@dataclass(slots=True)
class OfficeLocation:
    latitude: float
    longitude: float
    radius_meters: Optional[float] = None
    name: Optional[str] = None


@dataclass(slots=True)
class JournalPolicy:
    """Work policy used to classify and review driving-journal trips.

    Every constraint is optional and an unset field never restricts anything:

    - ``work_hours_start`` / ``work_hours_end``: "HH:MM" bounds of the work window.
      If either is missing or malformed, every time of day is inside the window.
    - ``work_days``: weekday indices with Sunday = 0 ... Saturday = 6.
      ``None`` means every day is a work day.
    - ``office_locations``: offices used for proximity matching. Empty means no
      trip is ever matched to an office.
    - ``auto_approve_threshold_km``: trips strictly shorter than this are approved
      without review. ``None`` disables auto-approval.
    - ``require_purpose_over_km``: trips longer than this need a purpose text.
      ``None`` disables the check.
    - ``auto_categorize_enabled``: gate for the scheduled batch job.
    """

    work_hours_start: Optional[str] = None
    work_hours_end: Optional[str] = None
    work_days: Optional[frozenset[int]] = None
    office_locations: tuple[OfficeLocation, ...] = ()
    auto_approve_threshold_km: Optional[float] = None
    require_purpose_over_km: Optional[float] = None
    auto_categorize_enabled: bool = True
    policy_id: Optional[str] = None

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any] | None) -> "JournalPolicy":
        """Build a policy from a stored row, resolving bad fields to their defaults."""
        if not row:
            return cls()

        work_days: Optional[frozenset[int]] = None
        raw_days = row.get("work_days")
        if isinstance(raw_days, (list, tuple, set, frozenset)):
            days: set[int] = set()
            for day in raw_days:
                try:
                    days.add(int(day) % 7)
                except (TypeError, ValueError):
                    logger.warning(f"Ignoring invalid work day value {day!r} in journal policy")
            work_days = frozenset(days)
        elif raw_days is not None:
            logger.warning(f"Ignoring malformed work_days {raw_days!r} in journal policy")

        offices: list[OfficeLocation] = []
        for office in row.get("office_locations") or ():
            if not isinstance(office, Mapping):
                continue
            lat = _coerce_float(office.get("latitude"))
            lon = _coerce_float(office.get("longitude"))
            if lat is None or lon is None:
                logger.warning(f"Skipping office location without coordinates: {office!r}")
                continue
            offices.append(
                OfficeLocation(
                    latitude=lat,
                    longitude=lon,
                    radius_meters=_coerce_float(office.get("radius_meters")),
                    name=_coerce_str(office.get("name")),
                )
            )

        enabled = row.get("auto_categorize_enabled")
        return cls(
            work_hours_start=_coerce_str(row.get("work_hours_start")),
            work_hours_end=_coerce_str(row.get("work_hours_end")),
            work_days=work_days,
            office_locations=tuple(offices),
            auto_approve_threshold_km=_coerce_float(row.get("auto_approve_threshold_km")),
            require_purpose_over_km=_coerce_float(row.get("require_purpose_over_km")),
            auto_categorize_enabled=True if enabled is None else bool(enabled),
            policy_id=_coerce_str(row.get("id")),
        )


@dataclass(slots=True)
class TripRecord:
    """A driving-journal entry as stored in the ``driving_journal_entries`` table."""

    id: str
    vehicle_id: Optional[str] = None
    registration_number: Optional[str] = None
    driver_name: Optional[str] = None
    driver_email: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    start_location: Optional[Location] = None
    end_location: Optional[Location] = None
    distance_km: Optional[float] = None
    duration_minutes: Optional[float] = None
    trip_type: str = TRIP_PENDING
    status: str = STATUS_PENDING_REVIEW
    is_anomaly: bool = False
    anomaly_reason: Optional[str] = None
    purpose: Optional[str] = None
    project_code: Optional[str] = None
    customer: Optional[str] = None
    gps_trip_id: Optional[str] = None
    notes: Optional[str] = None

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any]) -> "TripRecord":
        trip_type = _coerce_str(row.get("trip_type")) or TRIP_PENDING
        if trip_type not in TRIP_TYPES:
            trip_type = TRIP_PENDING
        return cls(
            id=str(row.get("id") or ""),
            vehicle_id=_coerce_str(row.get("vehicle_id")),
            registration_number=_coerce_str(row.get("registration_number")),
            driver_name=_coerce_str(row.get("driver_name")),
            driver_email=_coerce_str(row.get("driver_email")),
            start_time=parse_timestamp(row.get("start_time")),
            end_time=parse_timestamp(row.get("end_time")),
            start_location=Location.from_mapping(row.get("start_location")),
            end_location=Location.from_mapping(row.get("end_location")),
            distance_km=_coerce_float(row.get("distance_km")),
            duration_minutes=_coerce_float(row.get("duration_minutes")),
            trip_type=trip_type,
            status=_coerce_str(row.get("status")) or STATUS_PENDING_REVIEW,
            is_anomaly=bool(row.get("is_anomaly")),
            anomaly_reason=_coerce_str(row.get("anomaly_reason")),
            purpose=row.get("purpose"),
            project_code=_coerce_str(row.get("project_code")),
            customer=_coerce_str(row.get("customer")),
            gps_trip_id=_coerce_str(row.get("gps_trip_id")),
            notes=row.get("notes"),
        )


@dataclass(slots=True)
class Geofence:
    """A named circular region with an optional automatic trip classification."""

    id: str
    name: str
    latitude: float
    longitude: float
    radius_meters: float
    is_active: bool = True
    auto_classify_as: Optional[str] = None

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any]) -> "Geofence":
        radius = _coerce_float(row.get("radius_meters"))
        if radius is None:
            radius = _coerce_float(row.get("radius"))
        lat = _coerce_float(row.get("latitude"))
        lon = _coerce_float(row.get("longitude"))
        return cls(
            id=str(row.get("id") or ""),
            name=_coerce_str(row.get("name")) or str(row.get("id") or ""),
            latitude=math.nan if lat is None else lat,
            longitude=math.nan if lon is None else lon,
            radius_meters=0.0 if radius is None else radius,
            is_active=bool(row.get("is_active", True)),
            auto_classify_as=_coerce_str(row.get("auto_classify_as")),
        )


@dataclass(slots=True)
class PositionSample:
    entity_id: str
    latitude: float
    longitude: float
    timestamp: datetime


@dataclass(slots=True)
class GeofenceEvent:
    entity_id: str
    geofence_id: str
    geofence_name: str
    event_type: str
    timestamp: datetime
    distance_m: float
    auto_classify_as: Optional[str] = None


@dataclass(slots=True)
class Vehicle:
    id: str
    registration_number: Optional[str] = None
    make: Optional[str] = None
    model: Optional[str] = None
    vehicle_type: Optional[str] = None
    gps_device_id: Optional[str] = None
    assigned_driver: Optional[str] = None

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any]) -> "Vehicle":
        return cls(
            id=str(row.get("id") or ""),
            registration_number=_coerce_str(row.get("registration_number")),
            make=_coerce_str(row.get("make")),
            model=_coerce_str(row.get("model")),
            vehicle_type=_coerce_str(row.get("vehicle_type")),
            gps_device_id=_coerce_str(row.get("gps_device_id")),
            assigned_driver=_coerce_str(row.get("assigned_driver")),
        )


@dataclass(slots=True)
class MileagePolicy:
    id: str
    vehicle_type: str
    rate_per_km: float
    is_active: bool = True


@dataclass(slots=True)
class TokenCache:
    """Vendor session token with its expiry; owned by the caller and passed in."""

    token: Optional[str] = None
    expires_at: Optional[datetime] = None

    def is_valid(self, now: datetime | None = None) -> bool:
        if not self.token or self.expires_at is None:
            return False
        current = now or datetime.now(timezone.utc)
        return current < self.expires_at

    def store(self, token: str, expires_at: datetime) -> None:
        self.token = token
        self.expires_at = expires_at

    def clear(self) -> None:
        self.token = None
        self.expires_at = None


@dataclass(slots=True)
class RecordOutcome:
    """Result of evaluating one journal entry in a batch run."""

    entry_id: str
    update: dict = field(default_factory=dict)
    classification: Optional[str] = None
    flags: list[str] = field(default_factory=list)
    auto_approved: bool = False
    suggested: bool = False
    error: Optional[str] = None


@dataclass(slots=True)
class BatchResult:
    status: str
    processed: int = 0
    categorized: int = 0
    suggestions: int = 0
    flagged: int = 0
    auto_approved: int = 0
    failed: int = 0
    outcomes: list[RecordOutcome] = field(default_factory=list)
    message: Optional[str] = None
