"""Journal classification request/response schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from ..models.domain import (
    STATUS_PENDING_REVIEW,
    TRIP_PENDING,
    JournalPolicy,
    Location,
    TripRecord,
)
from .geofence import GeofenceModel


class LocationModel(BaseModel):
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    address: Optional[str] = None


class TripRecordModel(BaseModel):
    id: str
    vehicle_id: Optional[str] = None
    registration_number: Optional[str] = None
    driver_name: Optional[str] = None
    driver_email: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    start_location: Optional[LocationModel] = None
    end_location: Optional[LocationModel] = None
    distance_km: Optional[float] = None
    duration_minutes: Optional[float] = None
    trip_type: Literal["pending", "business", "private"] = TRIP_PENDING
    status: str = STATUS_PENDING_REVIEW
    is_anomaly: bool = False
    anomaly_reason: Optional[str] = None
    purpose: Optional[str] = None
    project_code: Optional[str] = None
    customer: Optional[str] = None
    gps_trip_id: Optional[str] = None
    notes: Optional[str] = None

    def to_domain(self) -> TripRecord:
        def _loc(model: Optional[LocationModel]) -> Optional[Location]:
            if model is None:
                return None
            return Location(latitude=model.latitude, longitude=model.longitude, address=model.address)

        data = self.model_dump(exclude={"start_location", "end_location"})
        return TripRecord(
            **data,
            start_location=_loc(self.start_location),
            end_location=_loc(self.end_location),
        )


class ClassifyRequest(BaseModel):
    policy: Dict[str, Any] = Field(
        default_factory=dict,
        description=(
            "Journal policy as stored: work_hours_start, work_hours_end (HH:MM), work_days "
            "(Sunday = 0 ... Saturday = 6), office_locations, auto_approve_threshold_km, "
            "require_purpose_over_km. Malformed fields fall back to their permissive defaults."
        ),
    )
    geofences: List[GeofenceModel] = Field(default_factory=list)
    trips: List[TripRecordModel]
    history: Optional[List[TripRecordModel]] = Field(
        default=None,
        description="Approved trips used to suggest a classification when the rules leave a trip open.",
    )

    def policy_to_domain(self) -> JournalPolicy:
        return JournalPolicy.from_mapping(self.policy)


class TripEvaluationModel(BaseModel):
    entry_id: str
    classification: Optional[Literal["business", "private"]] = None
    flagged: bool
    flags: List[str]
    auto_approved: bool
    suggested: bool = False
    update: Dict[str, object] = Field(default_factory=dict)
    error: Optional[str] = None


class ClassifyResponse(BaseModel):
    evaluations: List[TripEvaluationModel]


class ProcessRequest(BaseModel):
    persist: bool = True
    use_history: bool = True


class BatchResultModel(BaseModel):
    status: str
    message: Optional[str] = None
    processed: int = 0
    categorized: int = 0
    suggestions: int = 0
    flagged: int = 0
    auto_approved: int = 0
    failed: int = 0
    outcomes: List[TripEvaluationModel] = Field(default_factory=list)


class MileageRequest(BaseModel):
    entry_ids: List[str] = Field(..., min_length=1)


class MileageResponse(BaseModel):
    updated: int
    total_allowance: float
    updates: Dict[str, dict]
