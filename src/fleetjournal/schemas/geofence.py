"""Geofence detection request/response schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from ..models.domain import Geofence, GeofenceEvent, PositionSample


class GeofenceModel(BaseModel):
    id: str
    name: str
    latitude: float
    longitude: float
    radius_meters: float = Field(..., ge=0)
    is_active: bool = True
    auto_classify_as: Optional[Literal["business", "private"]] = None

    def to_domain(self) -> Geofence:
        return Geofence(**self.model_dump())


class PositionSampleModel(BaseModel):
    entity_id: str
    latitude: float
    longitude: float
    timestamp: datetime

    def to_domain(self) -> PositionSample:
        return PositionSample(**self.model_dump())


class GeofenceEventModel(BaseModel):
    entity_id: str
    geofence_id: str
    geofence_name: str
    event_type: Literal["entered", "exited"]
    timestamp: datetime
    distance_m: float
    auto_classify_as: Optional[str] = None

    @classmethod
    def from_domain(cls, event: GeofenceEvent) -> "GeofenceEventModel":
        return cls(
            entity_id=event.entity_id,
            geofence_id=event.geofence_id,
            geofence_name=event.geofence_name,
            event_type=event.event_type,
            timestamp=event.timestamp,
            distance_m=event.distance_m,
            auto_classify_as=event.auto_classify_as,
        )


class DetectRequest(BaseModel):
    previous_state: Dict[str, bool] = Field(
        default_factory=dict,
        description="Last known inside flag keyed by 'entity_id:geofence_id'.",
    )
    geofences: List[GeofenceModel]
    samples: List[PositionSampleModel]


class DetectResponse(BaseModel):
    events: List[GeofenceEventModel]
    state: Dict[str, bool]


class TrackRequest(BaseModel):
    samples: List[PositionSampleModel]
    geofences: Optional[List[GeofenceModel]] = Field(
        default=None,
        description="Geofences to evaluate; the stored active geofences are used when omitted.",
    )


class TrackResponse(BaseModel):
    events: List[GeofenceEventModel]
