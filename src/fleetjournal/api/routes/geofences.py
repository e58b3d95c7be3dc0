"""Geofence detection endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from ...schemas.geofence import DetectRequest, DetectResponse, GeofenceEventModel, TrackRequest, TrackResponse
from ...services.geofence import detect_transitions, track_positions

router = APIRouter(prefix="/geofences", tags=["geofences"])
logger = logging.getLogger(__name__)


@router.post("/detect", response_model=DetectResponse, status_code=status.HTTP_200_OK)
def detect(payload: DetectRequest) -> DetectResponse:
    """Detect transitions against caller-supplied state and return the new state."""
    events, state = detect_transitions(
        payload.previous_state,
        [sample.to_domain() for sample in payload.samples],
        [geofence.to_domain() for geofence in payload.geofences],
    )
    return DetectResponse(events=[GeofenceEventModel.from_domain(event) for event in events], state=state)


@router.post("/track", response_model=TrackResponse, status_code=status.HTTP_200_OK)
def track(payload: TrackRequest) -> TrackResponse:
    """Detect transitions using the persisted per-vehicle geofence state."""
    geofences = [geofence.to_domain() for geofence in payload.geofences] if payload.geofences is not None else None
    try:
        events = track_positions([sample.to_domain() for sample in payload.samples], geofences)
    except Exception as exc:
        logger.exception(f"Geofence tracking failed: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Geofence tracking failed: {str(exc)}",
        ) from exc
    return TrackResponse(events=[GeofenceEventModel.from_domain(event) for event in events])
