"""Route calculation request/response schemas."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class RouteRequest(BaseModel):
    start_lat: float = Field(..., alias="startLat", ge=-90, le=90)
    start_lng: float = Field(..., alias="startLng", ge=-180, le=180)
    end_lat: float = Field(..., alias="endLat", ge=-90, le=90)
    end_lng: float = Field(..., alias="endLng", ge=-180, le=180)

    model_config = {"populate_by_name": True}


class RouteResponse(BaseModel):
    distance_km: float
    duration_minutes: float
    route_geojson: Optional[dict] = None
    summary: str
