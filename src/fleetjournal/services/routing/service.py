"""Route distance and duration between two trip end points."""

from __future__ import annotations

import logging

from ...schemas.routing import RouteRequest, RouteResponse
from .osrm_client import OSRMClient

logger = logging.getLogger(__name__)


def calculate_route(payload: RouteRequest) -> RouteResponse:
    try:
        osrm_client = OSRMClient()
    except ValueError as e:
        logger.error(f"OSRM client initialization failed: {e}")
        raise ValueError("OSRM service is not configured. Please check FJ_OSRM_BASE_URL setting.") from e

    data = osrm_client.route(
        [
            (payload.start_lat, payload.start_lng),
            (payload.end_lat, payload.end_lng),
        ]
    )
    routes = data.get("routes") or []
    if not routes:
        raise ValueError("Could not calculate route")

    route = routes[0]
    distance_km = float(route.get("distance", 0.0)) / 1000.0
    duration_minutes = float(route.get("duration", 0.0)) / 60.0
    return RouteResponse(
        distance_km=distance_km,
        duration_minutes=duration_minutes,
        route_geojson=route.get("geometry"),
        summary=f"{distance_km:.1f} km, {round(duration_minutes)} min",
    )
