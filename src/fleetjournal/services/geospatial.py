"""Geospatial helper functions."""

from __future__ import annotations

import math
from typing import Iterable, Optional

from ..models.domain import OfficeLocation

EARTH_RADIUS_M = 6_371_000.0
DEFAULT_OFFICE_RADIUS_M = 500.0


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute distance in meters between two coordinates using the Haversine formula.

    Non-numeric or non-finite input produces NaN rather than an exception.
    """

    try:
        phi1, phi2 = math.radians(lat1), math.radians(lat2)
        d_phi = math.radians(lat2 - lat1)
        d_lambda = math.radians(lon2 - lon1)
    except (TypeError, ValueError):
        return math.nan

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    if math.isnan(a):
        return math.nan
    # rounding can push a marginally outside [0, 1] for antipodal points
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    return haversine_m(lat1, lon1, lat2, lon2) / 1000.0


def is_within_radius(lat: float, lon: float, center_lat: float, center_lon: float, radius_m: float) -> bool:
    """Return True if the point lies inside or on the boundary of the circle."""

    return haversine_m(lat, lon, center_lat, center_lon) <= radius_m


def within_any_office(
    lat: Optional[float],
    lon: Optional[float],
    offices: Iterable[OfficeLocation],
    default_radius_m: float = DEFAULT_OFFICE_RADIUS_M,
) -> bool:
    """Return True on the first office whose radius contains the point."""

    if lat is None or lon is None:
        return False
    for office in offices:
        radius = office.radius_meters or default_radius_m
        if is_within_radius(lat, lon, office.latitude, office.longitude, radius):
            return True
    return False
