"""Classification suggestions learned from a driver's approved trips."""

from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass
from typing import Optional, Sequence

from ...models.domain import TRIP_BUSINESS, TRIP_PENDING, TripRecord
from ..geospatial import haversine_m
from ..worktime import to_local

MAX_HOUR_DIFFERENCE = 2
MAX_DISTANCE_RATIO = 0.3
MAX_ENDPOINT_DISTANCE_M = 500.0
MIN_CONFIDENCE = 0.6


@dataclass(slots=True)
class Suggestion:
    trip_type: str
    confidence: float
    similar_trips_count: int
    reasoning: str
    purpose: Optional[str] = None
    project_code: Optional[str] = None
    customer: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "trip_type": self.trip_type,
            "confidence": round(self.confidence, 3),
            "similar_trips_count": self.similar_trips_count,
            "reasoning": self.reasoning,
            "purpose": self.purpose,
            "project_code": self.project_code,
            "customer": self.customer,
        }


def _endpoint_distance(a, b) -> float:
    if a is None or b is None or not a.has_coordinates or not b.has_coordinates:
        return math.inf
    return haversine_m(a.latitude, a.longitude, b.latitude, b.longitude)


def _is_similar(entry: TripRecord, candidate: TripRecord) -> bool:
    if entry.start_time is None or candidate.start_time is None:
        return False
    hour_diff = abs(to_local(entry.start_time).hour - to_local(candidate.start_time).hour)
    if hour_diff > MAX_HOUR_DIFFERENCE:
        return False

    entry_distance = entry.distance_km or 0.0
    candidate_distance = candidate.distance_km or 0.0
    if entry_distance > 0 and candidate_distance > 0:
        if abs(entry_distance - candidate_distance) / entry_distance > MAX_DISTANCE_RATIO:
            return False

    both_have_start = (
        entry.start_location is not None
        and entry.start_location.has_coordinates
        and candidate.start_location is not None
        and candidate.start_location.has_coordinates
    )
    if not both_have_start:
        return True

    start_dist = _endpoint_distance(entry.start_location, candidate.start_location)
    end_dist = _endpoint_distance(entry.end_location, candidate.end_location)
    return start_dist < MAX_ENDPOINT_DISTANCE_M or end_dist < MAX_ENDPOINT_DISTANCE_M


def _most_common(values: Sequence[Optional[str]]) -> Optional[str]:
    counts = Counter(value for value in values if value)
    if not counts:
        return None
    return counts.most_common(1)[0][0]


def suggest_classification(entry: TripRecord, history: Sequence[TripRecord] | None) -> Optional[Suggestion]:
    """Suggest a trip type from similar approved trips of the same driver and vehicle."""
    if not history or not entry.driver_email:
        return None

    relevant = [
        trip
        for trip in history
        if trip.id != entry.id
        and trip.driver_email == entry.driver_email
        and trip.vehicle_id == entry.vehicle_id
        and trip.trip_type != TRIP_PENDING
    ]
    similar = [trip for trip in relevant if _is_similar(entry, trip)]
    if not similar:
        return None

    type_counts = Counter(trip.trip_type for trip in similar)
    trip_type, count = type_counts.most_common(1)[0]
    confidence = count / len(similar)
    if confidence < MIN_CONFIDENCE:
        return None

    suggestion = Suggestion(
        trip_type=trip_type,
        confidence=confidence,
        similar_trips_count=len(similar),
        reasoning=f"{len(similar)} similar earlier trips",
    )
    if trip_type == TRIP_BUSINESS:
        business = [trip for trip in similar if trip.trip_type == TRIP_BUSINESS]
        purposes = [trip.purpose if isinstance(trip.purpose, str) else None for trip in business]
        suggestion.purpose = _most_common(purposes)
        suggestion.project_code = _most_common([trip.project_code for trip in business])
        suggestion.customer = _most_common([trip.customer for trip in business])
    return suggestion
