"""Geofence enter/exit detection over position samples."""

from __future__ import annotations

from typing import Mapping, Sequence

from ...models.domain import EVENT_ENTERED, EVENT_EXITED, Geofence, GeofenceEvent, PositionSample, state_key
from ..geospatial import haversine_m


def detect_transitions(
    previous_states: Mapping[str, bool],
    samples: Sequence[PositionSample],
    geofences: Sequence[Geofence],
) -> tuple[list[GeofenceEvent], dict[str, bool]]:
    """Compare each sample against every active geofence.

    Returns the transition events and the updated state map. The first sample
    seen for an (entity, geofence) pair only records its state. Pairs not
    touched by ``samples`` keep their previous value.
    """
    states = dict(previous_states)
    events: list[GeofenceEvent] = []
    active = [geofence for geofence in geofences if geofence.is_active]
    if not active:
        return events, states

    for sample in sorted(samples, key=lambda item: item.timestamp):
        for geofence in active:
            distance = haversine_m(sample.latitude, sample.longitude, geofence.latitude, geofence.longitude)
            inside = distance <= geofence.radius_meters
            key = state_key(sample.entity_id, geofence.id)
            was_inside = states.get(key)
            states[key] = inside

            if was_inside is None or was_inside == inside:
                continue
            events.append(
                GeofenceEvent(
                    entity_id=sample.entity_id,
                    geofence_id=geofence.id,
                    geofence_name=geofence.name,
                    event_type=EVENT_ENTERED if inside else EVENT_EXITED,
                    timestamp=sample.timestamp,
                    distance_m=distance,
                    auto_classify_as=geofence.auto_classify_as,
                )
            )
    return events, states
