"""Geofence tracking orchestration: load state, detect transitions, save state."""

from __future__ import annotations

import logging
from typing import Sequence

from ...models.domain import Geofence, GeofenceEvent, PositionSample
from ...persistence import database
from ...persistence.geofence_state import get_state_store
from .detector import detect_transitions, state_key

logger = logging.getLogger(__name__)


def track_positions(
    samples: Sequence[PositionSample],
    geofences: Sequence[Geofence] | None = None,
    store=None,
) -> list[GeofenceEvent]:
    """Run detection for a batch of samples against persisted per-pair state."""
    fences = list(geofences) if geofences is not None else database.list_geofences(active_only=True)
    state_store = store or get_state_store()

    keys = {state_key(sample.entity_id, fence.id) for sample in samples for fence in fences}
    previous = state_store.load(keys)
    events, states = detect_transitions(previous, samples, fences)
    changed = {key: value for key, value in states.items() if previous.get(key) != value}
    if changed:
        state_store.save(changed)

    logger.info(
        f"Geofence tracking: {len(samples)} samples against {len(fences)} geofences, "
        f"{len(events)} transitions, {len(changed)} states updated"
    )
    return events
