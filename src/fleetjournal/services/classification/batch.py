"""Scheduled processing of pending driving-journal entries."""

from __future__ import annotations

import csv
import io
import logging
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Sequence

from ...models.domain import TRIP_PENDING, BatchResult, Geofence, JournalPolicy, RecordOutcome, TripRecord
from ...persistence import database
from ...persistence.filesystem import FileStorage
from .classifier import evaluate_trip

logger = logging.getLogger(__name__)


def process_journal(
    entries: Sequence[TripRecord],
    policy: JournalPolicy | None,
    geofences: Sequence[Geofence] = (),
    history: Sequence[TripRecord] | None = None,
    now: datetime | None = None,
) -> BatchResult:
    """Evaluate every pending entry; a failing entry is reported and the batch continues."""
    if policy is None or not policy.auto_categorize_enabled:
        return BatchResult(status="skipped", message="Automatic journal processing is not enabled")

    timestamp = now or datetime.now(timezone.utc)
    result = BatchResult(status="success")

    for entry in entries:
        if entry.trip_type != TRIP_PENDING:
            continue
        outcome = RecordOutcome(entry_id=entry.id)
        try:
            evaluation = evaluate_trip(entry, policy, geofences, history=history, now=timestamp)
        except Exception as exc:
            logger.exception(f"Failed to evaluate journal entry {entry.id}: {exc}")
            outcome.error = str(exc) or type(exc).__name__
            result.failed += 1
            result.outcomes.append(outcome)
            continue

        outcome.update = evaluation.update
        outcome.classification = evaluation.classification
        outcome.flags = list(evaluation.flags)
        outcome.auto_approved = evaluation.auto_approved
        outcome.suggested = evaluation.suggestion is not None

        if outcome.suggested:
            result.suggestions += 1
        elif evaluation.classification is not None:
            result.categorized += 1
        if evaluation.flagged:
            result.flagged += 1
        if evaluation.auto_approved:
            result.auto_approved += 1
        if evaluation.update:
            result.processed += 1
        result.outcomes.append(outcome)

    logger.info(
        f"Journal batch evaluated {len(result.outcomes)} entries: {result.processed} updated, "
        f"{result.auto_approved} auto-approved, {result.flagged} flagged, {result.failed} failed"
    )
    return result


def batch_result_to_json(result: BatchResult) -> dict:
    return asdict(result)


def batch_result_to_csv(result: BatchResult) -> str:
    buffer = io.StringIO()
    fieldnames = ["entry_id", "classification", "auto_approved", "suggested", "flags", "error"]
    writer = csv.DictWriter(buffer, fieldnames=fieldnames)
    writer.writeheader()
    for outcome in result.outcomes:
        writer.writerow(
            {
                "entry_id": outcome.entry_id,
                "classification": outcome.classification or "",
                "auto_approved": outcome.auto_approved,
                "suggested": outcome.suggested,
                "flags": ". ".join(outcome.flags),
                "error": outcome.error or "",
            }
        )
    return buffer.getvalue()


def run_journal_batch(persist: bool = True, use_history: bool = True) -> BatchResult:
    """Load pending entries from the database, evaluate them and write the updates back."""
    policy = database.load_journal_policy()
    if policy is None:
        logger.info("No journal policy configured - skipping journal batch")
        return BatchResult(status="skipped", message="No journal policy configured")

    entries = database.list_journal_entries(trip_type=TRIP_PENDING)
    geofences = database.list_geofences(active_only=True)
    history = database.list_journal_entries(status="approved") if use_history else None

    result = process_journal(entries, policy, geofences, history=history)
    if result.status != "success" or not persist:
        return result

    for outcome in result.outcomes:
        if outcome.error or not outcome.update:
            continue
        if not database.update_journal_entry(outcome.entry_id, outcome.update):
            outcome.error = "Failed to save journal entry update"
            result.failed += 1

    run_dir = FileStorage().save_batch_run(batch_result_to_json(result), batch_result_to_csv(result))
    logger.info(f"Journal batch summary written to {run_dir}")
    return result
