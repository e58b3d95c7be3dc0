"""Driving-journal endpoints."""

from __future__ import annotations

import logging
from typing import Literal

from fastapi import APIRouter, HTTPException, Query, status
from fastapi.responses import Response

from ...models.domain import BatchResult, RecordOutcome
from ...persistence import database
from ...schemas.journal import (
    BatchResultModel,
    ClassifyRequest,
    ClassifyResponse,
    MileageRequest,
    MileageResponse,
    ProcessRequest,
    TripEvaluationModel,
)
from ...services.classification import evaluate_trip, run_journal_batch
from ...services.export import filter_entries_for_month, journal_to_csv, journal_to_xlsx
from ...services.mileage import apply_allowances

router = APIRouter(prefix="/journal", tags=["journal"])
logger = logging.getLogger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _outcome_model(outcome: RecordOutcome) -> TripEvaluationModel:
    return TripEvaluationModel(
        entry_id=outcome.entry_id,
        classification=outcome.classification,
        flagged=bool(outcome.flags),
        flags=outcome.flags,
        auto_approved=outcome.auto_approved,
        suggested=outcome.suggested,
        update=outcome.update,
        error=outcome.error,
    )


def _batch_model(result: BatchResult) -> BatchResultModel:
    return BatchResultModel(
        status=result.status,
        message=result.message,
        processed=result.processed,
        categorized=result.categorized,
        suggestions=result.suggestions,
        flagged=result.flagged,
        auto_approved=result.auto_approved,
        failed=result.failed,
        outcomes=[_outcome_model(outcome) for outcome in result.outcomes],
    )


@router.post("/classify", response_model=ClassifyResponse, status_code=status.HTTP_200_OK)
def classify(payload: ClassifyRequest) -> ClassifyResponse:
    """Evaluate the given trips without touching stored data."""
    policy = payload.policy_to_domain()
    geofences = [geofence.to_domain() for geofence in payload.geofences]
    history = [trip.to_domain() for trip in payload.history] if payload.history else None

    evaluations: list[TripEvaluationModel] = []
    for trip in payload.trips:
        record = trip.to_domain()
        try:
            evaluation = evaluate_trip(record, policy, geofences, history=history)
        except Exception as exc:
            logger.exception(f"Failed to classify trip {record.id}: {exc}")
            evaluations.append(
                TripEvaluationModel(
                    entry_id=record.id,
                    flagged=False,
                    flags=[],
                    auto_approved=False,
                    error=str(exc) or type(exc).__name__,
                )
            )
            continue
        evaluations.append(
            TripEvaluationModel(
                entry_id=record.id,
                classification=evaluation.classification,
                flagged=evaluation.flagged,
                flags=evaluation.flags,
                auto_approved=evaluation.auto_approved,
                suggested=evaluation.suggestion is not None,
                update=evaluation.update,
            )
        )
    return ClassifyResponse(evaluations=evaluations)


@router.post("/process", response_model=BatchResultModel, status_code=status.HTTP_200_OK)
def process(payload: ProcessRequest | None = None) -> BatchResultModel:
    """Run the scheduled journal batch against stored entries."""
    options = payload or ProcessRequest()
    try:
        result = run_journal_batch(persist=options.persist, use_history=options.use_history)
    except Exception as exc:
        logger.exception(f"Journal batch failed: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Journal batch failed: {str(exc)}",
        ) from exc
    return _batch_model(result)


@router.get("/export")
def export_journal(
    month: str = Query(..., pattern=r"^\d{4}-\d{2}$", description="Month to export, YYYY-MM"),
    vehicle_id: str | None = Query(default=None, description="Restrict to one vehicle ('all' for every vehicle)"),
    format: Literal["csv", "xlsx"] = Query(default="csv"),
) -> Response:
    try:
        entries = filter_entries_for_month(database.list_journal_entries(), month, vehicle_id)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    vehicles = database.list_vehicles()

    file_name = f"driving_journal_{month}.{format}"
    headers = {"Content-Disposition": f'attachment; filename="{file_name}"'}
    if format == "xlsx":
        return Response(content=journal_to_xlsx(entries, vehicles), media_type=XLSX_MEDIA_TYPE, headers=headers)
    return Response(
        content=journal_to_csv(entries, vehicles),
        media_type="text/csv; charset=utf-8",
        headers=headers,
    )


@router.post("/mileage", response_model=MileageResponse, status_code=status.HTTP_200_OK)
def mileage(payload: MileageRequest) -> MileageResponse:
    result = apply_allowances(payload.entry_ids)
    return MileageResponse(
        updated=len(result.updates),
        total_allowance=result.total_allowance,
        updates=result.updates,
    )
