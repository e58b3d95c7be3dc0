"""GPS vendor endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from ...models.domain import TokenCache
from ...schemas.gps import SyncTripsRequest, SyncTripsResponse
from ...services.gps import GPSApiError, GPSClient, sync_vehicle_trips
from ..dependencies import get_token_cache

router = APIRouter(prefix="/gps", tags=["gps"])
logger = logging.getLogger(__name__)


@router.post("/sync-trips", response_model=SyncTripsResponse, status_code=status.HTTP_200_OK)
def sync_trips(payload: SyncTripsRequest, token_cache: TokenCache = Depends(get_token_cache)) -> SyncTripsResponse:
    """Pull a vehicle's trips from the GPS vendor into the driving journal."""
    try:
        with GPSClient(token_cache) as client:
            result = sync_vehicle_trips(payload.vehicle_id, payload.start_date, payload.end_date, client)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except GPSApiError as exc:
        logger.error(f"GPS sync failed for vehicle {payload.vehicle_id}: {exc}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception(f"Unexpected error syncing GPS trips: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to sync GPS trips: {str(exc)}",
        ) from exc

    return SyncTripsResponse(
        synced=len(result.new_entries),
        skipped=len(result.skipped),
        trips=result.new_entries,
        skipped_details=result.skipped,
    )
