"""GPS sync request/response schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List

from pydantic import BaseModel, model_validator


class SyncTripsRequest(BaseModel):
    vehicle_id: str
    start_date: datetime
    end_date: datetime

    @model_validator(mode="after")
    def _check_range(self) -> "SyncTripsRequest":
        if self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        return self


class SyncTripsResponse(BaseModel):
    success: bool = True
    synced: int
    skipped: int
    trips: List[dict]
    skipped_details: List[dict]
