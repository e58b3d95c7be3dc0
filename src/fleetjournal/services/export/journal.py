"""Driving-journal exports for payroll and tax reporting."""

from __future__ import annotations

import calendar
import csv
import io
from datetime import datetime
from typing import Optional, Sequence

from openpyxl import Workbook

from ...models.domain import STATUS_APPROVED, STATUS_SUBMITTED, TRIP_BUSINESS, TRIP_PRIVATE, TripRecord, Vehicle
from ..worktime import to_local

HEADERS = [
    "Registration",
    "Vehicle",
    "Driver",
    "Date",
    "Start time",
    "End time",
    "Distance (km)",
    "Duration (min)",
    "Type",
    "Purpose",
    "Project",
    "Customer",
    "Status",
    "Anomaly",
    "Start location",
    "End location",
]

_TYPE_LABELS = {TRIP_BUSINESS: "Business", TRIP_PRIVATE: "Private"}
_STATUS_LABELS = {STATUS_APPROVED: "Approved", STATUS_SUBMITTED: "Submitted"}


def filter_entries_for_month(
    entries: Sequence[TripRecord], month: str, vehicle_id: Optional[str] = None
) -> list[TripRecord]:
    """Entries starting in ``YYYY-MM`` (local time), optionally for one vehicle."""
    try:
        year, month_number = (int(part) for part in month.split("-", 1))
        calendar.monthrange(year, month_number)
    except ValueError as exc:
        raise ValueError(f"Invalid month '{month}', expected YYYY-MM") from exc

    selected = []
    for entry in entries:
        if entry.start_time is None:
            continue
        local = to_local(entry.start_time)
        if local.year != year or local.month != month_number:
            continue
        if vehicle_id and vehicle_id != "all" and entry.vehicle_id != vehicle_id:
            continue
        selected.append(entry)
    return selected


def _fmt_time(value: Optional[datetime], pattern: str) -> str:
    return to_local(value).strftime(pattern) if value else ""


def _row(entry: TripRecord, vehicle_map: dict[str, Vehicle]) -> list:
    vehicle = vehicle_map.get(entry.vehicle_id or "")
    vehicle_label = " ".join(part for part in (vehicle.make, vehicle.model) if part) if vehicle else ""
    return [
        entry.registration_number or (vehicle.registration_number if vehicle else "") or "",
        vehicle_label,
        entry.driver_name or "",
        _fmt_time(entry.start_time, "%Y-%m-%d"),
        _fmt_time(entry.start_time, "%H:%M:%S"),
        _fmt_time(entry.end_time, "%H:%M:%S"),
        f"{entry.distance_km or 0.0:.2f}",
        round(entry.duration_minutes or 0),
        _TYPE_LABELS.get(entry.trip_type, "Not set"),
        entry.purpose if isinstance(entry.purpose, str) else "",
        entry.project_code or "",
        entry.customer or "",
        _STATUS_LABELS.get(entry.status, "Pending"),
        "Yes" if entry.is_anomaly else "No",
        (entry.start_location.address if entry.start_location else None) or "",
        (entry.end_location.address if entry.end_location else None) or "",
    ]


def journal_to_csv(entries: Sequence[TripRecord], vehicles: Sequence[Vehicle] = ()) -> str:
    """Semicolon-separated, fully quoted, prefixed with a UTF-8 BOM for spreadsheet tools."""
    vehicle_map = {vehicle.id: vehicle for vehicle in vehicles}
    buffer = io.StringIO()
    buffer.write("\ufeff")
    writer = csv.writer(buffer, delimiter=";", quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(HEADERS)
    for entry in entries:
        writer.writerow(_row(entry, vehicle_map))
    return buffer.getvalue()


def journal_to_xlsx(entries: Sequence[TripRecord], vehicles: Sequence[Vehicle] = ()) -> bytes:
    vehicle_map = {vehicle.id: vehicle for vehicle in vehicles}
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Journal"
    sheet.append(HEADERS)
    for entry in entries:
        row = _row(entry, vehicle_map)
        row[6] = float(row[6])
        sheet.append(row)
    sheet.freeze_panes = "A2"
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()
