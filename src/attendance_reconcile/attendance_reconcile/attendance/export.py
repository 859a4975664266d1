from __future__ import annotations

import csv
import io
from typing import Iterable

from ..core.constants import EXPORT_DATE_FORMAT, INVALID_DURATION_DISPLAY
from ..timekeeping.duration import DurationCalculator
from .model import AttendanceRecord

EXPORT_HEADERS = [
    "Employee Name",
    "Email",
    "Start Date",
    "Start Time",
    "End Date",
    "End Time",
    "Duration",
    "Status",
]


def _date(value) -> str:
    return value.strftime(EXPORT_DATE_FORMAT) if value else INVALID_DURATION_DISPLAY


def _time(components) -> str:
    return INVALID_DURATION_DISPLAY if components.is_sentinel else components.main


def _duration(r: AttendanceRecord) -> str:
    # Stored minutes are authoritative; recompute only when the backend has none.
    if r.duration_minutes is not None:
        return DurationCalculator.format_minutes(r.duration_minutes)
    minutes = DurationCalculator.between(r.start_date, r.start_time, r.end_date, r.end_time)
    if minutes <= 0:
        return INVALID_DURATION_DISPLAY
    return DurationCalculator.format_minutes(minutes)


def export_row(r: AttendanceRecord) -> list[str]:
    return [
        r.employee_name or "Unknown",
        r.employee_email or "N/A",
        _date(r.start_date),
        _time(r.start_time),
        _date(r.end_date or r.start_date),
        _time(r.end_time),
        _duration(r),
        r.approval_status.value,
    ]


def write_attendance_csv(records: Iterable[AttendanceRecord]) -> bytes:
    """Every value quoted; UTF-8 with BOM so spreadsheet apps pick the encoding."""

    out = io.StringIO()
    writer = csv.writer(out, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(EXPORT_HEADERS)
    for r in records:
        writer.writerow(export_row(r))
    return out.getvalue().encode("utf-8-sig")
