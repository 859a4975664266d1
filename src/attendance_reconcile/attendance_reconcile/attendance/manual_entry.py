from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..common.datetime_utils import try_parse_iso_date
from ..common.log import get_logger
from ..common.validators import require_clock, require_non_empty
from ..core.constants import ZERO_TIME_SUFFIX
from ..core.exceptions import ValidationError
from ..timekeeping.duration import DurationCalculator
from ..timekeeping.editing import normalize_time_text
from .model import ClockEvent
from .repository import AttendanceRepository

logger = get_logger(__name__)


@dataclass(frozen=True)
class ManualEntry:
    user_id: str
    start_date: str
    clock_in: str
    end_date: str
    clock_out: str
    notes: str = ""
    shift_id: Optional[str] = None


class ManualEntryService:
    """Create an approved attendance record for an employee by hand."""

    def __init__(self, attendance: AttendanceRepository):
        self._attendance = attendance

    @staticmethod
    def normalize_clock(value: str) -> str:
        """Blur handling for the clock fields: ``9`` -> ``09:00``, ``930`` -> ``09:30``."""
        if not (value or "").strip():
            return ""
        return normalize_time_text(value)

    def build_event(self, entry: ManualEntry) -> ClockEvent:
        user_id = require_non_empty(entry.user_id or "", "Employee")
        clock_in = require_clock(entry.clock_in, "Clock In")
        clock_out = require_clock(entry.clock_out, "Clock Out")

        start = try_parse_iso_date(entry.start_date)
        if start is None:
            raise ValidationError("Start Date is required")
        end = try_parse_iso_date(entry.end_date)
        if end is None:
            raise ValidationError("End Date is required")

        start_main = normalize_time_text(clock_in)
        end_main = normalize_time_text(clock_out)
        minutes = DurationCalculator.get_numeric_duration(
            start.isoformat(), start_main, ZERO_TIME_SUFFIX, end.isoformat(), end_main, ZERO_TIME_SUFFIX
        )
        if minutes <= 0:
            raise ValidationError("End time must be after start time")

        return ClockEvent(
            user_id=user_id,
            start_date=start.isoformat(),
            start_time=f"{start_main}{ZERO_TIME_SUFFIX}",
            end_date=end.isoformat(),
            end_time=f"{end_main}{ZERO_TIME_SUFFIX}",
            duration=minutes,
            notes=(entry.notes or "").strip(),
            shift_id=entry.shift_id or None,
        )

    async def create(self, entry: ManualEntry) -> ClockEvent:
        event = self.build_event(entry)
        await self._attendance.create_clock_event(event)
        logger.info("manual attendance created for user %s on %s", event.user_id, event.start_date)
        return event
