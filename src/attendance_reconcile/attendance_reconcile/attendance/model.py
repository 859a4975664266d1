from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..core.enums import ApprovalStatus
from ..timekeeping.model import TimeComponents
from ..timekeeping.parser import TimeComponentParser


@dataclass(frozen=True)
class AttendanceRecord:
    """Snapshot of a committed attendance record owned by the backend."""

    record_id: str
    user_id: Optional[str]
    start_date: Optional[date]
    start_time: TimeComponents
    end_date: Optional[date]
    end_time: TimeComponents
    duration_minutes: Optional[float]
    approval_status: ApprovalStatus
    notes: str = ""
    employee_name: str = ""
    employee_email: str = ""

    @property
    def full_start_time(self) -> str:
        return TimeComponentParser.format_full(self.start_time)

    @property
    def full_end_time(self) -> str:
        return TimeComponentParser.format_full(self.end_time)


@dataclass(frozen=True)
class ClockEvent:
    """A manual clock event that the backend stores as an approved record."""

    user_id: str
    start_date: str
    start_time: str
    end_date: str
    end_time: str
    duration: float
    notes: str = ""
    shift_id: Optional[str] = None

    def to_payload(self) -> dict:
        payload = {
            "userId": self.user_id,
            "startDate": self.start_date,
            "startTime": self.start_time,
            "endDate": self.end_date,
            "endTime": self.end_time,
            "duration": self.duration,
            "notes": self.notes,
            "eventType": "manual",
            "clockType": "manual",
            "approvalStatus": ApprovalStatus.APPROVED.value,
        }
        if self.shift_id:
            payload["shiftId"] = self.shift_id
        return payload
