from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import ApprovalStatus
from .model import AttendanceRecord, ClockEvent


class AttendanceRepository(Protocol):
    async def list_pending(self, *, company_id: str) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    async def list_records(
        self,
        *,
        company_id: str,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
        user_id: Optional[str] = None,
        status: Optional[ApprovalStatus] = None,
    ) -> Sequence[AttendanceRecord]:
        """Committed records of any status, filtered by start date range, employee and status."""

        raise NotImplementedError

    async def set_approval_status(self, *, record_id: str, status: ApprovalStatus) -> None:
        raise NotImplementedError

    async def update_times(
        self,
        *,
        record_id: str,
        start_date: str,
        start_time: str,
        end_date: str,
        end_time: str,
        duration: float,
    ) -> None:
        """Persist corrected times; legacy ``clockIn``/``clockOut`` are sent alongside."""

        raise NotImplementedError

    async def create_clock_event(self, event: ClockEvent) -> None:
        raise NotImplementedError
