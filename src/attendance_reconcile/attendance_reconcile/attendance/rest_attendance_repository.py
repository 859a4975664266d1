from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional, Sequence

from ..api.connection import ApiConnection
from ..api.rest_base import call, ref_id, result_list, text
from ..common.datetime_utils import format_iso_date
from ..core.enums import ApprovalStatus
from ..timekeeping.parser import TimeComponentParser
from .model import AttendanceRecord, ClockEvent
from .repository import AttendanceRepository


def _as_date(value: Any) -> Optional[date]:
    if value is None:
        return None
    try:
        return datetime.fromisoformat(str(value).strip()).date()
    except ValueError:
        return None


def _as_minutes(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _as_status(value: Any) -> ApprovalStatus:
    try:
        return ApprovalStatus(str(value or "").strip().lower())
    except ValueError:
        return ApprovalStatus.PENDING


def record_from_json(raw: dict[str, Any]) -> Optional[AttendanceRecord]:
    record_id = ref_id(raw.get("_id") or raw.get("id"))
    if not record_id:
        return None

    user = raw.get("userId")
    user_info = user if isinstance(user, dict) else {}
    name = f"{text(user_info.get('firstName'))} {text(user_info.get('lastName'))}".strip()

    start_date = _as_date(raw.get("startDate")) or _as_date(raw.get("createdAt"))
    end_date = _as_date(raw.get("endDate")) or start_date

    return AttendanceRecord(
        record_id=record_id,
        user_id=ref_id(user),
        start_date=start_date,
        start_time=TimeComponentParser.parse(text(raw.get("startTime") or raw.get("clockIn"))),
        end_date=end_date,
        end_time=TimeComponentParser.parse(text(raw.get("endTime") or raw.get("clockOut"))),
        duration_minutes=_as_minutes(raw.get("duration")),
        approval_status=_as_status(raw.get("approvalStatus")),
        notes=text(raw.get("notes")),
        employee_name=name,
        employee_email=text(user_info.get("email")),
    )


class RestAttendanceRepository(AttendanceRepository):
    def __init__(self, conn: ApiConnection):
        self._conn = conn

    async def list_pending(self, *, company_id: str) -> Sequence[AttendanceRecord]:
        body = await call(
            self._conn,
            "GET",
            "/attendance",
            params={"companyId": company_id, "approvalStatus": ApprovalStatus.PENDING.value, "limit": "all"},
        )
        records = [record_from_json(r) for r in result_list(body)]
        return [r for r in records if r is not None]

    async def list_records(
        self,
        *,
        company_id: str,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
        user_id: Optional[str] = None,
        status: Optional[ApprovalStatus] = None,
    ) -> Sequence[AttendanceRecord]:
        params = {"companyId": company_id, "limit": "all"}
        if from_date:
            params["fromDate"] = format_iso_date(from_date)
        if to_date:
            params["toDate"] = format_iso_date(to_date)
        if user_id:
            params["userId"] = user_id
        if status:
            params["approvalStatus"] = status.value
        body = await call(self._conn, "GET", "/attendance", params=params)
        records = [record_from_json(r) for r in result_list(body)]
        return [r for r in records if r is not None]

    async def set_approval_status(self, *, record_id: str, status: ApprovalStatus) -> None:
        await call(self._conn, "PATCH", f"/attendance/{record_id}", json={"approvalStatus": status.value})

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
        await call(
            self._conn,
            "PATCH",
            f"/attendance/{record_id}",
            json={
                "startDate": start_date,
                "startTime": start_time,
                "endDate": end_date,
                "endTime": end_time,
                "duration": duration,
                "clockIn": start_time,
                "clockOut": end_time,
            },
        )

    async def create_clock_event(self, event: ClockEvent) -> None:
        await call(self._conn, "POST", "/attendance/clock-event", json=event.to_payload())
