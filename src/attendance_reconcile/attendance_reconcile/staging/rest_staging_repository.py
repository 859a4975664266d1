from __future__ import annotations

from datetime import date
from typing import Any, Optional, Sequence

from ..api.connection import ApiConnection
from ..api.rest_base import call, ref_id, result_list, text
from ..common.datetime_utils import coerce_calendar_date, today_local
from ..core.exceptions import NetworkError
from ..timekeeping.parser import TimeComponentParser
from .model import StagedAttendanceRow, StagingBatch
from .repository import StagingRepository
from .transitions import to_staging_payload


def staged_row_from_json(raw: dict[str, Any], *, today: date) -> Optional[StagedAttendanceRow]:
    row_id = ref_id(raw.get("_id") or raw.get("id"))
    if not row_id:
        return None

    start_main, start_suffix = TimeComponentParser.split(text(raw.get("startTime")))
    end_main, end_suffix = TimeComponentParser.split(text(raw.get("endTime")))
    return StagedAttendanceRow(
        row_id=row_id,
        name=text(raw.get("name")),
        email=text(raw.get("email")),
        phone=text(raw.get("phone")),
        note=text(raw.get("note")),
        start_date=coerce_calendar_date(raw.get("startDate"), default=today),
        start_time=start_main,
        start_suffix=start_suffix,
        end_date=coerce_calendar_date(raw.get("endDate"), default=today),
        end_time=end_main,
        end_suffix=end_suffix,
        matched_user_id=ref_id(raw.get("userId")),
    )


def batch_from_json(raw: dict[str, Any], *, company_id: str, today: date) -> StagingBatch:
    items = raw.get("attendances") or []
    rows = [staged_row_from_json(i, today=today) for i in items if isinstance(i, dict)]
    return StagingBatch(
        company_id=company_id,
        batch_id=ref_id(raw.get("_id") or raw.get("id")),
        rows=tuple(r for r in rows if r is not None),
    )


class RestStagingRepository(StagingRepository):
    def __init__(self, conn: ApiConnection):
        self._conn = conn

    async def fetch_batch(self, *, company_id: str) -> Optional[StagingBatch]:
        try:
            body = await call(self._conn, "GET", "/staging-batch", params={"companyId": company_id})
        except NetworkError as e:
            # "Nothing staged" is reported as 404 by some deployments.
            if e.status_code == 404:
                return None
            raise

        docs = result_list(body)
        if not docs:
            return None
        return batch_from_json(docs[0], company_id=company_id, today=today_local())

    async def create_batch(self, *, company_id: str, rows: Sequence[StagedAttendanceRow]) -> None:
        await call(self._conn, "POST", "/staging-batch", json=to_staging_payload(company_id, rows))

    async def remove_row(self, *, batch_id: str, row_id: str) -> None:
        await call(self._conn, "PATCH", f"/staging-batch/{batch_id}", json={"attendanceId": row_id})

    async def delete_batch(self, *, batch_id: str) -> None:
        await call(self._conn, "DELETE", f"/staging-batch/{batch_id}")
