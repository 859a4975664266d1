from __future__ import annotations

from ..attendance.model import ClockEvent
from ..attendance.repository import AttendanceRepository
from ..common.log import get_logger
from ..common.results import ActionResult
from ..core.enums import ApprovalStatus
from ..core.exceptions import InvalidTransitionError, NetworkError
from ..staging.store import StagingStore
from . import state
from .state import ApprovalBoard

logger = get_logger(__name__)


class ApprovalWorkflow:
    """Approve/reject pending committed records with optimistic removal.

    A record disappears from ``board`` as soon as a decision starts. If the
    backend call fails, the authoritative list is fetched again so the record
    reappears. Decisions on different records may run concurrently.
    """

    def __init__(self, company_id: str, attendance: AttendanceRepository):
        self._company_id = str(company_id)
        self._attendance = attendance
        self._board = ApprovalBoard()
        self._closed = False

    @property
    def board(self) -> ApprovalBoard:
        return self._board

    def can_act(self, record_id: str) -> bool:
        return self._board.can_act(record_id)

    async def refresh(self) -> ApprovalBoard:
        records = await self._attendance.list_pending(company_id=self._company_id)
        if not self._closed:
            self._board = state.reload(self._board, records)
        return self._board

    async def approve(self, record_id: str) -> ActionResult:
        return await self._decide(record_id, ApprovalStatus.APPROVED)

    async def reject(self, record_id: str) -> ActionResult:
        return await self._decide(record_id, ApprovalStatus.REJECTED)

    async def _decide(self, record_id: str, target: ApprovalStatus) -> ActionResult:
        record = self._board.record(record_id)
        if record is None:
            return ActionResult.refused(record_id, "Attendance is not pending")
        if self._board.is_processing(record_id):
            return ActionResult.refused(record_id, "Attendance is already being processed")
        try:
            state.transition(record.approval_status, target)
        except InvalidTransitionError as e:
            return ActionResult.refused(record_id, str(e))

        # Applied before the first await so the list updates immediately.
        self._board = state.begin(self._board, record_id)
        try:
            await self._attendance.set_approval_status(record_id=record_id, status=target)
        except NetworkError as e:
            logger.warning("%s of attendance %s failed: %s", target.value, record_id, e)
            if not self._closed:
                self._board = state.settle(self._board, record_id)
                await self._rollback(record)
            return ActionResult.failed(record_id, f"Failed to mark attendance {target.value}: {e}")

        if not self._closed:
            self._board = state.settle(self._board, record_id, decided=True)
        logger.info("attendance %s %s", record_id, target.value)
        return ActionResult.success(record_id, f"Attendance {target.value} successfully!")

    async def _rollback(self, record) -> None:
        try:
            records = await self._attendance.list_pending(company_id=self._company_id)
        except NetworkError as e:
            logger.warning("rollback re-fetch failed, restoring attendance %s locally: %s", record.record_id, e)
            if not self._closed:
                self._board = state.restore(self._board, record)
            return
        if not self._closed:
            self._board = state.reload(self._board, records)

    def close(self) -> None:
        self._closed = True


class StagedApproval:
    """Promote staged rows into approved attendance records.

    A row is eligible only while it has a resolved user and a positive
    duration. Failures leave the row staged with an inline error; nothing is
    retried.
    """

    def __init__(self, store: StagingStore, attendance: AttendanceRepository):
        self._store = store
        self._attendance = attendance
        self._processing: set[str] = set()
        self._errors: dict[str, str] = {}

    def is_processing(self, row_id: str) -> bool:
        return row_id in self._processing

    def error_for(self, row_id: str) -> str | None:
        return self._errors.get(row_id)

    def can_approve(self, row_id: str) -> bool:
        row = self._store.row(row_id)
        return row is not None and row.can_approve and row_id not in self._processing

    async def approve(self, row_id: str) -> ActionResult:
        row = self._store.row(row_id)
        if row is None:
            return ActionResult.refused(row_id, "Row is no longer staged")
        if not row.is_resolved:
            return ActionResult.refused(row_id, f"No employee matches {row.email}")
        if not row.has_valid_duration:
            return ActionResult.refused(row_id, "End time must be after start time")
        if row_id in self._processing:
            return ActionResult.refused(row_id, "Row is already being approved")

        self._processing.add(row_id)
        try:
            event = ClockEvent(
                user_id=row.matched_user_id,
                start_date=row.start_date,
                start_time=row.full_start_time,
                end_date=row.end_date,
                end_time=row.full_end_time,
                duration=row.numeric_duration,
                notes=row.note,
            )
            try:
                await self._attendance.create_clock_event(event)
            except NetworkError as e:
                logger.warning("approving staged row %s (%s) failed: %s", row_id, row.email, e)
                self._errors[row_id] = str(e)
                return ActionResult.failed(row_id, str(e) or "Failed to create")

            self._errors.pop(row_id, None)
            logger.info("staged row %s promoted for user %s", row_id, row.matched_user_id)
            try:
                await self._store.remove(row_id)
            except NetworkError as e:
                logger.warning("staged row %s approved but not removed from staging: %s", row_id, e)
                return ActionResult.failed(row_id, f"Approved {row.name}, but failed to remove entry: {e}")
        finally:
            self._processing.discard(row_id)

        return ActionResult.success(row_id, f"Approved: {row.name}")
