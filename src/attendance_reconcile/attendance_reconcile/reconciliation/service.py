from __future__ import annotations

from typing import Optional

from ..attendance.model import AttendanceRecord
from ..attendance.repository import AttendanceRepository
from ..common.log import get_logger
from ..common.results import ActionResult
from ..core.enums import StagedField
from ..core.exceptions import NetworkError, ValidationError
from . import model
from .model import ReconciliationDraft

logger = get_logger(__name__)


class ReconciliationController:
    """In-place correction of committed records' start/end date and time.

    One draft per record id; each draft is saved independently.
    """

    def __init__(self, attendance: AttendanceRepository):
        self._attendance = attendance
        self._records: dict[str, AttendanceRecord] = {}
        self._drafts: dict[str, ReconciliationDraft] = {}
        self._saving: set[str] = set()

    def begin(self, record: AttendanceRecord) -> ReconciliationDraft:
        draft = ReconciliationDraft.from_record(record)
        self._records[record.record_id] = record
        self._drafts[record.record_id] = draft
        return draft

    def draft(self, record_id: str) -> Optional[ReconciliationDraft]:
        return self._drafts.get(record_id)

    def _require_draft(self, record_id: str) -> ReconciliationDraft:
        draft = self._drafts.get(record_id)
        if draft is None:
            raise ValidationError("Record is not being edited")
        return draft

    def edit(self, record_id: str, field: StagedField, value: str) -> ReconciliationDraft:
        draft = model.edit(self._require_draft(record_id), field, value)
        self._drafts[record_id] = draft
        return draft

    def blur(self, record_id: str, field: StagedField, value: str) -> ReconciliationDraft:
        draft = model.blur(self._require_draft(record_id), field, value)
        self._drafts[record_id] = draft
        return draft

    def is_saving(self, record_id: str) -> bool:
        return record_id in self._saving

    def can_save(self, record_id: str) -> bool:
        draft = self._drafts.get(record_id)
        return draft is not None and draft.is_valid and record_id not in self._saving

    def cancel(self, record_id: str) -> None:
        self._drafts.pop(record_id, None)
        self._records.pop(record_id, None)

    async def save(self, record_id: str) -> ActionResult:
        draft = self._drafts.get(record_id)
        if draft is None:
            return ActionResult.refused(record_id, "Record is not being edited")
        if record_id in self._saving:
            return ActionResult.refused(record_id, "Save already in progress")
        if not draft.is_valid:
            return ActionResult.refused(record_id, "End time must be after start time")

        self._saving.add(record_id)
        try:
            await self._attendance.update_times(
                record_id=record_id,
                start_date=draft.start_date,
                start_time=draft.full_start_time,
                end_date=draft.end_date,
                end_time=draft.full_end_time,
                duration=draft.numeric_duration,
            )
        except NetworkError as e:
            logger.warning("saving corrected times for record %s failed: %s", record_id, e)
            return ActionResult.failed(record_id, f"Failed to update record: {e}")
        finally:
            self._saving.discard(record_id)

        record = self._records.get(record_id)
        updated = draft.applied_to(record) if record else None
        if self._drafts.get(record_id) is draft:
            self._records.pop(record_id, None)
            self._drafts.pop(record_id, None)
        elif updated is not None:
            # Edited while the save was in flight; the newer draft stays open on the saved record.
            self._records[record_id] = updated
        logger.info("record %s corrected to %s %s - %s %s", record_id, draft.start_date, draft.full_start_time, draft.end_date, draft.full_end_time)
        return ActionResult.success(record_id, "Record updated", payload=updated)
