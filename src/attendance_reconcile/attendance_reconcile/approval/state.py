from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, Optional

from ..attendance.model import AttendanceRecord
from ..core.enums import ApprovalStatus
from ..core.exceptions import InvalidTransitionError


def transition(current: ApprovalStatus, target: ApprovalStatus) -> ApprovalStatus:
    """pending -> approved | rejected; terminal states never move again."""

    if current.is_terminal:
        raise InvalidTransitionError(f"Attendance already {current.value}")
    if not target.is_terminal:
        raise InvalidTransitionError(f"Cannot move attendance to {target.value}")
    return target


@dataclass(frozen=True)
class ApprovalBoard:
    """Visible pending records, the ids whose decision is in flight, and the ids
    already decided in this session.
    """

    records: tuple[AttendanceRecord, ...] = ()
    processing: frozenset[str] = frozenset()
    decided: frozenset[str] = frozenset()

    def record(self, record_id: str) -> Optional[AttendanceRecord]:
        for r in self.records:
            if r.record_id == record_id:
                return r
        return None

    def is_processing(self, record_id: str) -> bool:
        return record_id in self.processing

    def can_act(self, record_id: str) -> bool:
        record = self.record(record_id)
        return (
            record is not None
            and not record.approval_status.is_terminal
            and record_id not in self.processing
        )


def begin(board: ApprovalBoard, record_id: str) -> ApprovalBoard:
    """Optimistically drop the record from view and mark it in flight."""

    return replace(
        board,
        records=tuple(r for r in board.records if r.record_id != record_id),
        processing=board.processing | {record_id},
    )


def settle(board: ApprovalBoard, record_id: str, *, decided: bool = False) -> ApprovalBoard:
    """Clear the in-flight mark; a successful decision is remembered as final."""

    if decided:
        return replace(board, processing=board.processing - {record_id}, decided=board.decided | {record_id})
    return replace(board, processing=board.processing - {record_id})


def reload(board: ApprovalBoard, records: Iterable[AttendanceRecord]) -> ApprovalBoard:
    """Replace the visible list with authoritative data.

    Records still in flight stay hidden until their own call resolves. Decided
    records stay hidden too: a listing fetched before the decision landed still
    reports them as pending.
    """

    hidden = board.processing | board.decided
    return replace(board, records=tuple(r for r in records if r.record_id not in hidden))


def restore(board: ApprovalBoard, record: AttendanceRecord) -> ApprovalBoard:
    """Put a record back when the authoritative list cannot be fetched."""

    if board.record(record.record_id) is not None:
        return board
    return replace(board, records=board.records + (record,))
