from __future__ import annotations

from enum import Enum


class ApprovalStatus(str, Enum):
    """Approval state of an attendance record as stored by the backend."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self is not ApprovalStatus.PENDING


class StagedField(str, Enum):
    """Editable columns of a staged attendance row."""

    NAME = "name"
    EMAIL = "email"
    PHONE = "phone"
    NOTE = "note"
    START_DATE = "startDate"
    START_TIME = "startTime"
    END_DATE = "endDate"
    END_TIME = "endTime"

    @property
    def is_time(self) -> bool:
        return self in (StagedField.START_TIME, StagedField.END_TIME)

    @property
    def is_date(self) -> bool:
        return self in (StagedField.START_DATE, StagedField.END_DATE)


class NoticeLevel(str, Enum):
    """Severity of a message surfaced to the operator (flash-style categories)."""

    SUCCESS = "success"
    WARNING = "warning"
    DANGER = "danger"
