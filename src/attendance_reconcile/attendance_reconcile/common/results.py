from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from ..core.enums import NoticeLevel


@dataclass(frozen=True)
class ActionResult:
    """Outcome of an operator action, ready to be shown as a notification.

    ``performed`` is False when the action was refused locally (no network call
    was made).
    """

    ok: bool
    subject_id: str
    message: str
    level: NoticeLevel
    performed: bool = True
    payload: Optional[Any] = None

    @classmethod
    def success(cls, subject_id: str, message: str, *, payload: Any = None) -> "ActionResult":
        return cls(ok=True, subject_id=subject_id, message=message, level=NoticeLevel.SUCCESS, payload=payload)

    @classmethod
    def refused(cls, subject_id: str, message: str) -> "ActionResult":
        return cls(ok=False, subject_id=subject_id, message=message, level=NoticeLevel.WARNING, performed=False)

    @classmethod
    def failed(cls, subject_id: str, message: str) -> "ActionResult":
        return cls(ok=False, subject_id=subject_id, message=message, level=NoticeLevel.DANGER)
