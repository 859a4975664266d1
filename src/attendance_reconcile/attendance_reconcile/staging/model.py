from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from ..core.constants import ZERO_TIME_SUFFIX
from ..timekeeping.duration import DurationCalculator
from ..timekeeping.parser import TimeComponentParser


@dataclass(frozen=True)
class StagedAttendanceRow:
    """An imported attendance candidate awaiting reconciliation.

    ``start_time``/``end_time`` hold the editable ``HH:mm`` text; the matching
    ``*_suffix`` keeps the ``:ss:SSS`` precision the editor never shows.
    ``numeric_duration`` and ``display_duration`` are computed on construction
    (and therefore on every ``dataclasses.replace``) and cannot be passed in.
    ``matched_user_id`` is only a lookup key into the user directory.
    """

    row_id: str
    name: str
    email: str
    phone: str
    start_date: str
    start_time: str
    end_date: str
    end_time: str
    note: str = ""
    matched_user_id: Optional[str] = None
    start_suffix: str = ZERO_TIME_SUFFIX
    end_suffix: str = ZERO_TIME_SUFFIX
    numeric_duration: float = field(init=False)
    display_duration: str = field(init=False)

    def __post_init__(self):
        minutes = DurationCalculator.get_numeric_duration(
            self.start_date,
            self.start_time,
            self.start_suffix,
            self.end_date,
            self.end_time,
            self.end_suffix,
        )
        object.__setattr__(self, "numeric_duration", minutes)
        object.__setattr__(self, "display_duration", DurationCalculator.display(minutes))

    @property
    def is_resolved(self) -> bool:
        return self.matched_user_id is not None

    @property
    def has_valid_duration(self) -> bool:
        return self.numeric_duration > 0

    @property
    def can_approve(self) -> bool:
        return self.is_resolved and self.has_valid_duration

    @property
    def full_start_time(self) -> str:
        return TimeComponentParser.join(self.start_time, self.start_suffix)

    @property
    def full_end_time(self) -> str:
        return TimeComponentParser.join(self.end_time, self.end_suffix)


@dataclass(frozen=True)
class StagingBatch:
    """The single staging container of one company.

    ``batch_id`` is assigned by the backend; a batch that was never saved has
    none.
    """

    company_id: str
    batch_id: Optional[str] = None
    rows: tuple[StagedAttendanceRow, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.rows

    def row(self, row_id: str) -> Optional[StagedAttendanceRow]:
        for r in self.rows:
            if r.row_id == row_id:
                return r
        return None

    @property
    def unresolved_count(self) -> int:
        return sum(1 for r in self.rows if not r.is_resolved)
