from __future__ import annotations

from dataclasses import dataclass, field, replace

from ..attendance.model import AttendanceRecord
from ..common.datetime_utils import format_iso_date, try_parse_iso_date
from ..core.enums import StagedField
from ..core.exceptions import ValidationError
from ..timekeeping.duration import DurationCalculator
from ..timekeeping.editing import normalize_time_text, sanitize_time_input
from ..timekeeping.parser import TimeComponentParser

_EDITABLE = {
    StagedField.START_DATE: "start_date",
    StagedField.START_TIME: "start_time",
    StagedField.END_DATE: "end_date",
    StagedField.END_TIME: "end_time",
}


@dataclass(frozen=True)
class ReconciliationDraft:
    """Editable copy of a committed record's start/end.

    The suffixes are copied from the stored record and never edited, so saving
    a minute change keeps the stored seconds and milliseconds.
    """

    record_id: str
    start_date: str
    start_time: str
    start_suffix: str
    end_date: str
    end_time: str
    end_suffix: str
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

    @classmethod
    def from_record(cls, record: AttendanceRecord) -> "ReconciliationDraft":
        return cls(
            record_id=record.record_id,
            start_date=format_iso_date(record.start_date) if record.start_date else "",
            start_time=record.start_time.main,
            start_suffix=record.start_time.suffix,
            end_date=format_iso_date(record.end_date) if record.end_date else "",
            end_time=record.end_time.main,
            end_suffix=record.end_time.suffix,
        )

    @property
    def is_valid(self) -> bool:
        return self.numeric_duration > 0

    @property
    def full_start_time(self) -> str:
        return TimeComponentParser.join(self.start_time, self.start_suffix)

    @property
    def full_end_time(self) -> str:
        return TimeComponentParser.join(self.end_time, self.end_suffix)

    def applied_to(self, record: AttendanceRecord) -> AttendanceRecord:
        """The record as it looks once this draft is saved."""
        return replace(
            record,
            start_date=try_parse_iso_date(self.start_date),
            start_time=TimeComponentParser.from_parts(self.start_time, self.start_suffix),
            end_date=try_parse_iso_date(self.end_date),
            end_time=TimeComponentParser.from_parts(self.end_time, self.end_suffix),
            duration_minutes=self.numeric_duration,
        )


def _attr(field_: StagedField) -> str:
    try:
        return _EDITABLE[field_]
    except KeyError:
        raise ValidationError(f"{field_.value} cannot be edited on a committed record") from None


def edit(draft: ReconciliationDraft, field_: StagedField, value: str) -> ReconciliationDraft:
    attr = _attr(field_)
    processed = "" if value is None else str(value)
    if field_.is_time:
        processed = sanitize_time_input(processed, getattr(draft, attr))
    else:
        parsed = try_parse_iso_date(processed)
        processed = parsed.isoformat() if parsed else processed.strip()
    return replace(draft, **{attr: processed})


def blur(draft: ReconciliationDraft, field_: StagedField, value: str) -> ReconciliationDraft:
    attr = _attr(field_)
    if not field_.is_time:
        return draft
    return replace(draft, **{attr: normalize_time_text(value)})
