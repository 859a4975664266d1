from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Iterable, Mapping, Optional, Sequence

from ..common.datetime_utils import coerce_calendar_date, try_parse_iso_date
from ..core.constants import (
    DEFAULT_END_TIME,
    DEFAULT_START_TIME,
    UNKNOWN_CANDIDATE_NAME,
)
from ..core.enums import StagedField
from ..core.exceptions import BatchConflictError
from ..directory.service import IdentityIndex
from ..timekeeping.editing import normalize_time_text, sanitize_time_input
from ..timekeeping.parser import TimeComponentParser
from .model import StagedAttendanceRow, StagingBatch

RawCsvRow = Mapping[str, Optional[str]]

# First non-empty header variant wins.
HEADER_VARIANTS: dict[str, tuple[str, ...]] = {
    "name": ("name", "Employee"),
    "email": ("email", "Email"),
    "phone": ("phone", "Phone"),
    "note": ("note", "Note"),
    "start_date": ("start_date",),
    "end_date": ("end_date",),
    "start_time": ("start_time",),
    "end_time": ("end_time",),
}

_ROW_ATTRS = {
    StagedField.NAME: "name",
    StagedField.EMAIL: "email",
    StagedField.PHONE: "phone",
    StagedField.NOTE: "note",
    StagedField.START_DATE: "start_date",
    StagedField.START_TIME: "start_time",
    StagedField.END_DATE: "end_date",
    StagedField.END_TIME: "end_time",
}


def _cell(row: RawCsvRow, key: str) -> str:
    for header in HEADER_VARIANTS[key]:
        value = row.get(header)
        if value is not None and str(value).strip():
            return str(value).strip()
    return ""


def ingest(
    raw_rows: Sequence[RawCsvRow],
    *,
    index: IdentityIndex,
    today: date,
    default_start_time: str = DEFAULT_START_TIME,
    default_end_time: str = DEFAULT_END_TIME,
) -> list[StagedAttendanceRow]:
    """Map parsed CSV rows to staged rows.

    Rows without an email are dropped. Temporary ids keep the source row
    position so operators can trace a staged row back to the file.
    """

    staged: list[StagedAttendanceRow] = []
    for position, raw in enumerate(raw_rows):
        email = _cell(raw, "email")
        if not email:
            continue

        start_main, start_suffix = TimeComponentParser.split(_cell(raw, "start_time") or default_start_time)
        end_main, end_suffix = TimeComponentParser.split(_cell(raw, "end_time") or default_end_time)

        staged.append(
            StagedAttendanceRow(
                row_id=f"temp_{position}",
                name=_cell(raw, "name") or UNKNOWN_CANDIDATE_NAME,
                email=email,
                phone=_cell(raw, "phone"),
                note=_cell(raw, "note"),
                start_date=coerce_calendar_date(_cell(raw, "start_date"), default=today),
                start_time=start_main,
                start_suffix=start_suffix,
                end_date=coerce_calendar_date(_cell(raw, "end_date"), default=today),
                end_time=end_main,
                end_suffix=end_suffix,
                matched_user_id=index.resolve(email),
            )
        )
    return staged


def resolve_identities(rows: Iterable[StagedAttendanceRow], index: IdentityIndex) -> list[StagedAttendanceRow]:
    """Fill ``matched_user_id`` for rows the backend left unmatched."""

    out: list[StagedAttendanceRow] = []
    for r in rows:
        if r.matched_user_id is None:
            user_id = index.resolve(r.email)
            if user_id is not None:
                r = replace(r, matched_user_id=user_id)
        out.append(r)
    return out


def rematch(batch: StagingBatch, row_id: str, index: IdentityIndex) -> StagingBatch:
    """Resolve a row again after its email was edited."""

    row = batch.row(row_id)
    if row is None:
        return batch
    return _replace_row(batch, row_id, replace(row, matched_user_id=index.resolve(row.email)))


def _replace_row(batch: StagingBatch, row_id: str, updated: StagedAttendanceRow) -> StagingBatch:
    return replace(batch, rows=tuple(updated if r.row_id == row_id else r for r in batch.rows))


def edit_field(batch: StagingBatch, row_id: str, field: StagedField, value: str) -> StagingBatch:
    """Apply one editor change to a row; duration is re-derived by the row itself.

    Edits to a row that is no longer staged are ignored.
    """

    row = batch.row(row_id)
    if row is None:
        return batch

    attr = _ROW_ATTRS[field]
    processed = "" if value is None else str(value)
    if field.is_time:
        processed = sanitize_time_input(processed, getattr(row, attr))
    elif field.is_date:
        parsed = try_parse_iso_date(processed)
        processed = parsed.isoformat() if parsed else processed.strip()

    return _replace_row(batch, row_id, replace(row, **{attr: processed}))


def normalize_on_blur(batch: StagingBatch, row_id: str, field: StagedField, value: str) -> StagingBatch:
    """Rewrite a free-typed time to canonical ``HH:mm`` when the field loses focus."""

    if not field.is_time:
        return batch
    row = batch.row(row_id)
    if row is None:
        return batch

    normalized = normalize_time_text(value)
    return _replace_row(batch, row_id, replace(row, **{_ROW_ATTRS[field]: normalized}))


def remove_row(batch: StagingBatch, row_id: str) -> StagingBatch:
    return replace(batch, rows=tuple(r for r in batch.rows if r.row_id != row_id))


def ensure_can_open(batch: Optional[StagingBatch]) -> None:
    if batch is not None and not batch.is_empty:
        raise BatchConflictError("Please clear current list first.")


def to_staging_payload(company_id: str, rows: Iterable[StagedAttendanceRow]) -> dict:
    """Body of ``POST /staging-batch``; times travel as ``HH:mm:ss:SSS``."""

    return {
        "companyId": company_id,
        "attendances": [
            {
                "name": r.name,
                "email": r.email,
                "phone": r.phone,
                "startDate": r.start_date,
                "startTime": r.full_start_time,
                "endDate": r.end_date,
                "endTime": r.full_end_time,
                "duration": r.numeric_duration,
                "note": r.note,
            }
            for r in rows
        ],
    }
