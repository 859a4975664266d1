from __future__ import annotations

from datetime import date, datetime

from ..core.constants import DATE_FORMAT, IMPORT_DATE_FORMATS


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, DATE_FORMAT).date()


def try_parse_iso_date(value: str | None) -> date | None:
    try:
        return parse_iso_date((value or "").strip())
    except ValueError:
        return None


def format_iso_date(value: date) -> str:
    return value.strftime(DATE_FORMAT)


def coerce_calendar_date(value, *, default: date) -> str:
    """Format any date-ish value (date, ISO date or timestamp, spreadsheet date) as YYYY-MM-DD.

    Garbage falls back to ``default`` so imported rows always carry a usable date.
    """
    if isinstance(value, datetime):
        return format_iso_date(value.date())
    if isinstance(value, date):
        return format_iso_date(value)

    text = str(value or "").strip()
    if text:
        try:
            return format_iso_date(datetime.fromisoformat(text).date())
        except ValueError:
            pass
        for fmt in IMPORT_DATE_FORMATS:
            try:
                return format_iso_date(datetime.strptime(text, fmt).date())
            except ValueError:
                continue
    return format_iso_date(default)


def today_local() -> date:
    """Current local date.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return date.today()
