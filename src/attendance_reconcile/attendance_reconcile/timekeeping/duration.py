from __future__ import annotations

import math
from datetime import date, datetime

from ..common.datetime_utils import try_parse_iso_date
from ..core.constants import INVALID_DURATION_DISPLAY
from .model import TimeComponents
from .parser import TimeComponentParser


class DurationCalculator:
    """Elapsed time between two explicit (date, time) instants.

    Zero is the only invalidity signal: unparseable sides, sentinel times and
    ``end <= start`` all produce ``0``. An end time earlier than the start time
    is never rolled to the next day; overnight shifts need a later end date.
    """

    @staticmethod
    def _instant(day: date | None, components: TimeComponents) -> datetime | None:
        if day is None or components.is_sentinel:
            return None
        return datetime(
            day.year,
            day.month,
            day.day,
            components.hours,
            components.minutes,
            components.seconds,
            components.milliseconds * 1000,
        )

    @classmethod
    def between(
        cls,
        start_date: date | None,
        start_time: TimeComponents,
        end_date: date | None,
        end_time: TimeComponents,
    ) -> float:
        start = cls._instant(start_date, start_time)
        end = cls._instant(end_date, end_time)
        if start is None or end is None or end <= start:
            return 0.0
        return (end - start).total_seconds() / 60

    @classmethod
    def get_numeric_duration(
        cls,
        start_date: str,
        start_main: str,
        start_suffix: str,
        end_date: str,
        end_main: str,
        end_suffix: str,
    ) -> float:
        return cls.between(
            try_parse_iso_date(start_date),
            TimeComponentParser.from_parts(start_main, start_suffix),
            try_parse_iso_date(end_date),
            TimeComponentParser.from_parts(end_main, end_suffix),
        )

    @classmethod
    def calculate_display_duration(
        cls,
        start_date: str,
        start_main: str,
        start_suffix: str,
        end_date: str,
        end_main: str,
        end_suffix: str,
    ) -> str:
        minutes = cls.get_numeric_duration(start_date, start_main, start_suffix, end_date, end_main, end_suffix)
        return cls.display(minutes)

    @staticmethod
    def display(minutes: float) -> str:
        """``H:MM`` from the floor of total minutes, ``--`` when invalid."""
        if minutes <= 0:
            return INVALID_DURATION_DISPLAY
        total = math.floor(minutes)
        return f"{total // 60}:{total % 60:02d}"

    @staticmethod
    def format_minutes(minutes: float | None) -> str:
        """Long form used in exports, e.g. 448 -> ``7h 28m``."""
        if minutes is None:
            return INVALID_DURATION_DISPLAY
        total = math.floor(minutes)
        return f"{total // 60}h {total % 60}m"
