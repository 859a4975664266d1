from __future__ import annotations

import re
from datetime import datetime

from ..core.constants import ZERO_TIME_SUFFIX
from .model import SENTINEL, TimeComponents

_ISO_DATE_PREFIX = re.compile(r"^\d{4}-\d{2}-\d{2}")
# HH:mm:ss:SSS must be matched before anything else tries the fourth group.
_COLON_MILLIS = re.compile(r"^(\d{1,2}):(\d{2}):(\d{2}):(\d{3})$")
_DOTTED_MILLIS = re.compile(r"^(\d{1,2}):(\d{2}):(\d{2})\.(\d{1,3})$")
_CLOCK = re.compile(r"^(\d{1,2}):(\d{1,2})(?::(\d{2}))?$")
_TWELVE_HOUR = re.compile(r"^(\d{1,2}):(\d{2})\s*([AaPp][Mm])$")
_BARE_DIGITS = re.compile(r"^\d{1,4}$")

_STRICT_MAIN = re.compile(r"^(\d{1,2}):(\d{2})$")
_STRICT_SUFFIX = re.compile(r"^:(\d{2}):(\d{3})$")


def _components(hours, minutes, seconds=0, milliseconds=0) -> TimeComponents:
    try:
        return TimeComponents(int(hours), int(minutes), int(seconds), int(milliseconds))
    except ValueError:
        return SENTINEL


class TimeComponentParser:
    """Turn free-typed or machine-generated time text into ``TimeComponents``.

    Parsing is all-or-sentinel: a value is either understood completely or it
    becomes ``SENTINEL``. Nothing here raises on bad input.
    """

    @classmethod
    def parse(cls, raw: str | None) -> TimeComponents:
        if raw is None:
            return SENTINEL
        clean = str(raw).strip()
        if not clean:
            return SENTINEL

        if _ISO_DATE_PREFIX.match(clean):
            return cls._parse_iso(clean)

        m = _COLON_MILLIS.match(clean)
        if m:
            return _components(*m.groups())

        m = _DOTTED_MILLIS.match(clean)
        if m:
            hours, minutes, seconds, fraction = m.groups()
            return _components(hours, minutes, seconds, fraction.ljust(3, "0"))

        m = _CLOCK.match(clean)
        if m:
            hours, minutes, seconds = m.groups()
            return _components(hours, minutes, seconds or 0)

        m = _TWELVE_HOUR.match(clean)
        if m:
            return cls._parse_twelve_hour(*m.groups())

        if _BARE_DIGITS.match(clean):
            return cls._parse_digits(clean)

        return SENTINEL

    @staticmethod
    def _parse_iso(clean: str) -> TimeComponents:
        try:
            moment = datetime.fromisoformat(clean)
        except ValueError:
            return SENTINEL
        # Wall-clock time as written; the offset is not applied.
        return TimeComponents(moment.hour, moment.minute, moment.second, moment.microsecond // 1000)

    @staticmethod
    def _parse_twelve_hour(hours: str, minutes: str, meridiem: str) -> TimeComponents:
        h = int(hours)
        if not 1 <= h <= 12:
            return SENTINEL
        h = h % 12
        if meridiem.lower() == "pm":
            h += 12
        return _components(h, minutes)

    @staticmethod
    def _parse_digits(clean: str) -> TimeComponents:
        if len(clean) <= 2:
            return _components(clean, 0)
        return _components(clean[:-2], clean[-2:])

    @staticmethod
    def format(components: TimeComponents) -> str:
        """Canonical short display form ``HH:mm``."""
        return components.main

    @staticmethod
    def format_full(components: TimeComponents) -> str:
        """Wire form ``HH:mm:ss:SSS`` (colon-delimited milliseconds)."""
        return f"{components.main}{components.suffix}"

    @classmethod
    def split(cls, raw: str | None) -> tuple[str, str]:
        """Return the editable ``HH:mm`` main part and the ``:ss:SSS`` suffix."""
        components = cls.parse(raw)
        return components.main, components.suffix

    @staticmethod
    def join(main: str, suffix: str) -> str:
        return f"{main}{suffix or ZERO_TIME_SUFFIX}"

    @staticmethod
    def from_parts(main: str, suffix: str) -> TimeComponents:
        """Strictly rebuild a time from an edited main part and its preserved suffix.

        Unlike ``parse`` this accepts only ``H:mm``/``HH:mm`` for the main part, so
        half-typed editor values yield the sentinel until they are normalized.
        """
        m = _STRICT_MAIN.match((main or "").strip())
        if not m:
            return SENTINEL
        s = _STRICT_SUFFIX.match(suffix or ZERO_TIME_SUFFIX)
        if not s:
            return SENTINEL
        return _components(m.group(1), m.group(2), s.group(1), s.group(2))
