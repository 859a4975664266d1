from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class TimeComponents:
    """Canonical, fully populated time of day.

    Unparseable input is represented by ``TimeComponents.SENTINEL`` (all zeros)
    instead of ``None``; duration code treats the sentinel as invalid.
    """

    hours: int = 0
    minutes: int = 0
    seconds: int = 0
    milliseconds: int = 0

    def __post_init__(self):
        if not 0 <= self.hours <= 23:
            raise ValueError(f"hours out of range: {self.hours}")
        if not 0 <= self.minutes <= 59:
            raise ValueError(f"minutes out of range: {self.minutes}")
        if not 0 <= self.seconds <= 59:
            raise ValueError(f"seconds out of range: {self.seconds}")
        if not 0 <= self.milliseconds <= 999:
            raise ValueError(f"milliseconds out of range: {self.milliseconds}")

    @property
    def is_sentinel(self) -> bool:
        return self == SENTINEL

    @property
    def main(self) -> str:
        """The user-editable ``HH:mm`` portion."""
        return f"{self.hours:02d}:{self.minutes:02d}"

    @property
    def suffix(self) -> str:
        """The preserved ``:ss:SSS`` portion."""
        return f":{self.seconds:02d}:{self.milliseconds:03d}"


SENTINEL = TimeComponents()
