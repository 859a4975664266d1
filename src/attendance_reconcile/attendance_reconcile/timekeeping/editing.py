from __future__ import annotations

import re

from ..core.constants import TIME_INPUT_MAX_LENGTH
from .parser import TimeComponentParser

_NOT_TIME_CHARS = re.compile(r"[^\d:]")


def sanitize_time_input(value: str, previous: str) -> str:
    """Keystroke filter for ``HH:mm`` fields.

    Keeps digits and colons, caps the length, and appends the colon only when
    the text grows from one to two characters (so backspacing over the colon
    does not re-insert it).
    """

    processed = _NOT_TIME_CHARS.sub("", value or "")
    if len(processed) > TIME_INPUT_MAX_LENGTH:
        processed = processed[:TIME_INPUT_MAX_LENGTH]
    if len(processed) == 2 and len(previous or "") == 1:
        processed = processed + ":"
    return processed


def normalize_time_text(value: str) -> str:
    """Blur handler: any accepted spelling becomes ``HH:mm``; garbage becomes ``00:00``."""
    return TimeComponentParser.format(TimeComponentParser.parse(value))
