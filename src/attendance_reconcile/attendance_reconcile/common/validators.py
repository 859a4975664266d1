from __future__ import annotations

import re

from ..core.exceptions import ValidationError

_STRICT_CLOCK = re.compile(r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$")


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_clock(value: str, field_name: str) -> str:
    """Accept only a 24-hour ``H:MM``/``HH:MM`` value."""
    if not value or not _STRICT_CLOCK.match(value.strip()):
        raise ValidationError(f"{field_name} must be in HH:MM format (e.g. 09:00)")
    return value.strip()
