"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_START_TIME = "09:00"
DEFAULT_END_TIME = "18:00"

TIME_INPUT_MAX_LENGTH = 5
INVALID_DURATION_DISPLAY = "--"

# Seconds/milliseconds suffix used when a time carries no sub-minute precision.
ZERO_TIME_SUFFIX = ":00:000"

DATE_FORMAT = "%Y-%m-%d"

# Spreadsheet spellings accepted on import, tried in order (month-first wins on ambiguity).
IMPORT_DATE_FORMATS = (
    "%m/%d/%Y",
    "%d/%m/%Y",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%y",
    "%Y/%m/%d",
    "%d-%m-%Y",
    "%d.%m.%Y",
    "%d %b %Y",
    "%d %B %Y",
    "%b %d %Y",
    "%b %d, %Y",
    "%B %d, %Y",
)
EXPORT_DATE_FORMAT = "%d-%m-%Y"

UNKNOWN_CANDIDATE_NAME = "Unknown"
