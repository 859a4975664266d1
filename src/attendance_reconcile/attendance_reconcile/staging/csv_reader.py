from __future__ import annotations

import csv
import io
from typing import Union

from ..core.exceptions import CsvImportError
from .transitions import RawCsvRow


def read_csv_rows(content: Union[bytes, str]) -> list[RawCsvRow]:
    """Parse an uploaded CSV (header row required) into dict rows.

    Blank lines are skipped; a leading UTF-8 BOM is tolerated.
    """

    if isinstance(content, bytes):
        try:
            content = content.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise CsvImportError("CSV Parse Error: file is not UTF-8 encoded") from e
    else:
        content = content.lstrip("\ufeff")

    reader = csv.DictReader(io.StringIO(content, newline=""))
    try:
        rows = [
            {(k or "").strip(): v for k, v in row.items() if k is not None}
            for row in reader
            if any((v or "").strip() for v in row.values() if isinstance(v, str))
        ]
    except csv.Error as e:
        raise CsvImportError(f"CSV Parse Error: {e}") from e

    if not rows:
        raise CsvImportError("CSV file is empty")
    return rows
