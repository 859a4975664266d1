"""Example: preview a CSV import with the service layer (no Flask, no backend).

Rows are parsed and normalized exactly as they would be staged; identities are
resolved against an in-memory directory instead of the REST user list.
"""

import sys
from datetime import date

from src.attendance_reconcile.attendance_reconcile.directory.model import DirectoryUser
from src.attendance_reconcile.attendance_reconcile.directory.service import IdentityIndex
from src.attendance_reconcile.attendance_reconcile.staging.csv_reader import read_csv_rows
from src.attendance_reconcile.attendance_reconcile.staging.transitions import ingest


def main(path: str):
    with open(path, "rb") as f:
        raw_rows = read_csv_rows(f.read())

    index = IdentityIndex([DirectoryUser(user_id="demo-1", email="an@example.com", first_name="An", last_name="Nguyen")])
    for row in ingest(raw_rows, index=index, today=date.today()):
        status = "ready" if row.can_approve else "needs attention"
        print(f"{row.row_id:<8} {row.email:<28} {row.start_date} {row.full_start_time} -> "
              f"{row.end_date} {row.full_end_time}  {row.display_duration:>6}  {status}")


if __name__ == "__main__":
    main(sys.argv[1] if len(sys.argv) > 1 else "attendance.csv")
