from __future__ import annotations

import io
from dataclasses import replace
from datetime import date

from flask import Flask

from src.attendance_reconcile.attendance_reconcile.attendance.controller import register as register_attendance
from src.attendance_reconcile.attendance_reconcile.attendance.manual_entry import ManualEntryService
from src.attendance_reconcile.attendance_reconcile.attendance.model import AttendanceRecord
from src.attendance_reconcile.attendance_reconcile.container import Container, DeskRegistry
from src.attendance_reconcile.attendance_reconcile.core.enums import ApprovalStatus
from src.attendance_reconcile.attendance_reconcile.core.exceptions import NetworkError
from src.attendance_reconcile.attendance_reconcile.directory.model import DirectoryUser
from src.attendance_reconcile.attendance_reconcile.directory.service import DirectoryService
from src.attendance_reconcile.attendance_reconcile.main import create_app
from src.attendance_reconcile.attendance_reconcile.reconciliation.service import ReconciliationController
from src.attendance_reconcile.attendance_reconcile.staging.controller import register as register_staging
from src.attendance_reconcile.attendance_reconcile.staging.model import StagingBatch
from src.attendance_reconcile.attendance_reconcile.timekeeping.model import TimeComponents


class FakeUsersRepo:
    async def list_users(self, *, company_id):
        return [DirectoryUser(user_id="u-1", email="an@example.com", first_name="An", last_name="Nguyen")]


class FakeStagingRepo:
    def __init__(self):
        self.batch = None

    async def fetch_batch(self, *, company_id):
        return self.batch

    async def create_batch(self, *, company_id, rows):
        self.batch = StagingBatch(
            company_id=company_id,
            batch_id="b-1",
            rows=tuple(replace(r, row_id=f"s-{i}") for i, r in enumerate(rows, start=1)),
        )

    async def remove_row(self, *, batch_id, row_id):
        self.batch = replace(self.batch, rows=tuple(r for r in self.batch.rows if r.row_id != row_id))

    async def delete_batch(self, *, batch_id):
        self.batch = None


class FakeAttendanceRepo:
    def __init__(self, records=(), *, fail_decisions=False):
        self.records = list(records)
        self.fail_decisions = fail_decisions
        self.events = []
        self.updates = []
        self.record_queries = []

    async def list_pending(self, *, company_id):
        return [r for r in self.records if r.approval_status is ApprovalStatus.PENDING]

    async def list_records(self, *, company_id, from_date=None, to_date=None, user_id=None, status=None):
        self.record_queries.append({"from_date": from_date, "to_date": to_date, "user_id": user_id, "status": status})
        return [
            r for r in self.records
            if (status is None or r.approval_status is status)
            and (from_date is None or r.start_date >= from_date)
            and (to_date is None or r.start_date <= to_date)
            and (user_id is None or r.user_id == user_id)
        ]

    async def set_approval_status(self, *, record_id, status):
        if self.fail_decisions:
            raise NetworkError("Server unavailable", status_code=503)
        self.records = [replace(r, approval_status=status) if r.record_id == record_id else r for r in self.records]

    async def update_times(self, **kwargs):
        self.updates.append(kwargs)

    async def create_clock_event(self, event):
        self.events.append(event)


def _record(record_id="a-1") -> AttendanceRecord:
    return AttendanceRecord(
        record_id=record_id,
        user_id="u-1",
        start_date=date(2024, 5, 10),
        start_time=TimeComponents(9, 0, 15, 0),
        end_date=date(2024, 5, 10),
        end_time=TimeComponents(17, 0),
        duration_minutes=479.75,
        approval_status=ApprovalStatus.PENDING,
        employee_name="An Nguyen",
        employee_email="an@example.com",
    )


def _app(attendance=None):
    attendance = attendance or FakeAttendanceRepo([_record()])
    staging = FakeStagingRepo()
    users = FakeUsersRepo()
    directory = DirectoryService(users)
    container = Container(
        conn=None,
        attendance_repo=attendance,
        staging_repo=staging,
        directory_repo=users,
        directory_service=directory,
        reconciliation=ReconciliationController(attendance),
        manual_entry_service=ManualEntryService(attendance),
        desks=DeskRegistry(attendance=attendance, staging=staging, directory=directory),
    )
    app = Flask(__name__)
    register_staging(app, container)
    register_attendance(app, container)
    return app, attendance, staging


CSV = b"name,email,start_date,start_time,end_date,end_time\nAn,an@example.com,2024-05-10,08:00,2024-05-10,16:30\n"


def _upload(client, content=CSV):
    return client.post(
        "/api/companies/c-1/staging",
        data={"file": (io.BytesIO(content), "attendance.csv")},
        content_type="multipart/form-data",
    )


def test_upload_then_load_staging_batch():
    app, _, _ = _app()
    client = app.test_client()

    res = _upload(client)
    assert res.status_code == 200
    assert res.get_json()["data"]["rows"][0]["displayDuration"] == "8:30"

    res = client.get("/api/companies/c-1/staging")
    row = res.get_json()["data"]["rows"][0]
    assert row["id"] == "s-1"
    assert row["matchedUserId"] == "u-1"
    assert row["canApprove"] is True


def test_second_upload_is_refused_while_rows_are_staged():
    app, _, _ = _app()
    client = app.test_client()
    _upload(client)

    res = _upload(client)

    assert res.status_code == 400
    assert res.get_json()["message"] == "Please clear current list first."


def test_edit_row_with_blur_and_unknown_field():
    app, _, _ = _app()
    client = app.test_client()
    _upload(client)

    res = client.patch("/api/companies/c-1/staging/rows/s-1", json={"field": "endTime", "value": "1745", "blur": True})
    assert res.status_code == 200
    assert res.get_json()["data"]["endTime"] == "17:45"
    assert res.get_json()["data"]["displayDuration"] == "9:45"

    res = client.patch("/api/companies/c-1/staging/rows/s-1", json={"field": "salary", "value": "1"})
    assert res.status_code == 400


def test_approve_staged_row_creates_record_and_unstages_it():
    app, attendance, staging = _app()
    client = app.test_client()
    _upload(client)

    res = client.post("/api/companies/c-1/staging/rows/s-1/approve")

    assert res.status_code == 200
    assert attendance.events[0].user_id == "u-1"
    assert staging.batch is None


def test_pending_list_and_failed_reject_reports_gateway_error():
    app, _, _ = _app(FakeAttendanceRepo([_record()], fail_decisions=True))
    client = app.test_client()

    res = client.get("/api/companies/c-1/attendance/pending")
    assert [r["id"] for r in res.get_json()["data"]] == ["a-1"]

    res = client.post("/api/companies/c-1/attendance/a-1/reject")
    body = res.get_json()
    assert res.status_code == 502
    assert body["level"] == "danger"
    assert [r["id"] for r in body["data"]] == ["a-1"]


def test_approve_twice_is_refused_the_second_time():
    app, _, _ = _app()
    client = app.test_client()
    client.get("/api/companies/c-1/attendance/pending")

    assert client.post("/api/companies/c-1/attendance/a-1/approve").status_code == 200
    assert client.post("/api/companies/c-1/attendance/a-1/approve").status_code == 409


def test_reconcile_round_trip_keeps_precision():
    app, attendance, _ = _app()
    client = app.test_client()
    client.get("/api/companies/c-1/attendance/pending")

    res = client.post("/api/companies/c-1/attendance/a-1/reconcile")
    assert res.get_json()["data"]["startTime"] == "09:00"

    res = client.patch("/api/attendance/a-1/reconcile", json={"field": "startTime", "value": "08:30"})
    assert res.get_json()["data"]["fullStartTime"] == "08:30:15:000"

    res = client.post("/api/attendance/a-1/reconcile/save")
    assert res.status_code == 200
    assert attendance.updates[0]["start_time"] == "08:30:15:000"


def test_manual_entry_validation_error_is_bad_request():
    app, attendance, _ = _app()
    client = app.test_client()

    res = client.post(
        "/api/attendance/manual",
        json={"userId": "u-1", "startDate": "2024-05-10", "clockIn": "18:00", "clockOut": "09:00"},
    )
    assert res.status_code == 400

    res = client.post(
        "/api/attendance/manual",
        json={"userId": "u-1", "startDate": "2024-05-10", "clockIn": "09:00", "clockOut": "18:00"},
    )
    assert res.status_code == 201
    assert attendance.events[0].duration == 540


def test_export_returns_csv_attachment():
    app, _, _ = _app()
    client = app.test_client()

    res = client.get("/api/companies/c-1/attendance/export")

    assert res.status_code == 200
    assert res.mimetype == "text/csv"
    assert "attachment" in res.headers["Content-Disposition"]
    assert b'"An Nguyen"' in res.data


def test_create_app_wires_routes_with_testing_settings(monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")

    app = create_app()

    rules = {r.rule for r in app.url_map.iter_rules()}
    assert "/api/companies/<company_id>/staging" in rules
    assert "/api/attendance/<record_id>/reconcile/save" in rules
    assert app.config["TESTING"] is True


def _approved(record_id="a-9", day=date(2024, 5, 3)) -> AttendanceRecord:
    return replace(_record(record_id), approval_status=ApprovalStatus.APPROVED, start_date=day, end_date=day)


def test_export_contains_filtered_records_of_any_status():
    attendance = FakeAttendanceRepo([_record(), _approved()])
    app, _, _ = _app(attendance)
    client = app.test_client()

    res = client.get("/api/companies/c-1/attendance/export?approvalStatus=approved&fromDate=2024-05-01&toDate=2024-05-31")

    lines = res.data.decode("utf-8-sig").strip().split("\n")
    assert res.status_code == 200
    assert len(lines) == 2
    assert lines[1].endswith('"approved"')
    assert attendance.record_queries[-1] == {
        "from_date": date(2024, 5, 1),
        "to_date": date(2024, 5, 31),
        "user_id": None,
        "status": ApprovalStatus.APPROVED,
    }


def test_record_list_rejects_bad_filters():
    app, _, _ = _app()
    client = app.test_client()

    assert client.get("/api/companies/c-1/attendance?fromDate=05/01/2024").status_code == 400
    assert client.get("/api/companies/c-1/attendance?approvalStatus=lost").status_code == 400

    res = client.get("/api/companies/c-1/attendance?userId=u-1")
    assert [r["id"] for r in res.get_json()["data"]] == ["a-1"]


def test_approved_record_can_be_reconciled():
    attendance = FakeAttendanceRepo([_approved()])
    app, _, _ = _app(attendance)
    client = app.test_client()

    res = client.post("/api/companies/c-1/attendance/a-9/reconcile")
    assert res.status_code == 200
    assert res.get_json()["data"]["startDate"] == "2024-05-03"

    client.patch("/api/attendance/a-9/reconcile", json={"field": "endTime", "value": "18:00"})
    res = client.post("/api/attendance/a-9/reconcile/save")

    assert res.status_code == 200
    assert attendance.updates[0]["end_time"] == "18:00:00:000"


def test_reconcile_unknown_record_is_not_found():
    app, _, _ = _app()

    assert app.test_client().post("/api/companies/c-1/attendance/nope/reconcile").status_code == 404
