from __future__ import annotations

import asyncio
from dataclasses import replace
from datetime import date

from src.attendance_reconcile.attendance_reconcile.approval.service import StagedApproval
from src.attendance_reconcile.attendance_reconcile.core.enums import ApprovalStatus
from src.attendance_reconcile.attendance_reconcile.core.exceptions import NetworkError
from src.attendance_reconcile.attendance_reconcile.directory.model import DirectoryUser
from src.attendance_reconcile.attendance_reconcile.directory.service import DirectoryService
from src.attendance_reconcile.attendance_reconcile.staging.model import StagedAttendanceRow, StagingBatch
from src.attendance_reconcile.attendance_reconcile.staging.store import StagingStore


class FakeUsersRepo:
    async def list_users(self, *, company_id):
        return [DirectoryUser(user_id="u-1", email="an@example.com", first_name="An", last_name="Nguyen")]


class FakeStagingRepo:
    def __init__(self, batch):
        self.batch = batch
        self.calls: list[tuple] = []

    async def fetch_batch(self, *, company_id):
        return self.batch

    async def create_batch(self, *, company_id, rows):
        raise AssertionError("not used")

    async def remove_row(self, *, batch_id, row_id):
        self.calls.append(("remove", row_id))
        self.batch = replace(self.batch, rows=tuple(r for r in self.batch.rows if r.row_id != row_id))

    async def delete_batch(self, *, batch_id):
        self.calls.append(("delete", batch_id))
        self.batch = None


class FakeAttendanceRepo:
    def __init__(self, *, fail=False):
        self.events = []
        self.fail = fail
        self.gate = asyncio.Event()
        self.gate.set()

    async def create_clock_event(self, event):
        self.events.append(event)
        await self.gate.wait()
        if self.fail:
            raise NetworkError("Duplicate attendance for this day")


def _row(row_id, email="an@example.com", **overrides):
    values = dict(
        row_id=row_id,
        name="An",
        email=email,
        phone="",
        start_date="2024-05-10",
        start_time="09:00",
        start_suffix=":30:250",
        end_date="2024-05-10",
        end_time="17:30",
        note="imported",
    )
    values.update(overrides)
    return StagedAttendanceRow(**values)


def _setup(rows, attendance):
    staging = FakeStagingRepo(StagingBatch(company_id="c-1", batch_id="b-1", rows=tuple(rows)))
    store = StagingStore("c-1", staging, DirectoryService(FakeUsersRepo()), today=lambda: date(2024, 5, 10))
    asyncio.run(store.load())
    return staging, store, StagedApproval(store, attendance)


def test_unresolved_row_is_refused_without_network_call():
    attendance = FakeAttendanceRepo()
    _, _, approval = _setup([_row("r-1", email="ghost@example.com")], attendance)

    result = asyncio.run(approval.approve("r-1"))

    assert not result.performed
    assert attendance.events == []


def test_invalid_duration_is_refused_without_network_call():
    attendance = FakeAttendanceRepo()
    _, _, approval = _setup([_row("r-1", end_time="08:00")], attendance)

    assert not approval.can_approve("r-1")
    result = asyncio.run(approval.approve("r-1"))

    assert not result.performed
    assert attendance.events == []


def test_approve_posts_clock_event_then_removes_staged_row():
    attendance = FakeAttendanceRepo()
    staging, store, approval = _setup([_row("r-1"), _row("r-2")], attendance)

    result = asyncio.run(approval.approve("r-1"))

    assert result.ok
    event = attendance.events[0]
    payload = event.to_payload()
    assert payload["userId"] == "u-1"
    assert payload["startTime"] == "09:00:30:250"
    assert payload["endTime"] == "17:30:00:000"
    assert payload["approvalStatus"] == ApprovalStatus.APPROVED.value
    assert payload["eventType"] == "manual"
    assert payload["notes"] == "imported"
    assert staging.calls == [("remove", "r-1")]
    assert [r.row_id for r in store.rows] == ["r-2"]


def test_failed_create_keeps_row_with_inline_error():
    attendance = FakeAttendanceRepo(fail=True)
    staging, store, approval = _setup([_row("r-1")], attendance)

    result = asyncio.run(approval.approve("r-1"))

    assert not result.ok
    assert result.performed
    assert approval.error_for("r-1") == "Duplicate attendance for this day"
    assert store.row("r-1") is not None
    assert staging.calls == []
    assert not approval.is_processing("r-1")


def test_double_submit_is_refused_while_first_call_is_in_flight():
    attendance = FakeAttendanceRepo()
    attendance.gate.clear()
    _, _, approval = _setup([_row("r-1")], attendance)

    async def scenario():
        first = asyncio.create_task(approval.approve("r-1"))
        await asyncio.sleep(0)
        second = await approval.approve("r-1")
        attendance.gate.set()
        return await first, second

    first, second = asyncio.run(scenario())

    assert first.ok
    assert not second.performed
    assert len(attendance.events) == 1
