from __future__ import annotations

import asyncio
from dataclasses import replace
from datetime import date

import pytest

from src.attendance_reconcile.attendance_reconcile.core.enums import StagedField
from src.attendance_reconcile.attendance_reconcile.core.exceptions import BatchConflictError, CsvImportError, ValidationError
from src.attendance_reconcile.attendance_reconcile.directory.model import DirectoryUser
from src.attendance_reconcile.attendance_reconcile.directory.service import DirectoryService
from src.attendance_reconcile.attendance_reconcile.staging.model import StagedAttendanceRow, StagingBatch
from src.attendance_reconcile.attendance_reconcile.staging.store import StagingStore


class FakeUsersRepo:
    def __init__(self, users=()):
        self._users = list(users)

    async def list_users(self, *, company_id):
        return list(self._users)


class FakeStagingRepo:
    def __init__(self, batch: StagingBatch | None = None):
        self.batch = batch
        self.calls: list[tuple] = []

    async def fetch_batch(self, *, company_id):
        self.calls.append(("fetch", company_id))
        return self.batch

    async def create_batch(self, *, company_id, rows):
        self.calls.append(("create", len(rows)))
        self.batch = StagingBatch(
            company_id=company_id,
            batch_id="b-new",
            rows=tuple(replace(r, row_id=f"srv-{i}") for i, r in enumerate(rows, start=1)),
        )

    async def remove_row(self, *, batch_id, row_id):
        self.calls.append(("remove", batch_id, row_id))
        self.batch = replace(self.batch, rows=tuple(r for r in self.batch.rows if r.row_id != row_id))

    async def delete_batch(self, *, batch_id):
        self.calls.append(("delete", batch_id))
        self.batch = None


class GatedStagingRepo(FakeStagingRepo):
    def __init__(self, batch=None):
        super().__init__(batch)
        self.gate = asyncio.Event()

    async def fetch_batch(self, *, company_id):
        await self.gate.wait()
        return await super().fetch_batch(company_id=company_id)


USERS = [DirectoryUser(user_id="u-1", email="an@example.com", first_name="An", last_name="Nguyen")]


def _row(row_id="r-1", **overrides) -> StagedAttendanceRow:
    values = dict(
        row_id=row_id,
        name="An",
        email="an@example.com",
        phone="",
        start_date="2024-05-10",
        start_time="09:00",
        end_date="2024-05-10",
        end_time="17:00",
    )
    values.update(overrides)
    return StagedAttendanceRow(**values)


def _store(repo, users=USERS) -> StagingStore:
    return StagingStore("c-1", repo, DirectoryService(FakeUsersRepo(users)), today=lambda: date(2024, 5, 10))


def test_load_resolves_identities_of_server_rows():
    repo = FakeStagingRepo(StagingBatch(company_id="c-1", batch_id="b-1", rows=(_row(),)))
    store = _store(repo)

    batch = asyncio.run(store.load())

    assert batch.batch_id == "b-1"
    assert store.row("r-1").matched_user_id == "u-1"


def test_load_with_nothing_staged_gives_empty_open_view():
    store = _store(FakeStagingRepo())

    batch = asyncio.run(store.load())

    assert batch.is_empty
    assert batch.batch_id is None


def test_import_csv_creates_batch_and_reloads_server_ids():
    repo = FakeStagingRepo()
    store = _store(repo)

    async def scenario():
        await store.load()
        return await store.import_csv(b"name,email,start_time,end_time\nAn,an@example.com,08:00,16:30\n")

    batch = asyncio.run(scenario())

    assert ("create", 1) in repo.calls
    assert batch.batch_id == "b-new"
    assert [r.row_id for r in batch.rows] == ["srv-1"]
    assert batch.rows[0].display_duration == "8:30"


def test_new_batch_refused_while_local_batch_has_rows():
    repo = FakeStagingRepo(StagingBatch(company_id="c-1", batch_id="b-1", rows=(_row(),)))
    store = _store(repo)

    async def scenario():
        await store.load()
        await store.start_new_batch([{"email": "an@example.com"}])

    with pytest.raises(BatchConflictError, match="clear current list"):
        asyncio.run(scenario())
    assert not any(c[0] == "create" for c in repo.calls)


def test_new_batch_refused_when_server_already_holds_rows():
    repo = FakeStagingRepo(StagingBatch(company_id="c-1", batch_id="b-other", rows=(_row(),)))
    store = _store(repo)

    with pytest.raises(BatchConflictError):
        asyncio.run(store.start_new_batch([{"email": "an@example.com"}]))
    assert not any(c[0] == "create" for c in repo.calls)


def test_csv_without_any_email_is_rejected():
    store = _store(FakeStagingRepo())

    with pytest.raises(CsvImportError):
        asyncio.run(store.start_new_batch([{"name": "Nobody", "email": ""}]))


def test_removing_last_row_deletes_the_batch():
    repo = FakeStagingRepo(StagingBatch(company_id="c-1", batch_id="b-1", rows=(_row(),)))
    store = _store(repo)

    async def scenario():
        await store.load()
        return await store.remove("r-1")

    batch = asyncio.run(scenario())

    assert ("remove", "b-1", "r-1") in repo.calls
    assert ("delete", "b-1") in repo.calls
    assert batch.is_empty
    assert batch.batch_id is None


def test_removing_one_of_many_rows_keeps_the_batch():
    repo = FakeStagingRepo(StagingBatch(company_id="c-1", batch_id="b-1", rows=(_row(), _row("r-2"))))
    store = _store(repo)

    async def scenario():
        await store.load()
        return await store.remove("r-1")

    batch = asyncio.run(scenario())

    assert [r.row_id for r in batch.rows] == ["r-2"]
    assert not any(c[0] == "delete" for c in repo.calls)


def test_clear_deletes_batch():
    repo = FakeStagingRepo(StagingBatch(company_id="c-1", batch_id="b-1", rows=(_row(), _row("r-2"))))
    store = _store(repo)

    async def scenario():
        await store.load()
        return await store.clear()

    batch = asyncio.run(scenario())

    assert ("delete", "b-1") in repo.calls
    assert batch.is_empty


def test_edits_require_a_loaded_batch():
    store = _store(FakeStagingRepo())

    with pytest.raises(ValidationError):
        store.edit_field("r-1", StagedField.NOTE, "x")


def test_edit_and_blur_update_row_in_place():
    repo = FakeStagingRepo(StagingBatch(company_id="c-1", batch_id="b-1", rows=(_row(),)))
    store = _store(repo)
    asyncio.run(store.load())

    store.edit_field("r-1", StagedField.START_TIME, "8")
    row = store.normalize_on_blur("r-1", StagedField.START_TIME, "8")

    assert row.start_time == "08:00"
    assert row.numeric_duration == 540
    assert repo.calls == [("fetch", "c-1")]


def test_load_resolving_after_close_is_ignored():
    repo = GatedStagingRepo(StagingBatch(company_id="c-1", batch_id="b-1", rows=(_row(),)))
    store = _store(repo)

    async def scenario():
        task = asyncio.create_task(store.load())
        await asyncio.sleep(0)
        store.close()
        repo.gate.set()
        await task

    asyncio.run(scenario())

    assert store.is_closed
    assert store.batch is None


def test_editing_email_rematches_against_loaded_directory():
    repo = FakeStagingRepo(StagingBatch(company_id="c-1", batch_id="b-1", rows=(_row(email="typo@example.com"),)))
    store = _store(repo)
    asyncio.run(store.load())
    assert not store.row("r-1").is_resolved

    row = store.edit_field("r-1", StagedField.EMAIL, "AN@example.com")

    assert row.matched_user_id == "u-1"
