from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Callable, Optional, Sequence, Union

from ..common.datetime_utils import today_local
from ..common.log import get_logger
from ..core.constants import DEFAULT_END_TIME, DEFAULT_START_TIME
from ..core.enums import StagedField
from ..core.exceptions import CsvImportError, ValidationError
from ..directory.service import DirectoryService, IdentityIndex
from . import transitions
from .csv_reader import read_csv_rows
from .model import StagedAttendanceRow, StagingBatch
from .repository import StagingRepository
from .transitions import RawCsvRow

logger = get_logger(__name__)


class StagingStore:
    """Owner of one company's staging batch.

    The store starts closed (``batch is None``); ``load`` opens it with whatever
    the backend holds. Field edits are local and synchronous; row removal and
    batch creation round-trip to the backend. After ``close`` any late network
    result is dropped instead of being applied to a torn-down view.
    """

    def __init__(
        self,
        company_id: str,
        staging: StagingRepository,
        directory: DirectoryService,
        *,
        today: Callable[[], date] = today_local,
        default_start_time: str = DEFAULT_START_TIME,
        default_end_time: str = DEFAULT_END_TIME,
    ):
        self._company_id = str(company_id)
        self._staging = staging
        self._directory = directory
        self._today = today
        self._default_start_time = default_start_time
        self._default_end_time = default_end_time
        self._batch: Optional[StagingBatch] = None
        self._index = IdentityIndex()
        self._closed = False

    @property
    def batch(self) -> Optional[StagingBatch]:
        return self._batch

    @property
    def rows(self) -> tuple[StagedAttendanceRow, ...]:
        return self._batch.rows if self._batch else ()

    @property
    def is_closed(self) -> bool:
        return self._closed

    def row(self, row_id: str) -> Optional[StagedAttendanceRow]:
        return self._batch.row(row_id) if self._batch else None

    def _empty_batch(self) -> StagingBatch:
        return StagingBatch(company_id=self._company_id)

    async def load(self) -> StagingBatch:
        index = await self._directory.load_index(company_id=self._company_id)
        fetched = await self._staging.fetch_batch(company_id=self._company_id)
        if self._closed:
            logger.debug("staging load for company %s resolved after close; ignored", self._company_id)
            return self._batch or self._empty_batch()

        logger.debug("company %s: %d directory user(s) indexed", self._company_id, len(index))
        self._index = index
        if fetched is None:
            self._batch = self._empty_batch()
        else:
            self._batch = replace(fetched, rows=tuple(transitions.resolve_identities(fetched.rows, index)))
        return self._batch

    async def start_new_batch(self, raw_rows: Sequence[RawCsvRow]) -> StagingBatch:
        transitions.ensure_can_open(self._batch)
        # Another operator may have opened a batch since our last load.
        current = await self._staging.fetch_batch(company_id=self._company_id)
        if current is not None and not current.is_empty:
            logger.warning("refused new staging batch for company %s: batch %s still open", self._company_id, current.batch_id)
        transitions.ensure_can_open(current)

        index = await self._directory.load_index(company_id=self._company_id)
        rows = transitions.ingest(
            raw_rows,
            index=index,
            today=self._today(),
            default_start_time=self._default_start_time,
            default_end_time=self._default_end_time,
        )
        if not rows:
            raise CsvImportError("CSV has no rows with an email address")

        await self._staging.create_batch(company_id=self._company_id, rows=rows)
        logger.info(
            "staged %d row(s) for company %s (%d unresolved)",
            len(rows),
            self._company_id,
            sum(1 for r in rows if not r.is_resolved),
        )
        return await self.load()

    async def import_csv(self, content: Union[bytes, str]) -> StagingBatch:
        transitions.ensure_can_open(self._batch)
        return await self.start_new_batch(read_csv_rows(content))

    def _require_open(self) -> StagingBatch:
        if self._batch is None:
            raise ValidationError("Staging batch is not loaded")
        return self._batch

    def edit_field(self, row_id: str, field: StagedField, value: str) -> Optional[StagedAttendanceRow]:
        batch = transitions.edit_field(self._require_open(), row_id, field, value)
        if field is StagedField.EMAIL:
            batch = transitions.rematch(batch, row_id, self._index)
        self._batch = batch
        return self.row(row_id)

    def normalize_on_blur(self, row_id: str, field: StagedField, value: str) -> Optional[StagedAttendanceRow]:
        self._batch = transitions.normalize_on_blur(self._require_open(), row_id, field, value)
        return self.row(row_id)

    async def remove(self, row_id: str) -> StagingBatch:
        batch = self._require_open()
        if batch.row(row_id) is None:
            return batch

        if batch.batch_id is not None:
            await self._staging.remove_row(batch_id=batch.batch_id, row_id=row_id)
        if self._closed:
            return self._batch or self._empty_batch()

        self._batch = transitions.remove_row(self._batch, row_id)
        if self._batch.is_empty:
            await self._drop_batch(batch.batch_id)
        return self._batch or self._empty_batch()

    async def clear(self) -> StagingBatch:
        batch = self._require_open()
        await self._drop_batch(batch.batch_id)
        return self._batch or self._empty_batch()

    async def _drop_batch(self, batch_id: Optional[str]) -> None:
        if batch_id is not None:
            await self._staging.delete_batch(batch_id=batch_id)
            logger.info("staging batch %s for company %s deleted", batch_id, self._company_id)
        if not self._closed:
            self._batch = self._empty_batch()

    def close(self) -> None:
        self._closed = True
