from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import StagedAttendanceRow, StagingBatch


class StagingRepository(Protocol):
    """Persistence of the per-company staging batch (owned by the backend)."""

    async def fetch_batch(self, *, company_id: str) -> Optional[StagingBatch]:
        """Return the open batch, or None when nothing is staged."""

        raise NotImplementedError

    async def create_batch(self, *, company_id: str, rows: Sequence[StagedAttendanceRow]) -> None:
        raise NotImplementedError

    async def remove_row(self, *, batch_id: str, row_id: str) -> None:
        raise NotImplementedError

    async def delete_batch(self, *, batch_id: str) -> None:
        raise NotImplementedError
