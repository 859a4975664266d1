from __future__ import annotations

from typing import Protocol, Sequence

from .model import DirectoryUser


class DirectoryRepository(Protocol):
    """Read-only access to the company user directory (owned elsewhere)."""

    async def list_users(self, *, company_id: str) -> Sequence[DirectoryUser]:
        raise NotImplementedError
