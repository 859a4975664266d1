from __future__ import annotations

from typing import Iterable, Optional

from .model import DirectoryUser
from .repository import DirectoryRepository


class IdentityIndex:
    """Email -> user lookup used to resolve imported rows.

    Exact matches win; otherwise the comparison is case-insensitive. Users
    without an email are not indexed.
    """

    def __init__(self, users: Iterable[DirectoryUser] = ()):
        self._exact: dict[str, DirectoryUser] = {}
        self._folded: dict[str, DirectoryUser] = {}
        for user in users:
            email = user.email.strip()
            if not email:
                continue
            self._exact.setdefault(email, user)
            self._folded.setdefault(email.casefold(), user)

    def __len__(self) -> int:
        return len(self._exact)

    def find(self, email: str) -> Optional[DirectoryUser]:
        key = (email or "").strip()
        if not key:
            return None
        return self._exact.get(key) or self._folded.get(key.casefold())

    def resolve(self, email: str) -> Optional[str]:
        user = self.find(email)
        return user.user_id if user else None


class DirectoryService:
    def __init__(self, users: DirectoryRepository):
        self._users = users

    async def load_index(self, *, company_id: str) -> IdentityIndex:
        return IdentityIndex(await self._users.list_users(company_id=company_id))
