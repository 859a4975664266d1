from __future__ import annotations

from typing import Any, Optional, Sequence

from ..api.connection import ApiConnection
from ..api.rest_base import call, ref_id, result_list, text
from .model import DirectoryUser
from .repository import DirectoryRepository


def user_from_json(raw: dict[str, Any]) -> Optional[DirectoryUser]:
    user_id = ref_id(raw.get("_id") or raw.get("id"))
    if not user_id:
        return None
    return DirectoryUser(
        user_id=user_id,
        email=text(raw.get("email")).strip(),
        first_name=text(raw.get("firstName")).strip(),
        last_name=text(raw.get("lastName")).strip(),
    )


class RestDirectoryRepository(DirectoryRepository):
    def __init__(self, conn: ApiConnection):
        self._conn = conn

    async def list_users(self, *, company_id: str) -> Sequence[DirectoryUser]:
        body = await call(self._conn, "GET", "/users", params={"company": company_id, "limit": "all"})
        users = [user_from_json(r) for r in result_list(body)]
        return [u for u in users if u is not None]
