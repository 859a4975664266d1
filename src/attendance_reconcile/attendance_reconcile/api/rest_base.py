from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

from .connection import ApiConnection


async def call(conn: ApiConnection, method: str, path: str, *, params: Optional[dict] = None, json: Any = None) -> Any:
    """Run one blocking backend call without blocking the event loop."""
    return await asyncio.to_thread(conn.request, method, path, params=params, json=json)


def result_list(body: Any) -> List[Dict[str, Any]]:
    """Unwrap the ``{data: {result: [...]}}`` envelope used by list endpoints.

    The backend is not consistent: some endpoints return ``data`` as the list
    itself, some omit ``data`` on empty results.
    """

    if not isinstance(body, dict):
        return []
    data = body.get("data")
    if isinstance(data, list):
        return [r for r in data if isinstance(r, dict)]
    if isinstance(data, dict):
        result = data.get("result")
        if isinstance(result, list):
            return [r for r in result if isinstance(r, dict)]
        if isinstance(result, dict):
            return [result]
    return []


def ref_id(value: Any) -> Optional[str]:
    """Read an id that may arrive bare (``"abc"``) or populated (``{"_id": "abc"}``)."""

    if value is None:
        return None
    if isinstance(value, dict):
        value = value.get("_id") or value.get("id")
        if value is None:
            return None
    text = str(value).strip()
    return text or None


def text(value: Any) -> str:
    return "" if value is None else str(value)
