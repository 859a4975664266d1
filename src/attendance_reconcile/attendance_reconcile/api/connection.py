from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Optional

import requests

from ..common.log import get_logger
from ..core.exceptions import NetworkError

logger = get_logger(__name__)


@dataclass
class ApiConfig:
    base_url: str
    token: Optional[str] = None
    # None keeps the HTTP client's own default (no local timeout).
    timeout: Optional[float] = None


class ApiConnection:
    """Singleton-like gateway to the attendance backend.

    Note: calls are blocking and run on worker threads (see ``rest_base.call``), so
    each thread gets its own ``requests.Session`` unless one is injected.
    """

    _instance: Optional["ApiConnection"] = None

    def __init__(self, config: ApiConfig, *, session: Optional[requests.Session] = None):
        self._config = config
        self._session = session
        self._local = threading.local()

    @classmethod
    def get_instance(cls, config: ApiConfig) -> "ApiConnection":
        if cls._instance is None:
            cls._instance = ApiConnection(config)
        return cls._instance

    def _thread_session(self) -> requests.Session:
        if self._session is not None:
            return self._session
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            self._local.session = session
        return session

    def _url(self, path: str) -> str:
        return f"{self._config.base_url.rstrip('/')}/{path.lstrip('/')}"

    def _headers(self, *, has_body: bool) -> dict:
        headers = {}
        if has_body:
            headers["Content-Type"] = "application/json"
        if self._config.token:
            headers["Authorization"] = f"Bearer {self._config.token}"
        return headers

    def request(self, method: str, path: str, *, params: Optional[dict] = None, json: Any = None) -> Any:
        url = self._url(path)
        try:
            response = self._thread_session().request(
                method,
                url,
                params=params,
                json=json,
                headers=self._headers(has_body=json is not None),
                timeout=self._config.timeout,
            )
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            message = _error_message(e.response) or f"{method} {path} failed"
            logger.warning("%s %s -> %s", method, path, message)
            raise NetworkError(message, status_code=e.response.status_code) from e
        except requests.exceptions.RequestException as e:
            logger.warning("%s %s -> %s", method, path, e)
            raise NetworkError(f"Cannot reach attendance service: {e}") from e

        try:
            body = response.json() if response.content else {}
        except ValueError as e:
            raise NetworkError(f"{method} {path} returned a non-JSON body", status_code=response.status_code) from e
        if isinstance(body, dict) and body.get("success") is False:
            message = body.get("message") or f"{method} {path} was rejected"
            logger.warning("%s %s -> %s", method, path, message)
            raise NetworkError(message, status_code=response.status_code)
        return body


def _error_message(response) -> Optional[str]:
    if response is None:
        return None
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        return body.get("message")
    return None
