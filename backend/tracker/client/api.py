from __future__ import annotations

import logging
from typing import Any

import httpx

from .storage import TOKEN_KEY, LocalStorage

logger = logging.getLogger(__name__)


class ApiError(Exception):
    def __init__(self, status_code: int | None, detail: str) -> None:
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail


class ApiClient:
    """Thin JSON client for the tracker REST API.

    The stored token, if any, is sent as a bearer header on every request.
    No retries: a failed call raises ApiError and the caller decides.
    """

    def __init__(self, http: httpx.Client, storage: LocalStorage, prefix: str = "/api") -> None:
        self.http = http
        self.storage = storage
        self.prefix = prefix.rstrip("/")

    def _headers(self) -> dict[str, str]:
        token = self.storage.get_item(TOKEN_KEY)
        if token:
            return {"Authorization": f"Bearer {token}"}
        return {}

    def request(self, method: str, path: str, json: Any = None) -> Any:
        url = f"{self.prefix}{path}"
        try:
            resp = self.http.request(method, url, json=json, headers=self._headers())
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise ApiError(None, "Network error") from exc

        if resp.is_error:
            try:
                body = resp.json()
            except ValueError:
                body = None
            detail = body.get("detail") if isinstance(body, dict) else None
            if not isinstance(detail, str):
                detail = resp.reason_phrase or f"HTTP {resp.status_code}"
            logger.info("%s %s -> %s %s", method, url, resp.status_code, detail)
            raise ApiError(resp.status_code, detail)

        if not resp.content:
            return None
        return resp.json()

    def get(self, path: str) -> Any:
        return self.request("GET", path)

    def post(self, path: str, json: Any = None) -> Any:
        return self.request("POST", path, json=json)

    def put(self, path: str, json: Any = None) -> Any:
        return self.request("PUT", path, json=json)

    def delete(self, path: str) -> Any:
        return self.request("DELETE", path)
