"""LedgerClient: 账本节点 HTTP 客户端

面板的 fetcher 都通过它读取数据。requests 是阻塞库，
所有请求放到 `asyncio.to_thread` 中执行，避免阻塞事件循环。
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

from ..errors import LedgerClientError, LedgerUnavailableError

logger = logging.getLogger("autorefresh.dashboard.client")


class LedgerClient:
    """账本服务客户端

    Attributes:
        base_url: 服务地址，例如 http://127.0.0.1:8080
        timeout_seconds: 单次请求超时
    """

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 5.0,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._session = session or requests.Session()

    def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self._session.get(url, params=params, timeout=self.timeout_seconds)
        except (requests.ConnectionError, requests.Timeout) as e:
            raise LedgerUnavailableError(f"Ledger unreachable: {url}: {e}") from e
        except requests.RequestException as e:
            raise LedgerClientError(f"Ledger request failed: {url}: {e}") from e

        if not response.ok:
            raise LedgerClientError(
                f"Ledger returned HTTP {response.status_code} for {url}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise LedgerClientError(f"Malformed JSON from {url}") from e

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        logger.debug("GET %s params=%s", path, params)
        return await asyncio.to_thread(self._get_json, path, params)

    async def list_users(self) -> List[Dict[str, Any]]:
        data = await self._get("/users")
        if not isinstance(data, list):
            raise LedgerClientError("Expected a list of users")
        return data

    async def get_balance(self, user: str) -> float:
        data = await self._get(f"/users/{quote(user, safe='')}/balance")
        if isinstance(data, dict):
            data = data.get("balance")
        if isinstance(data, bool) or not isinstance(data, (int, float)):
            raise LedgerClientError(f"Expected a numeric balance for {user!r}")
        return float(data)

    async def list_transactions(self, user: Optional[str] = None) -> List[Dict[str, Any]]:
        params = {"user": user} if user else None
        data = await self._get("/transactions", params)
        if not isinstance(data, list):
            raise LedgerClientError("Expected a list of transactions")
        return data

    async def get_system_status(self) -> Dict[str, Any]:
        data = await self._get("/status")
        if not isinstance(data, dict):
            raise LedgerClientError("Expected a status object")
        return data

    def close(self) -> None:
        self._session.close()

    def __repr__(self) -> str:
        return f"LedgerClient(base_url='{self.base_url}')"
