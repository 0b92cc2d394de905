"""Player Profile Lookup for Total Economy.

此模組提供以玩家 UUID 查詢顯示名稱的服務:
- ProfileService 協定
- MojangProfileService: 透過 session server HTTP API 查詢
- StaticProfileService: 記憶體對照表, 供離線與測試使用
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any, Protocol

import aiohttp

from total_economy.core.errors import ExternalServiceError

logger = logging.getLogger(__name__)

HTTP_OK_STATUS = 200


class ProfileService(Protocol):
    """玩家資料查詢協定."""

    async def get_name(self, unique_id: uuid.UUID) -> str: ...


class MojangProfileService:
    """透過 session server 查詢玩家名稱.

    查詢網址為 ``{base_url}/{uuid 十六進位}``, 回應 JSON 的 ``name``
    欄位即為顯示名稱.
    """

    SERVICE_NAME = "profile_lookup"

    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        session: aiohttp.ClientSession | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session

    def _url_for(self, unique_id: uuid.UUID) -> str:
        return f"{self.base_url}/{unique_id.hex}"

    async def get_name(self, unique_id: uuid.UUID) -> str:
        """查詢玩家名稱.

        Raises:
            ExternalServiceError: 當查詢失敗或回應無法使用時
        """
        url = self._url_for(unique_id)
        try:
            if self._session is not None:
                return await self._fetch_name(self._session, url)
            async with aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            ) as session:
                return await self._fetch_name(session, url)
        except ExternalServiceError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ExternalServiceError(
                self.SERVICE_NAME,
                "get_name",
                message=f"Profile lookup for {unique_id} failed: {e}",
                cause=e,
            )

    async def _fetch_name(self, session: Any, url: str) -> str:
        async with session.get(url) as response:
            if response.status != HTTP_OK_STATUS:
                raise ExternalServiceError(
                    self.SERVICE_NAME,
                    "get_name",
                    status_code=response.status,
                    message=f"Profile server answered {response.status} for {url}",
                )
            payload = await response.json()

        name = payload.get("name") if isinstance(payload, dict) else None
        if not name:
            raise ExternalServiceError(
                self.SERVICE_NAME,
                "get_name",
                status_code=response.status,
                message=f"Profile response for {url} has no name",
            )
        return str(name)


class StaticProfileService:
    """以固定對照表回應的玩家資料服務."""

    SERVICE_NAME = "static_profile"

    def __init__(self, names: dict[uuid.UUID, str] | None = None):
        self.names: dict[uuid.UUID, str] = dict(names or {})

    def register(self, unique_id: uuid.UUID, name: str) -> None:
        self.names[unique_id] = name

    async def get_name(self, unique_id: uuid.UUID) -> str:
        try:
            return self.names[unique_id]
        except KeyError:
            raise ExternalServiceError(
                self.SERVICE_NAME,
                "get_name",
                status_code=404,
                message=f"No profile known for {unique_id}",
            )


__all__ = [
    "MojangProfileService",
    "ProfileService",
    "StaticProfileService",
]
