# app/services/storefront_client.py - Steam appdetails 查詢（多個 relay 依序嘗試）
import asyncio
import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import quote

import httpx
from pydantic import BaseModel

from app.schemas.steam import StorefrontDetails

logger = logging.getLogger(__name__)

STEAM_APPDETAILS_URL = "https://store.steampowered.com/api/appdetails"


class AttemptOutcome(str, Enum):
    TRANSPORT_FAILURE = "transport_failure"
    NOT_FOUND = "not_found"
    FOUND = "found"


class AttemptResult(BaseModel):
    outcome: AttemptOutcome
    details: Optional[StorefrontDetails] = None
    data: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


class RelayStrategy:
    """一種抵達 Steam 的方式：名稱 + 由上游 URL 組出實際請求 URL 的函式"""

    def __init__(self, name: str, build_url: Callable[[str], str]) -> None:
        self.name = name
        self.build_url = build_url

    def __repr__(self) -> str:
        return f"RelayStrategy({self.name!r})"


DEFAULT_STRATEGIES: List[RelayStrategy] = [
    RelayStrategy("allorigins", lambda url: f"https://api.allorigins.win/raw?url={quote(url, safe='')}"),
    RelayStrategy("corsproxy", lambda url: f"https://corsproxy.io/?url={quote(url, safe='')}"),
    RelayStrategy("codetabs", lambda url: f"https://api.codetabs.com/v1/proxy?quest={quote(url, safe='')}"),
    RelayStrategy("direct", lambda url: url),
]


def appdetails_url(steam_app_id: str) -> str:
    return f"{STEAM_APPDETAILS_URL}?appids={steam_app_id}&cc=us&l=en"


def parse_price(data: Dict[str, Any]) -> str:
    if data.get("is_free"):
        return "Free"
    overview = data.get("price_overview") or {}
    formatted = overview.get("final_formatted")
    if formatted:
        return formatted
    final = overview.get("final")
    if isinstance(final, (int, float)):
        return f"${final / 100:.2f}"
    return "N/A"


def parse_details(steam_app_id: str, data: Dict[str, Any]) -> StorefrontDetails:
    developers = data.get("developers") or []
    return StorefrontDetails(
        steam_app_id=steam_app_id,
        title=data.get("name") or f"App {steam_app_id}",
        description=data.get("short_description") or "",
        developer=developers[0] if developers else "Unknown",
        price=parse_price(data),
    )


class StorefrontClient:
    """
    Steam Store appdetails 客戶端。

    三種結果要分開處理：
    - 傳輸失敗（例外、非 2xx、無法解析）→ 換下一個 relay
    - Steam 明確回報不存在（success=false）→ 立即停止，回傳 None
    - 找到資料 → 立即回傳，不再嘗試後面的 relay
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        strategies: Optional[List[RelayStrategy]] = None,
        timeout: float = 10.0,
        backoff: float = 0.5,
    ) -> None:
        self.http = http
        self.strategies = list(strategies if strategies is not None else DEFAULT_STRATEGIES)
        self.timeout = timeout
        self.backoff = backoff

    async def attempt(self, strategy: RelayStrategy, steam_app_id: str) -> AttemptResult:
        url = strategy.build_url(appdetails_url(steam_app_id))
        try:
            r = await self.http.get(url, timeout=self.timeout)
        except httpx.HTTPError as e:
            return AttemptResult(outcome=AttemptOutcome.TRANSPORT_FAILURE, error=f"{e.__class__.__name__}: {e}")

        if not (200 <= r.status_code < 300):
            return AttemptResult(outcome=AttemptOutcome.TRANSPORT_FAILURE, error=f"HTTP {r.status_code}")

        try:
            payload = r.json()
        except ValueError as e:
            return AttemptResult(outcome=AttemptOutcome.TRANSPORT_FAILURE, error=f"invalid JSON: {e}")
        if not isinstance(payload, dict):
            return AttemptResult(outcome=AttemptOutcome.TRANSPORT_FAILURE, error="unexpected payload shape")

        entry = payload.get(str(steam_app_id))
        if not isinstance(entry, dict) or not entry.get("success") or not entry.get("data"):
            return AttemptResult(outcome=AttemptOutcome.NOT_FOUND)

        data = entry["data"]
        return AttemptResult(
            outcome=AttemptOutcome.FOUND,
            details=parse_details(str(steam_app_id), data),
            data=data,
        )

    async def resolve(self, steam_app_id: str) -> AttemptResult:
        """依序嘗試每個 relay，回傳第一個明確的結果"""
        last_error: Optional[str] = None
        for index, strategy in enumerate(self.strategies):
            result = await self.attempt(strategy, steam_app_id)
            if result.outcome is AttemptOutcome.FOUND:
                logger.debug(f"Steam app {steam_app_id} resolved via {strategy.name}")
                return result
            if result.outcome is AttemptOutcome.NOT_FOUND:
                logger.info(f"Steam app {steam_app_id} not found (reported via {strategy.name})")
                return result

            last_error = result.error
            logger.warning(f"Steam relay {strategy.name} failed for app {steam_app_id}: {result.error}")
            if index < len(self.strategies) - 1 and self.backoff > 0:
                await asyncio.sleep(self.backoff)

        logger.warning(f"All Steam relays exhausted for app {steam_app_id}")
        return AttemptResult(outcome=AttemptOutcome.NOT_FOUND, error=last_error)

    async def resolve_storefront_details(self, steam_app_id: str) -> Optional[StorefrontDetails]:
        result = await self.resolve(steam_app_id)
        return result.details if result.outcome is AttemptOutcome.FOUND else None

    async def fetch_app_data(self, steam_app_id: str) -> Optional[Dict[str, Any]]:
        """取得原始 appdetails data（媒體資訊用）"""
        result = await self.resolve(steam_app_id)
        return result.data if result.outcome is AttemptOutcome.FOUND else None
