# app/services/deals_client.py - gg.deals 價格查詢（僅供參考，失敗不影響推薦）
import logging
import re
from typing import Any, Dict, Optional

import httpx

from app.schemas.steam import DealInfo

logger = logging.getLogger(__name__)

GGDEALS_BASE_URL = "https://gg.deals"
GGDEALS_API_URL = "https://api.gg.deals/v1"
PLACEHOLDER_LABEL = "View Deals"


def slugify(title: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", (title or "").lower()).strip("-")
    return slug or "game"


def placeholder_deal(title: str) -> DealInfo:
    """用標題猜一個 gg.deals 連結，不保證頁面存在"""
    return DealInfo(
        cheapest_price=PLACEHOLDER_LABEL,
        deal_url=f"{GGDEALS_BASE_URL}/game/{slugify(title)}/",
        is_estimate=True,
    )


def _format_price(amount: Any, currency: Optional[str]) -> Optional[str]:
    if amount in (None, ""):
        return None
    try:
        value = float(amount)
    except (TypeError, ValueError):
        return None
    if (currency or "USD").upper() == "USD":
        return f"${value:.2f}"
    return f"{value:.2f} {currency}"


def cheapest_from_prices(prices: Dict[str, Any]) -> Optional[str]:
    currency = prices.get("currency")
    candidates = []
    for field in ("currentRetail", "currentKeyshops"):
        amount = prices.get(field)
        try:
            candidates.append(float(amount))
        except (TypeError, ValueError):
            continue
    if not candidates:
        return None
    return _format_price(min(candidates), currency)


class DealsClient:
    def __init__(self, http: httpx.AsyncClient, api_key: str = "", timeout: float = 30.0) -> None:
        self.http = http
        self.api_key = api_key
        self.timeout = timeout

    async def request_deal_info(self, steam_app_id: str, title: str) -> DealInfo:
        """永遠回傳結構完整的 DealInfo；任何失敗都退回 placeholder"""
        if not self.api_key:
            logger.info("GGDEALS_API_KEY not set, using placeholder deal link")
            return placeholder_deal(title)

        try:
            r = await self.http.get(
                f"{GGDEALS_API_URL}/prices/by-steam-app-id/",
                params={"ids": steam_app_id, "key": self.api_key},
                timeout=self.timeout,
            )
            if not (200 <= r.status_code < 300):
                logger.warning(f"gg.deals returned HTTP {r.status_code} for app {steam_app_id}")
                return placeholder_deal(title)
            payload = r.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"gg.deals lookup failed for app {steam_app_id}: {e}")
            return placeholder_deal(title)

        try:
            entry = ((payload or {}).get("data") or {}).get(str(steam_app_id))
        except AttributeError:
            entry = None
        if not isinstance(entry, dict):
            logger.info(f"gg.deals has no listing for app {steam_app_id}")
            return placeholder_deal(title)

        prices = entry.get("prices")
        cheapest = cheapest_from_prices(prices if isinstance(prices, dict) else {})
        url = entry.get("url")
        if not url:
            return placeholder_deal(title)

        return DealInfo(
            cheapest_price=cheapest or PLACEHOLDER_LABEL,
            deal_url=url,
            is_estimate=False,
        )
