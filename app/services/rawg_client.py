# app/services/rawg_client.py - RAWG 遊戲資料庫
import asyncio
import logging
from typing import Any, Dict, List, Optional

import httpx

from app.core.errors import ConfigurationError, ProviderError
from app.schemas.rawg import GameFilters, RawgListResponse, Suggestion

logger = logging.getLogger(__name__)

RAWG_BASE_URL = "https://api.rawg.io/api"


class ResponseMemo:
    """
    參考資料（平台 / 類型 / 標籤、開發商 / 發行商搜尋）的行程內快取，
    以完整請求 URL 為 key。每個 key 至多寫入一次；同時 miss 時重複抓取可接受。
    """

    def __init__(self) -> None:
        self._entries: Dict[str, Any] = {}

    def get(self, key: str) -> Optional[Any]:
        return self._entries.get(key)

    def set(self, key: str, value: Any) -> None:
        self._entries.setdefault(key, value)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


class RawgClient:
    def __init__(
        self,
        http: httpx.AsyncClient,
        api_key: str = "",
        memo: Optional[ResponseMemo] = None,
        timeout: float = 30.0,
    ) -> None:
        self.http = http
        self.api_key = api_key
        self.memo = memo if memo is not None else ResponseMemo()
        self.timeout = timeout

    def build_url(self, path: str, params: Dict[str, Any]) -> httpx.URL:
        if not self.api_key:
            raise ConfigurationError("RAWG_API_KEY is not configured")
        query = {"key": self.api_key}
        query.update({k: str(v) for k, v in params.items()})
        return httpx.URL(f"{RAWG_BASE_URL}{path}", params=query)

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None, memoize: bool = False) -> Dict[str, Any]:
        url = self.build_url(path, params or {})
        cache_key = str(url)
        if memoize and cache_key in self.memo:
            return self.memo.get(cache_key)

        try:
            r = await self.http.get(url, timeout=self.timeout)
        except httpx.HTTPError as e:
            raise ProviderError(f"RAWG request failed: {e.__class__.__name__}: {e}") from e
        if r.status_code != 200:
            raise ProviderError(f"RAWG error {r.status_code}: {r.text[:200]}", status_code=r.status_code)
        try:
            data = r.json()
        except ValueError as e:
            raise ProviderError("RAWG returned invalid JSON") from e

        if memoize:
            self.memo.set(cache_key, data)
        return data

    async def _list(self, path: str, params: Dict[str, Any], memoize: bool = False) -> RawgListResponse:
        return RawgListResponse.model_validate(await self._get(path, params, memoize=memoize))

    # ---------- games ----------

    async def search_games(self, query: str, page: int = 1, page_size: int = 20) -> RawgListResponse:
        return await self._list("/games", {"search": query, "page": page, "page_size": page_size})

    async def search_games_with_filters(self, query: str, filters: Optional[GameFilters] = None) -> RawgListResponse:
        filters = filters or GameFilters()
        params: Dict[str, Any] = {"search": query, "page": filters.page, "page_size": filters.page_size}
        return await self._list("/games", filters.apply(params))

    async def get_game_details(self, game_id: int) -> Dict[str, Any]:
        return await self._get(f"/games/{game_id}")

    async def get_game_screenshots(self, game_id: int) -> List[Dict[str, Any]]:
        data = await self._list(f"/games/{game_id}/screenshots", {})
        return data.results

    async def get_games_by_developer(self, developer_id: int, filters: Optional[GameFilters] = None) -> RawgListResponse:
        filters = filters or GameFilters()
        params: Dict[str, Any] = {"developers": developer_id, "page": filters.page, "page_size": filters.page_size}
        return await self._list("/games", filters.apply(params))

    async def get_games_by_publisher(self, publisher_id: int, filters: Optional[GameFilters] = None) -> RawgListResponse:
        filters = filters or GameFilters()
        params: Dict[str, Any] = {"publishers": publisher_id, "page": filters.page, "page_size": filters.page_size}
        return await self._list("/games", filters.apply(params))

    # ---------- developers / publishers ----------

    async def search_developers(self, query: str, page_size: int = 5) -> RawgListResponse:
        return await self._list("/developers", {"search": query, "page_size": page_size}, memoize=True)

    async def search_publishers(self, query: str, page_size: int = 5) -> RawgListResponse:
        return await self._list("/publishers", {"search": query, "page_size": page_size}, memoize=True)

    # ---------- filter options ----------

    async def fetch_platforms(self) -> RawgListResponse:
        return await self._list("/platforms", {"page_size": 50}, memoize=True)

    async def fetch_genres(self) -> RawgListResponse:
        return await self._list("/genres", {"page_size": 50}, memoize=True)

    async def fetch_tags(self) -> RawgListResponse:
        return await self._list("/tags", {"page_size": 50}, memoize=True)

    # ---------- typeahead ----------

    async def fetch_suggestions(self, query: str) -> List[Suggestion]:
        """遊戲 / 開發商 / 發行商三個查詢同時送出"""
        games, developers, publishers = await asyncio.gather(
            self._list("/games", {"search": query, "page_size": 5}),
            self.search_developers(query, page_size=3),
            self.search_publishers(query, page_size=3),
        )

        items: List[Suggestion] = []
        for g in games.results:
            genres = ", ".join(x.get("name", "") for x in (g.get("genres") or []) if x.get("name"))
            items.append(Suggestion(
                kind="game",
                id=g.get("id"),
                name=g.get("name") or "",
                image_url=g.get("background_image"),
                extra=genres or None,
            ))
        for kind, res in (("developer", developers), ("publisher", publishers)):
            for d in res.results:
                items.append(Suggestion(
                    kind=kind,
                    id=d.get("id"),
                    name=d.get("name") or "",
                    image_url=d.get("image_background"),
                    extra=f"{d.get('games_count', 0)} games",
                ))
        return items
