"""Tests for the RAWG client and its reference-data memo."""

import asyncio

import httpx
import pytest

from app.core.errors import ConfigurationError, ProviderError
from app.schemas.rawg import GameFilters
from app.services.rawg_client import RawgClient, ResponseMemo


def _rawg_handler(calls):
    def handle(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        path = request.url.path
        if path == "/api/games":
            return httpx.Response(200, json={"count": 1, "results": [
                {"id": 3498, "name": "Grand Theft Auto V", "background_image": "gta.jpg",
                 "genres": [{"name": "Action"}, {"name": "Adventure"}]},
            ]})
        if path == "/api/developers":
            return httpx.Response(200, json={"count": 1, "results": [
                {"id": 3524, "name": "Rockstar North", "image_background": "r.jpg", "games_count": 27},
            ]})
        if path == "/api/publishers":
            return httpx.Response(200, json={"count": 1, "results": [
                {"id": 2155, "name": "Rockstar Games", "image_background": "rg.jpg", "games_count": 80},
            ]})
        if path in ("/api/platforms", "/api/genres", "/api/tags"):
            return httpx.Response(200, json={"count": 2, "results": [{"id": 1}, {"id": 2}]})
        return httpx.Response(404, json={"detail": "Not found."})
    return handle


class TestRawgClient:
    def test_reference_data_is_memoized(self, mock_http):
        calls = []
        memo = ResponseMemo()
        client = RawgClient(mock_http(_rawg_handler(calls)), api_key="k", memo=memo)

        async def scenario():
            await client.fetch_genres()
            await client.fetch_genres()
            await client.fetch_platforms()

        asyncio.run(scenario())

        assert calls == ["/api/genres", "/api/platforms"]
        assert len(memo) == 2

    def test_game_search_is_not_memoized(self, mock_http):
        calls = []
        client = RawgClient(mock_http(_rawg_handler(calls)), api_key="k")

        async def scenario():
            await client.search_games("gta")
            await client.search_games("gta")

        asyncio.run(scenario())
        assert calls == ["/api/games", "/api/games"]

    def test_filters_become_query_params(self, mock_http):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(dict(request.url.params))
            return httpx.Response(200, json={"count": 0, "results": []})

        client = RawgClient(mock_http(handler), api_key="k")
        filters = GameFilters(platforms=[4, 187], genres=[5], ordering="-rating", page=2, page_size=10)
        asyncio.run(client.search_games_with_filters("zelda", filters))

        params = seen[0]
        assert params["key"] == "k"
        assert params["platforms"] == "4,187"
        assert params["genres"] == "5"
        assert params["ordering"] == "-rating"
        assert params["page"] == "2"
        assert "tags" not in params

    def test_suggestions_merge_three_sources(self, mock_http):
        calls = []
        client = RawgClient(mock_http(_rawg_handler(calls)), api_key="k")

        items = asyncio.run(client.fetch_suggestions("rockstar"))

        assert [(s.kind, s.name) for s in items] == [
            ("game", "Grand Theft Auto V"),
            ("developer", "Rockstar North"),
            ("publisher", "Rockstar Games"),
        ]
        assert items[0].extra == "Action, Adventure"
        assert items[1].extra == "27 games"

    def test_missing_key(self, mock_http):
        client = RawgClient(mock_http(_rawg_handler([])), api_key="")
        with pytest.raises(ConfigurationError):
            asyncio.run(client.fetch_tags())

    def test_upstream_error(self, mock_http):
        client = RawgClient(mock_http(_rawg_handler([])), api_key="k")
        with pytest.raises(ProviderError) as exc:
            asyncio.run(client.get_game_details(1))
        assert exc.value.status_code == 404
