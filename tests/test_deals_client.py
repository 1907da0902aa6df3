"""Tests for the best-effort deals lookup."""

import asyncio

import httpx

from app.services.deals_client import DealsClient, cheapest_from_prices, placeholder_deal, slugify


class TestSlug:
    def test_slugify(self):
        assert slugify("Baldur's Gate 3") == "baldur-s-gate-3"
        assert slugify("  DOOM: Eternal!! ") == "doom-eternal"

    def test_empty_title(self):
        assert placeholder_deal("").deal_url == "https://gg.deals/game/game/"


class TestCheapest:
    def test_picks_lowest(self):
        assert cheapest_from_prices({"currentRetail": "29.99", "currentKeyshops": "21.50", "currency": "USD"}) == "$21.50"

    def test_other_currency(self):
        assert cheapest_from_prices({"currentRetail": "10", "currency": "EUR"}) == "10.00 EUR"

    def test_no_prices(self):
        assert cheapest_from_prices({"currentRetail": None}) is None


class TestRequestDealInfo:
    """Every failure mode degrades to the placeholder and never raises."""

    def _client(self, mock_http, handler, key="k"):
        return DealsClient(mock_http(handler), api_key=key)

    def test_found(self, mock_http):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.params["ids"] == "1245620"
            assert request.url.params["key"] == "k"
            return httpx.Response(200, json={
                "success": True,
                "data": {"1245620": {
                    "title": "ELDEN RING",
                    "url": "https://gg.deals/game/elden-ring/",
                    "prices": {"currentRetail": "35.99", "currentKeyshops": "31.20", "currency": "USD"},
                }},
            })

        deal = asyncio.run(self._client(mock_http, handler).request_deal_info("1245620", "ELDEN RING"))

        assert deal.cheapest_price == "$31.20"
        assert deal.deal_url == "https://gg.deals/game/elden-ring/"
        assert deal.is_estimate is False

    def test_missing_key(self, mock_http):
        def handler(request):
            raise AssertionError("should not be called")

        deal = asyncio.run(self._client(mock_http, handler, key="").request_deal_info("1", "Hades"))

        assert deal.cheapest_price == "View Deals"
        assert deal.deal_url == "https://gg.deals/game/hades/"
        assert deal.is_estimate is True

    def test_transport_error(self, mock_http):
        def handler(request):
            raise httpx.ConnectError("down", request=request)

        deal = asyncio.run(self._client(mock_http, handler).request_deal_info("1", "Hades"))
        assert deal == placeholder_deal("Hades")

    def test_non_2xx(self, mock_http):
        deal = asyncio.run(
            self._client(mock_http, lambda r: httpx.Response(429)).request_deal_info("1", "Hades")
        )
        assert deal == placeholder_deal("Hades")

    def test_malformed_json(self, mock_http):
        deal = asyncio.run(
            self._client(mock_http, lambda r: httpx.Response(200, text="not json")).request_deal_info("1", "Hades")
        )
        assert deal == placeholder_deal("Hades")

    def test_missing_entry(self, mock_http):
        deal = asyncio.run(
            self._client(mock_http, lambda r: httpx.Response(200, json={"data": {"2": None}})).request_deal_info("1", "Hades")
        )
        assert deal == placeholder_deal("Hades")

    def test_unexpected_shape(self, mock_http):
        deal = asyncio.run(
            self._client(mock_http, lambda r: httpx.Response(200, json=["x"])).request_deal_info("1", "Hades")
        )
        assert deal == placeholder_deal("Hades")
