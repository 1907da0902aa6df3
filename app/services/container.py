# app/services/container.py - 所有共用服務在此建立一次，掛到 app.state
import logging
from typing import Callable, Optional

import httpx
from fastapi import Request
from sqlalchemy.orm import Session

from app.core.cancellation import CancellationRegistry
from app.core.config import Settings
from app.services.deals_client import DealsClient
from app.services.enrichment import GameEnricher
from app.services.media_service import MediaService
from app.services.rawg_client import RawgClient, ResponseMemo
from app.services.recommendation_cache import RecommendationCache
from app.services.recommendation_client import RecommendationClient
from app.services.recommendation_pipeline import RecommendationPipeline
from app.services.steam_auth import SteamAuthService
from app.services.storefront_client import StorefrontClient

logger = logging.getLogger(__name__)


class ServiceContainer:
    def __init__(
        self,
        settings: Settings,
        session_factory: Callable[[], Session],
        http: Optional[httpx.AsyncClient] = None,
        ai_client=None,
    ) -> None:
        self.settings = settings
        self.session_factory = session_factory
        self.http = http or httpx.AsyncClient(
            timeout=settings.PROVIDER_TIMEOUT,
            follow_redirects=True,
        )

        self.memo = ResponseMemo()
        self.cancellation = CancellationRegistry()
        self.cache = RecommendationCache(session_factory)

        self.storefront = StorefrontClient(
            self.http,
            timeout=settings.STOREFRONT_TIMEOUT,
            backoff=settings.STOREFRONT_BACKOFF,
        )
        self.deals = DealsClient(self.http, api_key=settings.GGDEALS_API_KEY, timeout=settings.PROVIDER_TIMEOUT)
        self.media = MediaService(self.storefront)
        self.rawg = RawgClient(
            self.http,
            api_key=settings.RAWG_API_KEY,
            memo=self.memo,
            timeout=settings.PROVIDER_TIMEOUT,
        )
        self.ai = RecommendationClient(
            api_key=settings.OPENAI_API_KEY,
            model=settings.OPENAI_MODEL,
            temperature=settings.OPENAI_TEMPERATURE,
            timeout=settings.PROVIDER_TIMEOUT,
            client=ai_client,
        )
        self.enricher = GameEnricher(self.storefront, self.deals, delay=settings.ENRICH_DELAY)
        self.pipeline = RecommendationPipeline(
            self.ai,
            self.enricher,
            self.cache,
            result_count=settings.RECOMMENDATION_COUNT,
        )
        self.steam_auth = SteamAuthService(
            self.http,
            api_key=settings.STEAM_API_KEY,
            timeout=settings.PROVIDER_TIMEOUT,
        )

    async def aclose(self) -> None:
        await self.http.aclose()
        logger.info("Outbound HTTP client closed")


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


def get_app_settings(request: Request) -> Settings:
    return request.app.state.container.settings


def get_db_session(request: Request):
    db = request.app.state.container.session_factory()
    try:
        yield db
    finally:
        db.close()
