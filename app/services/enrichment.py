# app/services/enrichment.py - 候選遊戲補上 Steam 與 gg.deals 資料
import asyncio
import logging
from typing import List

from app.schemas.recommendation import Candidate, EnrichedRecommendation
from app.schemas.steam import DealInfo, StorefrontDetails
from app.services.deals_client import DealsClient
from app.services.media_service import cover_image_url
from app.services.storefront_client import StorefrontClient

logger = logging.getLogger(__name__)


def merge_candidate(candidate: Candidate, details: StorefrontDetails, deal: DealInfo) -> EnrichedRecommendation:
    """AI 欄位 + Steam 欄位 + 價格欄位合併成一筆"""
    return EnrichedRecommendation(
        id=candidate.id,
        steam_app_id=candidate.steam_app_id,
        genres=candidate.genres,
        tags=candidate.tags,
        main_story_time=candidate.main_story_time,
        completionist_time=candidate.completionist_time,
        suitability_score=candidate.suitability_score,
        reason_for_pick=candidate.reason_for_pick,
        title=details.title,
        description=details.description,
        developer=details.developer,
        image_url=cover_image_url(candidate.steam_app_id),
        steam_price=details.price,
        cheapest_price=deal.cheapest_price,
        deal_url=deal.deal_url,
        deal_is_estimate=deal.is_estimate,
    )


class GameEnricher:
    """
    依序處理候選遊戲（保留 AI 的排名順序）：
    Steam 查不到的直接丟棄，價格查詢失敗則用 placeholder。
    每次 Steam 查詢之間間隔 delay 秒，第一筆前不等待。
    """

    def __init__(self, storefront: StorefrontClient, deals: DealsClient, delay: float = 0.3) -> None:
        self.storefront = storefront
        self.deals = deals
        self.delay = delay

    async def enrich(self, candidates: List[Candidate]) -> List[EnrichedRecommendation]:
        enriched: List[EnrichedRecommendation] = []
        for index, candidate in enumerate(candidates):
            if index > 0 and self.delay > 0:
                await asyncio.sleep(self.delay)

            details = await self.storefront.resolve_storefront_details(candidate.steam_app_id)
            if details is None:
                logger.info(f"Dropping candidate {candidate.id} (app {candidate.steam_app_id}): not on Steam")
                continue

            deal = await self.deals.request_deal_info(candidate.steam_app_id, details.title)
            enriched.append(merge_candidate(candidate, details, deal))

        logger.info(f"Enriched {len(enriched)}/{len(candidates)} candidates")
        return enriched
