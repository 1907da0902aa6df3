# app/services/recommendation_pipeline.py
import asyncio
import logging
from typing import Optional

from app.schemas.quiz import QuizAnswers
from app.schemas.recommendation import EnrichedRecommendation, RecommendationResponse
from app.services.enrichment import GameEnricher
from app.services.recommendation_cache import RecommendationCache, answers_hash
from app.services.recommendation_client import RecommendationClient

logger = logging.getLogger(__name__)


class RecommendationPipeline:
    """測驗答案 → (快取) → AI 候選 → 補資料 → 寫回快取"""

    def __init__(
        self,
        client: RecommendationClient,
        enricher: GameEnricher,
        cache: RecommendationCache,
        result_count: int = 6,
    ) -> None:
        self.client = client
        self.enricher = enricher
        self.cache = cache
        self.result_count = result_count

    async def recommend(self, answers: QuizAnswers, user_id: Optional[str] = None) -> RecommendationResponse:
        hash_key = answers_hash(answers)

        # 匿名請求沒有分區 key，不走快取
        if user_id:
            hit = await asyncio.to_thread(self.cache.lookup, user_id, hash_key)
            if hit is not None:
                logger.info(f"Recommendation cache hit for user {user_id}")
                return hit.model_copy(update={"cached": True})

        batch = await self.client.request_candidates(answers, self.result_count)
        recommendations = await self.enricher.enrich(batch.candidates)
        response = RecommendationResponse(recommendations=recommendations, accuracy=batch.accuracy)

        if user_id:
            await asyncio.to_thread(self.cache.store, user_id, hash_key, answers, response)
        return response

    async def search_game(self, query: str) -> Optional[EnrichedRecommendation]:
        """依名稱找單一遊戲；Steam 上查不到時回傳 None"""
        candidate = await self.client.search_specific_game(query)
        enriched = await self.enricher.enrich([candidate])
        return enriched[0] if enriched else None
