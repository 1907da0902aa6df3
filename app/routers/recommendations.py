# app/routers/recommendations.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.core.errors import ConfigurationError, RecommendationGenerationError, to_http_exception
from app.core.security import get_optional_user
from app.schemas.auth import SteamUser
from app.schemas.quiz import QuizAnswers
from app.schemas.recommendation import EnrichedRecommendation, RecommendationResponse
from app.services.container import ServiceContainer, get_container

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("", response_model=RecommendationResponse)
async def create_recommendations(
    answers: QuizAnswers,
    user: Optional[SteamUser] = Depends(get_optional_user),
    container: ServiceContainer = Depends(get_container),
):
    """
    測驗答案 → 推薦清單。
    已登入時以 (steam_id, 答案摘要) 快取；匿名請求每次都重新產生。
    """
    user_id = user.steam_id if user else None
    try:
        return await container.pipeline.recommend(answers, user_id=user_id)
    except ConfigurationError as e:
        logger.error(f"Recommendation service misconfigured: {e}")
        raise to_http_exception(e)
    except RecommendationGenerationError as e:
        logger.error(f"Recommendation generation failed: {e}")
        raise to_http_exception(e, "could not generate recommendations")


@router.get("/search", response_model=EnrichedRecommendation)
async def search_game(
    q: str = Query(..., min_length=1),
    container: ServiceContainer = Depends(get_container),
):
    try:
        found = await container.pipeline.search_game(q.strip())
    except ConfigurationError as e:
        raise to_http_exception(e)
    except RecommendationGenerationError as e:
        logger.error(f"Game lookup failed for {q!r}: {e}")
        raise to_http_exception(e, "could not look up game")

    if found is None:
        raise HTTPException(status_code=404, detail={"kind": "NotFound", "desc": f"'{q}' is not available on Steam"})
    return found
