# app/schemas/favorite.py
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.quiz import QuizAnswers
from app.schemas.recommendation import RecommendationResponse

GameSource = Literal["rawg", "steam"]


class FavoriteIn(BaseModel):
    game_id: str = Field(..., min_length=1, max_length=32)
    game_source: GameSource
    game_title: str = Field(..., min_length=1)
    game_image: Optional[str] = None
    game_data: Optional[Dict[str, Any]] = None


class FavoriteOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    steam_id: str
    game_id: str
    game_source: GameSource
    game_title: str
    game_image: Optional[str]
    game_data: Optional[Dict[str, Any]]
    created_at: Optional[datetime]


class QuizResultOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    answers_hash: str
    answers: QuizAnswers
    results: RecommendationResponse
    created_at: Optional[datetime]


class HistoryOut(BaseModel):
    items: List[QuizResultOut]
    count: int
