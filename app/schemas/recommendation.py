# app/schemas/recommendation.py
import math
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


def _clamp_percent(v) -> float:
    """0-100 的分數；模型偶爾超出範圍，非有限值直接拒絕"""
    f = float(v)
    if not math.isfinite(f):
        raise ValueError(f"score must be a finite number, got {v!r}")
    return max(0.0, min(100.0, f))


class Candidate(BaseModel):
    """AI 提出、尚未經 Steam 驗證的推薦"""

    id: str
    steam_app_id: str
    title: Optional[str] = None
    genres: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    main_story_time: float = Field(ge=0, allow_inf_nan=False)
    completionist_time: float = Field(ge=0, allow_inf_nan=False)
    suitability_score: int
    reason_for_pick: str

    @field_validator("steam_app_id", mode="before")
    @classmethod
    def _numeric_app_id(cls, v):
        v = str(v).strip()
        if not v.isdigit():
            raise ValueError(f"steam_app_id must be numeric, got {v!r}")
        return v

    @field_validator("suitability_score", mode="before")
    @classmethod
    def _clamp_score(cls, v):
        return int(round(_clamp_percent(v)))

    @model_validator(mode="after")
    def _completionist_not_below_main(self):
        if self.completionist_time < self.main_story_time:
            self.completionist_time = self.main_story_time
        return self


class QuizAccuracy(BaseModel):
    percentage: float
    reasoning: str

    @field_validator("percentage", mode="before")
    @classmethod
    def _clamp_percentage(cls, v):
        return _clamp_percent(v)


class CandidateBatch(BaseModel):
    candidates: List[Candidate]
    accuracy: QuizAccuracy


class EnrichedRecommendation(Candidate):
    title: str
    description: str
    developer: str
    image_url: str
    steam_price: str
    cheapest_price: str
    deal_url: str
    deal_is_estimate: bool = True


class RecommendationResponse(BaseModel):
    recommendations: List[EnrichedRecommendation]
    accuracy: QuizAccuracy
    cached: bool = False
