# app/schemas/quiz.py
from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field

Playstyle = Literal["casual", "balanced", "hardcore"]
TimeAvailability = Literal["short", "medium", "long"]
Difficulty = Literal["easy", "normal", "challenging"]


class QuizAnswers(BaseModel):
    """測驗送出後即不可變"""

    model_config = ConfigDict(frozen=True)

    preferred_genres: List[str] = Field(default_factory=list, description="偏好類型，順序無關")
    playstyle: Playstyle
    time_availability: TimeAvailability
    specific_keywords: str = ""
    difficulty_preference: Difficulty
