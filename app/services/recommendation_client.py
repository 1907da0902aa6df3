# app/services/recommendation_client.py - OpenAI 推薦候選遊戲
import json
import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError

from app.core.errors import ConfigurationError, RecommendationGenerationError
from app.schemas.quiz import QuizAnswers
from app.schemas.recommendation import Candidate, CandidateBatch

logger = logging.getLogger(__name__)

_CANDIDATE_PROPERTIES: Dict[str, Any] = {
    "id": {"type": "string"},
    "steam_app_id": {"type": "string", "description": "The numeric Steam App ID."},
    "title": {"type": "string"},
    "genres": {"type": "array", "items": {"type": "string"}},
    "tags": {"type": "array", "items": {"type": "string"}},
    "main_story_time": {"type": "number", "description": "Hours to finish the main story."},
    "completionist_time": {"type": "number", "description": "Hours for 100% completion."},
    "suitability_score": {"type": "integer", "description": "0-100 match with the player's answers."},
    "reason_for_pick": {"type": "string"},
}

CANDIDATE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": _CANDIDATE_PROPERTIES,
    "required": list(_CANDIDATE_PROPERTIES.keys()),
    "additionalProperties": False,
}

RECOMMENDATIONS_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "recommendations": {"type": "array", "items": CANDIDATE_SCHEMA},
        "accuracy": {
            "type": "object",
            "properties": {
                "percentage": {"type": "number"},
                "reasoning": {"type": "string"},
            },
            "required": ["percentage", "reasoning"],
            "additionalProperties": False,
        },
    },
    "required": ["recommendations", "accuracy"],
    "additionalProperties": False,
}

SYSTEM_PROMPT = (
    "You are a world-class Steam curator. Only suggest real games that are sold on Steam, "
    "and always give their correct numeric Steam App ID. Answer with JSON only."
)


def build_prompt(answers: QuizAnswers, result_count: int) -> str:
    genres = ", ".join(answers.preferred_genres) or "any"
    keywords = answers.specific_keywords.strip() or "none"
    return (
        f"Suggest {result_count} video games for this player.\n"
        f"Genres: {genres}\n"
        f"Playstyle: {answers.playstyle}\n"
        f"Time available: {answers.time_availability}\n"
        f"Difficulty: {answers.difficulty_preference}\n"
        f"Keywords: {keywords}\n"
        "Estimate main-story and completionist playtimes in hours, give each game a "
        "suitability_score from 0 to 100, rank them best first, and rate how accurately "
        "the whole list matches the answers."
    )


def _response_format(name: str, schema: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "type": "json_schema",
        "json_schema": {"name": name, "strict": True, "schema": schema},
    }


class RecommendationClient:
    """呼叫生成式模型取得候選遊戲；不重試、不快取"""

    def __init__(
        self,
        api_key: str = "",
        model: str = "gpt-4o-mini",
        temperature: float = 0.7,
        timeout: float = 30.0,
        client: Optional[Any] = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.temperature = temperature
        self.timeout = timeout
        self._client = client

    def _get_client(self):
        if not self.api_key:
            raise ConfigurationError("OPENAI_API_KEY is not configured")
        if self._client is None:
            from openai import AsyncOpenAI
            self._client = AsyncOpenAI(api_key=self.api_key, timeout=self.timeout)
        return self._client

    async def _complete_json(self, prompt: str, name: str, schema: Dict[str, Any]) -> Any:
        client = self._get_client()
        try:
            response = await client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                temperature=self.temperature,
                response_format=_response_format(name, schema),
            )
        except Exception as e:
            logger.error(f"OpenAI API failed: {e}")
            raise RecommendationGenerationError(f"AI provider request failed: {e}") from e

        text = response.choices[0].message.content if response.choices else None
        if not text:
            raise RecommendationGenerationError("AI provider returned an empty response")
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            logger.error(f"AI response is not valid JSON: {text[:200]!r}")
            raise RecommendationGenerationError("AI provider returned malformed JSON") from e

    async def request_candidates(self, answers: QuizAnswers, result_count: int = 6) -> CandidateBatch:
        parsed = await self._complete_json(
            build_prompt(answers, result_count), "game_recommendations", RECOMMENDATIONS_SCHEMA
        )
        if not isinstance(parsed, dict):
            raise RecommendationGenerationError("AI response does not match the recommendation schema")
        try:
            batch = CandidateBatch(
                candidates=parsed.get("recommendations"),
                accuracy=parsed.get("accuracy"),
            )
        except ValidationError as e:
            logger.error(f"AI response failed schema validation: {e}")
            raise RecommendationGenerationError("AI response does not match the recommendation schema") from e

        logger.info(f"AI provider proposed {len(batch.candidates)} candidates")
        return batch

    async def search_specific_game(self, query: str) -> Candidate:
        """以名稱查詢單一遊戲的 Steam App ID 與基本資料"""
        prompt = (
            f'Find the game "{query}" on Steam. Provide its numeric steam_app_id, genres, tags, '
            "playtime estimates, a suitability_score of how well the title matches the query, "
            "and a one-sentence reason_for_pick."
        )
        parsed = await self._complete_json(prompt, "game_lookup", CANDIDATE_SCHEMA)
        try:
            return Candidate.model_validate(parsed)
        except ValidationError as e:
            logger.error(f"AI lookup failed schema validation: {e}")
            raise RecommendationGenerationError("AI response does not match the game schema") from e
