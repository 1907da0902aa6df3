"""Tests for the AI candidates client."""

import asyncio
import json

import pytest

from app.core.errors import ConfigurationError, RecommendationGenerationError
from app.services.recommendation_client import RecommendationClient, build_prompt


class TestBuildPrompt:
    def test_includes_answers(self, answers):
        prompt = build_prompt(answers, 6)
        assert "Suggest 6 video games" in prompt
        assert "RPG, Strategy" in prompt
        assert "Space Exploration" in prompt
        assert "normal" in prompt


class TestRequestCandidates:
    def test_parses_batch(self, answers, fake_ai, ai_payload):
        ai = fake_ai(ai_payload(3, percentage=82))
        client = RecommendationClient(api_key="k", client=ai)

        batch = asyncio.run(client.request_candidates(answers, 3))

        assert [c.id for c in batch.candidates] == ["game-0", "game-1", "game-2"]
        assert batch.accuracy.percentage == 82
        call = ai.calls[0]
        assert call["response_format"]["type"] == "json_schema"
        assert call["response_format"]["json_schema"]["strict"] is True

    def test_normalizes_candidate_fields(self, answers, fake_ai):
        payload = json.dumps({
            "recommendations": [{
                "id": "x", "steam_app_id": " 620 ", "title": "Portal 2", "genres": [], "tags": [],
                "main_story_time": 9, "completionist_time": 4,
                "suitability_score": 140, "reason_for_pick": "Puzzles",
            }],
            "accuracy": {"percentage": 70, "reasoning": "ok"},
        })
        client = RecommendationClient(api_key="k", client=fake_ai(payload))

        [c] = asyncio.run(client.request_candidates(answers)).candidates

        assert c.steam_app_id == "620"
        assert c.suitability_score == 100
        assert c.completionist_time == c.main_story_time == 9

    def test_accuracy_percentage_is_clamped(self, answers, fake_ai, ai_payload):
        client = RecommendationClient(api_key="k", client=fake_ai(ai_payload(3, percentage=101)))

        batch = asyncio.run(client.request_candidates(answers, 3))

        assert batch.accuracy.percentage == 100
        assert len(batch.candidates) == 3

    def test_non_finite_score_is_rejected(self, answers, fake_ai, ai_payload):
        # json.loads 會把 1e999 解成 inf
        payload = ai_payload(1).replace('"suitability_score": 90', '"suitability_score": 1e999')
        client = RecommendationClient(api_key="k", client=fake_ai(payload))
        with pytest.raises(RecommendationGenerationError):
            asyncio.run(client.request_candidates(answers))

    def test_non_finite_play_time_is_rejected(self, answers, fake_ai, ai_payload):
        payload = ai_payload(1).replace('"main_story_time": 20', '"main_story_time": 1e999')
        client = RecommendationClient(api_key="k", client=fake_ai(payload))
        with pytest.raises(RecommendationGenerationError):
            asyncio.run(client.request_candidates(answers))

    def test_non_finite_accuracy_is_rejected(self, answers, fake_ai, ai_payload):
        payload = ai_payload(1).replace('"percentage": 85', '"percentage": -1e999')
        client = RecommendationClient(api_key="k", client=fake_ai(payload))
        with pytest.raises(RecommendationGenerationError):
            asyncio.run(client.request_candidates(answers))

    def test_missing_key(self, answers, fake_ai):
        ai = fake_ai("{}")
        client = RecommendationClient(api_key="", client=ai)

        with pytest.raises(ConfigurationError):
            asyncio.run(client.request_candidates(answers))
        assert ai.calls == []

    def test_malformed_json(self, answers, fake_ai):
        client = RecommendationClient(api_key="k", client=fake_ai("Sure! Here are some games:"))
        with pytest.raises(RecommendationGenerationError):
            asyncio.run(client.request_candidates(answers))

    def test_schema_mismatch(self, answers, fake_ai):
        payload = json.dumps({"recommendations": [{"id": "x", "steam_app_id": "not-a-number"}], "accuracy": {}})
        client = RecommendationClient(api_key="k", client=fake_ai(payload))
        with pytest.raises(RecommendationGenerationError):
            asyncio.run(client.request_candidates(answers))

    def test_empty_response(self, answers, fake_ai):
        client = RecommendationClient(api_key="k", client=fake_ai(None))
        with pytest.raises(RecommendationGenerationError):
            asyncio.run(client.request_candidates(answers))

    def test_provider_error_is_wrapped(self, answers, fake_ai):
        client = RecommendationClient(api_key="k", client=fake_ai(RuntimeError("503 from provider")))
        with pytest.raises(RecommendationGenerationError):
            asyncio.run(client.request_candidates(answers))


class TestSearchSpecificGame:
    def test_single_candidate(self, fake_ai):
        payload = json.dumps({
            "id": "stardew", "steam_app_id": "413150", "title": "Stardew Valley", "genres": ["Sim"],
            "tags": ["Farming"], "main_story_time": 53, "completionist_time": 150,
            "suitability_score": 95, "reason_for_pick": "Exact title match.",
        })
        client = RecommendationClient(api_key="k", client=fake_ai(payload))

        c = asyncio.run(client.search_specific_game("stardew"))

        assert c.steam_app_id == "413150"
