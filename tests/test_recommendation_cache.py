"""Tests for the answers hash and the recommendation cache."""

from sqlalchemy.exc import OperationalError

from app.schemas.quiz import QuizAnswers
from app.schemas.recommendation import EnrichedRecommendation, QuizAccuracy, RecommendationResponse
from app.services.recommendation_cache import RecommendationCache, answers_hash


def _response(title: str = "Hades") -> RecommendationResponse:
    rec = EnrichedRecommendation(
        id="hades",
        steam_app_id="1145360",
        genres=["Roguelike"],
        tags=["Action"],
        main_story_time=22,
        completionist_time=95,
        suitability_score=93,
        reason_for_pick="Tight runs.",
        title=title,
        description="Defy the god of the dead.",
        developer="Supergiant Games",
        image_url="https://cdn.akamai.steamstatic.com/steam/apps/1145360/header.jpg",
        steam_price="$24.99",
        cheapest_price="View Deals",
        deal_url="https://gg.deals/game/hades/",
    )
    return RecommendationResponse(
        recommendations=[rec],
        accuracy=QuizAccuracy(percentage=88, reasoning="Close match."),
    )


class TestAnswersHash:
    """Semantically identical answers collide; different ones do not."""

    def test_genre_order_and_keyword_case_ignored(self, answers):
        other = QuizAnswers(
            preferred_genres=["Strategy", "RPG"],
            playstyle="balanced",
            time_availability="medium",
            specific_keywords="space exploration",
            difficulty_preference="normal",
        )
        assert answers_hash(answers) == answers_hash(other)

    def test_deterministic(self, answers):
        assert answers_hash(answers) == answers_hash(answers.model_copy())

    def test_different_answers_differ(self, answers):
        harder = answers.model_copy(update={"difficulty_preference": "challenging"})
        assert answers_hash(answers) != answers_hash(harder)

    def test_url_safe(self, answers):
        key = answers_hash(answers)
        assert "+" not in key and "/" not in key


class TestRecommendationCache:
    def test_miss(self, session_factory, answers):
        cache = RecommendationCache(session_factory)
        assert cache.lookup("7656", answers_hash(answers)) is None

    def test_store_then_lookup(self, session_factory, answers):
        cache = RecommendationCache(session_factory)
        key = answers_hash(answers)
        response = _response()

        cache.store("7656", key, answers, response)

        assert cache.lookup("7656", key) == response
        # 其他用戶不共用
        assert cache.lookup("9999", key) is None

    def test_store_upserts(self, session_factory, answers):
        cache = RecommendationCache(session_factory)
        key = answers_hash(answers)

        cache.store("7656", key, answers, _response("Hades"))
        cache.store("7656", key, answers, _response("Hades II"))

        hit = cache.lookup("7656", key)
        assert hit.recommendations[0].title == "Hades II"
        assert len(cache.history("7656")) == 1

    def test_history_newest_first(self, session_factory, answers):
        cache = RecommendationCache(session_factory)
        harder = answers.model_copy(update={"difficulty_preference": "challenging"})

        cache.store("7656", answers_hash(answers), answers, _response("First"))
        cache.store("7656", answers_hash(harder), harder, _response("Second"))

        rows = cache.history("7656")
        assert [r.results["recommendations"][0]["title"] for r in rows] == ["Second", "First"]

    def test_backend_failure_is_a_miss(self, answers):
        def broken_factory():
            raise_on = OperationalError("SELECT", {}, Exception("database is locked"))

            class BrokenSession:
                def query(self, *a, **kw):
                    raise raise_on

                def rollback(self):
                    pass

                def close(self):
                    pass

            return BrokenSession()

        cache = RecommendationCache(broken_factory)
        key = answers_hash(answers)

        assert cache.lookup("7656", key) is None
        # store 失敗不拋錯
        cache.store("7656", key, answers, _response())
