"""Pytest configuration and shared fixtures."""

import json
from types import SimpleNamespace
from typing import Callable, Dict, Optional
from urllib.parse import parse_qs

import httpx
import pytest

from app.core.config import Settings
from app.db.base import Base
from app.db.session import build_engine, build_session_factory
from app.models.favorite import Favorite  # noqa: F401
from app.models.quiz_result import QuizResult  # noqa: F401
from app.schemas.quiz import QuizAnswers
from app.schemas.recommendation import Candidate
from app.services.storefront_client import RelayStrategy

DIRECT_ONLY = [RelayStrategy("direct", lambda url: url)]


class FakeCompletions:
    """Stands in for ``AsyncOpenAI().chat.completions``."""

    def __init__(self, contents):
        self.contents = list(contents)
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        content = self.contents.pop(0) if self.contents else None
        if isinstance(content, Exception):
            raise content
        message = SimpleNamespace(content=content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeAI:
    def __init__(self, *contents):
        self.chat = SimpleNamespace(completions=FakeCompletions(contents))

    @property
    def calls(self):
        return self.chat.completions.calls


def candidate_dict(index: int, app_id: Optional[str] = None, **overrides) -> Dict:
    data = {
        "id": f"game-{index}",
        "steam_app_id": app_id or str(1000 + index),
        "title": f"Game {index}",
        "genres": ["RPG"],
        "tags": ["Story Rich"],
        "main_story_time": 20,
        "completionist_time": 60,
        "suitability_score": 90 - index,
        "reason_for_pick": "Fits the answers.",
    }
    data.update(overrides)
    return data


def steam_entry(app_id: str, name: str, **data) -> Dict:
    payload = {
        "name": name,
        "short_description": f"{name} description",
        "developers": ["Studio"],
        "is_free": False,
        "price_overview": {"final": 1999, "final_formatted": "$19.99"},
    }
    payload.update(data)
    return {app_id: {"success": True, "data": payload}}


@pytest.fixture
def answers():
    """Sample quiz answers."""
    return QuizAnswers(
        preferred_genres=["RPG", "Strategy"],
        playstyle="balanced",
        time_availability="medium",
        specific_keywords="  Space Exploration ",
        difficulty_preference="normal",
    )


@pytest.fixture
def make_candidate():
    def _make(index: int, app_id: Optional[str] = None, **overrides) -> Candidate:
        return Candidate(**candidate_dict(index, app_id, **overrides))
    return _make


@pytest.fixture
def ai_payload():
    """Build a JSON string in the shape the AI provider returns."""
    def _payload(count: int = 3, percentage: float = 85) -> str:
        return json.dumps({
            "recommendations": [candidate_dict(i) for i in range(count)],
            "accuracy": {"percentage": percentage, "reasoning": "Good match."},
        })
    return _payload


@pytest.fixture
def fake_ai():
    return FakeAI


@pytest.fixture
def db_engine():
    """In-memory SQLite shared across sessions of one test."""
    engine = build_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return build_session_factory(db_engine)


@pytest.fixture
def mock_http():
    """Wrap a request handler into an ``httpx.AsyncClient``."""
    def _client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return _client


@pytest.fixture
def steam_handler():
    """
    Storefront handler backed by a catalog built from merged ``store_entry`` dicts. Unknown ids answer
    with ``success: false`` like the real store does.
    """
    def _handler(catalog: Dict[str, Dict], calls: Optional[list] = None):
        def handle(request: httpx.Request) -> httpx.Response:
            app_id = parse_qs(request.url.query.decode())["appids"][0]
            if calls is not None:
                calls.append(app_id)
            entry = catalog.get(app_id)
            if entry is None:
                return httpx.Response(200, json={app_id: {"success": False}})
            return httpx.Response(200, json={app_id: entry})
        return handle
    return _handler


@pytest.fixture
def settings():
    s = Settings()
    s.OPENAI_API_KEY = "test-openai"
    s.RAWG_API_KEY = "test-rawg"
    s.GGDEALS_API_KEY = ""
    s.STEAM_API_KEY = ""
    s.AUTH_SECRET = "test-secret"
    s.APP_URL = "http://localhost:5173"
    s.ENRICH_DELAY = 0.0
    s.STOREFRONT_BACKOFF = 0.0
    s.ALLOWED_ORIGINS = "http://localhost:5173"
    return s


@pytest.fixture
def store_entry():
    return steam_entry


@pytest.fixture
def direct_only():
    return list(DIRECT_ONLY)
