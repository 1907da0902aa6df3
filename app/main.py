# app/main.py - SteamQuest API
from __future__ import annotations

import logging
import os
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.engine import Engine

from app.core.config import settings as default_settings
from app.db.base import Base
from app.db.session import SessionLocal, engine as default_engine
from app.models.favorite import Favorite  # noqa: F401  註冊資料表
from app.models.quiz_result import QuizResult  # noqa: F401
from app.routers import auth, profile, rawg, recommendations, steam_media
from app.services.container import ServiceContainer

logging.basicConfig(
    level=getattr(logging, default_settings.LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

VERSION = "1.0.0"


def create_app(container: Optional[ServiceContainer] = None, engine: Optional[Engine] = None) -> FastAPI:
    container = container or ServiceContainer(default_settings, SessionLocal)
    db_engine = engine or default_engine

    app = FastAPI(
        title="SteamQuest Backend",
        version=VERSION,
        description="Steam 遊戲推薦：測驗 → AI 候選 → Steam / gg.deals 補資料",
    )
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=container.settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["Content-Range", "Content-Length", "Accept-Ranges"],
        max_age=86400,
    )

    @app.on_event("startup")
    def on_startup():
        try:
            Base.metadata.create_all(bind=db_engine)
            logger.info("Database tables ready")
        except Exception as e:
            # 資料庫不可用時推薦仍可匿名使用
            logger.error(f"Table creation failed: {e}")

    @app.on_event("shutdown")
    async def on_shutdown():
        await container.aclose()

    app.include_router(recommendations.router, prefix="/api/recommendations", tags=["recommendations"])
    app.include_router(steam_media.router, prefix="/api/steam", tags=["steam"])
    app.include_router(rawg.router, prefix="/api/rawg", tags=["rawg"])
    app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
    app.include_router(profile.router, prefix="/api/profile", tags=["profile"])

    @app.get("/api/health")
    def health():
        s = container.settings
        return {
            "ok": True,
            "version": VERSION,
            "features": {
                "ai": bool(s.OPENAI_API_KEY),
                "rawg": bool(s.RAWG_API_KEY),
                "deals": bool(s.GGDEALS_API_KEY),
                "steam_profile": bool(s.STEAM_API_KEY),
                "auth": bool(s.AUTH_SECRET),
            },
        }

    @app.get("/")
    def root():
        return {
            "service": "SteamQuest Backend API",
            "version": VERSION,
            "status": "running",
            "docs": "/docs",
            "health": "/api/health",
        }

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", "10000"))
    uvicorn.run(app, host="0.0.0.0", port=port, log_level="info")
