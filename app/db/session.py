# app/db/session.py
import logging

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import settings

logger = logging.getLogger(__name__)


def process_database_url(url: str) -> str:
    """處理 Supabase / Postgres URL"""
    if not url:
        return "sqlite:///./steamquest.db"

    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)

    if url.startswith("postgresql://"):
        # 非本機連線強制 SSL
        if "sslmode=" not in url and "localhost" not in url and "127.0.0.1" not in url:
            separator = "&" if "?" in url else "?"
            url = f"{url}{separator}sslmode=require"
        logger.info("Database URL processed (first 30 chars): %s...", url[:30])

    return url


def build_engine(url: str) -> Engine:
    url = process_database_url(url)
    engine_kwargs = dict(pool_pre_ping=True)
    connect_args = {}

    if url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
        # 記憶體資料庫需共用同一條連線
        if url in ("sqlite://", "sqlite:///:memory:"):
            engine_kwargs["poolclass"] = StaticPool
    elif url.startswith("postgresql"):
        engine_kwargs.update({
            "pool_size": 5,
            "max_overflow": 10,
            "pool_timeout": 30,
            "pool_recycle": 1800,
        })

    return create_engine(url, connect_args=connect_args, echo=False, **engine_kwargs)


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


engine = build_engine(settings.DATABASE_URL)
SessionLocal = build_session_factory(engine)
