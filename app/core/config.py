# app/core/config.py
import os
from functools import lru_cache
from typing import List

from dotenv import find_dotenv, load_dotenv

load_dotenv(find_dotenv())


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return float(raw)


class Settings:
    """集中讀取環境變數；必要金鑰在第一次使用時才檢查"""

    def __init__(self) -> None:
        # AI 推薦
        self.OPENAI_API_KEY = (os.getenv("OPENAI_API_KEY") or "").strip()
        self.OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
        self.OPENAI_TEMPERATURE = _float_env("OPENAI_TEMPERATURE", 0.7)
        self.RECOMMENDATION_COUNT = int(os.getenv("RECOMMENDATION_COUNT", "6"))

        # 第三方資料來源
        self.RAWG_API_KEY = (os.getenv("RAWG_API_KEY") or "").strip()
        self.GGDEALS_API_KEY = (os.getenv("GGDEALS_API_KEY") or "").strip()
        self.STEAM_API_KEY = (os.getenv("STEAM_API_KEY") or "").strip()

        # Session
        self.AUTH_SECRET = (os.getenv("AUTH_SECRET") or "").strip()
        self.SESSION_MAX_AGE = int(os.getenv("SESSION_MAX_AGE", str(7 * 24 * 3600)))
        self.APP_URL = (os.getenv("APP_URL") or "").strip().rstrip("/")

        self.DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./steamquest.db")
        self.ALLOWED_ORIGINS = os.getenv(
            "ALLOWED_ORIGINS",
            "http://localhost:5173,http://localhost:3000",
        )

        # 逾時與節流（秒）
        self.STOREFRONT_TIMEOUT = _float_env("STOREFRONT_TIMEOUT", 10.0)
        self.STOREFRONT_BACKOFF = _float_env("STOREFRONT_BACKOFF", 0.5)
        self.ENRICH_DELAY = _float_env("ENRICH_DELAY", 0.3)
        self.PROVIDER_TIMEOUT = _float_env("PROVIDER_TIMEOUT", 30.0)

        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    @property
    def allowed_origins(self) -> List[str]:
        out: List[str] = []
        for s in (self.ALLOWED_ORIGINS or "").split(","):
            s = s.strip()
            if s and s not in ("*", "null"):
                out.append(s)
        return out


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
