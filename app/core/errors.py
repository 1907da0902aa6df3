# app/core/errors.py
from fastapi import HTTPException


class SteamQuestError(Exception):
    """所有應用層錯誤的基底類別"""

    kind = "SteamQuestError"


class ConfigurationError(SteamQuestError):
    """缺少必要的 API key / secret；不重試，直接回報呼叫端"""

    kind = "ConfigError"


class ProviderError(SteamQuestError):
    """必要的上游服務回傳錯誤（非 2xx 或無法解析）"""

    kind = "UpstreamHTTP"

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RecommendationGenerationError(SteamQuestError):
    """AI 回傳內容無法解析或不符合 schema"""

    kind = "GenerationError"


class OperationSuperseded(SteamQuestError):
    """同一類別的新操作開始，舊的操作被取消"""

    kind = "Superseded"

    def __init__(self, key: str) -> None:
        super().__init__(f"operation '{key}' was superseded by a newer request")
        self.key = key


_STATUS_BY_KIND = {
    ConfigurationError.kind: 500,
    ProviderError.kind: 502,
    RecommendationGenerationError.kind: 502,
    OperationSuperseded.kind: 409,
}


def to_http_exception(exc: SteamQuestError, desc: str | None = None) -> HTTPException:
    """轉成路由層的 HTTPException，detail 形狀為 {"kind", "desc"}"""
    status = _STATUS_BY_KIND.get(exc.kind, 500)
    return HTTPException(status_code=status, detail={"kind": exc.kind, "desc": desc or str(exc)})
