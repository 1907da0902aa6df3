# app/core/security.py
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, Request
from jose import jwt, JWTError

from app.core.config import Settings
from app.core.errors import ConfigurationError, to_http_exception
from app.schemas.auth import SteamUser
from app.services.container import get_app_settings

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
SESSION_COOKIE = "steamUser"


def create_session_token(user: SteamUser, secret: str, max_age: int) -> str:
    """建立 HMAC 簽章的 session token"""
    if not secret:
        raise ConfigurationError("AUTH_SECRET is not configured")
    expire = datetime.now(timezone.utc) + timedelta(seconds=max_age)
    payload = {
        "sub": user.steam_id,
        "username": user.username,
        "avatar_url": user.avatar_url,
        "exp": expire,
    }
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def decode_session_token(token: str, secret: str) -> Optional[SteamUser]:
    """驗證簽章；無效或過期時回傳 None 而非拋錯"""
    if not secret:
        raise ConfigurationError("AUTH_SECRET is not configured")
    try:
        payload = jwt.decode(token, secret, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.info(f"Rejected session token: {e}")
        return None

    steam_id = payload.get("sub")
    if not steam_id:
        return None
    return SteamUser(
        steam_id=steam_id,
        username=payload.get("username") or f"SteamUser{steam_id[-4:]}",
        avatar_url=payload.get("avatar_url") or "",
    )


def get_optional_user(
    request: Request,
    settings: Settings = Depends(get_app_settings),
) -> Optional[SteamUser]:
    """從 cookie 取得當前用戶；未登入回傳 None"""
    token = request.cookies.get(SESSION_COOKIE)
    if not token:
        return None
    try:
        return decode_session_token(token, settings.AUTH_SECRET)
    except ConfigurationError as e:
        logger.error(f"Cannot verify session cookie: {e}")
        raise to_http_exception(e)


def get_current_user(user: Optional[SteamUser] = Depends(get_optional_user)) -> SteamUser:
    if user is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user
