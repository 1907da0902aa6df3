# app/services/steam_auth.py - Steam OpenID 登入與玩家資料
import logging
import re
from typing import Dict, Mapping, Optional
from urllib.parse import urlencode

import httpx

from app.schemas.auth import SteamUser

logger = logging.getLogger(__name__)

STEAM_OPENID_URL = "https://steamcommunity.com/openid/login"
PLAYER_SUMMARIES_URL = "https://api.steampowered.com/ISteamUser/GetPlayerSummaries/v2/"
OPENID_NS = "http://specs.openid.net/auth/2.0"
IDENTIFIER_SELECT = "http://specs.openid.net/auth/2.0/identifier_select"

_CLAIMED_ID_RE = re.compile(r"/(\d+)$")


class SteamAuthError(Exception):
    """OpenID 回呼驗證失敗；status_code 對應回應碼"""

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


def resolve_base_url(app_url: str, host: str) -> str:
    """APP_URL 優先；否則依 Host 推出（localhost 用 http）"""
    if app_url:
        return app_url.rstrip("/")
    proto = "http" if host.startswith("localhost") or host.startswith("127.0.0.1") else "https"
    return f"{proto}://{host}"


def build_login_url(base_url: str) -> str:
    params = {
        "openid.ns": OPENID_NS,
        "openid.mode": "checkid_setup",
        "openid.return_to": f"{base_url}/api/auth/steam-callback",
        "openid.realm": base_url,
        "openid.identity": IDENTIFIER_SELECT,
        "openid.claimed_id": IDENTIFIER_SELECT,
    }
    return f"{STEAM_OPENID_URL}?{urlencode(params)}"


def extract_steam_id(claimed_id: str) -> Optional[str]:
    m = _CLAIMED_ID_RE.search(claimed_id or "")
    return m.group(1) if m else None


def fallback_username(steam_id: str) -> str:
    return f"SteamUser{steam_id[-4:]}"


class SteamAuthService:
    def __init__(self, http: httpx.AsyncClient, api_key: str = "", timeout: float = 30.0) -> None:
        self.http = http
        self.api_key = api_key
        self.timeout = timeout

    async def verify_assertion(self, query: Mapping[str, str]) -> str:
        """
        將 Steam 帶回的 openid.* 參數以 check_authentication 模式回送驗證，
        成功時回傳 Steam ID。
        """
        params: Dict[str, str] = dict(query)
        params["openid.mode"] = "check_authentication"
        try:
            r = await self.http.post(STEAM_OPENID_URL, data=params, timeout=self.timeout)
        except httpx.HTTPError as e:
            logger.error(f"Steam OpenID verification request failed: {e}")
            raise SteamAuthError("Steam verification failed", 500) from e

        if "is_valid:true" not in r.text:
            logger.warning("Steam rejected OpenID assertion")
            raise SteamAuthError("Invalid Steam OpenID assertion", 401)

        steam_id = extract_steam_id(query.get("openid.claimed_id", ""))
        if not steam_id:
            raise SteamAuthError("Could not extract Steam ID from OpenID response", 400)
        return steam_id

    async def fetch_user(self, steam_id: str) -> SteamUser:
        """取玩家公開資料；沒有 API key 或查詢失敗時用預設名稱"""
        user = SteamUser(steam_id=steam_id, username=fallback_username(steam_id))
        if not self.api_key:
            return user

        try:
            r = await self.http.get(
                PLAYER_SUMMARIES_URL,
                params={"key": self.api_key, "steamids": steam_id},
                timeout=self.timeout,
            )
            r.raise_for_status()
            players = ((r.json() or {}).get("response") or {}).get("players") or []
        except (httpx.HTTPError, ValueError, AttributeError) as e:
            logger.warning(f"Failed to fetch Steam player summary for {steam_id}: {e}")
            return user

        if players and isinstance(players[0], dict):
            player = players[0]
            user.username = player.get("personaname") or user.username
            user.avatar_url = player.get("avatarfull") or ""
        return user
