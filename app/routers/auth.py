# app/routers/auth.py - Steam 登入 / session
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse, RedirectResponse

from app.core.errors import ConfigurationError, to_http_exception
from app.core.security import SESSION_COOKIE, create_session_token, get_optional_user
from app.schemas.auth import SteamUser
from app.services.container import ServiceContainer, get_container
from app.services.steam_auth import SteamAuthError, build_login_url, resolve_base_url

logger = logging.getLogger(__name__)
router = APIRouter()


def _base_url(request: Request, container: ServiceContainer) -> str:
    return resolve_base_url(container.settings.APP_URL, request.headers.get("host", ""))


@router.get("/steam")
async def steam_login(request: Request, container: ServiceContainer = Depends(get_container)):
    return RedirectResponse(build_login_url(_base_url(request, container)), status_code=302)


@router.get("/steam-callback")
async def steam_callback(request: Request, container: ServiceContainer = Depends(get_container)):
    """
    1. 以 check_authentication 回送 Steam 驗證，避免偽造的回呼
    2. 取玩家名稱與頭像（有 STEAM_API_KEY 時）
    3. 寫入簽章 cookie 後導回前端
    """
    settings = container.settings
    try:
        steam_id = await container.steam_auth.verify_assertion(request.query_params)
    except SteamAuthError as e:
        raise HTTPException(status_code=e.status_code, detail={"kind": "SteamAuth", "desc": str(e)})

    user = await container.steam_auth.fetch_user(steam_id)
    try:
        token = create_session_token(user, settings.AUTH_SECRET, settings.SESSION_MAX_AGE)
    except ConfigurationError as e:
        logger.error(f"Cannot issue session: {e}")
        raise to_http_exception(e, "Authentication service is not configured")

    logger.info(f"Steam user {steam_id} signed in")
    response = RedirectResponse(f"{_base_url(request, container)}/?loggedIn=1", status_code=302)
    response.set_cookie(
        SESSION_COOKIE,
        token,
        max_age=settings.SESSION_MAX_AGE,
        path="/",
        httponly=True,
        samesite="lax",
    )
    return response


@router.get("/me", response_model=Optional[SteamUser])
async def me(user: Optional[SteamUser] = Depends(get_optional_user)):
    # 未登入回傳 null 而非 401
    return user


@router.post("/logout")
async def logout():
    response = JSONResponse({"success": True})
    response.delete_cookie(SESSION_COOKIE, path="/", httponly=True, samesite="lax")
    return response
