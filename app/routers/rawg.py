# app/routers/rawg.py - RAWG 遊戲資料庫（搜尋、自動完成、篩選條件）
import logging
from typing import Any, Awaitable, List, Optional, TypeVar

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from app.core.errors import ConfigurationError, OperationSuperseded, ProviderError, to_http_exception
from app.core.security import get_optional_user
from app.schemas.auth import SteamUser
from app.schemas.rawg import GameFilters, RawgListResponse, SuggestionsOut
from app.services.container import ServiceContainer, get_container

logger = logging.getLogger(__name__)
router = APIRouter()

T = TypeVar("T")


def _id_list(raw: Optional[str]) -> List[int]:
    if not raw:
        return []
    try:
        return [int(x) for x in raw.split(",") if x.strip()]
    except ValueError:
        raise HTTPException(status_code=422, detail={"kind": "BadRequest", "desc": f"Invalid id list: {raw}"})


def get_filters(
    platforms: Optional[str] = Query(None, description="comma separated platform ids"),
    genres: Optional[str] = Query(None, description="comma separated genre ids"),
    tags: Optional[str] = Query(None, description="comma separated tag ids"),
    ordering: Optional[str] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=40),
) -> GameFilters:
    return GameFilters(
        platforms=_id_list(platforms),
        genres=_id_list(genres),
        tags=_id_list(tags),
        ordering=ordering,
        page=page,
        page_size=page_size,
    )


def caller_key(category: str, request: Request, user: Optional[SteamUser]) -> str:
    """取消用的 key：同一位呼叫者、同一類別只保留最新請求"""
    who = user.steam_id if user else (request.client.host if request.client else "anonymous")
    return f"{category}:{who}"


async def _call(operation: Awaitable[T]) -> T:
    try:
        return await operation
    except ConfigurationError as e:
        logger.error(f"RAWG misconfigured: {e}")
        raise to_http_exception(e)
    except ProviderError as e:
        if e.status_code == 404:
            raise HTTPException(status_code=404, detail={"kind": "NotFound", "desc": str(e)})
        raise to_http_exception(e)
    except OperationSuperseded as e:
        logger.debug(f"{e.key} superseded")
        raise to_http_exception(e)


@router.get("/search", response_model=RawgListResponse)
async def search(
    q: str = Query(..., min_length=1),
    filters: GameFilters = Depends(get_filters),
    container: ServiceContainer = Depends(get_container),
):
    return await _call(container.rawg.search_games_with_filters(q, filters))


@router.get("/suggestions", response_model=SuggestionsOut)
async def suggestions(
    request: Request,
    q: str = Query(..., min_length=1),
    user: Optional[SteamUser] = Depends(get_optional_user),
    container: ServiceContainer = Depends(get_container),
):
    key = caller_key("typeahead", request, user)
    items = await _call(container.cancellation.run_latest(key, container.rawg.fetch_suggestions(q)))
    return SuggestionsOut(items=items, count=len(items))


@router.get("/games/{game_id}")
async def game_details(game_id: int, container: ServiceContainer = Depends(get_container)) -> Any:
    return await _call(container.rawg.get_game_details(game_id))


@router.get("/games/{game_id}/screenshots")
async def game_screenshots(game_id: int, container: ServiceContainer = Depends(get_container)):
    results = await _call(container.rawg.get_game_screenshots(game_id))
    return {"results": results, "count": len(results)}


@router.get("/developers", response_model=RawgListResponse)
async def developers(
    request: Request,
    q: str = Query(..., min_length=1),
    user: Optional[SteamUser] = Depends(get_optional_user),
    container: ServiceContainer = Depends(get_container),
):
    key = caller_key("searchDevelopers", request, user)
    return await _call(container.cancellation.run_latest(key, container.rawg.search_developers(q)))


@router.get("/publishers", response_model=RawgListResponse)
async def publishers(
    request: Request,
    q: str = Query(..., min_length=1),
    user: Optional[SteamUser] = Depends(get_optional_user),
    container: ServiceContainer = Depends(get_container),
):
    key = caller_key("searchPublishers", request, user)
    return await _call(container.cancellation.run_latest(key, container.rawg.search_publishers(q)))


@router.get("/developers/{developer_id}/games", response_model=RawgListResponse)
async def developer_games(
    developer_id: int,
    filters: GameFilters = Depends(get_filters),
    container: ServiceContainer = Depends(get_container),
):
    return await _call(container.rawg.get_games_by_developer(developer_id, filters))


@router.get("/publishers/{publisher_id}/games", response_model=RawgListResponse)
async def publisher_games(
    publisher_id: int,
    filters: GameFilters = Depends(get_filters),
    container: ServiceContainer = Depends(get_container),
):
    return await _call(container.rawg.get_games_by_publisher(publisher_id, filters))


@router.get("/platforms", response_model=RawgListResponse)
async def platforms(container: ServiceContainer = Depends(get_container)):
    return await _call(container.rawg.fetch_platforms())


@router.get("/genres", response_model=RawgListResponse)
async def genres(container: ServiceContainer = Depends(get_container)):
    return await _call(container.rawg.fetch_genres())


@router.get("/tags", response_model=RawgListResponse)
async def tags(container: ServiceContainer = Depends(get_container)):
    return await _call(container.rawg.fetch_tags())
