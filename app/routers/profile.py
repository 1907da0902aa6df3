# app/routers/profile.py - 測驗紀錄與收藏（需登入）
import logging
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.security import get_current_user
from app.schemas.auth import SteamUser
from app.schemas.favorite import FavoriteIn, FavoriteOut, GameSource, HistoryOut, QuizResultOut
from app.services import favorites_service
from app.services.container import ServiceContainer, get_container, get_db_session

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/history", response_model=HistoryOut)
def history(
    user: SteamUser = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
):
    items: List[QuizResultOut] = []
    for row in container.cache.history(user.steam_id):
        try:
            items.append(QuizResultOut.model_validate(row))
        except ValueError as e:
            logger.warning(f"Skipping unreadable quiz result {row.id}: {e}")
    return HistoryOut(items=items, count=len(items))


@router.get("/favorites", response_model=List[FavoriteOut])
def list_favorites(user: SteamUser = Depends(get_current_user), db: Session = Depends(get_db_session)):
    return favorites_service.list_favorites(db, user.steam_id)


@router.post("/favorites", response_model=FavoriteOut, status_code=201)
def add_favorite(body: FavoriteIn, user: SteamUser = Depends(get_current_user), db: Session = Depends(get_db_session)):
    return favorites_service.add_favorite(db, user.steam_id, body)


@router.delete("/favorites")
def remove_favorite(
    game_id: str = Query(..., min_length=1),
    game_source: GameSource = Query(...),
    user: SteamUser = Depends(get_current_user),
    db: Session = Depends(get_db_session),
):
    removed = favorites_service.remove_favorite(db, user.steam_id, game_id, game_source)
    return {"ok": True, "removed": removed}


@router.get("/favorites/check")
def check_favorite(
    game_id: str = Query(..., min_length=1),
    game_source: GameSource = Query(...),
    user: SteamUser = Depends(get_current_user),
    db: Session = Depends(get_db_session),
):
    return {"is_favorite": favorites_service.is_favorite(db, user.steam_id, game_id, game_source)}
