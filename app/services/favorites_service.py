# app/services/favorites_service.py
import logging
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.favorite import Favorite
from app.schemas.favorite import FavoriteIn

logger = logging.getLogger(__name__)


def _query_one(db: Session, steam_id: str, game_id: str, game_source: str):
    return db.query(Favorite).filter(
        Favorite.steam_id == steam_id,
        Favorite.game_id == game_id,
        Favorite.game_source == game_source,
    )


def list_favorites(db: Session, steam_id: str) -> List[Favorite]:
    """用戶收藏，新到舊"""
    return (
        db.query(Favorite)
        .filter(Favorite.steam_id == steam_id)
        .order_by(Favorite.created_at.desc(), Favorite.id.desc())
        .all()
    )


def add_favorite(db: Session, steam_id: str, item: FavoriteIn) -> Favorite:
    """
    新增收藏；同一遊戲重複加入時回傳既有紀錄
    """
    existing = _query_one(db, steam_id, item.game_id, item.game_source).first()
    if existing is not None:
        return existing

    fav = Favorite(
        steam_id=steam_id,
        game_id=item.game_id,
        game_source=item.game_source,
        game_title=item.game_title,
        game_image=item.game_image,
        game_data=item.game_data,
    )
    db.add(fav)
    try:
        db.commit()
    except IntegrityError:
        # 併發請求已先寫入
        db.rollback()
        logger.info(f"Favorite {item.game_source}:{item.game_id} already stored for {steam_id}")
        return _query_one(db, steam_id, item.game_id, item.game_source).one()
    db.refresh(fav)
    logger.info(f"Added favorite {item.game_source}:{item.game_id} for {steam_id}")
    return fav


def remove_favorite(db: Session, steam_id: str, game_id: str, game_source: str) -> bool:
    deleted = _query_one(db, steam_id, game_id, game_source).delete(synchronize_session=False)
    db.commit()
    return deleted > 0


def is_favorite(db: Session, steam_id: str, game_id: str, game_source: str) -> bool:
    return _query_one(db, steam_id, game_id, game_source).first() is not None
