# app/models/favorite.py
from sqlalchemy import Column, Integer, String, Text, DateTime, JSON, UniqueConstraint
from sqlalchemy.sql import func
from app.db.base import Base

class Favorite(Base):
    __tablename__ = "user_favorites"
    __table_args__ = (
        UniqueConstraint("steam_id", "game_id", "game_source", name="uq_user_favorites_game"),
    )

    id = Column(Integer, primary_key=True, index=True)
    steam_id = Column(String(32), nullable=False, index=True)
    game_id = Column(String(32), nullable=False)
    game_source = Column(String(10), nullable=False)  # 'rawg' | 'steam'
    game_title = Column(Text, nullable=False)
    game_image = Column(Text, nullable=True)
    game_data = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
