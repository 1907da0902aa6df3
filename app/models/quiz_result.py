# app/models/quiz_result.py
from sqlalchemy import Column, Integer, String, DateTime, JSON, UniqueConstraint
from sqlalchemy.sql import func
from app.db.base import Base

class QuizResult(Base):
    __tablename__ = "quiz_results"
    __table_args__ = (UniqueConstraint("steam_id", "answers_hash", name="uq_quiz_results_user_hash"),)

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    steam_id = Column(String(32), nullable=False, index=True)

    # 正規化後測驗答案的摘要，作為快取 key
    answers_hash = Column(String(512), nullable=False)
    answers = Column(JSON, nullable=False)
    results = Column(JSON, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
