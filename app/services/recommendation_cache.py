# app/services/recommendation_cache.py - 以 (用戶, 答案摘要) 快取推薦結果
import base64
import json
import logging
from typing import Callable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.sql import func

from app.models.quiz_result import QuizResult
from app.schemas.quiz import QuizAnswers
from app.schemas.recommendation import RecommendationResponse

logger = logging.getLogger(__name__)


def normalize_answers(answers: QuizAnswers) -> dict:
    return {
        "genres": ",".join(sorted(answers.preferred_genres)),
        "playstyle": answers.playstyle,
        "time": answers.time_availability,
        "keywords": answers.specific_keywords.strip().lower(),
        "difficulty": answers.difficulty_preference,
    }


def answers_hash(answers: QuizAnswers) -> str:
    """
    正規化答案後的確定性摘要（去重用，不是安全邊界）。
    類型排序、關鍵字去空白轉小寫，其餘欄位原樣。
    """
    canonical = json.dumps(normalize_answers(answers), sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return base64.urlsafe_b64encode(canonical.encode("utf-8")).decode("ascii")


class RecommendationCache:
    """
    資料庫失敗一律不中斷推薦流程：lookup 視為 miss，store 視為 no-op。
    """

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self.session_factory = session_factory

    def lookup(self, user_id: str, hash_key: str) -> Optional[RecommendationResponse]:
        db = self.session_factory()
        try:
            row = (
                db.query(QuizResult)
                .filter(QuizResult.steam_id == user_id, QuizResult.answers_hash == hash_key)
                .first()
            )
            if row is None:
                return None
            return RecommendationResponse.model_validate(row.results)
        except SQLAlchemyError as e:
            logger.error(f"Cache lookup failed for user {user_id}: {e}", exc_info=True)
            return None
        except ValueError as e:
            # 舊格式或損壞的紀錄當作 miss
            logger.warning(f"Discarding unreadable cache record for user {user_id}: {e}")
            return None
        finally:
            db.close()

    def store(
        self,
        user_id: str,
        hash_key: str,
        answers: QuizAnswers,
        response: RecommendationResponse,
    ) -> None:
        db = self.session_factory()
        try:
            payload = response.model_dump(mode="json", exclude={"cached"})
            row = (
                db.query(QuizResult)
                .filter(QuizResult.steam_id == user_id, QuizResult.answers_hash == hash_key)
                .first()
            )
            if row is None:
                row = QuizResult(steam_id=user_id, answers_hash=hash_key)
            else:
                row.created_at = func.now()
            row.answers = answers.model_dump(mode="json")
            row.results = payload
            db.add(row)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Cache store failed for user {user_id}: {e}", exc_info=True)
        finally:
            db.close()

    def history(self, user_id: str) -> List[QuizResult]:
        """用戶的測驗紀錄，新到舊"""
        db = self.session_factory()
        try:
            rows = (
                db.query(QuizResult)
                .filter(QuizResult.steam_id == user_id)
                .order_by(QuizResult.created_at.desc(), QuizResult.id.desc())
                .all()
            )
            for row in rows:
                db.expunge(row)
            return rows
        finally:
            db.close()
