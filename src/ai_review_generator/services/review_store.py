"""
评论与请求日志的持久化操作
"""
from datetime import datetime
from typing import Optional

from sqlalchemy import delete, func
from sqlmodel import Session, select

from ai_review_generator.core import get_logger
from ai_review_generator.core.database import engine as default_engine
from ai_review_generator.models import RequestLog, Review

logger = get_logger(__name__)

MIN_RATING = 0.0
MAX_RATING = 5.0

# 允许 update_review 修改的字段
UPDATABLE_FIELDS = (
    "rating",
    "review_content",
    "review_summary",
    "review_pros",
    "review_cons",
    "reviewer_name",
    "published",
)


def clamp_rating(rating: float) -> float:
    """评分限制在 [0, 5]"""
    return max(MIN_RATING, min(MAX_RATING, float(rating)))


def join_points(points: Optional[list[str]]) -> str:
    """优缺点列表按换行拼接"""
    return "\n".join(points) if points else ""


class ReviewStore:
    """评论仓储"""

    def __init__(self, engine=None):
        self.engine = engine or default_engine

    # ============ 评论 ============

    def save_review(self, review: Review) -> Review:
        """新增评论（评分入库前截断）"""
        review.rating = clamp_rating(review.rating)
        with Session(self.engine) as session:
            session.add(review)
            session.commit()
            session.refresh(review)
            return review

    def get_review(self, review_id: int) -> Optional[Review]:
        with Session(self.engine) as session:
            return session.get(Review, review_id)

    def get_reviews_by_content(
        self,
        content_id: int,
        published: Optional[bool] = None,
        limit: int = 0,
        newest_first: bool = True,
    ) -> list[Review]:
        """
        获取某个内容条目的评论

        默认按生成时间倒序，同一时间按 ID 倒序
        """
        with Session(self.engine) as session:
            statement = select(Review).where(Review.content_id == content_id)
            if published is not None:
                statement = statement.where(Review.published == published)

            if newest_first:
                statement = statement.order_by(Review.generated_at.desc(), Review.id.desc())
            else:
                statement = statement.order_by(Review.generated_at.asc(), Review.id.asc())

            if limit > 0:
                statement = statement.limit(limit)
            return list(session.exec(statement).all())

    def get_latest_review(self, content_id: int) -> Optional[Review]:
        """最近生成的一条评论"""
        reviews = self.get_reviews_by_content(content_id, limit=1)
        return reviews[0] if reviews else None

    def update_review(self, review_id: int, changes: dict) -> Optional[Review]:
        """按字段合并修改，不做评分截断"""
        with Session(self.engine) as session:
            review = session.get(Review, review_id)
            if not review:
                return None
            for key, value in changes.items():
                if key in UPDATABLE_FIELDS or key == "modified_by_user":
                    setattr(review, key, value)
            session.add(review)
            session.commit()
            session.refresh(review)
            return review

    def delete_review(self, review_id: int) -> bool:
        with Session(self.engine) as session:
            review = session.get(Review, review_id)
            if not review:
                return False
            session.delete(review)
            session.commit()
            return True

    def delete_reviews_by_content(self, content_id: int) -> int:
        """删除某个内容条目的全部评论，返回删除条数"""
        with Session(self.engine) as session:
            result = session.execute(delete(Review).where(Review.content_id == content_id))
            session.commit()
            deleted = result.rowcount or 0
        logger.info(f"已删除评论: content_id={content_id}, count={deleted}")
        return deleted

    def list_reviews(
        self,
        page: int = 1,
        limit: int = 20,
        published: Optional[bool] = None,
    ) -> tuple[list[Review], int]:
        """分页获取评论列表"""
        with Session(self.engine) as session:
            statement = select(Review)
            count_statement = select(func.count()).select_from(Review)
            if published is not None:
                statement = statement.where(Review.published == published)
                count_statement = count_statement.where(Review.published == published)

            total = session.exec(count_statement).one()

            statement = (
                statement.order_by(Review.generated_at.desc(), Review.id.desc())
                .offset((page - 1) * limit)
                .limit(limit)
            )
            return list(session.exec(statement).all()), total

    def count_reviews(self, published: Optional[bool] = None) -> int:
        with Session(self.engine) as session:
            statement = select(func.count()).select_from(Review)
            if published is not None:
                statement = statement.where(Review.published == published)
            return session.exec(statement).one()

    # ============ 请求日志 ============

    def log_request(
        self,
        content_id: int,
        ai_model: str,
        status: str,
        tokens_used: int = 0,
        error_message: str = "",
    ) -> Optional[RequestLog]:
        """追加请求日志，写入失败只记录日志不上抛"""
        log = RequestLog(
            content_id=content_id,
            ai_model=ai_model,
            tokens_used=tokens_used or 0,
            requested_at=datetime.now(),
            status=status,
            error_message=error_message or "",
        )
        try:
            with Session(self.engine) as session:
                session.add(log)
                session.commit()
                session.refresh(log)
                return log
        except Exception as e:
            logger.error(f"请求日志写入失败: content_id={content_id}, error={e}")
            return None

    def list_logs(self, page: int = 1, limit: int = 50) -> tuple[list[RequestLog], int]:
        """分页获取请求日志（按请求时间倒序）"""
        with Session(self.engine) as session:
            total = session.exec(select(func.count()).select_from(RequestLog)).one()
            statement = (
                select(RequestLog)
                .order_by(RequestLog.requested_at.desc(), RequestLog.id.desc())
                .offset((page - 1) * limit)
                .limit(limit)
            )
            return list(session.exec(statement).all()), total

    def count_logs(self, content_id: Optional[int] = None) -> int:
        with Session(self.engine) as session:
            statement = select(func.count()).select_from(RequestLog)
            if content_id is not None:
                statement = statement.where(RequestLog.content_id == content_id)
            return session.exec(statement).one()

    def clear_logs(self, before: Optional[datetime] = None) -> int:
        """批量删除日志，可只删除某时间点之前的"""
        with Session(self.engine) as session:
            statement = delete(RequestLog)
            if before is not None:
                statement = statement.where(RequestLog.requested_at < before)
            result = session.execute(statement)
            session.commit()
            deleted = result.rowcount or 0
        logger.info(f"已清理请求日志: {deleted} 条")
        return deleted

    def log_stats(self) -> dict:
        """调用统计：总次数、失败次数、token 总量"""
        with Session(self.engine) as session:
            total = session.exec(select(func.count()).select_from(RequestLog)).one()
            errors = session.exec(
                select(func.count()).select_from(RequestLog).where(RequestLog.status == "error")
            ).one()
            tokens = session.exec(select(func.coalesce(func.sum(RequestLog.tokens_used), 0))).one()
        return {
            "total_requests": total,
            "error_requests": errors,
            "success_requests": total - errors,
            "tokens_used": int(tokens),
        }


# 全局单例
_review_store: Optional[ReviewStore] = None


def get_review_store() -> ReviewStore:
    """获取评论仓储单例"""
    global _review_store
    if _review_store is None:
        _review_store = ReviewStore()
    return _review_store
