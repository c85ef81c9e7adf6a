"""
展示数据服务 - 为宿主页面提供已发布评论、星级与结构化数据
"""
from typing import Optional

from ai_review_generator.core import get_logger, get_settings
from ai_review_generator.models import ContentItem
from ai_review_generator.services.review_generator import ReviewView, format_review
from ai_review_generator.services.review_store import ReviewStore, clamp_rating

logger = get_logger(__name__)

SCHEMA_CONTEXT = "https://schema.org"
BEST_RATING = 5
WORST_RATING = 0


def star_breakdown(rating: float) -> dict:
    """
    评分拆分为整星 / 半星 / 空星

    先截断到 [0, 5]，再按 0.5 取整
    """
    value = round(clamp_rating(rating) * 2) / 2
    full = int(value)
    half = 1 if value - full >= 0.5 else 0
    return {
        "full": full,
        "half": half,
        "empty": BEST_RATING - full - half,
        "value": value,
    }


def build_schema(review: ReviewView, item: ContentItem, site_name: Optional[str] = None) -> dict:
    """
    构造 schema.org JSON-LD

    商品使用 Product，其余使用 Article；
    评论者名称为空时作者为站点（Organization）
    """
    site_name = site_name or get_settings().site_name

    if review.reviewer_name:
        author = {"@type": "Person", "name": review.reviewer_name}
    else:
        author = {"@type": "Organization", "name": site_name}

    review_data = {
        "@type": "Review",
        "reviewRating": {
            "@type": "Rating",
            "ratingValue": review.rating,
            "bestRating": BEST_RATING,
            "worstRating": WORST_RATING,
        },
        "author": author,
        "reviewBody": review.full_review,
        "datePublished": review.generated_at.date().isoformat(),
    }
    if review.summary:
        review_data["name"] = review.summary

    if item.is_product:
        schema = {
            "@context": SCHEMA_CONTEXT,
            "@type": "Product",
            "name": item.title,
            "description": item.excerpt or review.summary,
            "review": review_data,
        }
        if item.price:
            schema["offers"] = {"@type": "Offer", "price": item.price}
        return schema

    return {
        "@context": SCHEMA_CONTEXT,
        "@type": "Article",
        "headline": item.title,
        "description": item.excerpt or review.summary,
        "review": review_data,
    }


class DisplayService:
    """展示数据服务（只读）"""

    def __init__(self, store: Optional[ReviewStore] = None, engine=None):
        self.store = store or ReviewStore(engine)

    def get_published_reviews(self, content_id: int) -> list[ReviewView]:
        """已发布评论，按生成时间正序"""
        reviews = self.store.get_reviews_by_content(
            content_id,
            published=True,
            newest_first=False,
        )
        return [format_review(r) for r in reviews]

    def get_review_data(self, content_id: int) -> Optional[ReviewView]:
        """最近一条评论；不存在或未发布时返回 None"""
        review = self.store.get_latest_review(content_id)
        if review is None or not review.published:
            return None
        return format_review(review)

    def has_review(self, content_id: int) -> bool:
        return self.get_review_data(content_id) is not None


# 全局单例
_display_service: Optional[DisplayService] = None


def get_display_service() -> DisplayService:
    """获取展示数据服务单例"""
    global _display_service
    if _display_service is None:
        _display_service = DisplayService()
    return _display_service
