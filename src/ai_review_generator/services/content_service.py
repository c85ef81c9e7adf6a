"""
内容条目服务 - 条目的创建、读取与发布
"""
from datetime import datetime
from typing import Optional

from sqlmodel import Session

from ai_review_generator.core import get_logger
from ai_review_generator.core.exceptions import InvalidPostError, ReviewGeneratorError
from ai_review_generator.models import ContentItem
from ai_review_generator.services.review_generator import (
    ReviewGenerator,
    ReviewView,
    get_review_generator,
    is_auto_generate_enabled,
)

logger = get_logger(__name__)

PUBLISH_STATUS = "publish"


class ContentService:
    """内容条目服务"""

    def __init__(self, generator: Optional[ReviewGenerator] = None, engine=None):
        self.generator = generator or ReviewGenerator(engine=engine)
        self.engine = self.generator.engine

    def create_item(self, **fields) -> ContentItem:
        """创建内容条目"""
        item = ContentItem(**fields)
        with Session(self.engine) as session:
            session.add(item)
            session.commit()
            session.refresh(item)
        logger.info(f"创建内容条目: id={item.id}, type={item.content_type}, status={item.status}")
        return item

    def get_item(self, item_id: int) -> Optional[ContentItem]:
        with Session(self.engine) as session:
            return session.get(ContentItem, item_id)

    def publish(self, item_id: int) -> ContentItem:
        """
        发布内容条目

        从非发布状态切换到发布状态时触发自动生成

        Raises:
            InvalidPostError: 条目不存在
        """
        with Session(self.engine) as session:
            item = session.get(ContentItem, item_id)
            if not item:
                raise InvalidPostError()
            old_status = item.status
            item.status = PUBLISH_STATUS
            item.updated_at = datetime.now()
            session.add(item)
            session.commit()
            session.refresh(item)

        if old_status != PUBLISH_STATUS:
            self.maybe_generate_review(item)
        return item

    def maybe_generate_review(self, item: ContentItem) -> Optional[ReviewView]:
        """
        发布时自动生成评论

        生成失败只记日志，不影响发布本身
        """
        settings = self.generator.settings_service.load()
        if not is_auto_generate_enabled(item, settings):
            logger.info(f"自动生成已关闭，跳过: content_id={item.id}")
            return None

        if self.generator.store.get_reviews_by_content(item.id, published=True, limit=1):
            logger.info(f"已有公开评论，跳过: content_id={item.id}")
            return None

        try:
            return self.generator.generate(item.id)
        except ReviewGeneratorError as e:
            logger.error(f"发布时自动生成评论失败: content_id={item.id}, code={e.code}, error={e}")
            return None


# 全局单例
_content_service: Optional[ContentService] = None


def get_content_service() -> ContentService:
    """获取内容条目服务单例"""
    global _content_service
    if _content_service is None:
        _content_service = ContentService(generator=get_review_generator())
    return _content_service
