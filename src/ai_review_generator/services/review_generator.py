"""
评论生成服务 - 串联 设置 → Prompt → API 调用 → 解析 → 入库
"""
from dataclasses import replace
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel
from sqlmodel import Session

from ai_review_generator.core import get_logger
from ai_review_generator.core.exceptions import (
    AutoGenerateDisabledError,
    GenerationFailedError,
    InvalidPostError,
    PostNotPublishedError,
    ReviewGeneratorError,
)
from ai_review_generator.models import ContentItem, Review
from ai_review_generator.services.api_client import ApiClient
from ai_review_generator.services.name_generator import ReviewerNameGenerator, ReviewerNameHook
from ai_review_generator.services.prompt_builder import build_prompt, build_snapshot
from ai_review_generator.services.providers import ProviderConfig, resolve_provider
from ai_review_generator.services.response_parser import ReviewDraft, parse
from ai_review_generator.services.review_store import ReviewStore, join_points
from ai_review_generator.services.settings_service import (
    GeneratorSettings,
    SettingsService,
    get_settings_service,
)

logger = get_logger(__name__)

MIN_REVIEWS = 1
MAX_REVIEWS = 10

CONNECTION_TEST_PROMPT = "Hello, this is a connection test."
CONNECTION_TEST_MAX_TOKENS = 20


class ReviewView(BaseModel):
    """对外展示的评论结构"""

    id: int
    content_id: int
    rating: float
    full_review: str
    summary: str
    pros: list[str]
    cons: list[str]
    reviewer_name: Optional[str] = None
    generated_at: datetime
    ai_model: str
    modified_by_user: bool
    published: bool


def format_review(review: Review) -> ReviewView:
    """数据库行 → 展示结构"""
    return ReviewView(
        id=review.id,
        content_id=review.content_id,
        rating=review.rating,
        full_review=review.review_content,
        summary=review.review_summary,
        pros=review.pros_list(),
        cons=review.cons_list(),
        reviewer_name=review.reviewer_name,
        generated_at=review.generated_at,
        ai_model=review.ai_model,
        modified_by_user=review.modified_by_user,
        published=review.published,
    )


def is_auto_generate_enabled(item: ContentItem, settings: GeneratorSettings) -> bool:
    """条目开关优先，未设置时跟随全局默认"""
    flag = item.auto_generate or settings.auto_generate_default
    return flag == "enabled"


def _tokens_used(raw_response: Any) -> int:
    if not isinstance(raw_response, dict):
        return 0
    usage = raw_response.get("usage")
    if not isinstance(usage, dict):
        return 0
    try:
        return int(usage.get("total_tokens") or 0)
    except (TypeError, ValueError):
        return 0


def _as_points(value: Any) -> list[str]:
    """优缺点补丁既可以是列表，也可以是换行文本"""
    if isinstance(value, str):
        return [line.strip() for line in value.split("\n") if line.strip()]
    return [str(v).strip() for v in value if str(v).strip()]


class ReviewGenerator:
    """
    评论生成器

    - generate: 为内容条目补齐评论数量，已足够时直接返回最近一条
    - update: 人工修改评论
    - test_connection: 连接测试，不写任何记录
    """

    def __init__(
        self,
        store: Optional[ReviewStore] = None,
        settings_service: Optional[SettingsService] = None,
        client: Optional[ApiClient] = None,
        name_hook: Optional[ReviewerNameHook] = None,
        engine=None,
    ):
        self.store = store or ReviewStore(engine)
        self.engine = self.store.engine
        self.settings_service = settings_service or (
            SettingsService(engine) if engine is not None else get_settings_service()
        )
        self.client = client or ApiClient()
        self.name_hook = name_hook

    def _load_item(self, content_id: int) -> ContentItem:
        with Session(self.engine) as session:
            item = session.get(ContentItem, content_id)
        if item is None:
            raise InvalidPostError()
        return item

    def _desired_count(
        self,
        item: ContentItem,
        settings: GeneratorSettings,
        desired_count: Optional[int],
    ) -> int:
        count = desired_count or item.review_count or settings.reviews_per_post
        return max(MIN_REVIEWS, min(MAX_REVIEWS, int(count)))

    def _reviewer_name(self, settings: GeneratorSettings, content_id: int, index: int) -> str:
        if not settings.enable_reviewer_names:
            return ""
        hook = self.name_hook or ReviewerNameGenerator.from_settings(settings)
        return hook("", content_id, index) or ""

    def _call_provider(
        self,
        config: ProviderConfig,
        settings: GeneratorSettings,
        prompt: str,
        force_fresh: bool = False,
    ) -> tuple[ReviewDraft, int]:
        """单次调用 + 解析，失败抛出 ReviewGeneratorError"""
        body = config.provider.build_request_body(
            config.model_name,
            prompt,
            settings.ai_temperature,
        )
        raw_response = self.client.request(
            config.endpoint,
            body,
            config.headers(),
            force_fresh=force_fresh,
            ttl=settings.cache_expiration,
        )
        draft = parse(config.provider.id, raw_response)
        return draft, _tokens_used(raw_response)

    def generate(
        self,
        content_id: int,
        is_product: Optional[bool] = None,
        desired_count: Optional[int] = None,
        force_regenerate: bool = False,
    ) -> ReviewView:
        """
        为内容条目生成评论

        Args:
            content_id: 内容条目ID
            is_product: 是否按商品生成，默认取条目类型
            desired_count: 期望评论数，默认取条目覆盖值或全局设置
            force_regenerate: 删除已有评论后重新生成

        Returns:
            最近生成的一条评论

        Raises:
            InvalidPostError / PostNotPublishedError / AutoGenerateDisabledError
            InvalidModelError / MissingApiKeyError: 在任何网络调用与删除之前
            GenerationFailedError: 本批次一条也没有生成成功
        """
        item = self._load_item(content_id)
        settings = self.settings_service.load()

        if is_product is None:
            is_product = item.is_product

        if not force_regenerate:
            if not is_product and item.status != "publish":
                raise PostNotPublishedError()
            if item.auto_generate == "disabled":
                raise AutoGenerateDisabledError()

        target = self._desired_count(item, settings, desired_count)
        config = resolve_provider(settings)

        if force_regenerate:
            self.store.delete_reviews_by_content(content_id)
            needed = target
        else:
            existing = self.store.get_reviews_by_content(content_id)
            if len(existing) >= target:
                logger.info(f"评论数量已满足: content_id={content_id}, count={len(existing)}")
                return format_review(existing[0])
            needed = target - len(existing)

        snapshot = build_snapshot(item)
        if snapshot.is_product != is_product:
            snapshot = replace(snapshot, is_product=is_product)
        prompt = build_prompt(snapshot, settings)

        logger.info(f"开始生成评论: content_id={content_id}, model={config.label}, needed={needed}")

        created = 0
        for index in range(needed):
            # 同一批次内 prompt 相同，第一次之后跳过缓存读取；强制重新生成时全部跳过
            try:
                draft, tokens = self._call_provider(
                    config,
                    settings,
                    prompt,
                    force_fresh=force_regenerate or index > 0,
                )
            except ReviewGeneratorError as e:
                logger.warning(f"第 {index + 1} 条评论生成失败: content_id={content_id}, error={e}")
                self.store.log_request(
                    content_id,
                    config.label,
                    status="error",
                    error_message=e.message,
                )
                continue

            self.store.save_review(Review(
                content_id=content_id,
                rating=draft.rating,
                review_content=draft.full_review,
                review_summary=draft.summary,
                review_pros=join_points(draft.pros),
                review_cons=join_points(draft.cons),
                reviewer_name=self._reviewer_name(settings, content_id, index) or None,
                ai_model=config.label,
                published=True,
            ))
            self.store.log_request(content_id, config.label, status="success", tokens_used=tokens)
            created += 1

        latest = self.store.get_latest_review(content_id)
        if latest is None:
            logger.error(f"评论生成全部失败: content_id={content_id}")
            raise GenerationFailedError()

        logger.info(f"评论生成完成: content_id={content_id}, created={created}/{needed}")
        return format_review(latest)

    def update(self, review_id: int, patch: dict[str, Any]) -> bool:
        """
        人工修改评论（部分字段合并，评分不再截断）

        Returns:
            评论是否存在
        """
        changes: dict[str, Any] = {"modified_by_user": True}

        if patch.get("rating") is not None:
            changes["rating"] = float(patch["rating"])
        if patch.get("full_review") is not None:
            changes["review_content"] = patch["full_review"]
        if patch.get("summary") is not None:
            changes["review_summary"] = patch["summary"]
        if patch.get("pros") is not None:
            changes["review_pros"] = join_points(_as_points(patch["pros"]))
        if patch.get("cons") is not None:
            changes["review_cons"] = join_points(_as_points(patch["cons"]))
        if "reviewer_name" in patch:
            changes["reviewer_name"] = patch["reviewer_name"]
        if patch.get("published") is not None:
            changes["published"] = bool(patch["published"])

        review = self.store.update_review(review_id, changes)
        if review is None:
            return False

        logger.info(f"评论已人工修改: review_id={review_id}, fields={sorted(changes)}")
        return True

    def test_connection(
        self,
        provider_id: Optional[str] = None,
        api_key: Optional[str] = None,
        endpoint: Optional[str] = None,
    ) -> bool:
        """
        测试提供方连通性

        临时覆盖只作用于本次调用的设置副本；
        不写评论，也不写请求日志

        Raises:
            InvalidModelError / MissingApiKeyError / ApiError / InvalidResponseError
        """
        settings = self.settings_service.load()
        provider_id = provider_id or settings.ai_model
        if api_key or endpoint:
            settings = settings.with_provider_override(provider_id, api_key, endpoint)

        config = resolve_provider(settings, provider_id)
        body = config.provider.build_request_body(
            config.model_name,
            CONNECTION_TEST_PROMPT,
            settings.ai_temperature,
            max_tokens=CONNECTION_TEST_MAX_TOKENS,
        )

        response = self.client.request(
            config.endpoint,
            body,
            config.headers(),
            force_fresh=True,
            ttl=settings.cache_expiration,
        )
        ok = isinstance(response, dict) and isinstance(response.get("choices"), list)
        logger.info(f"连接测试完成: model={config.label}, ok={ok}")
        return ok


# 全局单例
_review_generator: Optional[ReviewGenerator] = None


def get_review_generator() -> ReviewGenerator:
    """获取评论生成器单例"""
    global _review_generator
    if _review_generator is None:
        _review_generator = ReviewGenerator()
    return _review_generator
