"""
评论 API 路由
"""
import asyncio
from datetime import datetime
from typing import Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from ai_review_generator.api.errors import to_http_exception
from ai_review_generator.core import get_logger
from ai_review_generator.core.exceptions import ReviewGeneratorError
from ai_review_generator.services.content_service import ContentService, get_content_service
from ai_review_generator.services.display_service import (
    DisplayService,
    build_schema,
    get_display_service,
    star_breakdown,
)
from ai_review_generator.services.review_generator import (
    ReviewGenerator,
    ReviewView,
    format_review,
    get_review_generator,
)
from ai_review_generator.services.review_store import ReviewStore, get_review_store

router = APIRouter(prefix="/reviews", tags=["评论"])
logger = get_logger(__name__)


# ============ 请求/响应模型 ============

class GenerateReviewRequest(BaseModel):
    """生成评论请求"""
    content_id: int
    is_product: Optional[bool] = None
    desired_count: Optional[int] = None
    force_regenerate: bool = False


class UpdateReviewRequest(BaseModel):
    """人工修改评论请求，未传字段保持不变"""
    rating: Optional[float] = None
    full_review: Optional[str] = None
    summary: Optional[str] = None
    pros: Optional[Union[list[str], str]] = None
    cons: Optional[Union[list[str], str]] = None
    reviewer_name: Optional[str] = None
    published: Optional[bool] = None


class ReviewListResponse(BaseModel):
    """评论分页列表"""
    items: list[ReviewView]
    total: int
    page: int
    limit: int


class ContentReviewsResponse(BaseModel):
    """页面展示数据"""
    content_id: int
    reviews: list[ReviewView]
    latest: Optional[ReviewView]
    stars: Optional[dict]
    schema_data: Optional[dict]


# ============ API 接口 ============

@router.post("/generate", response_model=ReviewView)
async def generate_review(
    request: GenerateReviewRequest,
    generator: ReviewGenerator = Depends(get_review_generator),
):
    """为内容条目生成评论"""
    try:
        return await asyncio.to_thread(
            generator.generate,
            request.content_id,
            is_product=request.is_product,
            desired_count=request.desired_count,
            force_regenerate=request.force_regenerate,
        )
    except ReviewGeneratorError as e:
        logger.warning(f"评论生成失败: content_id={request.content_id}, code={e.code}")
        raise to_http_exception(e)


@router.get("", response_model=ReviewListResponse)
async def list_reviews(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    published: Optional[bool] = None,
    store: ReviewStore = Depends(get_review_store),
):
    """评论分页列表"""
    reviews, total = store.list_reviews(page=page, limit=limit, published=published)
    return ReviewListResponse(
        items=[format_review(r) for r in reviews],
        total=total,
        page=page,
        limit=limit,
    )


@router.get("/content/{content_id}", response_model=ContentReviewsResponse)
async def get_content_reviews(
    content_id: int,
    display: DisplayService = Depends(get_display_service),
    content_service: ContentService = Depends(get_content_service),
):
    """内容条目的展示数据：已发布评论 + 星级 + JSON-LD"""
    item = content_service.get_item(content_id)
    if not item:
        raise HTTPException(status_code=404, detail="内容条目不存在")

    latest = display.get_review_data(content_id)
    return ContentReviewsResponse(
        content_id=content_id,
        reviews=display.get_published_reviews(content_id),
        latest=latest,
        stars=star_breakdown(latest.rating) if latest else None,
        schema_data=build_schema(latest, item) if latest else None,
    )


@router.get("/{review_id}", response_model=ReviewView)
async def get_review(review_id: int, store: ReviewStore = Depends(get_review_store)):
    """获取评论详情"""
    review = store.get_review(review_id)
    if not review:
        raise HTTPException(status_code=404, detail="评论不存在")
    return format_review(review)


@router.patch("/{review_id}", response_model=ReviewView)
async def update_review(
    review_id: int,
    request: UpdateReviewRequest,
    generator: ReviewGenerator = Depends(get_review_generator),
):
    """人工修改评论"""
    patch = request.model_dump(exclude_unset=True)
    if not generator.update(review_id, patch):
        raise HTTPException(status_code=404, detail="评论不存在")
    return format_review(generator.store.get_review(review_id))


@router.delete("/{review_id}")
async def delete_review(review_id: int, store: ReviewStore = Depends(get_review_store)):
    """删除评论"""
    if not store.delete_review(review_id):
        raise HTTPException(status_code=404, detail="评论不存在")
    return {"success": True, "deleted_at": datetime.now().isoformat()}
