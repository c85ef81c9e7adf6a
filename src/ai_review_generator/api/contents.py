"""
内容条目 API 路由
"""
import asyncio
import json
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ai_review_generator.api.errors import to_http_exception
from ai_review_generator.core import get_logger
from ai_review_generator.core.exceptions import ReviewGeneratorError
from ai_review_generator.services.content_service import ContentService, get_content_service

router = APIRouter(prefix="/contents", tags=["内容条目"])
logger = get_logger(__name__)

CONTENT_TYPES = ("post", "page", "product")
AUTO_GENERATE_FLAGS = ("", "enabled", "disabled")


# ============ 请求/响应模型 ============

class CreateContentRequest(BaseModel):
    """创建内容条目请求"""
    title: str
    body: str = ""
    excerpt: str = ""
    content_type: str = "post"
    status: str = "draft"
    price: str = ""
    attributes: Optional[dict] = None
    categories: list[str] = []
    tags: list[str] = []
    auto_generate: str = ""
    review_count: Optional[int] = None


class ContentResponse(BaseModel):
    """内容条目响应"""
    id: int
    title: str
    excerpt: str
    content_type: str
    status: str
    price: str
    categories: list[str]
    tags: list[str]
    auto_generate: str
    review_count: Optional[int]
    created_at: datetime
    updated_at: datetime


def _to_response(item) -> ContentResponse:
    return ContentResponse(
        id=item.id,
        title=item.title,
        excerpt=item.excerpt,
        content_type=item.content_type,
        status=item.status,
        price=item.price,
        categories=item.category_names(),
        tags=item.tag_names(),
        auto_generate=item.auto_generate,
        review_count=item.review_count,
        created_at=item.created_at,
        updated_at=item.updated_at,
    )


# ============ API 接口 ============

@router.post("", response_model=ContentResponse)
async def create_content(
    request: CreateContentRequest,
    service: ContentService = Depends(get_content_service),
):
    """创建内容条目（不触发自动生成）"""
    if not request.title.strip():
        raise HTTPException(status_code=400, detail="标题不能为空")
    if request.content_type not in CONTENT_TYPES:
        raise HTTPException(status_code=400, detail=f"不支持的内容类型: {request.content_type}")
    if request.auto_generate not in AUTO_GENERATE_FLAGS:
        raise HTTPException(status_code=400, detail=f"不支持的自动生成开关: {request.auto_generate}")

    item = service.create_item(
        title=request.title.strip(),
        body=request.body,
        excerpt=request.excerpt,
        content_type=request.content_type,
        status=request.status,
        price=request.price,
        attributes=json.dumps(request.attributes, ensure_ascii=False) if request.attributes else None,
        categories=",".join(request.categories) or None,
        tags=",".join(request.tags) or None,
        auto_generate=request.auto_generate,
        review_count=request.review_count,
    )
    return _to_response(item)


@router.get("/{item_id}", response_model=ContentResponse)
async def get_content(item_id: int, service: ContentService = Depends(get_content_service)):
    """获取内容条目"""
    item = service.get_item(item_id)
    if not item:
        raise HTTPException(status_code=404, detail="内容条目不存在")
    return _to_response(item)


@router.post("/{item_id}/publish", response_model=ContentResponse)
async def publish_content(item_id: int, service: ContentService = Depends(get_content_service)):
    """发布内容条目，首次发布时自动生成评论"""
    try:
        item = await asyncio.to_thread(service.publish, item_id)
    except ReviewGeneratorError as e:
        raise to_http_exception(e)
    return _to_response(item)
