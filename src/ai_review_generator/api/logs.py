"""
请求日志与缓存 API 路由
"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from ai_review_generator.core import get_logger
from ai_review_generator.services.review_generator import ReviewGenerator, get_review_generator
from ai_review_generator.services.review_store import ReviewStore, get_review_store

router = APIRouter(tags=["请求日志"])
logger = get_logger(__name__)


# ============ 请求/响应模型 ============

class RequestLogResponse(BaseModel):
    id: int
    content_id: int
    ai_model: str
    tokens_used: int
    requested_at: datetime
    status: str
    error_message: str


class RequestLogListResponse(BaseModel):
    items: list[RequestLogResponse]
    total: int
    page: int
    limit: int


# ============ API 接口 ============

@router.get("/logs", response_model=RequestLogListResponse)
async def list_logs(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    store: ReviewStore = Depends(get_review_store),
):
    """请求日志分页列表"""
    logs, total = store.list_logs(page=page, limit=limit)
    return RequestLogListResponse(
        items=[RequestLogResponse.model_validate(log, from_attributes=True) for log in logs],
        total=total,
        page=page,
        limit=limit,
    )


@router.get("/logs/stats")
async def log_stats(store: ReviewStore = Depends(get_review_store)):
    """调用统计"""
    return store.log_stats()


@router.delete("/logs")
async def clear_logs(
    before: Optional[datetime] = None,
    store: ReviewStore = Depends(get_review_store),
):
    """批量删除请求日志"""
    return {"deleted": store.clear_logs(before)}


@router.delete("/cache")
async def clear_cache(generator: ReviewGenerator = Depends(get_review_generator)):
    """清空响应缓存"""
    return {"cleared": generator.client.clear_cache()}
