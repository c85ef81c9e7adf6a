"""
模型提供方 API 路由
"""
import asyncio
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ai_review_generator.api.errors import to_http_exception
from ai_review_generator.core import get_logger
from ai_review_generator.core.exceptions import ReviewGeneratorError
from ai_review_generator.services.providers import list_models
from ai_review_generator.services.review_generator import ReviewGenerator, get_review_generator

router = APIRouter(prefix="/providers", tags=["模型提供方"])
logger = get_logger(__name__)


# ============ 请求/响应模型 ============

class ConnectionTestRequest(BaseModel):
    """连接测试请求，临时覆盖不落库"""
    api_key: Optional[str] = None
    endpoint: Optional[str] = None


class ConnectionTestResponse(BaseModel):
    success: bool
    message: str


# ============ API 接口 ============

@router.get("")
async def get_providers():
    """全部模型提供方"""
    return [model.to_dict() for model in list_models().values()]


@router.post("/{provider_id}/test", response_model=ConnectionTestResponse)
async def test_provider(
    provider_id: str,
    request: ConnectionTestRequest,
    generator: ReviewGenerator = Depends(get_review_generator),
):
    """测试提供方连接"""
    try:
        ok = await asyncio.to_thread(
            generator.test_connection,
            provider_id,
            request.api_key,
            request.endpoint,
        )
    except ReviewGeneratorError as e:
        if e.code in ("invalid_model", "missing_api_key"):
            raise to_http_exception(e)
        logger.warning(f"连接测试失败: provider={provider_id}, error={e}")
        return ConnectionTestResponse(success=False, message=e.message)

    if not ok:
        return ConnectionTestResponse(success=False, message="Unexpected response format")
    return ConnectionTestResponse(success=True, message="Connection successful")
