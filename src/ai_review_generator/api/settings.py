"""
生成器设置 API 路由
"""
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ai_review_generator.core import get_logger
from ai_review_generator.services.settings_service import SettingsService, get_settings_service

router = APIRouter(prefix="/settings", tags=["设置"])
logger = get_logger(__name__)


# ============ 请求/响应模型 ============

class UpdateSettingsRequest(BaseModel):
    """设置补丁，未传字段保持不变；<provider>_api_key 等键原样透传"""
    model_config = {"extra": "allow"}

    auto_generate_default: Optional[str] = None
    reviews_per_post: Optional[int] = None
    cache_expiration: Optional[int] = None
    ai_model: Optional[str] = None
    ai_temperature: Optional[float] = None
    review_tone: Optional[str] = None
    enable_reviewer_names: Optional[str] = None
    reviewer_name_type: Optional[str] = None
    reviewer_name_format: Optional[str] = None
    min_word_count: Optional[int] = None
    max_word_count: Optional[int] = None
    review_structure: Optional[str] = None


def _mask_keys(data: dict[str, Any]) -> dict[str, Any]:
    """API Key 只返回是否已配置"""
    return {
        key: (bool(value) if key.endswith("_api_key") else value)
        for key, value in data.items()
    }


# ============ API 接口 ============

@router.get("")
async def get_generator_settings(service: SettingsService = Depends(get_settings_service)):
    """读取设置"""
    return _mask_keys(service.get_raw())


@router.put("")
async def update_generator_settings(
    request: UpdateSettingsRequest,
    service: SettingsService = Depends(get_settings_service),
):
    """部分更新设置"""
    patch = request.model_dump(exclude_unset=True)
    try:
        service.update(patch)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _mask_keys(service.get_raw())
