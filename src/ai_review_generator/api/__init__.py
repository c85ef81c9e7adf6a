"""
API 路由模块
"""
from fastapi import APIRouter
from .contents import router as contents_router
from .reviews import router as reviews_router
from .providers import router as providers_router
from .settings import router as settings_router
from .logs import router as logs_router

# 创建主路由
api_router = APIRouter(prefix="/api")

# 注册子路由
api_router.include_router(contents_router)
api_router.include_router(reviews_router)
api_router.include_router(providers_router)
api_router.include_router(settings_router)
api_router.include_router(logs_router)

__all__ = ["api_router"]
