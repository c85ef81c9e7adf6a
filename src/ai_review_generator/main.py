"""
FastAPI 应用入口
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI

from ai_review_generator.core import setup_logging, get_settings, get_logger
from ai_review_generator.core.database import init_db
from ai_review_generator.api import api_router
from ai_review_generator.services.settings_service import get_settings_service

# 初始化日志
settings = get_settings()
setup_logging(settings.log_level)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    # 启动时执行：建表 + 补齐默认设置
    logger.info("🚀 AI 评论生成服务启动中...")
    init_db()
    get_settings_service().install_defaults()
    yield
    # 关闭时执行
    logger.info("👋 AI 评论生成服务关闭")


# 创建 FastAPI 应用
app = FastAPI(
    title="AI 评论生成 API",
    description="基于大模型的文章 / 商品评论生成服务",
    version="0.1.0",
    debug=settings.debug,
    lifespan=lifespan,
)

# 注册 API 路由
app.include_router(api_router)


@app.get("/")
async def root():
    """健康检查"""
    return {"status": "ok", "message": "AI 评论生成服务运行中"}


@app.get("/health")
async def health():
    """健康检查"""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    logger.info(f"启动服务: http://{settings.api_host}:{settings.api_port}")
    uvicorn.run(
        "ai_review_generator.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
    )
