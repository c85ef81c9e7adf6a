"""
配置管理 - 进程级配置（环境变量 / .env）
"""
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """应用配置"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # API 配置
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # 调试模式：开启后响应缓存整体失效
    debug: bool = False

    # 站点名称（结构化数据中作为默认评论作者）
    site_name: str = "AI Review Generator"

    # 外部 HTTP 调用参数
    http_timeout: int = 90
    http_max_redirects: int = 5

    # 数据库配置
    database_url: str = "sqlite:///./data/ai_review_generator.db"

    # 日志配置
    log_level: str = "INFO"


@lru_cache()
def get_settings() -> Settings:
    """获取配置单例"""
    return Settings()
