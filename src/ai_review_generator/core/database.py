"""
数据库连接管理 - 统一管理数据库连接
"""
import os

from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

from ai_review_generator.core.config import get_settings


def build_engine(database_url: str):
    """根据 URL 创建引擎，SQLite 允许跨线程使用"""
    if not database_url.startswith("sqlite"):
        return create_engine(database_url, echo=False)

    if database_url in ("sqlite://", "sqlite:///:memory:"):
        # 内存库必须共用同一个连接
        return create_engine(
            database_url,
            echo=False,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    db_path = database_url.split("///", 1)[-1]
    db_dir = os.path.dirname(db_path)
    if db_dir:
        os.makedirs(db_dir, exist_ok=True)
    return create_engine(
        database_url,
        echo=False,
        connect_args={"check_same_thread": False},
    )


# 创建全局数据库引擎
_settings = get_settings()
engine = build_engine(_settings.database_url)


def init_db(target_engine=None) -> None:
    """创建所有表"""
    # 导入模型以注册到 metadata
    from ai_review_generator import models  # noqa: F401

    SQLModel.metadata.create_all(target_engine or engine)


__all__ = ["engine", "build_engine", "init_db"]
