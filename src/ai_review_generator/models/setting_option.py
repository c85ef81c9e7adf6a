"""
设置项数据模型
"""
from datetime import datetime
from typing import Optional
from sqlmodel import SQLModel, Field


class SettingOption(SQLModel, table=True):
    """持久化的配置块（JSON 字符串）"""

    __tablename__ = "settings_options"

    key: str = Field(primary_key=True, max_length=100, description="配置键")
    value: Optional[str] = Field(default=None, description="JSON 值")
    updated_at: datetime = Field(default_factory=datetime.now, description="更新时间")
