"""
请求日志数据模型
"""
from datetime import datetime
from typing import Optional
from sqlmodel import SQLModel, Field


class RequestLog(SQLModel, table=True):
    """
    外部 API 调用日志

    只追加，不更新；支持批量清理
    """
    __tablename__ = "ai_review_logs"

    # 主键
    id: Optional[int] = Field(default=None, primary_key=True)

    content_id: int = Field(index=True, description="文章/商品ID")
    ai_model: str = Field(max_length=100, description="提供方/模型")
    tokens_used: int = Field(default=0, description="消耗 token 数")
    requested_at: datetime = Field(default_factory=datetime.now, description="请求时间")

    # 状态: success/error
    status: str = Field(max_length=50, description="状态: success/error")
    error_message: str = Field(default="", description="错误信息")

    class Config:
        from_attributes = True
