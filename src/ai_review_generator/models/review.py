"""
评论数据模型
"""
from datetime import datetime
from typing import Optional
from sqlmodel import SQLModel, Field


class Review(SQLModel, table=True):
    """
    AI 生成评论模型

    一个内容条目可以有零条或多条评论，
    "当前评论"定义为最近生成的一条
    """
    __tablename__ = "ai_reviews"

    # 主键
    id: Optional[int] = Field(default=None, primary_key=True)

    # 关联内容条目（不唯一）
    content_id: int = Field(index=True, description="文章/商品ID")

    # 评分，入库前限制在 [0, 5]
    rating: float = Field(default=0.0, description="评分(0-5)")

    # 评论正文
    review_content: str = Field(default="", description="完整评论")
    review_summary: str = Field(default="", description="评论摘要")

    # 优缺点（换行拼接存储）
    review_pros: str = Field(default="", description="优点，换行分隔")
    review_cons: str = Field(default="", description="缺点，换行分隔")

    reviewer_name: Optional[str] = Field(default=None, max_length=100, description="评论者名称")

    # 生成信息
    generated_at: datetime = Field(default_factory=datetime.now, description="生成时间")
    ai_model: str = Field(default="", max_length=100, description="提供方/模型")

    # 人工修改后置为 True，且不再重置
    modified_by_user: bool = Field(default=False, description="是否被人工修改")
    published: bool = Field(default=True, description="是否公开展示")

    class Config:
        from_attributes = True

    def pros_list(self) -> list[str]:
        """还原优点列表"""
        return self.review_pros.split("\n") if self.review_pros else []

    def cons_list(self) -> list[str]:
        """还原缺点列表"""
        return self.review_cons.split("\n") if self.review_cons else []
