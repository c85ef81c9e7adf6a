"""
内容条目数据模型 - 文章 / 页面 / 商品
"""
import json
from datetime import datetime
from typing import Optional
from sqlmodel import SQLModel, Field


class ContentItem(SQLModel, table=True):
    """
    内容条目模型

    对应宿主 CMS 中的文章或电商商品
    """
    __tablename__ = "content_items"

    # 主键
    id: Optional[int] = Field(default=None, primary_key=True)

    # 内容
    title: str = Field(index=True, description="标题")
    body: str = Field(default="", description="正文（可含 HTML）")
    excerpt: str = Field(default="", description="摘要")

    # 类型: post/page/product
    content_type: str = Field(default="post", description="类型: post/page/product")

    # 状态: draft/publish
    status: str = Field(default="draft", description="状态: draft/publish")

    # 商品字段
    price: str = Field(default="", description="价格展示文本")
    attributes: Optional[str] = Field(default=None, description="商品属性JSON")

    # 分类与标签（逗号分隔）
    categories: Optional[str] = Field(default=None, description="分类，逗号分隔")
    tags: Optional[str] = Field(default=None, description="标签，逗号分隔")

    # 自动生成开关: ""(跟随全局)/enabled/disabled
    auto_generate: str = Field(default="", description="自动生成开关")

    # 单条目评论数量覆盖
    review_count: Optional[int] = Field(default=None, description="评论数量覆盖")

    # 时间戳
    created_at: datetime = Field(default_factory=datetime.now, description="创建时间")
    updated_at: datetime = Field(default_factory=datetime.now, description="更新时间")

    class Config:
        from_attributes = True

    @property
    def is_product(self) -> bool:
        return self.content_type == "product"

    def category_names(self) -> list[str]:
        return [c.strip() for c in (self.categories or "").split(",") if c.strip()]

    def tag_names(self) -> list[str]:
        return [t.strip() for t in (self.tags or "").split(",") if t.strip()]

    def attribute_map(self) -> dict[str, str]:
        """解析商品属性，非法 JSON 视为无属性"""
        if not self.attributes:
            return {}
        try:
            data = json.loads(self.attributes)
        except json.JSONDecodeError:
            return {}
        if not isinstance(data, dict):
            return {}
        return {
            str(name): ", ".join(str(v) for v in value) if isinstance(value, list) else str(value)
            for name, value in data.items()
        }
