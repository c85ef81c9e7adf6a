"""
Prompt 构造 - 根据内容快照与设置生成评论指令
"""
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from bs4 import BeautifulSoup

if TYPE_CHECKING:
    from ai_review_generator.models import ContentItem
    from ai_review_generator.services.settings_service import GeneratorSettings

MAX_BODY_LENGTH = 5000
TRUNCATION_MARKER = "..."

ROLE_PREAMBLE = "You are a professional reviewer who creates honest, thoughtful reviews. "

STRUCTURE_INSTRUCTIONS = {
    "pros_cons": (
        "Include the following sections in your review:\n"
        "1. A brief summary of the {subject}\n"
        "2. Pros (at least 3 points)\n"
        "3. Cons (at least 2 points)\n"
        "4. Final verdict with a rating from 1 to 5 stars\n"
    ),
    "detailed": (
        "Create a detailed review with the following sections:\n"
        "1. Introduction\n"
        "2. Main features and analysis\n"
        "3. Benefits\n"
        "4. Drawbacks\n"
        "5. Conclusion with a rating from 1 to 5 stars\n"
    ),
    "concise": (
        "Create a concise review with a clear summary, key points, "
        "and a rating from 1 to 5 stars.\n"
    ),
}

JSON_CONTRACT = """
Format your response in JSON with the following structure:
{{
    "summary": "A brief summary of the {subject}",
    "full_review": "The complete review text with sections properly formatted",
    "pros": ["Pro 1", "Pro 2", "Pro 3"],
    "cons": ["Con 1", "Con 2"],
    "rating": 4.5
}}"""


@dataclass(frozen=True)
class ContentSnapshot:
    """送入 Prompt 的内容快照（正文已去标签并截断）"""

    title: str
    body: str = ""
    excerpt: str = ""
    is_product: bool = False
    price: str = ""
    categories: tuple[str, ...] = ()
    attributes: dict[str, str] = field(default_factory=dict)


def strip_markup(html: str) -> str:
    """去除 HTML 标签"""
    if not html:
        return ""
    return BeautifulSoup(html, "html.parser").get_text(" ", strip=True)


def truncate_body(text: str, limit: int = MAX_BODY_LENGTH) -> str:
    if len(text) > limit:
        return text[:limit] + TRUNCATION_MARKER
    return text


def build_snapshot(item: "ContentItem") -> ContentSnapshot:
    """从内容条目构建快照"""
    return ContentSnapshot(
        title=item.title,
        body=truncate_body(strip_markup(item.body)),
        excerpt=strip_markup(item.excerpt),
        is_product=item.is_product,
        price=item.price or "",
        categories=tuple(item.category_names()),
        attributes=item.attribute_map() if item.is_product else {},
    )


def _content_block(snapshot: ContentSnapshot) -> str:
    if snapshot.is_product:
        block = "Create a product review for the following product:\n\n"
        block += f"Product Name: {snapshot.title}\n"
        if snapshot.price:
            block += f"Price: {snapshot.price}\n"
        if snapshot.categories:
            block += f"Categories: {', '.join(snapshot.categories)}\n"
        if snapshot.attributes:
            block += "Product Attributes:\n"
            for name, value in snapshot.attributes.items():
                block += f"- {name}: {value}\n"
        if snapshot.body:
            block += f"\nProduct Description:\n{snapshot.body}\n"
        return block

    block = "Create a review for the following content:\n\n"
    block += f"Title: {snapshot.title}\n"
    if snapshot.excerpt:
        block += f"Excerpt: {snapshot.excerpt}\n"
    if snapshot.body:
        block += f"\nContent:\n{snapshot.body}\n"
    return block


def build_prompt(snapshot: ContentSnapshot, settings: "GeneratorSettings") -> str:
    """
    构造评论生成 Prompt

    顺序：角色 → 内容 → 语气 → 字数 → 结构 → JSON 输出约定。
    相同输入得到相同输出。
    """
    subject = "product" if snapshot.is_product else "content"

    prompt = ROLE_PREAMBLE
    prompt += _content_block(snapshot)
    prompt += f"\nUse a {settings.review_tone} tone in your review.\n"
    prompt += (
        f"The review should be between {settings.min_word_count} "
        f"and {settings.max_word_count} words.\n"
    )

    structure = STRUCTURE_INSTRUCTIONS.get(settings.review_structure)
    if structure:
        prompt += structure.format(subject=subject)

    prompt += JSON_CONTRACT.format(subject=subject)
    return prompt
