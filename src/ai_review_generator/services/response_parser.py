"""
响应解析 - 把各提供方的响应归一为评论草稿

两条路径：
- structured: 文本中包含可解析的 JSON 对象
- heuristic: JSON 解析失败时整段文本作为正文，逐行扫描评分
"""
import json
import re
from typing import Any, Literal, Optional

from pydantic import BaseModel

from ai_review_generator.core import get_logger
from ai_review_generator.core.exceptions import (
    EmptyResponseError,
    InvalidModelError,
    InvalidResponseError,
)
from ai_review_generator.services.providers import get_model

logger = get_logger(__name__)

RATING_PATTERN = re.compile(r"rating:?\s*(\d+(?:\.\d+)?)", re.IGNORECASE)
DEFAULT_HEURISTIC_RATING = 3.5


class ReviewDraft(BaseModel):
    """归一化后的评论草稿（入库前）"""

    summary: str = ""
    full_review: str = ""
    pros: list[str] = []
    cons: list[str] = []
    rating: float = 0.0
    mode: Literal["structured", "heuristic"] = "structured"


def _coerce_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _coerce_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _coerce_points(value: Any) -> list[str]:
    """优缺点统一为字符串列表"""
    if not value:
        return []
    if isinstance(value, str):
        return [line.strip() for line in value.split("\n") if line.strip()]
    if isinstance(value, list):
        return [str(item).strip() for item in value if str(item).strip()]
    return []


def parse_structured(text: str) -> Optional[ReviewDraft]:
    """
    取第一个 { 到最后一个 } 之间的内容严格解析

    Returns:
        解析成功返回草稿，否则 None
    """
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end < start:
        return None

    try:
        data = json.loads(text[start:end + 1])
    except json.JSONDecodeError:
        return None
    if not isinstance(data, dict):
        return None

    return ReviewDraft(
        summary=_coerce_text(data.get("summary")),
        full_review=_coerce_text(data.get("full_review")),
        pros=_coerce_points(data.get("pros")),
        cons=_coerce_points(data.get("cons")),
        rating=_coerce_float(data.get("rating", 0)),
        mode="structured",
    )


def parse_heuristic(text: str) -> ReviewDraft:
    """整段作为正文，取第一处 rating 匹配，找不到时取 3.5"""
    rating = None
    for line in text.split("\n"):
        match = RATING_PATTERN.search(line)
        if match:
            rating = float(match.group(1))
            break

    return ReviewDraft(
        full_review=text,
        rating=DEFAULT_HEURISTIC_RATING if rating is None else rating,
        mode="heuristic",
    )


def parse(provider_id: str, raw_response: Any) -> ReviewDraft:
    """
    解析提供方响应

    Raises:
        InvalidModelError: 提供方不存在
        EmptyResponseError: 响应为空或不是对象
        InvalidResponseError: 无法提取文本
    """
    provider = get_model(provider_id)
    if provider is None:
        raise InvalidModelError()

    if not raw_response or not isinstance(raw_response, dict):
        raise EmptyResponseError()

    text = provider.extract_text(raw_response)
    if not text or not text.strip():
        logger.error(
            "响应中未提取到内容: %s",
            json.dumps(raw_response, ensure_ascii=False, default=str)[:500],
        )
        raise InvalidResponseError()

    draft = parse_structured(text)
    if draft is not None:
        return draft

    logger.info(f"JSON 解析失败，改用启发式解析: provider={provider_id}")
    return parse_heuristic(text)
