"""
评论者名称生成

作为默认的评论者名称钩子：(当前名称, 内容ID, 序号) -> 名称
"""
import random
from typing import Callable

from ai_review_generator.services.settings_service import GeneratorSettings

# 钩子签名: (current_name, content_id, iteration_index) -> name
ReviewerNameHook = Callable[[str, int, int], str]

FIRST_NAMES = (
    "James", "Mary", "John", "Patricia", "Robert", "Jennifer", "Michael", "Linda",
    "David", "Elizabeth", "William", "Susan", "Richard", "Jessica", "Thomas", "Sarah",
    "Daniel", "Karen", "Matthew", "Emily", "Anthony", "Laura", "Mark", "Olivia",
)

LAST_NAMES = (
    "Smith", "Johnson", "Williams", "Brown", "Jones", "Garcia", "Miller", "Davis",
    "Wilson", "Anderson", "Taylor", "Thomas", "Moore", "Martin", "Jackson", "Thompson",
    "White", "Harris", "Clark", "Lewis", "Walker", "Young", "Allen", "King",
)

LOCATIONS = (
    "New York", "London", "Toronto", "Sydney", "Chicago", "Dublin", "Austin",
    "Manchester", "Vancouver", "Melbourne", "Seattle", "Edinburgh",
)


def format_name(first: str, last: str, name_format: str) -> str:
    """按展示格式拼接名称"""
    if name_format == "first_initial":
        return f"{first[0]}. {last}"
    if name_format == "last_initial":
        return f"{first} {last[0]}."
    if name_format == "first_name":
        return first
    return f"{first} {last}"


class ReviewerNameGenerator:
    """
    默认评论者名称生成器

    同一 (content_id, index) 总是得到同一个名称；
    manual 类型不生成，保留调用方传入的名称
    """

    def __init__(self, name_type: str = "random", name_format: str = "full"):
        self.name_type = name_type
        self.name_format = name_format

    @classmethod
    def from_settings(cls, settings: GeneratorSettings) -> "ReviewerNameGenerator":
        return cls(settings.reviewer_name_type, settings.reviewer_name_format)

    def __call__(self, current_name: str, content_id: int, index: int) -> str:
        if self.name_type == "manual":
            return current_name

        rng = random.Random(f"{content_id}:{index}")
        name = format_name(rng.choice(FIRST_NAMES), rng.choice(LAST_NAMES), self.name_format)

        if self.name_type == "location":
            name = f"{name} from {rng.choice(LOCATIONS)}"
        return name
