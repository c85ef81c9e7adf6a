"""
数据模型模块
"""
from .review import Review
from .request_log import RequestLog
from .content_item import ContentItem
from .setting_option import SettingOption

__all__ = [
    "Review",
    "RequestLog",
    "ContentItem",
    "SettingOption",
]
