"""
服务模块
"""
from .settings_service import SettingsService, GeneratorSettings, get_settings_service
from .review_store import ReviewStore, get_review_store
from .review_generator import ReviewGenerator, ReviewView, get_review_generator
from .display_service import DisplayService, get_display_service
from .content_service import ContentService, get_content_service

__all__ = [
    "SettingsService",
    "GeneratorSettings",
    "get_settings_service",
    "ReviewStore",
    "get_review_store",
    "ReviewGenerator",
    "ReviewView",
    "get_review_generator",
    "DisplayService",
    "get_display_service",
    "ContentService",
    "get_content_service",
]
