"""
生成器设置服务 - 持久化配置块的安装、读取与更新
"""
import json
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict
from sqlmodel import Session

from ai_review_generator.core import get_logger
from ai_review_generator.core.database import engine as default_engine
from ai_review_generator.models import SettingOption

logger = get_logger(__name__)

SETTINGS_KEY = "ai_review_generator_settings"

REVIEW_STRUCTURES = ("pros_cons", "detailed", "concise")
REVIEW_TONES = ("professional", "casual", "friendly", "detailed", "concise", "technical")
REVIEWER_NAME_TYPES = ("random", "location", "manual")
REVIEWER_NAME_FORMATS = ("full", "first_initial", "last_initial", "first_name")

# 默认设置（扁平键值），重新激活时只补齐缺失的键
DEFAULT_SETTINGS: dict[str, Any] = {
    # 通用
    "auto_generate_default": "enabled",
    "reviews_per_post": 1,
    "cache_expiration": 86400,
    # 模型
    "ai_model": "deepseek",
    "deepseek_endpoint": "https://api.deepseek.com/v1/chat/completions",
    "deepseek_model_name": "deepseek-chat",
    "mistral_endpoint": "https://api.mistral.ai/v1/chat/completions",
    "mistral_model_name": "mistral-tiny",
    "llama3_endpoint": "https://api.together.xyz/v1/completions",
    "llama3_model_name": "meta-llama/Llama-3-8b-chat",
    "openrouter_endpoint": "https://openrouter.ai/api/v1/chat/completions",
    "openrouter_model_name": "meta-llama/llama-3-8b-chat",
    "ai_temperature": 0.7,
    # 评论
    "review_tone": "professional",
    "enable_reviewer_names": "no",
    "reviewer_name_type": "random",
    "reviewer_name_format": "full",
    "min_word_count": 200,
    "max_word_count": 500,
    "review_structure": "pros_cons",
}


class ProviderSettings(BaseModel):
    """单个提供方的覆盖配置"""

    model_config = ConfigDict(frozen=True)

    api_key: str = ""
    endpoint: str = ""
    model_name: str = ""


class GeneratorSettings(BaseModel):
    """
    生成流水线配置

    每次调用时从配置块构建一次，流水线内部只读
    """

    model_config = ConfigDict(frozen=True)

    ai_model: str = "deepseek"
    ai_temperature: float = 0.7
    review_tone: str = "professional"
    min_word_count: int = 200
    max_word_count: int = 500
    review_structure: str = "pros_cons"
    enable_reviewer_names: bool = False
    reviewer_name_type: str = "random"
    reviewer_name_format: str = "full"
    cache_expiration: int = 86400
    reviews_per_post: int = 1
    auto_generate_default: str = "enabled"
    providers: dict[str, ProviderSettings] = {}

    @classmethod
    def from_flat(cls, data: dict[str, Any]) -> "GeneratorSettings":
        """从扁平键值构建，<provider>_api_key 等键归入 providers"""
        from ai_review_generator.services.providers import list_models

        merged = {**DEFAULT_SETTINGS, **(data or {})}
        providers = {}
        for provider_id in list_models():
            providers[provider_id] = ProviderSettings(
                api_key=str(merged.get(f"{provider_id}_api_key") or ""),
                endpoint=str(merged.get(f"{provider_id}_endpoint") or ""),
                model_name=str(merged.get(f"{provider_id}_model_name") or ""),
            )

        return cls(
            ai_model=str(merged["ai_model"]),
            ai_temperature=float(merged["ai_temperature"]),
            review_tone=str(merged["review_tone"]),
            min_word_count=int(merged["min_word_count"]),
            max_word_count=int(merged["max_word_count"]),
            review_structure=str(merged["review_structure"]),
            enable_reviewer_names=merged["enable_reviewer_names"] in ("yes", True),
            reviewer_name_type=str(merged["reviewer_name_type"]),
            reviewer_name_format=str(merged["reviewer_name_format"]),
            cache_expiration=int(merged["cache_expiration"]),
            reviews_per_post=int(merged["reviews_per_post"]),
            auto_generate_default=str(merged["auto_generate_default"]),
            providers=providers,
        )

    def provider(self, provider_id: str) -> ProviderSettings:
        return self.providers.get(provider_id, ProviderSettings())

    def with_provider_override(
        self,
        provider_id: str,
        api_key: Optional[str] = None,
        endpoint: Optional[str] = None,
    ) -> "GeneratorSettings":
        """返回带临时覆盖的副本（连接测试用），不落库"""
        current = self.provider(provider_id)
        override = ProviderSettings(
            api_key=api_key if api_key else current.api_key,
            endpoint=endpoint if endpoint else current.endpoint,
            model_name=current.model_name,
        )
        return self.model_copy(update={"providers": {**self.providers, provider_id: override}})


def sanitize_settings(patch: dict[str, Any]) -> dict[str, Any]:
    """
    清洗设置补丁

    Raises:
        ValueError: 取值不合法
    """
    sanitized: dict[str, Any] = {}

    for key, value in patch.items():
        if value is None:
            continue

        if key == "reviews_per_post":
            sanitized[key] = max(1, min(10, int(value)))
        elif key == "ai_temperature":
            sanitized[key] = max(0.0, min(1.0, float(value)))
        elif key in ("min_word_count", "max_word_count", "cache_expiration"):
            sanitized[key] = max(0, int(value))
        elif key == "review_structure":
            if value not in REVIEW_STRUCTURES:
                raise ValueError(f"不支持的评论结构: {value}")
            sanitized[key] = value
        elif key == "reviewer_name_type":
            if value not in REVIEWER_NAME_TYPES:
                raise ValueError(f"不支持的评论者名称类型: {value}")
            sanitized[key] = value
        elif key == "reviewer_name_format":
            if value not in REVIEWER_NAME_FORMATS:
                raise ValueError(f"不支持的评论者名称格式: {value}")
            sanitized[key] = value
        elif key == "enable_reviewer_names":
            sanitized[key] = "yes" if value in ("yes", True) else "no"
        elif key == "auto_generate_default":
            sanitized[key] = "enabled" if value in ("enabled", True) else "disabled"
        else:
            sanitized[key] = str(value).strip() if isinstance(value, str) else value

    min_words = sanitized.get("min_word_count")
    max_words = sanitized.get("max_word_count")
    if min_words is not None and max_words is not None and min_words > max_words:
        raise ValueError("最小字数不能大于最大字数")

    return sanitized


class SettingsService:
    """设置服务"""

    def __init__(self, engine=None):
        self.engine = engine or default_engine

    def _read_raw(self, session: Session) -> Optional[dict[str, Any]]:
        option = session.get(SettingOption, SETTINGS_KEY)
        if not option or not option.value:
            return None
        try:
            data = json.loads(option.value)
        except json.JSONDecodeError:
            logger.warning("设置数据损坏，按默认值处理")
            return None
        return data if isinstance(data, dict) else None

    def _write_raw(self, session: Session, data: dict[str, Any]) -> None:
        option = session.get(SettingOption, SETTINGS_KEY)
        value = json.dumps(data, ensure_ascii=False)
        if option:
            option.value = value
            option.updated_at = datetime.now()
        else:
            session.add(SettingOption(key=SETTINGS_KEY, value=value))
        session.commit()

    def install_defaults(self) -> dict[str, Any]:
        """
        安装默认设置

        已存在的值保持不变，只补齐缺失的键
        """
        with Session(self.engine) as session:
            existing = self._read_raw(session) or {}
            merged = {**DEFAULT_SETTINGS, **existing}
            self._write_raw(session, merged)

        logger.info(f"默认设置已安装，共 {len(merged)} 项")
        return merged

    def get_raw(self) -> dict[str, Any]:
        """读取扁平配置（已补齐默认值）"""
        with Session(self.engine) as session:
            existing = self._read_raw(session) or {}
        return {**DEFAULT_SETTINGS, **existing}

    def load(self) -> GeneratorSettings:
        """读取生成器配置"""
        return GeneratorSettings.from_flat(self.get_raw())

    def update(self, patch: dict[str, Any]) -> GeneratorSettings:
        """清洗并合并设置补丁"""
        sanitized = sanitize_settings(patch)

        with Session(self.engine) as session:
            current = {**DEFAULT_SETTINGS, **(self._read_raw(session) or {})}
            current.update(sanitized)
            self._write_raw(session, current)

        logger.info(f"设置已更新: {sorted(k for k in sanitized if not k.endswith('_api_key'))}")
        return GeneratorSettings.from_flat(current)


# 全局单例
_settings_service: Optional[SettingsService] = None


def get_settings_service() -> SettingsService:
    """获取设置服务单例"""
    global _settings_service
    if _settings_service is None:
        _settings_service = SettingsService()
    return _settings_service
