"""
模型提供方注册表

每个提供方是一个变体，负责两件事：
构造请求体、从响应中提取文本
"""
from dataclasses import dataclass, field
from typing import Any, Optional, TYPE_CHECKING

from ai_review_generator.core.exceptions import InvalidModelError, MissingApiKeyError

if TYPE_CHECKING:
    from ai_review_generator.services.settings_service import GeneratorSettings

DEFAULT_MAX_TOKENS = 2048


def _first_choice(response: Any) -> dict:
    if not isinstance(response, dict):
        return {}
    choices = response.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return {}
    return choices[0]


def _message_content(choice: dict) -> Optional[str]:
    message = choice.get("message")
    if isinstance(message, dict) and message.get("content") is not None:
        return message["content"]
    return None


@dataclass(frozen=True)
class ProviderModel:
    """提供方元数据"""

    id: str
    name: str
    description: str
    default_endpoint: str
    model_names: dict[str, str]
    default_model: str
    requires_key: bool = True
    free_tier: bool = False
    self_hosted: bool = False

    def build_request_body(
        self,
        model_name: str,
        prompt: str,
        temperature: float,
        max_tokens: int = DEFAULT_MAX_TOKENS,
    ) -> dict:
        return {
            "model": model_name,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }

    def extract_text(self, response: Any) -> str:
        """优先 message.content，其次 choices[0].content"""
        choice = _first_choice(response)
        content = _message_content(choice)
        if content is None:
            content = choice.get("content")
        return content if isinstance(content, str) else ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "default_endpoint": self.default_endpoint,
            "model_names": dict(self.model_names),
            "default_model": self.default_model,
            "requires_key": self.requires_key,
            "free_tier": self.free_tier,
            "self_hosted": self.self_hosted,
        }


@dataclass(frozen=True)
class StreamlessChatProvider(ProviderModel):
    """显式关闭流式输出的 chat 接口"""

    def build_request_body(self, model_name, prompt, temperature, max_tokens=DEFAULT_MAX_TOKENS):
        body = super().build_request_body(model_name, prompt, temperature, max_tokens)
        body["stream"] = False
        return body


@dataclass(frozen=True)
class CompletionProvider(ProviderModel):
    """completions 风格接口（prompt 字段，choices[0].text）"""

    def build_request_body(self, model_name, prompt, temperature, max_tokens=DEFAULT_MAX_TOKENS):
        return {
            "model": model_name,
            "prompt": prompt,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }

    def extract_text(self, response: Any) -> str:
        choice = _first_choice(response)
        content = _message_content(choice)
        if content is None:
            content = choice.get("text")
        return content if isinstance(content, str) else ""


_PROVIDERS: dict[str, ProviderModel] = {
    "deepseek": StreamlessChatProvider(
        id="deepseek",
        name="DeepSeek AI",
        description="Free AI model with good quality results",
        default_endpoint="https://api.deepseek.com/v1/chat/completions",
        model_names={
            "deepseek-chat": "DeepSeek Chat",
            "deepseek-coder": "DeepSeek Coder",
        },
        default_model="deepseek-chat",
        free_tier=True,
    ),
    "mistral": StreamlessChatProvider(
        id="mistral",
        name="Mistral AI",
        description="High-quality open source model",
        default_endpoint="https://api.mistral.ai/v1/chat/completions",
        model_names={
            "mistral-tiny": "Mistral Tiny (7B)",
            "mistral-small": "Mistral Small (8x7B)",
            "mistral-medium": "Mistral Medium",
        },
        default_model="mistral-tiny",
    ),
    "llama3": CompletionProvider(
        id="llama3",
        name="LLaMA 3 (Meta AI)",
        description="Meta's open source model, self-hosted option available",
        default_endpoint="https://api.together.xyz/v1/chat/completions",
        model_names={
            "meta-llama/Llama-3-8b-chat": "LLaMA 3 (8B)",
            "meta-llama/Llama-3-70b-chat": "LLaMA 3 (70B)",
        },
        default_model="meta-llama/Llama-3-8b-chat",
        self_hosted=True,
    ),
    "openrouter": ProviderModel(
        id="openrouter",
        name="OpenRouter",
        description="Multi-model API with various options",
        default_endpoint="https://openrouter.ai/api/v1/chat/completions",
        model_names={
            "openai/gpt-3.5-turbo": "OpenAI GPT-3.5 Turbo",
            "anthropic/claude-instant-v1": "Anthropic Claude Instant",
            "google/palm-2-chat-bison": "Google PaLM 2",
            "meta-llama/llama-3-8b-chat": "Meta LLaMA 3 (8B)",
        },
        default_model="meta-llama/llama-3-8b-chat",
        free_tier=True,
    ),
}


def list_models() -> dict[str, ProviderModel]:
    """全部提供方"""
    return dict(_PROVIDERS)


def get_model(provider_id: str) -> Optional[ProviderModel]:
    """按 ID 查找提供方"""
    return _PROVIDERS.get(provider_id)


@dataclass(frozen=True)
class ProviderConfig:
    """解析后的调用配置：提供方 + 生效的端点/模型/密钥"""

    provider: ProviderModel
    endpoint: str
    model_name: str
    api_key: str = field(repr=False, default="")

    @property
    def label(self) -> str:
        """写入日志与评论的 提供方/模型 标识"""
        return f"{self.provider.id}/{self.model_name}"

    def headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }


def resolve_provider(
    settings: "GeneratorSettings",
    provider_id: Optional[str] = None,
) -> ProviderConfig:
    """
    按设置解析提供方调用配置

    Raises:
        InvalidModelError: 提供方不存在
        MissingApiKeyError: 需要密钥但未配置
    """
    provider_id = provider_id or settings.ai_model
    provider = get_model(provider_id)
    if provider is None:
        raise InvalidModelError()

    overrides = settings.provider(provider_id)
    if provider.requires_key and not overrides.api_key:
        raise MissingApiKeyError()

    return ProviderConfig(
        provider=provider,
        endpoint=overrides.endpoint or provider.default_endpoint,
        model_name=overrides.model_name or provider.default_model,
        api_key=overrides.api_key,
    )
