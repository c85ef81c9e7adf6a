"""
模型提供方注册表测试
"""
import pytest

from ai_review_generator.core.exceptions import InvalidModelError, MissingApiKeyError
from ai_review_generator.services.providers import get_model, list_models, resolve_provider
from ai_review_generator.services.settings_service import GeneratorSettings


def test_registry_contains_four_providers():
    assert set(list_models()) == {"deepseek", "mistral", "llama3", "openrouter"}
    assert get_model("unknown") is None


def test_chat_body_disables_stream_for_deepseek():
    body = get_model("deepseek").build_request_body("deepseek-chat", "Hi", 0.7)

    assert body == {
        "model": "deepseek-chat",
        "messages": [{"role": "user", "content": "Hi"}],
        "temperature": 0.7,
        "max_tokens": 2048,
        "stream": False,
    }


def test_openrouter_body_has_no_stream_flag():
    body = get_model("openrouter").build_request_body("m", "Hi", 0.5, max_tokens=20)

    assert "stream" not in body
    assert body["max_tokens"] == 20


def test_llama3_uses_completion_body():
    body = get_model("llama3").build_request_body("meta-llama/Llama-3-8b-chat", "Hi", 0.2)

    assert body["prompt"] == "Hi"
    assert "messages" not in body


class TestExtractText:
    """各提供方文本提取"""

    def test_message_content_first(self):
        response = {"choices": [{"message": {"content": "from message"}, "text": "from text"}]}

        assert get_model("llama3").extract_text(response) == "from message"
        assert get_model("mistral").extract_text(response) == "from message"

    def test_completion_falls_back_to_text(self):
        assert get_model("llama3").extract_text({"choices": [{"text": "plain"}]}) == "plain"

    def test_chat_falls_back_to_choice_content(self):
        assert get_model("openrouter").extract_text({"choices": [{"content": "alt"}]}) == "alt"

    def test_missing_choices(self):
        assert get_model("deepseek").extract_text({"data": []}) == ""
        assert get_model("deepseek").extract_text({"choices": []}) == ""


class TestResolveProvider:
    """调用配置解析"""

    def test_defaults_apply_when_no_override(self):
        settings = GeneratorSettings.from_flat({"mistral_api_key": "k", "mistral_endpoint": ""})

        config = resolve_provider(settings, "mistral")

        assert config.endpoint == "https://api.mistral.ai/v1/chat/completions"
        assert config.model_name == "mistral-tiny"
        assert config.label == "mistral/mistral-tiny"
        assert config.headers()["Authorization"] == "Bearer k"

    def test_overrides(self):
        settings = GeneratorSettings.from_flat({
            "ai_model": "openrouter",
            "openrouter_api_key": "k",
            "openrouter_endpoint": "https://proxy.local/v1/chat",
            "openrouter_model_name": "openai/gpt-3.5-turbo",
        })

        config = resolve_provider(settings)

        assert config.provider.id == "openrouter"
        assert config.endpoint == "https://proxy.local/v1/chat"
        assert config.model_name == "openai/gpt-3.5-turbo"

    def test_missing_key(self):
        with pytest.raises(MissingApiKeyError):
            resolve_provider(GeneratorSettings.from_flat({}))

    def test_invalid_model(self):
        with pytest.raises(InvalidModelError):
            resolve_provider(GeneratorSettings.from_flat({"ai_model": "gpt-17"}))
