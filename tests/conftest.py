"""
测试配置
"""
import os
import sys
import pytest

# 添加 src 目录到 Python 路径
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

# 设置测试环境变量（必须在导入前）
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["DEBUG"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"

import requests


class FakeResponse:
    """模拟 requests.Response"""

    def __init__(self, status_code=200, json_data=None, text=None):
        self.status_code = status_code
        self._json_data = json_data
        self.text = text

    def json(self):
        if self._json_data is None:
            raise ValueError("No JSON object could be decoded")
        return self._json_data


class FakeSession:
    """
    模拟 requests.Session

    responses 按顺序返回；元素为异常时直接抛出
    """

    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.calls = []
        self.max_redirects = None

    def request(self, method, url, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        if not self.responses:
            raise AssertionError(f"unexpected request: {method} {url}")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def chat_response(content, total_tokens=42):
    """chat 风格的成功响应"""
    return FakeResponse(200, {
        "choices": [{"message": {"role": "assistant", "content": content}}],
        "usage": {"total_tokens": total_tokens},
    })


REVIEW_JSON = (
    '{"summary": "Solid read", "full_review": "A thorough article.", '
    '"pros": ["Clear", "Concise", "Useful"], "cons": ["Short", "No images"], "rating": 4.5}'
)


@pytest.fixture
def test_db():
    """测试数据库 fixture（内存库，所有会话共用一个连接）"""
    from sqlmodel import SQLModel
    from ai_review_generator.core.database import build_engine, init_db

    engine = build_engine("sqlite://")
    init_db(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def settings_service(test_db):
    """已安装默认设置并配置了 deepseek 密钥的设置服务"""
    from ai_review_generator.services.settings_service import SettingsService

    service = SettingsService(test_db)
    service.install_defaults()
    service.update({"deepseek_api_key": "sk-test"})
    return service


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def make_generator(test_db, settings_service, fake_session):
    """按需构造使用假 HTTP 会话与独立缓存的生成器"""
    from ai_review_generator.services.api_client import ApiClient
    from ai_review_generator.services.cache import ResponseCache
    from ai_review_generator.services.review_generator import ReviewGenerator
    from ai_review_generator.services.review_store import ReviewStore

    def _make(name_hook=None, debug=False):
        client = ApiClient(session=fake_session, cache=ResponseCache(), debug=debug)
        return ReviewGenerator(
            store=ReviewStore(test_db),
            settings_service=settings_service,
            client=client,
            name_hook=name_hook,
        )

    return _make


@pytest.fixture
def make_item(test_db):
    """创建内容条目"""
    from sqlmodel import Session
    from ai_review_generator.models import ContentItem

    def _make(**fields):
        fields.setdefault("title", "How to brew coffee")
        fields.setdefault("body", "<p>Grind the beans <b>fresh</b>.</p>")
        fields.setdefault("status", "publish")
        item = ContentItem(**fields)
        with Session(test_db) as session:
            session.add(item)
            session.commit()
            session.refresh(item)
        return item

    return _make


@pytest.fixture
def connection_error():
    return requests.ConnectionError("connection refused")
