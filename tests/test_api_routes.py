"""
API 路由测试
"""
import threading
import time

import pytest
from fastapi.testclient import TestClient

from conftest import FakeResponse, REVIEW_JSON, chat_response
from ai_review_generator.main import app
from ai_review_generator.services.content_service import ContentService, get_content_service
from ai_review_generator.services.display_service import DisplayService, get_display_service
from ai_review_generator.services.review_generator import get_review_generator
from ai_review_generator.services.review_store import get_review_store
from ai_review_generator.services.settings_service import get_settings_service


@pytest.fixture
def client(make_generator, settings_service):
    """依赖全部替换为测试库上的服务实例"""
    generator = make_generator()
    app.dependency_overrides[get_review_generator] = lambda: generator
    app.dependency_overrides[get_review_store] = lambda: generator.store
    app.dependency_overrides[get_settings_service] = lambda: settings_service
    app.dependency_overrides[get_display_service] = lambda: DisplayService(store=generator.store)
    app.dependency_overrides[get_content_service] = lambda: ContentService(generator=generator)
    yield TestClient(app)
    app.dependency_overrides.clear()


def _create_post(client, **fields):
    payload = {"title": "API post", "body": "<p>Hello</p>", "status": "publish"}
    payload.update(fields)
    resp = client.post("/api/contents", json=payload)
    assert resp.status_code == 200
    return resp.json()


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


class TestReviewRoutes:
    """评论接口"""

    def test_generate_and_fetch(self, client, fake_session):
        post = _create_post(client)
        fake_session.responses = [chat_response(REVIEW_JSON)]

        resp = client.post("/api/reviews/generate", json={"content_id": post["id"]})

        assert resp.status_code == 200
        review = resp.json()
        assert review["summary"] == "Solid read"
        assert review["cons"] == ["Short", "No images"]

        detail = client.get(f"/api/reviews/{review['id']}")
        assert detail.status_code == 200
        assert detail.json()["rating"] == 4.5

        listing = client.get("/api/reviews", params={"page": 1, "limit": 10}).json()
        assert listing["total"] == 1

    def test_generate_missing_item_is_404(self, client):
        resp = client.post("/api/reviews/generate", json={"content_id": 424242})

        assert resp.status_code == 404
        assert resp.json()["detail"]["code"] == "invalid_post"

    def test_generate_failure_is_502(self, client, fake_session):
        post = _create_post(client)
        fake_session.responses = [FakeResponse(500, None)]

        resp = client.post("/api/reviews/generate", json={"content_id": post["id"]})

        assert resp.status_code == 502
        assert resp.json()["detail"]["code"] == "generation_failed"

    def test_draft_post_is_400(self, client):
        post = _create_post(client, status="draft")

        resp = client.post("/api/reviews/generate", json={"content_id": post["id"]})

        assert resp.status_code == 400
        assert resp.json()["detail"]["code"] == "post_not_published"

    def test_patch_and_delete(self, client, fake_session):
        post = _create_post(client)
        fake_session.responses = [chat_response(REVIEW_JSON)]
        review = client.post("/api/reviews/generate", json={"content_id": post["id"]}).json()

        resp = client.patch(f"/api/reviews/{review['id']}", json={"summary": "Edited", "pros": ["Fast"]})

        assert resp.status_code == 200
        body = resp.json()
        assert body["summary"] == "Edited"
        assert body["pros"] == ["Fast"]
        assert body["modified_by_user"] is True
        assert body["rating"] == 4.5

        assert client.delete(f"/api/reviews/{review['id']}").status_code == 200
        assert client.get(f"/api/reviews/{review['id']}").status_code == 404
        assert client.patch(f"/api/reviews/{review['id']}", json={"rating": 1}).status_code == 404

    def test_content_reviews_render_data(self, client, fake_session):
        post = _create_post(client, content_type="product", price="19.99")
        fake_session.responses = [chat_response(REVIEW_JSON)]
        client.post("/api/reviews/generate", json={"content_id": post["id"]})

        data = client.get(f"/api/reviews/content/{post['id']}").json()

        assert len(data["reviews"]) == 1
        assert data["stars"] == {"full": 4, "half": 1, "empty": 0, "value": 4.5}
        assert data["schema_data"]["@type"] == "Product"

    def test_content_reviews_without_review(self, client):
        post = _create_post(client)

        data = client.get(f"/api/reviews/content/{post['id']}").json()

        assert data["reviews"] == []
        assert data["latest"] is None
        assert data["schema_data"] is None


class TestContentRoutes:
    """内容条目接口"""

    def test_create_and_get(self, client):
        post = _create_post(client, categories=["News", "Tech"], status="draft")

        resp = client.get(f"/api/contents/{post['id']}")

        assert resp.status_code == 200
        assert resp.json()["categories"] == ["News", "Tech"]
        assert client.get("/api/contents/999").status_code == 404

    def test_invalid_content_type(self, client):
        resp = client.post("/api/contents", json={"title": "x", "content_type": "video"})
        assert resp.status_code == 400

    def test_publish_triggers_generation(self, client, fake_session):
        post = _create_post(client, status="draft")
        fake_session.responses = [chat_response(REVIEW_JSON)]

        resp = client.post(f"/api/contents/{post['id']}/publish")

        assert resp.status_code == 200
        assert resp.json()["status"] == "publish"
        assert len(fake_session.calls) == 1

    def test_publish_missing_item(self, client):
        assert client.post("/api/contents/999/publish").status_code == 404


class TestProviderAndSettingsRoutes:
    """提供方与设置接口"""

    def test_list_providers(self, client):
        providers = client.get("/api/providers").json()
        assert {p["id"] for p in providers} == {"deepseek", "mistral", "llama3", "openrouter"}

    def test_connection_success(self, client, fake_session):
        fake_session.responses = [chat_response("Hi")]

        resp = client.post("/api/providers/deepseek/test", json={})

        assert resp.json() == {"success": True, "message": "Connection successful"}

    def test_connection_api_error(self, client, fake_session):
        fake_session.responses = [FakeResponse(401, {"error": "Invalid key"})]

        resp = client.post("/api/providers/deepseek/test", json={})

        assert resp.status_code == 200
        assert resp.json() == {"success": False, "message": "Invalid key"}

    def test_connection_missing_key(self, client):
        resp = client.post("/api/providers/mistral/test", json={})
        assert resp.status_code == 400
        assert resp.json()["detail"]["code"] == "missing_api_key"

    def test_settings_masks_keys(self, client):
        data = client.get("/api/settings").json()

        assert data["deepseek_api_key"] is True
        assert data["ai_model"] == "deepseek"

    def test_settings_update(self, client):
        resp = client.put("/api/settings", json={"reviews_per_post": 25, "review_tone": "casual"})

        assert resp.status_code == 200
        assert resp.json()["reviews_per_post"] == 10
        assert resp.json()["review_tone"] == "casual"

    def test_settings_invalid_structure(self, client):
        resp = client.put("/api/settings", json={"review_structure": "essay"})
        assert resp.status_code == 400


class TestLogRoutes:
    """日志与缓存接口"""

    def test_logs_stats_and_clear(self, client, fake_session):
        post = _create_post(client)
        fake_session.responses = [chat_response(REVIEW_JSON, total_tokens=77)]
        client.post("/api/reviews/generate", json={"content_id": post["id"]})

        logs = client.get("/api/logs").json()
        assert logs["total"] == 1
        assert logs["items"][0]["tokens_used"] == 77

        assert client.get("/api/logs/stats").json()["tokens_used"] == 77
        assert client.delete("/api/logs").json() == {"deleted": 1}

    def test_clear_cache(self, client, fake_session):
        post = _create_post(client)
        fake_session.responses = [chat_response(REVIEW_JSON)]
        client.post("/api/reviews/generate", json={"content_id": post["id"]})

        assert client.delete("/api/cache").json() == {"cleared": 1}


class TestSlowUpstream:
    """上游调用阻塞时，其他请求仍能立即响应"""

    @pytest.fixture
    def loop_client(self, client):
        """所有请求共用同一个事件循环"""
        with TestClient(app) as shared:
            yield shared

    def _block_upstream(self, fake_session, response):
        started = threading.Event()
        release = threading.Event()

        def slow_request(method, url, **kwargs):
            fake_session.calls.append({"method": method, "url": url, **kwargs})
            started.set()
            release.wait(timeout=5)
            return response

        fake_session.request = slow_request
        return started, release

    def _health_while_blocked(self, client, started, release, target):
        worker = threading.Thread(target=target)
        worker.start()
        try:
            assert started.wait(timeout=5)
            begin = time.monotonic()
            resp = client.get("/health")
            elapsed = time.monotonic() - begin
        finally:
            release.set()
            worker.join(timeout=10)
        return resp, elapsed

    def test_generate_does_not_block_other_requests(self, loop_client, fake_session):
        post = _create_post(loop_client)
        started, release = self._block_upstream(fake_session, chat_response(REVIEW_JSON))
        results = []

        def generate():
            results.append(loop_client.post("/api/reviews/generate", json={"content_id": post["id"]}))

        resp, elapsed = self._health_while_blocked(loop_client, started, release, generate)

        assert resp.status_code == 200
        assert elapsed < 2
        assert results[0].status_code == 200

    def test_publish_does_not_block_other_requests(self, loop_client, fake_session):
        post = _create_post(loop_client, status="draft")
        started, release = self._block_upstream(fake_session, chat_response(REVIEW_JSON))
        results = []

        def publish():
            results.append(loop_client.post(f"/api/contents/{post['id']}/publish"))

        resp, elapsed = self._health_while_blocked(loop_client, started, release, publish)

        assert resp.status_code == 200
        assert elapsed < 2
        assert results[0].json()["status"] == "publish"

    def test_connection_test_does_not_block_other_requests(self, loop_client, fake_session):
        started, release = self._block_upstream(fake_session, chat_response("Hi"))
        results = []

        def connection_test():
            results.append(loop_client.post("/api/providers/deepseek/test", json={}))

        resp, elapsed = self._health_while_blocked(loop_client, started, release, connection_test)

        assert resp.status_code == 200
        assert elapsed < 2
        assert results[0].json()["success"] is True
