"""
展示数据与内容发布测试
"""
from datetime import datetime, timedelta

import pytest

from conftest import REVIEW_JSON, chat_response
from ai_review_generator.models import ContentItem, Review
from ai_review_generator.services.content_service import ContentService
from ai_review_generator.services.display_service import DisplayService, build_schema, star_breakdown
from ai_review_generator.services.review_generator import format_review
from ai_review_generator.services.review_store import ReviewStore


@pytest.mark.parametrize("rating,expected", [
    (4.5, {"full": 4, "half": 1, "empty": 0, "value": 4.5}),
    (3.2, {"full": 3, "half": 0, "empty": 2, "value": 3.0}),
    (3.8, {"full": 4, "half": 0, "empty": 1, "value": 4.0}),
    (7, {"full": 5, "half": 0, "empty": 0, "value": 5.0}),
    (-1, {"full": 0, "half": 0, "empty": 5, "value": 0.0}),
])
def test_star_breakdown(rating, expected):
    assert star_breakdown(rating) == expected


class TestDisplayService:
    """展示数据"""

    def test_no_review_is_none(self, test_db):
        display = DisplayService(engine=test_db)

        assert display.get_review_data(1) is None
        assert display.get_published_reviews(1) == []
        assert display.has_review(1) is False

    def test_unpublished_latest_is_hidden(self, test_db):
        store = ReviewStore(test_db)
        now = datetime.now()
        store.save_review(Review(content_id=2, rating=4, generated_at=now - timedelta(hours=1)))
        store.save_review(Review(content_id=2, rating=1, generated_at=now, published=False))
        display = DisplayService(store=store)

        assert display.get_review_data(2) is None
        assert [r.rating for r in display.get_published_reviews(2)] == [4.0]


class TestSchema:
    """JSON-LD"""

    def _view(self, **fields):
        fields.setdefault("content_id", 1)
        fields.setdefault("rating", 4.5)
        fields.setdefault("review_content", "Body")
        fields.setdefault("review_summary", "Summary")
        fields.setdefault("generated_at", datetime(2024, 5, 1, 10, 0))
        return format_review(Review(id=1, **fields))

    def test_product_schema_with_person(self):
        item = ContentItem(title="Kettle", content_type="product", price="29.99")

        schema = build_schema(self._view(reviewer_name="Jane Doe"), item, site_name="Shop")

        assert schema["@type"] == "Product"
        assert schema["name"] == "Kettle"
        assert schema["offers"] == {"@type": "Offer", "price": "29.99"}
        assert schema["review"]["author"] == {"@type": "Person", "name": "Jane Doe"}
        assert schema["review"]["reviewRating"]["bestRating"] == 5
        assert schema["review"]["datePublished"] == "2024-05-01"

    def test_article_schema_with_organization(self):
        item = ContentItem(title="Guide", excerpt="Short")

        schema = build_schema(self._view(), item, site_name="My Blog")

        assert schema["@type"] == "Article"
        assert schema["headline"] == "Guide"
        assert schema["description"] == "Short"
        assert schema["review"]["author"] == {"@type": "Organization", "name": "My Blog"}
        assert schema["review"]["reviewBody"] == "Body"


class TestContentService:
    """发布时自动生成"""

    def _service(self, make_generator):
        return ContentService(generator=make_generator())

    def test_publish_generates_review(self, make_generator, fake_session):
        service = self._service(make_generator)
        item = service.create_item(title="New post", body="Text")
        fake_session.responses = [chat_response(REVIEW_JSON)]

        published = service.publish(item.id)

        assert published.status == "publish"
        assert service.generator.store.get_latest_review(item.id).review_summary == "Solid read"

    def test_publish_survives_generation_failure(self, make_generator, fake_session, connection_error):
        service = self._service(make_generator)
        item = service.create_item(title="New post")
        fake_session.responses = [connection_error]

        published = service.publish(item.id)

        assert published.status == "publish"
        assert service.generator.store.get_latest_review(item.id) is None

    def test_republish_does_not_generate(self, make_generator, fake_session):
        service = self._service(make_generator)
        item = service.create_item(title="Live post", status="publish")

        service.publish(item.id)

        assert fake_session.calls == []

    def test_skips_when_auto_generate_off(self, make_generator, fake_session, settings_service):
        settings_service.update({"auto_generate_default": "disabled"})
        service = self._service(make_generator)
        item = service.create_item(title="Quiet post")

        service.publish(item.id)

        assert fake_session.calls == []

    def test_item_flag_overrides_global(self, make_generator, fake_session, settings_service):
        settings_service.update({"auto_generate_default": "disabled"})
        service = self._service(make_generator)
        item = service.create_item(title="Opt-in post", auto_generate="enabled")
        fake_session.responses = [chat_response(REVIEW_JSON)]

        service.publish(item.id)

        assert len(fake_session.calls) == 1

    def test_skips_when_published_review_exists(self, make_generator, fake_session):
        service = self._service(make_generator)
        item = service.create_item(title="Reviewed post")
        service.generator.store.save_review(Review(content_id=item.id, rating=4))

        assert service.maybe_generate_review(item) is None
        assert fake_session.calls == []
