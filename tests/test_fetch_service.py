"""Tests for feeder.services.fetch module."""

from unittest.mock import Mock

import pytest

from feeder.errors import FeedNotFoundError, FetchError
from feeder.models import Article
from feeder.services.fetch import FetchResult, FetchService


def _articles(*ids: str) -> list[Article]:
    return [Article(id=i, title=f"Post {i}", links=[f"https://example.com/{i}"]) for i in ids]


@pytest.fixture
def registry():
    return Mock()


@pytest.fixture
def service(feed_repository, notified_repository, registry) -> FetchService:
    return FetchService(feed_repository, notified_repository, registry, max_workers=2)


@pytest.fixture
def stored_feed(feed_repository, feed_factory):
    feed = feed_factory(title="Blog")
    return feed.with_id(feed_repository.add(feed))


class TestFetchUnnotified:
    def test_all_new_on_first_fetch(self, service, registry, stored_feed) -> None:
        registry.fetch_articles.return_value = _articles("1", "2", "3")
        assert [a.id for a in service.fetch_unnotified(stored_feed)] == ["1", "2", "3"]

    def test_skips_notified(self, service, registry, stored_feed, notified_repository) -> None:
        registry.fetch_articles.return_value = _articles("1", "2", "3")
        notified_repository.mark_notified("Blog:2", stored_feed.id, "Post 2")

        assert [a.id for a in service.fetch_unnotified(stored_feed)] == ["1", "3"]

    def test_duplicate_entries_yield_one_article(self, service, registry, stored_feed) -> None:
        registry.fetch_articles.return_value = _articles("1", "1", "2")
        assert [a.id for a in service.fetch_unnotified(stored_feed)] == ["1", "2"]

    def test_errors_propagate(self, service, registry, stored_feed) -> None:
        registry.fetch_articles.side_effect = FetchError("down")
        with pytest.raises(FetchError):
            service.fetch_unnotified(stored_feed)

    def test_renamed_feed_sees_articles_again(
        self, service, registry, stored_feed, notified_repository
    ) -> None:
        registry.fetch_articles.return_value = _articles("1")
        service.mark_notified(stored_feed, _articles("1"))

        renamed = stored_feed.model_copy(update={"title": "Blog (renamed)"})
        assert [a.id for a in service.fetch_unnotified(renamed)] == ["1"]


class TestFetchAll:
    def test_no_feeds(self, service, registry) -> None:
        assert service.fetch_all_unnotified() == []
        registry.fetch_articles.assert_not_called()

    def test_failures_are_isolated(self, service, registry, feed_repository, feed_factory) -> None:
        feed_repository.add(feed_factory(url="https://good/", title="Good"))
        feed_repository.add(feed_factory(url="https://bad/", title="Bad"))

        def fetch(feed):
            if feed.title == "Bad":
                raise FetchError("https://bad/ returned HTTP 500")
            return _articles("1", "2")

        registry.fetch_articles.side_effect = fetch
        results = service.fetch_all_unnotified()

        assert [r.feed.title for r in results] == ["Bad", "Good"]
        bad, good = results
        assert bad.is_error
        assert "500" in bad.error
        assert not good.is_error
        assert good.total_articles == 2
        assert good.has_new_articles

    def test_unexpected_exception_becomes_result(self, service, registry, stored_feed) -> None:
        registry.fetch_articles.side_effect = RuntimeError("parser crashed")
        (result,) = service.fetch_all_unnotified()
        assert result.error == "parser crashed"
        assert result.new_articles == []


class TestMarkNotified:
    def test_marks_with_cache_keys(self, service, stored_feed, notified_repository) -> None:
        service.mark_notified(stored_feed, _articles("1", "2"))
        assert notified_repository.is_notified("Blog:1")
        assert notified_repository.is_notified("Blog:2")

    def test_unsaved_feed(self, service, feed_factory) -> None:
        with pytest.raises(FeedNotFoundError):
            service.mark_notified(feed_factory(), _articles("1"))

    def test_create_notifications(self, stored_feed) -> None:
        notifications = FetchService.create_notifications(stored_feed, _articles("1"))
        assert [n.format() for n in notifications] == ["Blog Post 1 https://example.com/1"]


class TestFetchResult:
    def test_flags(self, feed_factory) -> None:
        result = FetchResult(feed=feed_factory())
        assert not result.is_error
        assert not result.has_new_articles
