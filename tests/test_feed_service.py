"""Tests for feeder.services.feeds module."""

from unittest.mock import Mock

import pytest

from feeder.errors import FeedAlreadyExistsError, FeedNotFoundError, FeedValidationError
from feeder.models import FeedMetadata, FeedType, SourceKind
from feeder.services.feeds import FeedService


@pytest.fixture
def registry():
    registry = Mock()
    registry.validate.return_value = FeedMetadata(
        title="Jane Doe",
        feed_type=FeedType.RSS,
        feed_url="https://mastodon.social/users/jane.rss",
        source_kind=SourceKind.MASTODON,
    )
    return registry


@pytest.fixture
def service(feed_repository, registry) -> FeedService:
    return FeedService(feed_repository, registry)


class TestFeedService:
    def test_add_stores_resolved_feed(self, service, feed_repository) -> None:
        feed = service.add("  https://mastodon.social/@jane ")

        assert feed.id is not None
        assert feed.url == "https://mastodon.social/@jane"
        assert feed.feed_url == "https://mastodon.social/users/jane.rss"
        assert feed.source_kind is SourceKind.MASTODON
        assert feed_repository.get_by_id(feed.id).title == "Jane Doe"

    def test_add_existing_url_skips_validation(self, service, registry) -> None:
        service.add("https://mastodon.social/@jane")
        registry.validate.reset_mock()

        with pytest.raises(FeedAlreadyExistsError):
            service.add("https://mastodon.social/@jane")
        registry.validate.assert_not_called()

    def test_validation_failure_stores_nothing(self, service, registry) -> None:
        registry.validate.side_effect = FeedValidationError("No feed found")
        with pytest.raises(FeedValidationError):
            service.add("https://example.com/")
        assert service.list() == []

    def test_remove(self, service) -> None:
        feed = service.add("https://mastodon.social/@jane")
        service.remove(feed.id)
        assert not service.exists(feed.url)
        assert service.get(feed.id) is None

    def test_remove_missing(self, service) -> None:
        with pytest.raises(FeedNotFoundError):
            service.remove(42)
