"""Adding, listing and removing feed subscriptions."""

from __future__ import annotations

import logging
from typing import Optional

from feeder.errors import FeedAlreadyExistsError, FeedNotFoundError
from feeder.fetchers.registry import SourceRegistry
from feeder.models import Feed
from feeder.storage.sqlite import FeedRepository

logger = logging.getLogger(__name__)


class FeedService:
    def __init__(self, repository: FeedRepository, registry: SourceRegistry):
        self.repository = repository
        self.registry = registry

    def add(self, url: str) -> Feed:
        """
        Validate *url* and store it as a new feed.

        Raises:
            FeedAlreadyExistsError: If the URL is already subscribed.
            FeedValidationError: If no usable feed is found.
            FetchError: If the feed cannot be downloaded or parsed.
        """
        url = url.strip()
        if self.repository.exists(url):
            raise FeedAlreadyExistsError(url)

        metadata = self.registry.validate(url)
        feed = metadata.to_feed(url)
        feed_id = self.repository.add(feed)
        logger.info("Added feed %d '%s' (%s) → %s", feed_id, feed.title, feed.source_kind, feed.feed_url)
        return feed.with_id(feed_id)

    def remove(self, feed_id: int) -> None:
        if not self.repository.remove(feed_id):
            raise FeedNotFoundError(f"No feed with id {feed_id}")
        logger.info("Removed feed %d", feed_id)

    def list(self) -> list[Feed]:
        return self.repository.get_all()

    def get(self, feed_id: int) -> Optional[Feed]:
        return self.repository.get_by_id(feed_id)

    def exists(self, url: str) -> bool:
        return self.repository.exists(url)
