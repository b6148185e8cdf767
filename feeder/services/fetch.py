"""
Fetch every feed and work out which articles have not been notified yet.

Feeds are independent, so they are fetched on a bounded thread pool.
Within a feed, articles keep the order the source returned them in.
Marking an article notified is left to the caller, which must only do so
after that article's own delivery succeeded.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Optional

from feeder.errors import FeedNotFoundError
from feeder.fetchers.registry import SourceRegistry
from feeder.models import Article, Feed, Notification
from feeder.storage.sqlite import FeedRepository, NotifiedArticleRepository

logger = logging.getLogger(__name__)


@dataclass
class FetchResult:
    """Outcome of fetching a single feed."""

    feed: Feed
    total_articles: int = 0
    new_articles: list[Article] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.error is not None

    @property
    def has_new_articles(self) -> bool:
        return bool(self.new_articles)


class FetchService:
    def __init__(
        self,
        feed_repository: FeedRepository,
        notified_repository: NotifiedArticleRepository,
        registry: SourceRegistry,
        max_workers: int = 4,
    ):
        self.feed_repository = feed_repository
        self.notified_repository = notified_repository
        self.registry = registry
        self.max_workers = max(1, max_workers)

    def fetch_unnotified(self, feed: Feed) -> list[Article]:
        """Fetch *feed* and return only the articles not yet notified."""
        return self._fetch(feed).new_articles

    def _fetch(self, feed: Feed) -> FetchResult:
        articles = self.registry.fetch_articles(feed)
        keys = [article.cache_key(feed.title) for article in articles]
        unnotified = set(self.notified_repository.get_unnotified(keys))

        new_articles: list[Article] = []
        seen: set[str] = set()
        for article, key in zip(articles, keys):
            # A feed listing the same entry twice yields one notification.
            if key in unnotified and key not in seen:
                new_articles.append(article)
                seen.add(key)

        logger.info(
            "Feed '%s': %d article(s), %d new", feed.title, len(articles), len(new_articles)
        )
        return FetchResult(feed=feed, total_articles=len(articles), new_articles=new_articles)

    def _fetch_safely(self, feed: Feed) -> FetchResult:
        try:
            return self._fetch(feed)
        except Exception as exc:
            logger.error("Fetch failed for '%s' (%s): %s", feed.title, feed.feed_url, exc)
            return FetchResult(feed=feed, error=str(exc))

    def fetch_all_unnotified(self) -> list[FetchResult]:
        """
        Fetch every configured feed.

        A failure in one feed is recorded on its :class:`FetchResult` and
        does not stop the others. Results follow the feed listing order
        (newest feed first). A failure to list the feeds propagates.
        """
        feeds = self.feed_repository.get_all()
        if not feeds:
            return []

        workers = min(self.max_workers, len(feeds))
        logger.info("Fetching %d feed(s) with %d worker(s)", len(feeds), workers)
        with ThreadPoolExecutor(max_workers=workers) as executor:
            return list(executor.map(self._fetch_safely, feeds))

    def mark_notified(self, feed: Feed, articles: list[Article]) -> None:
        """
        Record *articles* as delivered for *feed*.

        Raises:
            FeedNotFoundError: If *feed* was never persisted.
        """
        if feed.id is None:
            raise FeedNotFoundError(f"Feed '{feed.title}' has no id")
        for article in articles:
            self.notified_repository.mark_notified(article.cache_key(feed.title), feed.id, article.title)

    @staticmethod
    def create_notifications(feed: Feed, articles: list[Article]) -> list[Notification]:
        return [Notification.from_article(feed, article) for article in articles]
