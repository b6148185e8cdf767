"""WordPress site source: any site answering on ``/wp-json/``."""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from feeder.config.sources import WORDPRESS_API_PATH, WORDPRESS_FEED_PATH, WORDPRESS_HOST
from feeder.errors import InvalidUrlError
from feeder.fetchers.base import FeedSource, hostname, origin
from feeder.fetchers.generic import GenericSource
from feeder.models import Article, Feed, FeedMetadata, SourceKind

logger = logging.getLogger(__name__)


class WordPressSource(FeedSource):
    source_kind = SourceKind.WORDPRESS

    def __init__(self, client: Optional[httpx.Client] = None, generic: Optional[GenericSource] = None):
        super().__init__(client)
        self.generic = generic or GenericSource(self.client)

    def can_handle(self, url: str) -> bool:
        host = hostname(url)
        if host == WORDPRESS_HOST or host.endswith("." + WORDPRESS_HOST):
            return True
        return self.is_wordpress(url)

    def is_wordpress(self, url: str) -> bool:
        """Check the REST API root: HEAD first, then GET."""
        try:
            api_url = origin(url) + WORDPRESS_API_PATH
        except InvalidUrlError:
            return False

        for method in ("HEAD", "GET"):
            try:
                response = self.client.request(method, api_url)
            except httpx.HTTPError as exc:
                logger.debug("%s %s failed: %s", method, api_url, exc)
                continue
            if response.is_success:
                return True
        return False

    def build_feed_url(self, url: str) -> str:
        return origin(url) + WORDPRESS_FEED_PATH

    def validate(self, url: str) -> FeedMetadata:
        metadata = self.generic.validate_endpoint(self.build_feed_url(url))
        return metadata.model_copy(update={"source_kind": self.source_kind})

    def fetch_articles(self, feed: Feed) -> list[Article]:
        return self.generic.fetch_articles(feed)
