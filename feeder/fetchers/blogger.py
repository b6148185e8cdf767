"""Blogger (``*.blogspot.com``) source."""

from __future__ import annotations

from typing import Optional

import httpx

from feeder.config.sources import BLOGGER_FEED_PATH, BLOGGER_HOST_SUFFIX
from feeder.fetchers.base import FeedSource, hostname, origin
from feeder.fetchers.generic import GenericSource
from feeder.models import Article, Feed, FeedMetadata, SourceKind


class BloggerSource(FeedSource):
    source_kind = SourceKind.BLOGGER

    def __init__(self, client: Optional[httpx.Client] = None, generic: Optional[GenericSource] = None):
        super().__init__(client)
        self.generic = generic or GenericSource(self.client)

    def can_handle(self, url: str) -> bool:
        return hostname(url).endswith(BLOGGER_HOST_SUFFIX)

    def build_feed_url(self, url: str) -> str:
        return origin(url) + BLOGGER_FEED_PATH

    def validate(self, url: str) -> FeedMetadata:
        metadata = self.generic.validate_endpoint(self.build_feed_url(url))
        return metadata.model_copy(update={"source_kind": self.source_kind})

    def fetch_articles(self, feed: Feed) -> list[Article]:
        return self.generic.fetch_articles(feed)
