"""
Source registry: URL detection and per-kind dispatch.

Detection walks the sources in a fixed order and picks the first one whose
``can_handle`` accepts the URL. The generic source accepts everything, so it
is always last. Fetching dispatches on the kind stored with the feed, never
on a fresh detection, so changes to the detection rules do not move
existing feeds to another source.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

import httpx

from feeder.errors import UnsupportedSourceError
from feeder.fetchers.base import FeedSource, build_client
from feeder.fetchers.blogger import BloggerSource
from feeder.fetchers.generic import GenericSource
from feeder.fetchers.mastodon import MastodonSource
from feeder.fetchers.wordpress import WordPressSource
from feeder.fetchers.youtube import YouTubeSource
from feeder.models import Article, Feed, FeedMetadata, SourceKind

logger = logging.getLogger(__name__)


def default_sources(client: httpx.Client) -> list[FeedSource]:
    """Built-in sources, most specific first."""
    generic = GenericSource(client)
    return [
        YouTubeSource(client, generic),
        MastodonSource(client, generic),
        BloggerSource(client, generic),
        WordPressSource(client, generic),
        generic,
    ]


class SourceRegistry:
    def __init__(
        self,
        sources: Optional[Iterable[FeedSource]] = None,
        client: Optional[httpx.Client] = None,
    ):
        if sources is None:
            sources = default_sources(client or build_client())
        self._sources: tuple[FeedSource, ...] = tuple(sources)

    @property
    def sources(self) -> tuple[FeedSource, ...]:
        return self._sources

    def source_kinds(self) -> list[SourceKind]:
        return [source.source_kind for source in self._sources]

    def find_source(self, url: str) -> Optional[FeedSource]:
        for source in self._sources:
            if source.can_handle(url):
                logger.debug("'%s' handled by %r", url, source)
                return source
        return None

    def validate(self, url: str) -> FeedMetadata:
        source = self.find_source(url)
        if source is None:
            raise UnsupportedSourceError(f"Unsupported feed source: {url}")
        return source.validate(url)

    def fetch_articles(self, feed: Feed) -> list[Article]:
        for source in self._sources:
            if source.source_kind == feed.source_kind:
                return source.fetch_articles(feed)
        raise UnsupportedSourceError(f"Unsupported feed source: {feed.source_kind}")
