"""
Generic RSS / Atom / JSON Feed source.

This is the universal fallback: it claims every URL, so the registry must
consult it last. Validation first treats the URL as a feed; if that fails it
tries the usual feed locations on the site origin.

Usage::

    from feeder.fetchers.generic import GenericSource

    source = GenericSource()
    metadata = source.validate("https://blog.example.com")
    print(metadata.feed_url)    # e.g. https://blog.example.com/feed/
"""

from __future__ import annotations

import hashlib
import logging
from datetime import datetime, timezone
from typing import Optional

import feedparser

from feeder.config.sources import DISCOVERY_PATHS
from feeder.errors import FeedParseError, FeedValidationError, FetchError
from feeder.fetchers.base import FeedSource, origin
from feeder.models import Article, Feed, FeedMetadata, FeedType, SourceKind

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Entry helpers
# ---------------------------------------------------------------------------

def generate_article_id(title: str, link: str) -> str:
    """Stable id for entries that carry none: 16 hex chars of sha256."""
    return hashlib.sha256(f"{title}:{link}".encode()).hexdigest()[:16]


def feed_type_of(parsed: feedparser.FeedParserDict) -> FeedType:
    version: str = parsed.get("version", "") or ""
    if version.startswith("atom"):
        return FeedType.ATOM
    if version.startswith("json"):
        return FeedType.JSON
    return FeedType.RSS


def entry_links(entry: feedparser.FeedParserDict) -> list[str]:
    links = [link.get("href") for link in entry.get("links", []) if link.get("href")]
    if not links and entry.get("link"):
        links = [entry["link"]]
    return links


def entry_timestamp(entry: feedparser.FeedParserDict) -> Optional[datetime]:
    """
    Return a timezone-aware UTC datetime for the entry, or ``None``.

    ``published_parsed`` is preferred, ``updated_parsed`` is the fallback.
    Both are UTC ``time.struct_time`` values produced by feedparser.
    """
    for key in ("published_parsed", "updated_parsed"):
        raw_time = entry.get(key)
        if raw_time is not None:
            return datetime(*raw_time[:6], tzinfo=timezone.utc)
    return None


def entry_id(entry: feedparser.FeedParserDict, title: str, links: list[str]) -> str:
    raw_id = entry.get("id")
    if raw_id not in (None, ""):
        return str(raw_id)
    return generate_article_id(title, links[0] if links else "")


# ---------------------------------------------------------------------------
# Source
# ---------------------------------------------------------------------------

class GenericSource(FeedSource):
    source_kind = SourceKind.RSS_ATOM

    def can_handle(self, url: str) -> bool:
        return True

    def parse_document(self, url: str) -> feedparser.FeedParserDict:
        """
        Download *url* and parse it as a feed.

        Raises:
            FetchError: If the download fails.
            FeedParseError: If the body is not a recognisable feed.
        """
        response = self._get(url)
        parsed = feedparser.parse(
            response.content,
            response_headers={
                "content-type": response.headers.get("content-type", ""),
                "content-location": str(response.url),
            },
        )

        if not parsed.get("version"):
            raise FeedParseError(
                f"'{url}' is not a valid RSS, Atom or JSON feed"
                f" ({parsed.get('bozo_exception') or 'unknown format'})"
            )
        if parsed.get("bozo"):
            logger.debug("Feed %s is malformed but usable: %s", url, parsed.get("bozo_exception"))
        return parsed

    def validate_endpoint(self, url: str) -> FeedMetadata:
        """Validate *url* as a feed endpoint, without any discovery."""
        parsed = self.parse_document(url)
        title = (parsed.feed.get("title") or "").strip() or "Untitled Feed"
        description = parsed.feed.get("subtitle") or parsed.feed.get("description")

        return FeedMetadata(
            title=title,
            feed_type=feed_type_of(parsed),
            feed_url=url,
            source_kind=self.source_kind,
            description=description or None,
        )

    def validate(self, url: str) -> FeedMetadata:
        base = origin(url)

        try:
            return self.validate_endpoint(url)
        except FetchError as exc:
            logger.info("'%s' is not a feed (%s); probing common feed paths", url, exc)

        for path in DISCOVERY_PATHS:
            candidate = base + path
            if candidate == url or not self._exists(candidate):
                continue
            try:
                metadata = self.validate_endpoint(candidate)
            except FetchError as exc:
                logger.debug("Candidate %s rejected: %s", candidate, exc)
                continue
            logger.info("Discovered feed for '%s' at %s", url, candidate)
            return metadata

        raise FeedValidationError(
            f"No feed found at '{url}' or at any common feed path on {base}"
        )

    def fetch_articles(self, feed: Feed) -> list[Article]:
        parsed = self.parse_document(feed.feed_url)

        articles: list[Article] = []
        for entry in parsed.entries:
            title: str = (entry.get("title") or "").strip() or "Untitled"
            links = entry_links(entry)
            articles.append(
                Article(
                    id=entry_id(entry, title, links),
                    title=title,
                    links=links,
                    published=entry_timestamp(entry),
                )
            )

        logger.info("Fetched %d entry/entries from '%s'", len(articles), feed.title)
        return articles
