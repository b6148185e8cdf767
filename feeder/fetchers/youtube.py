"""
YouTube channel source.

Resolves a channel URL (``/channel/UC...``, ``/@handle``, ``/c/name`` or
``/user/name``) to the channel's public RSS feed. Handle, custom and legacy
user URLs need the channel page to be fetched to learn the channel id.

Usage::

    from feeder.fetchers.youtube import YouTubeSource

    metadata = YouTubeSource().validate("https://www.youtube.com/@Fireship/videos")
    print(metadata.feed_url)
"""

from __future__ import annotations

import logging
import re
from typing import Optional
from urllib.parse import urlparse

import httpx
from bs4 import BeautifulSoup

from feeder.config.sources import (
    YOUTUBE_CHANNEL_PATHS,
    YOUTUBE_FEED_URL,
    YOUTUBE_TAB_SEGMENTS,
)
from feeder.errors import FeedValidationError, FetchError, InvalidUrlError
from feeder.fetchers.base import FeedSource, hostname
from feeder.fetchers.generic import GenericSource
from feeder.models import Article, Feed, FeedMetadata, SourceKind

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Channel resolution
# ---------------------------------------------------------------------------

# A YouTube channel ID always starts with "UC" and is 24 characters total.
_CHANNEL_PATH_RE = re.compile(r"^/channel/(UC[\w-]{22})")
_CANONICAL_RE = re.compile(r"youtube\.com/channel/(UC[\w-]{22})")
_PAGE_PATTERNS = (
    re.compile(r'"channelId":"(UC[\w-]{22})"'),
    re.compile(r"channel/(UC[\w-]{22})"),
)


def is_youtube_host(host: str) -> bool:
    return host == "youtube.com" or host.endswith(".youtube.com")


def normalize_channel_url(url: str) -> str:
    """
    Strip a trailing channel tab such as ``/videos`` or ``/shorts``, along
    with any query string or fragment.

    ``https://youtube.com/@user/videos?view=0`` -> ``https://youtube.com/@user``
    """
    parsed = urlparse(url.strip())
    path = parsed.path.rstrip("/")
    for segment in YOUTUBE_TAB_SEGMENTS:
        if path.endswith(segment):
            path = path[: -len(segment)]
            break
    return f"{parsed.scheme}://{parsed.netloc}{path}"


def build_feed_url(channel_id: str) -> str:
    return YOUTUBE_FEED_URL.format(channel_id=channel_id)


def channel_id_from_page(html: str) -> Optional[str]:
    """
    Extract the channel ID from a channel page.

    Looks, in order, at ``<meta itemprop="channelId">``, the canonical
    ``<link>``, and then the raw markup.
    """
    soup = BeautifulSoup(html, "html.parser")

    meta = soup.find("meta", attrs={"itemprop": "channelId"})
    if meta is not None and meta.get("content"):
        return meta["content"]

    canonical = soup.find("link", rel="canonical")
    if canonical is not None:
        match = _CANONICAL_RE.search(canonical.get("href", ""))
        if match:
            return match.group(1)

    for pattern in _PAGE_PATTERNS:
        match = pattern.search(html)
        if match:
            return match.group(1)

    return None


# ---------------------------------------------------------------------------
# Source
# ---------------------------------------------------------------------------

class YouTubeSource(FeedSource):
    source_kind = SourceKind.YOUTUBE

    def __init__(self, client: Optional[httpx.Client] = None, generic: Optional[GenericSource] = None):
        super().__init__(client)
        self.generic = generic or GenericSource(self.client)

    def can_handle(self, url: str) -> bool:
        if not is_youtube_host(hostname(url)):
            return False
        path = urlparse(url.strip()).path
        return path.startswith(YOUTUBE_CHANNEL_PATHS)

    def extract_channel_id(self, url: str) -> str:
        """
        Return the channel ID for a (normalized) channel URL.

        Raises:
            InvalidUrlError: If the URL is not a channel URL.
            FeedValidationError: If the channel page does not reveal an ID.
        """
        path = urlparse(url).path

        match = _CHANNEL_PATH_RE.match(path)
        if match:
            return match.group(1)

        if path.startswith(("/@", "/c/", "/user/")):
            return self._scrape_channel_id(url)

        raise InvalidUrlError(f"Could not extract a YouTube channel ID from '{url}'")

    def _scrape_channel_id(self, page_url: str) -> str:
        try:
            response = self._get(page_url)
        except FetchError as exc:
            raise FeedValidationError(f"Could not load YouTube channel page: {exc}") from exc

        channel_id = channel_id_from_page(response.text)
        if channel_id is None:
            raise FeedValidationError(
                f"Could not find a channel ID on '{page_url}'. "
                "Check that the handle or username is correct."
            )
        logger.info("Resolved '%s' → channel_id=%s", page_url, channel_id)
        return channel_id

    def validate(self, url: str) -> FeedMetadata:
        channel_url = normalize_channel_url(url)
        feed_url = build_feed_url(self.extract_channel_id(channel_url))

        # Some channels have their RSS feed disabled; say so instead of
        # reporting a generic parse failure.
        try:
            response = self.client.get(feed_url)
        except httpx.HTTPError as exc:
            raise FetchError(f"Network error while fetching '{feed_url}': {exc}") from exc
        if not response.is_success:
            raise FeedValidationError(
                f"YouTube RSS feed not available for this channel (HTTP {response.status_code}). "
                "Some channels may not have RSS feeds enabled."
            )

        metadata = self.generic.validate_endpoint(feed_url)
        return metadata.model_copy(update={"source_kind": self.source_kind})

    def fetch_articles(self, feed: Feed) -> list[Article]:
        return self.generic.fetch_articles(feed)
