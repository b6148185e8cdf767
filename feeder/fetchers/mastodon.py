"""
Mastodon / Fediverse profile source.

``https://<instance>/@<user>`` is mapped to the account's RSS feed at
``https://<instance>/users/<user>.rss``. Posts in that feed usually have no
title, so one is derived from the post body.
"""

from __future__ import annotations

import logging
import re
from typing import Optional
from urllib.parse import urlparse

import httpx
from bs4 import BeautifulSoup

from feeder.config.sources import MASTODON_FEED_URL, MASTODON_TITLE_LENGTH, YOUTUBE_HOSTS
from feeder.errors import InvalidUrlError
from feeder.fetchers.base import FeedSource, hostname
from feeder.fetchers.generic import GenericSource, entry_id, entry_links, entry_timestamp
from feeder.models import Article, Feed, FeedMetadata, SourceKind

logger = logging.getLogger(__name__)

_USER_PATH_RE = re.compile(r"^/@([^/]+)")

# Elements after which a space is inserted so words on either side of the
# boundary do not run together.
_BLOCK_TAGS = ["p", "br", "div"]


# ---------------------------------------------------------------------------
# Text helpers
# ---------------------------------------------------------------------------

def html_to_text(html: str) -> str:
    """Remove HTML tags, keeping word boundaries between blocks."""
    if not html:
        return ""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup.find_all(_BLOCK_TAGS):
        tag.insert_after(" ")
    return " ".join(soup.get_text().split())


def truncate_for_title(text: str, max_len: int = MASTODON_TITLE_LENGTH) -> str:
    """Shorten *text* to *max_len* characters, preferring a word boundary."""
    if len(text) <= max_len:
        return text
    head = text[:max_len]
    cut = head.rfind(" ")
    if cut > 0:
        head = head[:cut]
    return f"{head}..."


def _is_youtube(host: str) -> bool:
    return any(host == h or host.endswith("." + h) for h in YOUTUBE_HOSTS)


# ---------------------------------------------------------------------------
# Source
# ---------------------------------------------------------------------------

class MastodonSource(FeedSource):
    source_kind = SourceKind.MASTODON

    def __init__(self, client: Optional[httpx.Client] = None, generic: Optional[GenericSource] = None):
        super().__init__(client)
        self.generic = generic or GenericSource(self.client)

    def can_handle(self, url: str) -> bool:
        # YouTube handles use the same /@name shape.
        host = hostname(url)
        if not host or _is_youtube(host):
            return False
        return bool(_USER_PATH_RE.match(urlparse(url.strip()).path))

    def extract_user_info(self, url: str) -> tuple[str, str]:
        """
        Return ``(instance, username)`` for a profile URL.

        Raises:
            InvalidUrlError: If the URL has no host or no ``/@user`` path.
        """
        parsed = urlparse(url.strip())
        if not parsed.hostname:
            raise InvalidUrlError(f"Missing host in URL '{url}'")

        match = _USER_PATH_RE.match(parsed.path)
        if not match:
            raise InvalidUrlError(f"Could not extract a Mastodon username from '{url}'")
        return parsed.hostname, match.group(1)

    def build_feed_url(self, instance: str, username: str) -> str:
        return MASTODON_FEED_URL.format(instance=instance, username=username)

    def validate(self, url: str) -> FeedMetadata:
        feed_url = self.build_feed_url(*self.extract_user_info(url))
        metadata = self.generic.validate_endpoint(feed_url)
        return metadata.model_copy(update={"source_kind": self.source_kind})

    def fetch_articles(self, feed: Feed) -> list[Article]:
        parsed = self.generic.parse_document(feed.feed_url)

        articles: list[Article] = []
        for entry in parsed.entries:
            title = (entry.get("title") or "").strip()
            if not title:
                title = self._title_from_body(entry)
            links = entry_links(entry)
            articles.append(
                Article(
                    id=entry_id(entry, title, links),
                    title=title,
                    links=links,
                    published=entry_timestamp(entry),
                )
            )

        logger.info("Fetched %d post(s) from '%s'", len(articles), feed.title)
        return articles

    @staticmethod
    def _title_from_body(entry) -> str:
        html = ""
        content_list = entry.get("content", [])
        if content_list:
            html = content_list[0].get("value", "")
        if not html:
            html = entry.get("summary", "") or ""

        text = html_to_text(html)
        return truncate_for_title(text) if text else "Untitled"
