"""
Common plumbing for feed sources.

Every source receives the same :class:`httpx.Client`, so one timeout and one
set of headers apply to validation requests, discovery, page scraping and
feed downloads alike.
"""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import urlparse

import httpx

from feeder.config.sources import DEFAULT_TIMEOUT, HTTP_HEADERS
from feeder.errors import FetchError, InvalidUrlError
from feeder.models import Article, Feed, FeedMetadata, SourceKind

logger = logging.getLogger(__name__)


def build_client(timeout: float = DEFAULT_TIMEOUT, **kwargs) -> httpx.Client:
    """Return the HTTP client shared by all sources."""
    return httpx.Client(
        follow_redirects=True,
        headers=HTTP_HEADERS,
        timeout=timeout,
        **kwargs,
    )


def origin(url: str) -> str:
    """
    Return ``scheme://host[:port]`` for *url*.

    Raises:
        InvalidUrlError: If the URL has no scheme or host.
    """
    parsed = urlparse(url.strip())
    if not parsed.scheme or not parsed.netloc:
        raise InvalidUrlError(f"Not an absolute URL: {url!r}")
    return f"{parsed.scheme}://{parsed.netloc}"


def hostname(url: str) -> str:
    return (urlparse(url.strip()).hostname or "").lower()


class FeedSource:
    """
    Strategy for one kind of site.

    Subclasses set :attr:`source_kind` and implement the three operations.
    Only :meth:`can_handle` is called during detection, so it must stay
    cheap; the WordPress source is the one exception.
    """

    source_kind: SourceKind

    def __init__(self, client: Optional[httpx.Client] = None):
        self.client = client or build_client()

    def can_handle(self, url: str) -> bool:
        raise NotImplementedError

    def validate(self, url: str) -> FeedMetadata:
        raise NotImplementedError

    def fetch_articles(self, feed: Feed) -> list[Article]:
        raise NotImplementedError

    # -- HTTP helpers -------------------------------------------------------

    def _get(self, url: str) -> httpx.Response:
        """
        GET *url* and return the response.

        Raises:
            FetchError: On network failure or a non-success status.
        """
        try:
            response = self.client.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise FetchError(
                f"{url} returned HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise FetchError(f"Network error while fetching '{url}': {exc}") from exc
        return response

    def _exists(self, url: str) -> bool:
        """HEAD check used before committing to a full download."""
        try:
            response = self.client.head(url)
        except httpx.HTTPError as exc:
            logger.debug("HEAD %s failed: %s", url, exc)
            return False
        # Some servers refuse HEAD outright; let the GET decide for those.
        return response.is_success or response.status_code == 405

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.source_kind.value}>"
