"""Shared fixtures: an in-memory database and a fake web served through httpx.MockTransport."""

from __future__ import annotations

from typing import Optional, Union

import httpx
import pytest

from feeder.models import Feed, FeedType, SourceKind
from feeder.storage.sqlite import FeedRepository, NotifiedArticleRepository, Storage

RSS_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Example Blog</title>
    <link>https://example.com/</link>
    <description>Posts about examples</description>
    <item>
      <guid isPermaLink="false">post-1</guid>
      <title>First Post</title>
      <link>https://example.com/posts/1</link>
      <pubDate>Mon, 01 Jan 2024 12:00:00 GMT</pubDate>
      <description>&lt;p&gt;Body of the first post&lt;/p&gt;</description>
    </item>
    <item>
      <title>Second Post</title>
      <link>https://example.com/posts/2</link>
    </item>
  </channel>
</rss>
"""

ATOM_FEED = """<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Atom Example</title>
  <subtitle>An Atom feed</subtitle>
  <id>urn:uuid:feed</id>
  <updated>2024-02-01T10:00:00Z</updated>
  <entry>
    <id>urn:uuid:entry-1</id>
    <title>Atom Entry</title>
    <link href="https://example.org/entry-1"/>
    <updated>2024-02-01T10:00:00Z</updated>
  </entry>
</feed>
"""

MASTODON_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Jane Doe</title>
    <link>https://mastodon.social/@jane</link>
    <description>Public posts from @jane@mastodon.social</description>
    <item>
      <guid isPermaLink="true">https://mastodon.social/@jane/111</guid>
      <link>https://mastodon.social/@jane/111</link>
      <pubDate>Tue, 02 Jan 2024 08:30:00 +0000</pubDate>
      <description>&lt;p&gt;Hello &lt;a href="https://mastodon.social/tags/fediverse"&gt;#&lt;span&gt;fediverse&lt;/span&gt;&lt;/a&gt;&lt;/p&gt;&lt;p&gt;Second line&lt;/p&gt;</description>
    </item>
    <item>
      <guid isPermaLink="true">https://mastodon.social/@jane/112</guid>
      <link>https://mastodon.social/@jane/112</link>
      <pubDate>Tue, 02 Jan 2024 09:00:00 +0000</pubDate>
    </item>
  </channel>
</rss>
"""

HTML_PAGE = "<!DOCTYPE html><html><head><title>Home</title></head><body><p>Welcome</p></body></html>"


class FakeWeb:
    """Maps URLs to canned responses; anything else is a 404."""

    def __init__(self):
        self.routes: dict[tuple[str, str], tuple[int, bytes, str]] = {}
        self.requests: list[httpx.Request] = []

    def add(
        self,
        url: str,
        body: Union[str, bytes] = "",
        status: int = 200,
        content_type: str = "text/html",
        method: str = "GET",
    ) -> None:
        content = body.encode("utf-8") if isinstance(body, str) else body
        self.routes[(method, str(httpx.URL(url)))] = (status, content, content_type)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url)
        route = self.routes.get((request.method, url))
        if route is None and request.method == "HEAD":
            get_route = self.routes.get(("GET", url))
            if get_route is not None:
                return httpx.Response(get_route[0])
        if route is None:
            return httpx.Response(404, text="not found")
        status, content, content_type = route
        return httpx.Response(status, content=content, headers={"content-type": content_type})

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handler), follow_redirects=True)

    def requested(self, method: Optional[str] = None) -> list[str]:
        return [str(r.url) for r in self.requests if method is None or r.method == method]


@pytest.fixture
def web() -> FakeWeb:
    return FakeWeb()


@pytest.fixture
def storage():
    storage = Storage(":memory:")
    yield storage
    storage.close()


@pytest.fixture
def feed_repository(storage) -> FeedRepository:
    return FeedRepository(storage)


@pytest.fixture
def notified_repository(storage) -> NotifiedArticleRepository:
    return NotifiedArticleRepository(storage)


def make_feed(
    url: str = "https://example.com/",
    title: str = "Example Blog",
    source_kind: SourceKind = SourceKind.RSS_ATOM,
    feed_url: Optional[str] = None,
    feed_id: Optional[int] = None,
) -> Feed:
    return Feed(
        id=feed_id,
        url=url,
        feed_url=feed_url or url,
        title=title,
        feed_type=FeedType.RSS,
        source_kind=source_kind,
    )


@pytest.fixture
def feed_factory():
    return make_feed


@pytest.fixture
def rss_feed() -> str:
    return RSS_FEED


@pytest.fixture
def atom_feed() -> str:
    return ATOM_FEED


@pytest.fixture
def mastodon_feed() -> str:
    return MASTODON_FEED


@pytest.fixture
def html_page() -> str:
    return HTML_PAGE
