"""
Domain model shared by the sources, the services and the storage layer.

``Feed`` is the only persisted entity. ``Article`` and ``Notification`` are
rebuilt from live fetches on every run; the only trace an article leaves in
the database is its cache key.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class FeedType(str, Enum):
    RSS = "rss"
    ATOM = "atom"
    JSON = "json"

    @classmethod
    def parse(cls, value: str) -> "FeedType":
        try:
            return cls(value.lower())
        except ValueError:
            raise ValueError(f"Unknown feed type: {value}") from None


class SourceKind(str, Enum):
    RSS_ATOM = "rss_atom"
    YOUTUBE = "youtube"
    MASTODON = "mastodon"
    WORDPRESS = "wordpress"
    BLOGGER = "blogger"

    @classmethod
    def parse(cls, value: str) -> "SourceKind":
        value = value.lower()
        if value in ("rss", "atom"):
            return cls.RSS_ATOM
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"Unknown source kind: {value}") from None

    def __str__(self) -> str:
        return self.value


# ---------------------------------------------------------------------------
# Feed
# ---------------------------------------------------------------------------

class Feed(BaseModel):
    """A persisted subscription. ``id`` is ``None`` until stored."""

    model_config = ConfigDict(frozen=True)

    id: Optional[int] = None
    url: str                    # Site URL as given by the user; unique.
    feed_url: str               # Resolved machine-readable endpoint.
    title: str
    feed_type: FeedType
    source_kind: SourceKind
    created_at: Optional[str] = None

    def with_id(self, feed_id: int) -> "Feed":
        return self.model_copy(update={"id": feed_id})


class FeedMetadata(BaseModel):
    """Result of validating a URL; turned into a :class:`Feed` on add."""

    title: str
    feed_type: FeedType
    feed_url: str
    source_kind: SourceKind
    description: Optional[str] = None

    def to_feed(self, url: str) -> Feed:
        return Feed(
            url=url,
            feed_url=self.feed_url,
            title=self.title,
            feed_type=self.feed_type,
            source_kind=self.source_kind,
        )


# ---------------------------------------------------------------------------
# Article
# ---------------------------------------------------------------------------

def cache_key(feed_title: str, article_id: str) -> str:
    """
    Return the dedup identity of an article within a feed.

    The key embeds the feed title, so renaming a feed makes every one of its
    past articles look new again. Existing databases rely on this format.
    """
    return f"{feed_title}:{article_id}"


class Article(BaseModel):
    """A single entry fetched from a feed."""

    id: str
    title: str
    content: Optional[str] = None
    links: list[str] = Field(default_factory=list)
    published: Optional[datetime] = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        # JSON feeds may carry numeric ids.
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    def cache_key(self, feed_title: str) -> str:
        return cache_key(feed_title, self.id)


# ---------------------------------------------------------------------------
# Notification
# ---------------------------------------------------------------------------

class Notification(BaseModel):
    """The message sent for one unseen article."""

    feed_title: str
    article_title: str
    text: str = ""
    links: list[str] = Field(default_factory=list)

    @classmethod
    def from_article(cls, feed: Feed, article: Article) -> "Notification":
        return cls(
            feed_title=feed.title,
            article_title=article.title,
            text=article.content or "",
            links=list(article.links),
        )

    def format(self) -> str:
        """Render as ``"<feed> <title>: <text> <links>"``.

        The ``": <text>"`` part is omitted when there is no text and the
        trailing links part when there are no links.
        """
        message = f"{self.feed_title} {self.article_title}"
        if self.text:
            message += f": {self.text}"
        if self.links:
            message += " " + " ".join(self.links)
        return message

    def truncated(self, length: int) -> "Notification":
        """Copy with the text cut to its first ``length`` characters."""
        return self.model_copy(update={"text": self.text[:max(length, 0)]})
