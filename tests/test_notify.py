"""Tests for feeder.services.notify module."""

import math

import pytest

from feeder.errors import ChannelError, DeliveryError, PayloadTooLargeError
from feeder.models import Notification
from feeder.services.notify import NotificationService


class FakeChannel:
    """Accepts messages up to ``limit`` characters and records every attempt."""

    def __init__(self, limit: int = 10_000, error: Exception = None):
        self.limit = limit
        self.error = error
        self.attempts: list[str] = []
        self.delivered: list[tuple[str, str]] = []

    def send_message(self, channel_name: str, content: str) -> dict:
        self.attempts.append(content)
        if self.error is not None:
            raise self.error
        if len(content) > self.limit:
            raise PayloadTooLargeError("Payload too large")
        self.delivered.append((channel_name, content))
        return {"id": len(self.delivered)}


def _notification(text: str = "", links=None) -> Notification:
    return Notification(
        feed_title="Blog",
        article_title="Post",
        text=text,
        links=links or ["https://example.com/1"],
    )


class TestSend:
    def test_small_message_sent_once(self) -> None:
        channel = FakeChannel()
        notification = _notification("short body")

        delivered = NotificationService(channel, "feeds").send(notification)

        assert delivered == notification
        assert channel.delivered == [("feeds", "Blog Post: short body https://example.com/1")]
        assert len(channel.attempts) == 1

    def test_large_message_is_halved_until_it_fits(self) -> None:
        channel = FakeChannel(limit=100)
        notification = _notification("x" * 1000)

        delivered = NotificationService(channel, "feeds").send(notification)

        sent = channel.delivered[0][1]
        assert len(sent) <= 100
        assert delivered.text == "x" * len(delivered.text)
        assert sent == delivered.format()
        # 1000 -> 500 -> 250 -> 125 -> 62
        assert len(channel.attempts) == 5
        assert len(delivered.text) == 62

    def test_attempts_are_logarithmic(self) -> None:
        channel = FakeChannel(limit=60)
        text = "y" * 100_000

        NotificationService(channel, "feeds").send(_notification(text))

        assert len(channel.attempts) <= math.ceil(math.log2(len(text))) + 2

    def test_multibyte_text_is_cut_on_characters(self) -> None:
        channel = FakeChannel(limit=60)
        delivered = NotificationService(channel, "feeds").send(_notification("日本語のテキスト" * 20))

        assert delivered.text == ("日本語のテキスト" * 20)[: len(delivered.text)]

    def test_title_and_links_alone_too_large(self) -> None:
        channel = FakeChannel(limit=5)
        with pytest.raises(DeliveryError, match="too large even without text"):
            NotificationService(channel, "feeds").send(_notification("some body text"))
        assert channel.delivered == []

    def test_no_text_too_large(self) -> None:
        channel = FakeChannel(limit=5)
        with pytest.raises(DeliveryError):
            NotificationService(channel, "feeds").send(_notification(""))
        assert len(channel.attempts) == 1

    def test_other_errors_are_not_retried(self) -> None:
        channel = FakeChannel(error=ChannelError("HTTP 500"))
        with pytest.raises(ChannelError):
            NotificationService(channel, "feeds").send(_notification("x" * 1000))
        assert len(channel.attempts) == 1


class TestSendAll:
    def test_collects_failures_and_continues(self) -> None:
        channel = FakeChannel(limit=40)
        notifications = [
            _notification("fits"),
            Notification(feed_title="Blog", article_title="T" * 100),
            _notification("ok"),
        ]

        errors = NotificationService(channel, "feeds").send_all(notifications)

        assert len(errors) == 1
        assert isinstance(errors[0], DeliveryError)
        assert [content for _, content in channel.delivered] == [
            "Blog Post: fits https://example.com/1",
            "Blog Post: ok https://example.com/1",
        ]
