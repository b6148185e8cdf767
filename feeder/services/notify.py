"""
Delivery of notifications to the channel service.

The channel has a size limit it does not publish. When a message is refused
as too large, the body text is halved again and again (by characters, never
splitting a code point) until a send succeeds. If even the message without
any body text is refused, delivery fails.
"""

from __future__ import annotations

import logging

from feeder.channel import ChannelClient
from feeder.errors import DeliveryError, PayloadTooLargeError
from feeder.models import Notification

logger = logging.getLogger(__name__)


class NotificationService:
    def __init__(self, client: ChannelClient, channel: str):
        self.client = client
        self.channel = channel

    def _deliver(self, notification: Notification) -> None:
        self.client.send_message(self.channel, notification.format())

    def send(self, notification: Notification) -> Notification:
        """
        Deliver *notification*, shrinking its text if the channel requires it.

        Returns:
            The notification as delivered (possibly with truncated text).

        Raises:
            DeliveryError: If the channel fails for a reason other than size,
                or still refuses the message with no text at all.
        """
        try:
            self._deliver(notification)
            return notification
        except PayloadTooLargeError:
            logger.info(
                "'%s' too large at %d chars of text; truncating",
                notification.article_title,
                len(notification.text),
            )

        length = len(notification.text)
        while length > 0:
            length //= 2
            candidate = notification.truncated(length)
            try:
                self._deliver(candidate)
            except PayloadTooLargeError:
                logger.debug("Still too large at %d chars", length)
                continue
            logger.info("Sent '%s' with text cut to %d chars", notification.article_title, length)
            return candidate

        raise DeliveryError(
            f"Channel rejected '{notification.article_title}' as too large even without text"
        )

    def send_all(self, notifications: list[Notification]) -> list[DeliveryError]:
        """Send each notification in order; return the failures."""
        errors: list[DeliveryError] = []
        for notification in notifications:
            try:
                self.send(notification)
            except DeliveryError as exc:
                logger.error("Delivery failed for '%s': %s", notification.article_title, exc)
                errors.append(exc)
        return errors
