"""
Client for the Notebrook channel service that receives notifications.

Messages are posted to a named channel; the channel is created on first use.
A 413 response is reported as :class:`PayloadTooLargeError` so callers can
shrink the message and try again. The service does not document its size
limit.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from feeder.config.sources import DEFAULT_TIMEOUT
from feeder.errors import ChannelError, PayloadTooLargeError

logger = logging.getLogger(__name__)


class ChannelClient:
    def __init__(
        self,
        url: str,
        token: str,
        client: Optional[httpx.Client] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.url = url.rstrip("/")
        headers = {"Authorization": token, "Content-Type": "application/json"}
        if client is None:
            client = httpx.Client(timeout=timeout, headers=headers)
        else:
            client.headers.update(headers)
        self.client = client
        self._channel_ids: dict[str, int] = {}

    def close(self) -> None:
        self.client.close()

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = self.client.request(method, f"{self.url}{path}", **kwargs)
        except httpx.HTTPError as exc:
            raise ChannelError(f"HTTP request failed: {exc}") from exc

        if response.status_code == 413:
            raise PayloadTooLargeError("Payload too large")
        if not response.is_success:
            raise ChannelError(
                f"{method} {path} returned HTTP {response.status_code}: {response.text[:200]}"
            )
        return response

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise ChannelError(
                f"{response.request.url.path} returned a non-JSON body: {response.text[:200]}"
            ) from exc

    @staticmethod
    def _channel_id(channel: Any) -> int:
        try:
            return int(channel["id"])
        except (KeyError, TypeError, ValueError) as exc:
            raise ChannelError(f"Malformed channel record: {channel!r}") from exc

    # ---------------------------------------------------------------------------
    # Channels
    # ---------------------------------------------------------------------------

    def list_channels(self) -> list[dict[str, Any]]:
        data = self._json(self._request("GET", "/channels"))
        channels = data.get("channels", []) if isinstance(data, dict) else None
        if not isinstance(channels, list):
            raise ChannelError(f"Unexpected channel listing: {str(data)[:200]}")
        return channels

    def find_channel_id(self, name: str) -> Optional[int]:
        for channel in self.list_channels():
            if isinstance(channel, dict) and channel.get("name") == name:
                return self._channel_id(channel)
        return None

    def create_channel(self, name: str) -> dict[str, Any]:
        logger.info("Creating channel '%s'", name)
        return self._json(self._request("POST", "/channels/", json={"name": name}))

    def resolve_channel_id(self, name: str) -> int:
        """Look up *name*, creating the channel if needed. Cached per client."""
        if name not in self._channel_ids:
            channel_id = self.find_channel_id(name)
            if channel_id is None:
                channel_id = self._channel_id(self.create_channel(name))
            self._channel_ids[name] = channel_id
        return self._channel_ids[name]

    # ---------------------------------------------------------------------------
    # Messages
    # ---------------------------------------------------------------------------

    def send_message(self, channel_name: str, content: str) -> dict[str, Any]:
        """
        Post *content* to *channel_name*.

        Raises:
            PayloadTooLargeError: If the service rejects the message size.
            ChannelError: For any other failure.
        """
        channel_id = self.resolve_channel_id(channel_name)
        response = self._request(
            "POST",
            f"/channels/{channel_id}/messages",
            json={"content": content},
        )
        try:
            return response.json()
        except ValueError:
            return {}
