"""Runtime settings read from the environment (and a ``.env`` file)."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import find_dotenv, load_dotenv

from feeder.config.sources import DEFAULT_TIMEOUT
from feeder.errors import ConfigError


@dataclass
class Settings:
    db_path: str = "feeder.db"
    notebrook_url: Optional[str] = None
    notebrook_token: Optional[str] = None
    notebrook_channel: str = "feeds"
    http_timeout: float = DEFAULT_TIMEOUT
    max_workers: int = 4
    log_level: str = "WARNING"


def _required(name: str) -> str:
    value = os.environ.get(name, "").strip()
    if not value:
        raise ConfigError(f"Missing environment variable: {name}")
    return value


def _number(name: str, default, cast):
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = cast(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {raw!r}")
    return value


def load_settings(require_channel: bool = True) -> Settings:
    """
    Build :class:`Settings` from the environment.

    Args:
        require_channel: Fail when the channel URL or token is missing.
                         Commands that never deliver pass ``False``.

    Raises:
        ConfigError: If a required variable is missing or malformed.
    """
    load_dotenv(find_dotenv(usecwd=True))

    if require_channel:
        notebrook_url = _required("NOTEBROOK_URL")
        notebrook_token = _required("NOTEBROOK_TOKEN")
    else:
        notebrook_url = os.environ.get("NOTEBROOK_URL") or None
        notebrook_token = os.environ.get("NOTEBROOK_TOKEN") or None

    log_level = (os.environ.get("FEEDER_LOG_LEVEL") or "WARNING").upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ConfigError(f"FEEDER_LOG_LEVEL is not a log level: {log_level!r}")

    return Settings(
        db_path=os.environ.get("FEEDER_DB_PATH") or "feeder.db",
        notebrook_url=notebrook_url,
        notebrook_token=notebrook_token,
        notebrook_channel=os.environ.get("NOTEBROOK_CHANNEL") or "feeds",
        http_timeout=_number("FEEDER_HTTP_TIMEOUT", DEFAULT_TIMEOUT, float),
        max_workers=_number("FEEDER_MAX_WORKERS", 4, int),
        log_level=log_level,
    )
