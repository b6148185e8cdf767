"""
Central runner for feeder.

Fetches every configured feed, works out which articles are new, and
delivers one notification per new article. An article is marked as
notified right after its own delivery succeeds, so a failed delivery is
retried whole on the next run.

Usage::

    from feeder.runner import run_feeds

    summary = run_feeds(fetch_service, notifier)

Two modes change what happens to the new articles:

* ``dry_run``: print the exact notification text; send nothing, mark nothing.
* ``skip_notify``: mark everything as notified without sending. Takes
  precedence over ``dry_run``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from feeder.errors import DeliveryError
from feeder.models import Notification
from feeder.services.fetch import FetchResult, FetchService
from feeder.services.notify import NotificationService

logger = logging.getLogger(__name__)


@dataclass
class RunSummary:
    feeds: int = 0
    failed_feeds: int = 0
    new_articles: int = 0
    notified: int = 0
    failed_deliveries: int = 0


def run_feeds(
    fetch_service: FetchService,
    notifier: Optional[NotificationService],
    dry_run: bool = False,
    skip_notify: bool = False,
    echo: Callable[[str], None] = print,
) -> RunSummary:
    """
    Fetch all feeds and notify (or record) their new articles.

    Args:
        fetch_service: Source of per-feed unnotified articles.
        notifier:      Delivery service; only required for a normal run.
        dry_run:       Show what would be sent without sending or marking.
        skip_notify:   Mark new articles as notified without sending.
        echo:          Output function for the progress report.

    Returns:
        Counters describing the run.
    """
    if skip_notify:
        dry_run = False
        echo("Running in skip-notify mode: articles will be marked as seen without notifying.")
    elif notifier is None and not dry_run:
        raise ValueError("A NotificationService is required unless dry_run or skip_notify is set")

    echo("Fetching feeds...")
    results = fetch_service.fetch_all_unnotified()
    summary = RunSummary(feeds=len(results))

    if not results:
        echo("No feeds configured.")
        return summary

    for result in results:
        if result.is_error:
            summary.failed_feeds += 1
            echo(f"{result.feed.title}: ERROR {result.error}")
            continue
        if not result.has_new_articles:
            continue

        summary.new_articles += len(result.new_articles)
        echo(f"{result.feed.title} ({len(result.new_articles)} new articles):")

        if dry_run:
            for notification in FetchService.create_notifications(result.feed, result.new_articles):
                echo(f"  [DRY RUN] {notification.format()}")
        elif skip_notify:
            fetch_service.mark_notified(result.feed, result.new_articles)
            summary.notified += len(result.new_articles)
            echo(f"  Marked {len(result.new_articles)} article(s) as seen")
        else:
            _deliver_feed(result, fetch_service, notifier, summary, echo)

    if summary.new_articles == 0:
        echo("No new articles to notify.")
    elif dry_run:
        echo(f"Dry run complete. Would notify {summary.new_articles} articles.")
    elif skip_notify:
        echo(f"Marked {summary.notified} articles as seen.")
    else:
        echo(f"Notified {summary.notified} articles.")

    logger.info("Run finished: %s", summary)
    return summary


def _deliver_feed(
    result: FetchResult,
    fetch_service: FetchService,
    notifier: NotificationService,
    summary: RunSummary,
    echo: Callable[[str], None],
) -> None:
    for article in result.new_articles:
        notification = Notification.from_article(result.feed, article)
        try:
            notifier.send(notification)
        except DeliveryError as exc:
            # Not marked: the article is retried on the next run.
            summary.failed_deliveries += 1
            echo(f"  Sending: {article.title}... FAILED: {exc}")
            continue

        fetch_service.mark_notified(result.feed, [article])
        summary.notified += 1
        echo(f"  Sending: {article.title}... OK")
