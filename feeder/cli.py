"""Command-line interface: ``feeder add|remove|list|import|export|run``."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from feeder.channel import ChannelClient
from feeder.config.settings import Settings, load_settings
from feeder.errors import FeedAlreadyExistsError, FeederError, InvalidInputError
from feeder.fetchers.base import build_client
from feeder.fetchers.registry import SourceRegistry
from feeder.runner import run_feeds
from feeder.services.feeds import FeedService
from feeder.services.fetch import FetchService
from feeder.services.notify import NotificationService
from feeder.services.opml import OpmlService
from feeder.storage.sqlite import FeedRepository, NotifiedArticleRepository, Storage

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="feeder",
        description="Multi-source feed aggregator with Notebrook notifications",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    add = subparsers.add_parser(
        "add", help="Add a new feed URL (RSS, YouTube, Mastodon, WordPress, Blogger)"
    )
    add.add_argument("url", help="Feed or site URL to add")

    subparsers.add_parser("remove", help="Remove a feed (interactive selection)")
    subparsers.add_parser("list", help="List all feeds")

    import_ = subparsers.add_parser("import", help="Import feeds from an OPML file")
    import_.add_argument("path", help="Path to OPML file")

    export = subparsers.add_parser("export", help="Export feeds to OPML format")
    export.add_argument("-o", "--output", default=None, help="Output file (stdout if omitted)")

    run = subparsers.add_parser("run", help="Fetch all feeds and notify new articles")
    run.add_argument(
        "--dry-run",
        action="store_true",
        help="Don't send notifications, just show what would be sent",
    )
    run.add_argument(
        "--skip-notify",
        action="store_true",
        help="Skip notifications but still mark articles as seen",
    )
    return parser


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def cmd_add(args: argparse.Namespace, service: FeedService) -> None:
    print(f"Validating feed: {args.url}")
    try:
        feed = service.add(args.url)
    except FeedAlreadyExistsError:
        print(f"Feed already exists: {args.url}")
        return
    print("Feed added successfully!")
    print(f"  Title: {feed.title}")
    print(f"  Type: {feed.feed_type.value}")
    print(f"  Source: {feed.source_kind}")
    if feed.feed_url != feed.url:
        print(f"  Feed: {feed.feed_url}")


def cmd_remove(args: argparse.Namespace, service: FeedService) -> None:
    feeds = service.list()
    if not feeds:
        print("No feeds to remove.")
        return

    print("Select a feed to remove:\n")
    for index, feed in enumerate(feeds, start=1):
        print(f"  {index}. {feed.title} [{feed.source_kind}] ({feed.url})")
    print()

    choice = input("Enter number (or 'q' to cancel): ").strip()
    if choice.lower() == "q":
        print("Cancelled.")
        return

    try:
        index = int(choice)
    except ValueError:
        raise InvalidInputError("Invalid number") from None
    if not 1 <= index <= len(feeds):
        raise InvalidInputError("Number out of range")

    feed = feeds[index - 1]
    service.remove(feed.id)
    print(f"Removed: {feed.title}")


def cmd_list(args: argparse.Namespace, service: FeedService) -> None:
    feeds = service.list()
    if not feeds:
        print("No feeds configured.")
        return

    print("Configured feeds:\n")
    for feed in feeds:
        print(f"  {feed.title} [{feed.source_kind}]")
        print(f"    URL: {feed.url}")
        if feed.url != feed.feed_url:
            print(f"    Feed: {feed.feed_url}")
        print()


def cmd_import(args: argparse.Namespace, service: OpmlService) -> None:
    content = Path(args.path).read_text(encoding="utf-8")
    print(f"Importing feeds from {args.path}...\n")

    result = service.import_opml(content)

    if result.added:
        print(f"Added {len(result.added)} feeds:")
        for feed in result.added:
            print(f"  + {feed.title} [{feed.source_kind}]")
        print()
    if result.duplicates:
        print(f"Skipped {len(result.duplicates)} duplicates:")
        for url in result.duplicates:
            print(f"  - {url}")
        print()
    if result.invalid:
        print(f"Failed {len(result.invalid)} feeds:")
        for url, error in result.invalid:
            print(f"  ! {url}: {error}")
        print()

    print(
        f"Import complete: {len(result.added)} added, "
        f"{len(result.duplicates)} duplicates, {len(result.invalid)} failed"
    )


def cmd_export(args: argparse.Namespace, service: OpmlService) -> None:
    opml = service.export_opml()
    if args.output:
        Path(args.output).write_text(opml, encoding="utf-8")
        print(f"Exported feeds to {args.output}")
    else:
        print(opml)


def cmd_run(args: argparse.Namespace, fetch_service: FetchService, settings: Settings) -> None:
    if args.dry_run or args.skip_notify:
        run_feeds(fetch_service, None, dry_run=args.dry_run, skip_notify=args.skip_notify)
        return

    channel = ChannelClient(
        settings.notebrook_url,
        settings.notebrook_token,
        timeout=settings.http_timeout,
    )
    try:
        run_feeds(fetch_service, NotificationService(channel, settings.notebrook_channel))
    finally:
        channel.close()


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def _dispatch(args: argparse.Namespace, settings: Settings) -> None:
    storage = Storage(settings.db_path)
    client = build_client(settings.http_timeout)
    try:
        feed_repository = FeedRepository(storage)
        registry = SourceRegistry(client=client)

        if args.command == "add":
            cmd_add(args, FeedService(feed_repository, registry))
        elif args.command == "remove":
            cmd_remove(args, FeedService(feed_repository, registry))
        elif args.command == "list":
            cmd_list(args, FeedService(feed_repository, registry))
        elif args.command == "import":
            cmd_import(args, OpmlService(feed_repository, registry))
        elif args.command == "export":
            cmd_export(args, OpmlService(feed_repository, registry))
        elif args.command == "run":
            fetch_service = FetchService(
                feed_repository,
                NotifiedArticleRepository(storage),
                registry,
                max_workers=settings.max_workers,
            )
            cmd_run(args, fetch_service, settings)
    finally:
        client.close()
        storage.close()


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        delivers = args.command == "run" and not (args.dry_run or args.skip_notify)
        settings = load_settings(require_channel=delivers)
        logging.basicConfig(
            level=settings.log_level,
            format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        )
        _dispatch(args, settings)
    except FeederError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
