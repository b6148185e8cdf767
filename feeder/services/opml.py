"""OPML import and export of feed subscriptions."""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Iterable

from feeder.errors import FeederError, OpmlError
from feeder.fetchers.registry import SourceRegistry
from feeder.models import Feed
from feeder.storage.sqlite import FeedRepository

logger = logging.getLogger(__name__)

_MASTODON_HANDLE_RE = re.compile(r"^@([^@]+)@(.+)$")

EXPORT_TITLE = "Feeder Subscriptions"
XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'


@dataclass
class ImportResult:
    added: list[Feed] = field(default_factory=list)
    duplicates: list[str] = field(default_factory=list)
    invalid: list[tuple[str, str]] = field(default_factory=list)   # (url, error message)


def normalize_url(url: str) -> str:
    """Turn a Mastodon handle ``@user@instance`` into ``https://instance/@user``."""
    url = url.strip()
    match = _MASTODON_HANDLE_RE.match(url)
    if match:
        user, instance = match.groups()
        return f"https://{instance}/@{user}"
    return url


def extract_feed_urls(outlines: Iterable[ET.Element]) -> list[str]:
    """Collect ``xmlUrl`` values from *outlines* and their nested groups, in document order."""
    urls: list[str] = []
    for outline in outlines:
        xml_url = (outline.get("xmlUrl") or "").strip()
        if xml_url:
            urls.append(normalize_url(xml_url))
        urls.extend(extract_feed_urls(outline.findall("outline")))
    return urls


class OpmlService:
    def __init__(self, repository: FeedRepository, registry: SourceRegistry):
        self.repository = repository
        self.registry = registry

    def import_opml(self, content: str) -> ImportResult:
        """
        Subscribe to every feed listed in an OPML document.

        Each URL is validated on its own; failures are collected in the
        result and the import carries on.

        Raises:
            OpmlError: If the document cannot be parsed.
        """
        try:
            root = ET.fromstring(content)
        except ET.ParseError as exc:
            raise OpmlError(f"OPML parsing failed: {exc}") from exc

        body = root.find("body")
        if root.tag != "opml" or body is None:
            raise OpmlError("OPML parsing failed: missing <opml>/<body>")

        result = ImportResult()
        for url in extract_feed_urls(body.findall("outline")):
            if self.repository.exists(url):
                result.duplicates.append(url)
                continue

            try:
                metadata = self.registry.validate(url)
                feed = metadata.to_feed(url)
                feed = feed.with_id(self.repository.add(feed))
            except FeederError as exc:
                logger.warning("Import of '%s' failed: %s", url, exc)
                result.invalid.append((url, str(exc)))
                continue

            logger.info("Imported '%s' [%s]", feed.title, feed.source_kind)
            result.added.append(feed)

        return result

    def export_opml(self) -> str:
        root = ET.Element("opml", version="2.0")
        head = ET.SubElement(root, "head")
        ET.SubElement(head, "title").text = EXPORT_TITLE
        body = ET.SubElement(root, "body")

        for feed in self.repository.get_all():
            ET.SubElement(
                body,
                "outline",
                text=feed.title,
                title=feed.title,
                type="rss",
                xmlUrl=feed.feed_url,
                htmlUrl=feed.url,
            )

        ET.indent(root)
        return XML_DECLARATION + ET.tostring(root, encoding="unicode")
