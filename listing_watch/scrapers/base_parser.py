# listing_watch/scrapers/base_parser.py

"""Abstract base class for listing page parsers."""

import logging
import re
from abc import ABC, abstractmethod
from datetime import datetime
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from listing_watch.filters.date_normalizer import normalize_date_text
from listing_watch.models.listing import Listing

_WHITESPACE_RE = re.compile(r"\s+")


class BaseParser(ABC):
    """Turn a listing page into an ordered list of :class:`Listing`.

    Parsing is best effort: a block missing its title link or href is
    skipped, never raised on.
    """

    def __init__(self, source_name: str, base_url: str) -> None:
        self.source_name = source_name
        self.base_url = base_url
        self.logger = logging.getLogger(
            f"listing_watch.parser.{source_name}"
        )
        self.selectors: dict[str, str] = self._selectors()

    @staticmethod
    def clean_text(text: str | None) -> str | None:
        """Collapse runs of whitespace; empty strings become ``None``."""
        if text is None:
            return None
        cleaned = _WHITESPACE_RE.sub(" ", text).strip()
        return cleaned or None

    def absolute_url(self, href: str | None) -> str | None:
        """Resolve *href* against the site root."""
        if not href or not href.strip():
            return None
        href = href.strip()
        if href.startswith(("http://", "https://")):
            return href
        return urljoin(self.base_url, href)

    def _select_text(self, node: Tag, selector_name: str) -> str | None:
        """Cleaned text of the first match for a named selector."""
        selector = self.selectors.get(selector_name)
        if not selector:
            return None
        found = node.select_one(selector)
        if found is None:
            return None
        return self.clean_text(found.get_text(" "))

    def _parse_block(
        self, block: Tag, now: datetime | None = None,
    ) -> Listing | None:
        """Extract a listing from one block, or ``None`` if incomplete."""
        link = block.select_one(self.selectors["link"])
        if link is None:
            return None
        title = self.clean_text(link.get_text(" "))
        href = link.get("href")
        key = self.absolute_url(href if isinstance(href, str) else None)
        if not title or not key:
            return None

        date_text = self._select_text(block, "date")
        normalized = normalize_date_text(date_text, now=now)
        return Listing(
            key=key,
            title=title,
            price=self._select_text(block, "price"),
            date_text=date_text,
            date=normalized.date if normalized else None,
            date_ts=normalized.timestamp_ms if normalized else None,
        )

    def parse(
        self, html: str, now: datetime | None = None,
    ) -> list[Listing]:
        """Parse every listing block of *html*, in page order."""
        soup = BeautifulSoup(html, "lxml")
        listings: list[Listing] = []
        skipped = 0
        for block in soup.select(self.selectors["block"]):
            listing = self._parse_block(block, now=now)
            if listing is None:
                skipped += 1
                continue
            listings.append(listing)
        self.logger.debug(
            "[%s] Parsed %d listings (%d skipped)",
            self.source_name,
            len(listings),
            skipped,
        )
        return listings

    @abstractmethod
    def _selectors(self) -> dict[str, str]:
        """Return CSS selectors: ``block``, ``link``, ``price``, ``date``."""
        ...
