# listing_watch/notifiers/message_formatter.py

"""Human-readable renderings of a new listing."""

import re

from listing_watch.models.listing import Listing
from listing_watch.models.target import Target

NO_PRICE_LABEL = "оплата не указана"

_URL_RE = re.compile(r"https?://\S+")
_WHITESPACE_RE = re.compile(r"\s+")


def clean_title(title: str | None) -> str:
    """Strip embedded URLs and collapse whitespace."""
    if not title:
        return ""
    without_urls = _URL_RE.sub("", title)
    return _WHITESPACE_RE.sub(" ", without_urls).strip()


def payment_text(listing: Listing) -> str:
    """The listing's price, or a placeholder when none is shown."""
    if listing.price and listing.price.strip():
        return listing.price
    return NO_PRICE_LABEL


def format_listing_message(target: Target, listing: Listing) -> str:
    """Telegram Markdown message announcing *listing*."""
    return (
        f"{target.emoji} *{target.new_label}*\n\n"
        f"*{target.item_label}:* {clean_title(listing.title)}\n\n"
        f"*Оплата:* {payment_text(listing)}\n\n"
        f"[Перейти к {target.link_label}]({listing.key})"
    )


def format_console_lines(target: Target, listing: Listing) -> list[str]:
    """Plain-text lines logged for a new listing."""
    return [
        target.new_label,
        f"{target.item_label}: {clean_title(listing.title)}",
        f"Ссылка: {listing.key}",
        f"Оплата: {payment_text(listing)}",
    ]
