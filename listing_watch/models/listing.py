# listing_watch/models/listing.py

"""Listing data model shared by parsers, filters and storage."""

import math
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 string (``Z`` suffix allowed) into an aware datetime."""
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    try:
        parsed.astimezone(timezone.utc)
    except (OverflowError, ValueError):
        return None
    return parsed


def format_timestamp(value: datetime) -> str:
    """Render a datetime as ISO-8601 in UTC with millisecond precision."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    utc = value.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text if text else None


def _optional_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and math.isfinite(value):
        return int(value)
    return None


@dataclass(frozen=True)
class Listing:
    """A single parsed entry of a listing page.

    ``key`` is the canonical absolute URL of the entry; a listing with
    an empty key is never persisted or deduplicated.
    """

    key: str
    title: str | None = None
    price: str | None = None
    date_text: str | None = None
    date: str | None = None
    date_ts: int | None = None
    first_seen_at: datetime | None = None

    def with_first_seen(self, first_seen_at: datetime | None) -> "Listing":
        """Return a copy carrying *first_seen_at*."""
        return replace(self, first_seen_at=first_seen_at)

    def to_dict(self) -> dict[str, Any]:
        """Serialise to the persisted JSON shape."""
        return {
            "path": self.key,
            "title": self.title,
            "salary": self.price,
            "dateText": self.date_text,
            "date": self.date,
            "dateTs": self.date_ts,
            "createdAt": (
                format_timestamp(self.first_seen_at)
                if self.first_seen_at is not None
                else None
            ),
        }

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        default_first_seen: datetime | None = None,
    ) -> "Listing":
        """Build a listing from a persisted JSON element.

        A missing or unparseable ``createdAt`` becomes
        *default_first_seen*.
        """
        first_seen = parse_timestamp(data.get("createdAt"))
        return cls(
            key=str(data.get("path") or ""),
            title=_optional_str(data.get("title")),
            price=_optional_str(data.get("salary")),
            date_text=_optional_str(data.get("dateText")),
            date=_optional_str(data.get("date")),
            date_ts=_optional_int(data.get("dateTs")),
            first_seen_at=(
                first_seen if first_seen is not None else default_first_seen
            ),
        )
