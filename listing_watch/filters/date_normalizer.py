# listing_watch/filters/date_normalizer.py

"""Normalise the board's short Russian date labels.

Handles inputs such as ``"3 сен."``, ``"28 авг."``, ``"сегодня"``,
``"вчера"`` and location-prefixed variants like ``"Москва, 28 авг."``.
The year is not shown on the board: the current year is assumed and
rolled back by one when that would put the date more than a day in
the future (``"31 дек."`` seen on January 1st).
"""

import re
from dataclasses import dataclass
from datetime import datetime, timedelta

MONTHS: dict[str, int] = {
    "янв": 1,
    "фев": 2,
    "мар": 3,
    "апр": 4,
    "май": 5,
    "мая": 5,
    "июн": 6,
    "июл": 7,
    "авг": 8,
    "сен": 9,
    "окт": 10,
    "ноя": 11,
    "дек": 12,
}

_DAY_MONTH_RE = re.compile(r"(\d{1,2})\s*([а-яё]{3})\.?", re.IGNORECASE)


@dataclass(frozen=True)
class NormalizedDate:
    """A board date resolved to ``DD.MM.YYYY`` and epoch milliseconds."""

    date: str
    timestamp_ms: int
    raw: str


def _strip_location(text: str) -> str:
    """Drop a leading ``"City, "`` prefix and lowercase the rest."""
    lowered = text.strip().lower()
    parts = lowered.split(",")
    if len(parts) > 1:
        return ",".join(parts[1:]).strip()
    return lowered


def _build(day: datetime, raw: str) -> NormalizedDate:
    return NormalizedDate(
        date=day.strftime("%d.%m.%Y"),
        timestamp_ms=int(day.timestamp() * 1000),
        raw=raw,
    )


def normalize_date_text(
    text: str | None, now: datetime | None = None,
) -> NormalizedDate | None:
    """Resolve a board date label, or ``None`` when it is not recognised."""
    if not text or not text.strip():
        return None
    now = now or datetime.now()
    normalized = _strip_location(text)
    today = datetime(now.year, now.month, now.day)

    if normalized == "сегодня":
        return _build(today, text)
    if normalized == "вчера":
        return _build(today - timedelta(days=1), text)

    match = _DAY_MONTH_RE.search(normalized)
    if not match:
        return None
    month = MONTHS.get(match.group(2).lower())
    if month is None:
        return None
    day = int(match.group(1))

    try:
        candidate = datetime(now.year, month, day)
        if candidate - now > timedelta(days=1):
            candidate = datetime(now.year - 1, month, day)
    except ValueError:
        # e.g. "30 фев." or 29 Feb in a non-leap fallback year
        return None
    return _build(candidate, text)
