# listing_watch/filters/history_merger.py

"""Fold a fresh fetch into the bounded per-target history."""

import logging
from datetime import datetime

from listing_watch.models.listing import Listing

logger = logging.getLogger("listing_watch.filters")


class HistoryMerger:
    """Merge snapshots while keeping keys unique and the size bounded.

    The result is ordered by merge history, not by time: previous
    entries keep their positions and newly observed listings follow in
    fetch order. ``first_seen_at`` is only ever set for keys that the
    previous snapshot did not contain.
    """

    @staticmethod
    def _dedupe_keep_last(listings: list[Listing]) -> list[Listing]:
        """Keep the last occurrence of each key, in surviving order."""
        last_index = {item.key: idx for idx, item in enumerate(listings)}
        return [
            item
            for idx, item in enumerate(listings)
            if last_index[item.key] == idx
        ]

    @staticmethod
    def merge(
        previous: list[Listing],
        new_listings: list[Listing],
        now: datetime,
        history_size: int,
    ) -> list[Listing]:
        """Return the snapshot that replaces *previous* after a fetch.

        1. Previous entries fetched again take the fresh fields but keep
           their ``first_seen_at``; the others are carried unchanged.
        2. Listings with unknown keys are appended, stamped with *now*.
        3. Duplicate keys resolve to their last occurrence.
        4. Only the last *history_size* entries are kept.
        """
        if history_size <= 0:
            return []

        fresh = [item for item in new_listings if item.key]
        previous_keys = {item.key for item in previous if item.key}

        # Last fetched copy wins when the page repeats a key
        refetched: dict[str, Listing] = {}
        newly_observed: list[Listing] = []
        for item in fresh:
            if item.key in previous_keys:
                refetched[item.key] = item
            else:
                newly_observed.append(item.with_first_seen(now))

        updated_previous: list[Listing] = []
        for old in previous:
            if not old.key:
                continue
            latest = refetched.get(old.key)
            if latest is None:
                updated_previous.append(old)
                continue
            first_seen = (
                old.first_seen_at if old.first_seen_at is not None else now
            )
            updated_previous.append(latest.with_first_seen(first_seen))

        working = updated_previous + newly_observed
        merged = HistoryMerger._dedupe_keep_last(working)

        if len(merged) > history_size:
            evicted = len(merged) - history_size
            merged = merged[-history_size:]
            logger.debug(
                "History cap %d reached, evicted %d oldest entries",
                history_size,
                evicted,
            )

        return merged
