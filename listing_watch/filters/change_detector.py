# listing_watch/filters/change_detector.py

"""Detect listings that were not present in the previous snapshot."""

from listing_watch.models.listing import Listing


class ChangeDetector:
    """Compare a fresh fetch against the persisted history by key."""

    @staticmethod
    def known_keys(listings: list[Listing]) -> set[str]:
        """Return the set of non-empty keys in *listings*."""
        return {item.key for item in listings if item.key}

    @staticmethod
    def detect_added(
        new_listings: list[Listing],
        previous: list[Listing],
    ) -> list[Listing]:
        """Return the listings of *new_listings* whose key is unknown.

        Parser order is preserved and keyless listings are dropped.
        Duplicate keys within *new_listings* are left alone.
        """
        seen = ChangeDetector.known_keys(previous)
        return [
            item
            for item in new_listings
            if item.key and item.key not in seen
        ]
