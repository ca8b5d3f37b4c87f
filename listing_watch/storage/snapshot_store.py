# listing_watch/storage/snapshot_store.py

"""Reads and overwrites the per-target snapshot files on disk."""

import json
import logging
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from urllib.parse import urljoin

from listing_watch.models.listing import Listing

logger = logging.getLogger("listing_watch.storage")


class StorageError(Exception):
    """Raised when a snapshot cannot be written."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot write snapshot {path}: {reason}")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SnapshotStore:
    """JSON-array persistence of one snapshot per file.

    ``load`` never fails: anything it cannot read becomes an empty
    snapshot. ``save`` overwrites the file in place (no rename), so a
    crash mid-write leaves a file that the next ``load`` discards.
    """

    def __init__(self, clock: Callable[[], datetime] = _utc_now) -> None:
        self._clock = clock

    def _read_raw(self, path: Path) -> list[Any]:
        try:
            with open(path, encoding="utf-8") as f:
                data: Any = json.load(f)
        except FileNotFoundError:
            logger.debug("No snapshot at %s yet", path)
            return []
        except (OSError, UnicodeDecodeError, ValueError) as exc:
            logger.warning(
                "Unreadable snapshot %s, starting empty: %s", path, exc
            )
            return []
        if not isinstance(data, list):
            logger.warning(
                "Snapshot %s is not a JSON array, starting empty", path
            )
            return []
        return data

    def load(
        self, path: Path, base_url: str | None = None,
    ) -> list[Listing]:
        """Read the snapshot at *path*.

        Elements without a ``path`` or that cannot be converted are
        skipped. Relative legacy paths are resolved against *base_url*
        when given; a missing ``createdAt`` defaults to the load time.
        """
        loaded_at = self._clock()
        listings: list[Listing] = []
        for entry in self._read_raw(path):
            if not isinstance(entry, dict):
                continue
            try:
                listing = Listing.from_dict(
                    entry, default_first_seen=loaded_at
                )
            except (TypeError, ValueError, OverflowError) as exc:
                logger.warning("Skipping bad entry in %s: %s", path, exc)
                continue
            if not listing.key:
                continue
            if base_url and not listing.key.startswith(
                ("http://", "https://")
            ):
                listing = replace(listing, key=urljoin(base_url, listing.key))
            listings.append(listing)
        logger.debug("Loaded %d listings from %s", len(listings), path)
        return listings

    def save(self, path: Path, listings: list[Listing]) -> Path:
        """Overwrite *path* with *listings*, creating parent directories."""
        data = [item.to_dict() for item in listings if item.key]
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
        except OSError as exc:
            raise StorageError(path, str(exc)) from exc

        logger.info("Saved %d listings to %s", len(data), path)
        return path
