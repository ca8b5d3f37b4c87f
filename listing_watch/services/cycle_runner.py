# listing_watch/services/cycle_runner.py

"""Drives targets through fetch, parse, detect, notify, merge and save."""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone

from listing_watch.config.settings import Settings
from listing_watch.filters.change_detector import ChangeDetector
from listing_watch.filters.history_merger import HistoryMerger
from listing_watch.models.listing import Listing
from listing_watch.models.target import Target
from listing_watch.notifiers.message_formatter import (
    format_console_lines,
    format_listing_message,
)
from listing_watch.notifiers.telegram_notifier import BaseNotifier
from listing_watch.scrapers.page_fetcher import PageFetcher
from listing_watch.storage.snapshot_store import SnapshotStore


@dataclass
class TargetResult:
    """Outcome of processing one target in a cycle."""

    target_id: str
    added_count: int = 0
    total: int = 0
    notified_count: int = 0
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CycleRunner:
    """Processes an immutable tuple of targets, one after another.

    A failure inside one target is logged and reported as a zero-progress
    :class:`TargetResult`; it never stops the other targets.
    """

    def __init__(
        self,
        settings: Settings,
        targets: tuple[Target, ...],
        fetcher: PageFetcher,
        notifier: BaseNotifier,
        store: SnapshotStore | None = None,
        clock: Callable[[], datetime] = _utc_now,
        logger: logging.Logger | None = None,
    ) -> None:
        self.settings = settings
        self.targets = targets
        self.fetcher = fetcher
        self.notifier = notifier
        self.store = store or SnapshotStore(clock=clock)
        self.clock = clock
        self.logger = logger or logging.getLogger("listing_watch.runner")

    # ── Per-target pipeline ──────────────────────────────

    def _announce(self, target: Target, added: list[Listing]) -> int:
        """Log and notify every added listing; return deliveries."""
        if not added:
            self.logger.info(
                "%s: новых %s нет", target.name, target.empty_label
            )
            return 0

        delivered = 0
        for listing in added:
            for line in format_console_lines(target, listing):
                self.logger.info(line)
            result = self.notifier.notify(
                format_listing_message(target, listing)
            )
            if result.success:
                delivered += 1
            else:
                self.logger.warning(
                    "[%s] Notification not delivered for %s: %s",
                    target.id,
                    listing.key,
                    result.error,
                )
        return delivered

    def process_target(self, target: Target) -> TargetResult:
        """Fetch, diff, notify and persist one target."""
        try:
            self.logger.info("Checking %s", target.url)
            previous = self.store.load(
                target.output_path, base_url=target.parser.base_url
            )
            html = self.fetcher.fetch(target.url)
            listings = target.parser.parse(html)
            self.logger.info(
                "[%s] Parsed %d listings", target.id, len(listings)
            )

            added = ChangeDetector.detect_added(listings, previous)
            delivered = self._announce(target, added)

            merged = HistoryMerger.merge(
                previous,
                listings,
                now=self.clock(),
                history_size=self.settings.HISTORY_SIZE,
            )
            self.store.save(target.output_path, merged)
        except Exception as exc:
            self.logger.error(
                "Error handling %s: %s", target.name, exc, exc_info=True
            )
            return TargetResult(target_id=target.id, error=str(exc))

        return TargetResult(
            target_id=target.id,
            added_count=len(added),
            total=len(listings),
            notified_count=delivered,
        )

    # ── Cycles ───────────────────────────────────────────

    def run_once(self) -> list[TargetResult]:
        """Process every target sequentially."""
        results = [self.process_target(t) for t in self.targets]
        failed = [r.target_id for r in results if not r.ok]
        self.logger.info(
            "Cycle finished: %d new listing(s), %d target(s) failed%s",
            sum(r.added_count for r in results),
            len(failed),
            f" ({', '.join(failed)})" if failed else "",
        )
        return results

    def run_forever(
        self,
        once: bool = False,
        max_cycles: int | None = None,
    ) -> int:
        """Run cycles back to back, sleeping between them.

        The interval is measured from the end of a cycle, so start times
        drift by the cycle's own duration. Returns the number of cycles
        run.
        """
        interval = self.settings.POLL_INTERVAL_MS / 1000
        cycles = 0
        while True:
            self.run_once()
            cycles += 1
            if once or (max_cycles is not None and cycles >= max_cycles):
                return cycles
            self.logger.info(
                "Sleeping for %.1f seconds before next cycle", interval
            )
            time.sleep(interval)
