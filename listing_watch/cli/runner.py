# listing_watch/cli/runner.py

"""Headless command handlers behind ``main.py``."""

import logging
from datetime import datetime
from zoneinfo import ZoneInfo

from rich.console import Console
from rich.table import Table

from listing_watch.config.settings import (
    AVAILABLE_TARGETS,
    Settings,
    build_targets,
)
from listing_watch.models.listing import Listing
from listing_watch.models.target import Target
from listing_watch.notifiers.telegram_notifier import TelegramNotifier
from listing_watch.scrapers.page_fetcher import FetchError, PageFetcher
from listing_watch.services.cycle_runner import CycleRunner
from listing_watch.storage.snapshot_store import SnapshotStore

logger = logging.getLogger("listing_watch.cli")

# Stderr console for status messages so stdout stays clean for tables
_err = Console(stderr=True)

READY_MESSAGE = "Готов к работе!"
READY_TIMEZONE = "Asia/Yekaterinburg"


def resolve_target_ids(target_csv: str | None) -> list[str] | None:
    """Map a comma-separated list of target IDs to a validated list.

    Returns ``None`` (all targets) when *target_csv* is ``None``.
    Raises ``SystemExit`` on unknown IDs.
    """
    if target_csv is None:
        return None
    available = {t["id"] for t in AVAILABLE_TARGETS}
    requested = [
        t.strip() for t in target_csv.split(",") if t.strip()
    ]
    unknown = [r for r in requested if r not in available]
    if unknown or not requested:
        _err.print(
            f"[red]Unknown target(s): {', '.join(unknown) or '(none)'}[/red]"
        )
        _err.print(f"[dim]Available: {', '.join(sorted(available))}[/dim]")
        raise SystemExit(1)
    return requested


def run_poller(
    settings: Settings,
    target_csv: str | None = None,
    once: bool = False,
) -> int:
    """Run one cycle (``once``) or poll until interrupted."""
    targets = build_targets(settings, resolve_target_ids(target_csv))
    fetcher = PageFetcher(settings)
    notifier = TelegramNotifier(settings)
    runner = CycleRunner(
        settings=settings,
        targets=targets,
        fetcher=fetcher,
        notifier=notifier,
        store=SnapshotStore(),
    )
    labels = ", ".join(t.name for t in targets)
    _err.print(
        f"[bold]Watching:[/bold] {labels}  "
        f"[dim]interval={settings.POLL_INTERVAL_MS}ms "
        f"history={settings.HISTORY_SIZE}[/dim]"
    )
    try:
        runner.run_forever(once=once)
    finally:
        fetcher.close()
        notifier.close()
    return 0


def run_ping(settings: Settings) -> int:
    """Send the ready message and print the local send time."""
    notifier = TelegramNotifier(settings)
    try:
        result = notifier.notify(READY_MESSAGE, parse_mode=None)
    finally:
        notifier.close()

    if not result.success:
        _err.print(f"[red]Ready message not sent: {result.error}[/red]")
        return 2

    sent_at = datetime.now(ZoneInfo(READY_TIMEZONE)).strftime("%H:%M")
    _err.print(
        f"[green]✓ Message sent at {sent_at} ({READY_TIMEZONE})[/green]"
    )
    return 0


def _print_preview(target: Target, listings: list[Listing]) -> None:
    """Render a Rich table of parsed listings to stdout."""
    table = Table(
        title=f"{target.name} ({len(listings)})",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("#", style="dim", width=4)
    table.add_column("Title", max_width=60)
    table.add_column("Price", justify="right", style="green")
    table.add_column("Date", justify="center")
    table.add_column("URL", overflow="fold", style="dim")

    for idx, item in enumerate(listings, 1):
        table.add_row(
            str(idx),
            (item.title or "")[:60],
            item.price or "—",
            item.date or item.date_text or "(no date found)",
            item.key,
        )

    Console().print(table)


def run_preview(settings: Settings, target_id: str) -> int:
    """Fetch and parse one target without touching its snapshot.

    Exits with code 1 unless exactly one known target id is given.
    """
    ids = resolve_target_ids(target_id) or []
    if len(ids) != 1:
        _err.print(
            f"[red]--preview takes exactly one target, got: {target_id}[/red]"
        )
        raise SystemExit(1)
    target = build_targets(settings, ids)[0]
    fetcher = PageFetcher(settings)
    try:
        _err.print(f"[bold]Fetching:[/bold] {target.url}")
        html = fetcher.fetch(target.url)
    except FetchError as exc:
        logger.error("Preview fetch failed: %s", exc)
        _err.print(f"[red]Fetch failed: {exc}[/red]")
        return 2
    finally:
        fetcher.close()

    listings = target.parser.parse(html)
    _print_preview(target, listings)
    return 0
