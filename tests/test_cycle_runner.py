# tests/test_cycle_runner.py

"""Tests for CycleRunner per-target isolation and persistence."""

import json
import shutil
import tempfile
import unittest
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import MagicMock, patch

from listing_watch.config.settings import Settings
from listing_watch.models.listing import Listing
from listing_watch.models.target import Target
from listing_watch.notifiers.telegram_notifier import NotifyResult
from listing_watch.scrapers.page_fetcher import FetchError
from listing_watch.services.cycle_runner import CycleRunner
from listing_watch.storage.snapshot_store import SnapshotStore

T0 = datetime(2025, 9, 1, 8, 0, tzinfo=timezone.utc)


class _StubParser:
    """Parser returning canned listings keyed by page text."""

    base_url = "https://3ddd.ru"

    def __init__(self, pages: dict[str, list[Listing]]) -> None:
        self.pages = pages

    def parse(self, html: str) -> list[Listing]:
        return list(self.pages.get(html, []))


class _Clock:
    """Deterministic clock advancing one minute per call."""

    def __init__(self) -> None:
        self.current = T0

    def __call__(self) -> datetime:
        self.current += timedelta(minutes=1)
        return self.current


def _listing(n: int) -> Listing:
    return Listing(
        key=f"https://3ddd.ru/work/task_show/{n}",
        title=f"Task {n}",
        price=f"{n} 000 руб.",
    )


class TestCycleRunner(unittest.TestCase):
    """CycleRunner.process_target / run_once / run_forever."""

    def setUp(self) -> None:
        self.tmp_dir = Path(tempfile.mkdtemp())
        self.addCleanup(shutil.rmtree, self.tmp_dir, ignore_errors=True)
        self.settings = Settings(DATA_DIR=self.tmp_dir, HISTORY_SIZE=3)
        self.clock = _Clock()

        self.parser = _StubParser({
            "page-1": [_listing(1), _listing(2)],
            "page-2": [_listing(2), _listing(3), _listing(4)],
        })
        self.tasks = self._target("tasks", "https://3ddd.ru/work/tasks")
        self.vacancies = self._target(
            "vacancies", "https://3ddd.ru/work/vacancies"
        )

        self.fetcher = MagicMock()
        self.notifier = MagicMock()
        self.notifier.notify.return_value = NotifyResult(success=True)

    def _target(self, target_id: str, url: str) -> Target:
        return Target(
            id=target_id,
            name=target_id.title(),
            url=url,
            parser=self.parser,
            output_path=self.tmp_dir / f"{target_id}.json",
            new_label="New!",
            item_label="Item",
            link_label="item",
            empty_label="items",
            emoji="*",
        )

    def _runner(self, *targets: Target) -> CycleRunner:
        return CycleRunner(
            settings=self.settings,
            targets=targets,
            fetcher=self.fetcher,
            notifier=self.notifier,
            store=SnapshotStore(clock=self.clock),
            clock=self.clock,
        )

    def _keys_on_disk(self, target: Target) -> list[str]:
        data = json.loads(target.output_path.read_text(encoding="utf-8"))
        return [entry["path"] for entry in data]

    def test_first_run_notifies_everything(self) -> None:
        """With no history every listing is new and persisted."""
        self.fetcher.fetch.return_value = "page-1"
        result = self._runner(self.tasks).process_target(self.tasks)

        self.assertTrue(result.ok)
        self.assertEqual(result.added_count, 2)
        self.assertEqual(result.total, 2)
        self.assertEqual(result.notified_count, 2)
        self.assertEqual(self.notifier.notify.call_count, 2)
        self.assertEqual(
            self._keys_on_disk(self.tasks),
            [_listing(1).key, _listing(2).key],
        )
        self.fetcher.fetch.assert_called_once_with(self.tasks.url)

    def test_second_run_only_new_listings_and_cap(self) -> None:
        """Known keys are not re-notified; the history cap applies."""
        runner = self._runner(self.tasks)
        self.fetcher.fetch.return_value = "page-1"
        runner.process_target(self.tasks)
        first_seen = json.loads(
            self.tasks.output_path.read_text(encoding="utf-8")
        )[1]["createdAt"]
        self.notifier.notify.reset_mock()

        self.fetcher.fetch.return_value = "page-2"
        result = runner.process_target(self.tasks)

        self.assertEqual(result.added_count, 2)
        messages = [c[0][0] for c in self.notifier.notify.call_args_list]
        self.assertEqual(len(messages), 2)
        self.assertIn(_listing(3).key, messages[0])
        self.assertIn(_listing(4).key, messages[1])

        # [1, 2, 3, 4] capped to 3 drops the oldest
        self.assertEqual(
            self._keys_on_disk(self.tasks),
            [_listing(2).key, _listing(3).key, _listing(4).key],
        )
        data = json.loads(self.tasks.output_path.read_text(encoding="utf-8"))
        self.assertEqual(data[0]["createdAt"], first_seen)

    def test_unchanged_refetch_keeps_file_identical(self) -> None:
        """Re-fetching the same page rewrites the same content."""
        runner = self._runner(self.tasks)
        self.fetcher.fetch.return_value = "page-1"
        runner.process_target(self.tasks)
        before = self.tasks.output_path.read_bytes()

        result = runner.process_target(self.tasks)

        self.assertEqual(result.added_count, 0)
        self.assertEqual(self.tasks.output_path.read_bytes(), before)

    def test_fetch_failure_isolated(self) -> None:
        """A failed target keeps its file and others still run."""
        self.fetcher.fetch.return_value = "page-1"
        self._runner(self.tasks).process_target(self.tasks)
        before = self.tasks.output_path.read_bytes()

        def fetch(url: str) -> str:
            if url == self.tasks.url:
                raise FetchError(url, 3, "HTTP 503 Service Unavailable", 503)
            return "page-2"

        self.fetcher.fetch.side_effect = fetch
        results = self._runner(self.tasks, self.vacancies).run_once()

        self.assertEqual([r.target_id for r in results], ["tasks", "vacancies"])
        self.assertFalse(results[0].ok)
        self.assertEqual(results[0].added_count, 0)
        self.assertIn("503", results[0].error or "")
        self.assertTrue(results[1].ok)
        self.assertEqual(results[1].added_count, 3)
        self.assertEqual(self.tasks.output_path.read_bytes(), before)
        self.assertTrue(self.vacancies.output_path.exists())

    def test_parse_failure_isolated(self) -> None:
        """An exception from the parser is caught per target."""
        broken = MagicMock()
        broken.base_url = "https://3ddd.ru"
        broken.parse.side_effect = RuntimeError("unexpected markup")
        target = Target(
            id="broken",
            name="Broken",
            url="https://3ddd.ru/broken",
            parser=broken,
            output_path=self.tmp_dir / "broken.json",
            new_label="New!",
        )
        self.fetcher.fetch.return_value = "page-1"

        results = self._runner(target, self.tasks).run_once()

        self.assertIn("unexpected markup", results[0].error or "")
        self.assertFalse(target.output_path.exists())
        self.assertTrue(results[1].ok)

    def test_notification_failure_not_fatal(self) -> None:
        """Undelivered notifications are logged and the save happens."""
        self.notifier.notify.return_value = NotifyResult(
            success=False, error="credentials missing"
        )
        self.fetcher.fetch.return_value = "page-1"

        with self.assertLogs("listing_watch.runner", level="WARNING"):
            result = self._runner(self.tasks).process_target(self.tasks)

        self.assertTrue(result.ok)
        self.assertEqual(result.added_count, 2)
        self.assertEqual(result.notified_count, 0)
        self.assertTrue(self.tasks.output_path.exists())

    def test_save_failure_reported(self) -> None:
        """A write failure becomes a zero-progress result."""
        blocker = self.tmp_dir / "blocker"
        blocker.write_text("file, not a directory")
        target = Target(
            id="tasks",
            name="Tasks",
            url="https://3ddd.ru/work/tasks",
            parser=self.parser,
            output_path=blocker / "tasks.json",
            new_label="New!",
        )
        self.fetcher.fetch.return_value = "page-1"

        result = self._runner(target).process_target(target)

        self.assertFalse(result.ok)
        self.assertEqual(result.added_count, 0)
        self.assertEqual(result.total, 0)

    def test_corrupt_snapshot_treated_as_empty(self) -> None:
        """A damaged file is replaced after a successful cycle."""
        self.tasks.output_path.write_text("[{broken", encoding="utf-8")
        self.fetcher.fetch.return_value = "page-1"

        result = self._runner(self.tasks).process_target(self.tasks)

        self.assertEqual(result.added_count, 2)
        self.assertEqual(len(self._keys_on_disk(self.tasks)), 2)

    def test_run_forever_once(self) -> None:
        """once=True runs a single cycle without sleeping."""
        self.fetcher.fetch.return_value = "page-1"
        runner = self._runner(self.tasks)

        with patch("listing_watch.services.cycle_runner.time.sleep") as sleep:
            cycles = runner.run_forever(once=True)

        self.assertEqual(cycles, 1)
        sleep.assert_not_called()

    def test_run_forever_sleeps_between_cycles(self) -> None:
        """The poll interval is waited after each non-final cycle."""
        self.fetcher.fetch.return_value = "page-1"
        runner = self._runner(self.tasks)

        with patch("listing_watch.services.cycle_runner.time.sleep") as sleep:
            cycles = runner.run_forever(max_cycles=3)

        self.assertEqual(cycles, 3)
        self.assertEqual(sleep.call_count, 2)
        sleep.assert_called_with(self.settings.POLL_INTERVAL_MS / 1000)
        self.assertEqual(self.fetcher.fetch.call_count, 3)


if __name__ == "__main__":
    unittest.main()
