from __future__ import annotations

from concurrent.futures import CancelledError
from datetime import timezone
import threading
import unittest
from unittest import mock

from telegraph_core import log_builder
from telegraph_core.log_builder import (
    LogItem,
    LogListBuilder,
    LogStoreItem,
    TaggedLogEntry,
    build_log_list,
    format_hhmmss,
)


STORE = [
    LogStoreItem(timestamp=1000.0, entries=(TaggedLogEntry("x", "1.0"), TaggedLogEntry("status", "OK"))),
    LogStoreItem(timestamp=1020.0, entries=(TaggedLogEntry("x", "1.5"),)),
]


class BuildLogListTests(unittest.TestCase):
    def test_filters_by_tag_in_store_order(self) -> None:
        self.assertEqual(
            build_log_list(STORE, ["x"]),
            [LogItem(1000.0, "x", "1.0"), LogItem(1020.0, "x", "1.5")],
        )
        self.assertEqual(build_log_list(STORE, []), [])

    def test_format_hhmmss(self) -> None:
        self.assertEqual(format_hhmmss(0.0, tz=timezone.utc), "00:00:00.000")
        self.assertEqual(format_hhmmss(3_723_045.0, tz=timezone.utc), "01:02:03.045")


class LogListBuilderTests(unittest.TestCase):
    def setUp(self) -> None:
        self.results: list[list[LogItem]] = []
        self.published = threading.Event()
        self.builder = LogListBuilder(on_result=self._on_result)

    def _on_result(self, items: list[LogItem]) -> None:
        self.results.append(items)
        self.published.set()

    def tearDown(self) -> None:
        self.builder.shutdown()

    def test_request_publishes_result(self) -> None:
        items = self.builder.request(STORE, ["status"]).result(timeout=5.0)
        self.assertTrue(self.published.wait(5.0))
        self.assertEqual(items, [LogItem(1000.0, "status", "OK")])
        self.assertEqual(self.builder.latest, items)
        self.assertEqual(self.results, [items])

    def test_request_works_on_a_snapshot(self) -> None:
        store = list(STORE)
        release = threading.Event()
        real = build_log_list

        def slow(snapshot, tags):
            release.wait(5.0)
            return real(snapshot, tags)

        with mock.patch.object(log_builder, "build_log_list", side_effect=slow):
            future = self.builder.request(store, ["x"])
            store.append(LogStoreItem(timestamp=2000.0, entries=(TaggedLogEntry("x", "9"),)))
            release.set()
            items = future.result(timeout=5.0)
        self.assertEqual(len(items), 2)

    def test_last_request_wins(self) -> None:
        release = threading.Event()
        started = threading.Event()
        real = build_log_list

        def blocking(snapshot, tags):
            started.set()
            release.wait(5.0)
            return real(snapshot, tags)

        with mock.patch.object(log_builder, "build_log_list", side_effect=blocking):
            first = self.builder.request(STORE, ["x"])
            self.assertTrue(started.wait(5.0))
            second = self.builder.request(STORE, ["status"])
            release.set()
            items = second.result(timeout=5.0)
            self.assertTrue(self.published.wait(5.0))

        self.assertTrue(first.cancelled())
        with self.assertRaises(CancelledError):
            first.result(timeout=0)
        self.assertEqual(items, [LogItem(1000.0, "status", "OK")])
        self.assertEqual(self.builder.latest, items)
        self.assertEqual(self.results, [items])

    def test_cancel_drops_pending_request(self) -> None:
        release = threading.Event()

        def blocking(snapshot, tags):
            release.wait(5.0)
            return []

        with mock.patch.object(log_builder, "build_log_list", side_effect=blocking):
            future = self.builder.request(STORE, ["x"])
            self.builder.cancel()
            release.set()
        self.assertTrue(future.cancelled())
        self.assertEqual(self.builder.latest, [])

    def test_failure_is_reported(self) -> None:
        with mock.patch.object(log_builder, "build_log_list", side_effect=RuntimeError("boom")):
            with self.assertLogs("telegraph_core.log_builder", level="WARNING"):
                future = self.builder.request(STORE, ["x"])
                with self.assertRaises(RuntimeError):
                    future.result(timeout=5.0)
        self.assertIsInstance(self.builder.last_error, RuntimeError)
        self.assertEqual(self.results, [])


if __name__ == "__main__":
    unittest.main()
