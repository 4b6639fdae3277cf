"""Tests for AgedLogPruner retention and exclusion rules."""

import datetime
import os
import tempfile
import unittest
import unittest.mock as mock

from disk_reclaim.console import Console
from disk_reclaim.reclaim.logs import AgedLogPruner

NOW = datetime.datetime(2026, 10, 16, 12, 0, 0)


class TestAgedLogPruner(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.dir = self._tmp.name
        self.console = mock.Mock(spec=Console)

    def tearDown(self):
        self._tmp.cleanup()

    def _log(self, name, age):
        path = os.path.join(self.dir, name)
        with open(path, "w", encoding="utf-8") as fh:
            fh.write("log line\n")
        ts = (NOW - age).timestamp()
        os.utime(path, (ts, ts))
        return path

    def _prune(self, days, pattern="*.log", exclude=None, dry_run=False):
        pruner = AgedLogPruner(self.console, dry_run=dry_run)
        return pruner.prune(self.dir, pattern, days, exclude=exclude, stage="system_logs", now=NOW)

    def test_deletes_only_files_strictly_older_than_retention(self):
        for days in (1, 7, 30, 365):
            with self.subTest(days=days):
                retention = datetime.timedelta(days=days)
                old = self._log(f"old{days}.log", retention + datetime.timedelta(minutes=1))
                fresh = self._log(f"fresh{days}.log", retention - datetime.timedelta(minutes=1))

                result = self._prune(days)

                self.assertFalse(os.path.exists(old))
                self.assertTrue(os.path.exists(fresh))
                self.assertEqual(result.items_affected, 1)
                self.assertEqual(result.removed, 1)
                os.remove(fresh)

    def test_protected_file_survives_case_insensitively(self):
        active = self._log("CBS.log", datetime.timedelta(days=90))
        old = self._log("CbsPersist_20240101.log", datetime.timedelta(days=90))

        result = self._prune(30, exclude="cbs.LOG")

        self.assertTrue(os.path.exists(active))
        self.assertFalse(os.path.exists(old))
        self.assertEqual(result.items_affected, 1)

    def test_pattern_is_case_insensitive(self):
        self._log("Trace.ETL", datetime.timedelta(days=90))
        self._log("notes.txt", datetime.timedelta(days=90))

        result = self._prune(30, pattern="*.etl")

        self.assertEqual(result.items_affected, 1)
        self.assertTrue(os.path.exists(os.path.join(self.dir, "notes.txt")))

    def test_missing_directory_is_empty_result(self):
        pruner = AgedLogPruner(self.console)
        result = pruner.prune(os.path.join(self.dir, "nope"), "*.log", 30, now=NOW)
        self.assertEqual(result.items_affected, 0)
        self.assertTrue(result.succeeded)

    def test_unreadable_directory_is_skipped_not_raised(self):
        with mock.patch("disk_reclaim.reclaim.logs.os.scandir",
                        side_effect=PermissionError(13, "Access is denied")):
            result = self._prune(30)
        self.assertTrue(result.succeeded)
        self.assertEqual(result.items_affected, 0)
        self.assertEqual(len(result.skipped), 1)
        self.assertEqual(result.skipped[0].path, self.dir)
        self.assertIn("access denied", result.skipped[0].skipped_reason)

    def test_dry_run_keeps_files_with_same_count(self):
        old = self._log("old.log", datetime.timedelta(days=60))
        result = self._prune(30, dry_run=True)
        self.assertTrue(os.path.exists(old))
        self.assertEqual(result.items_affected, 1)
        self.assertEqual(result.items[0].skipped_reason, "dry-run")

    def test_locked_log_is_skipped_not_failed(self):
        self._log("locked.log", datetime.timedelta(days=60))
        with mock.patch("disk_reclaim.reclaim.logs.remove_file",
                        side_effect=PermissionError(13, "Access is denied")):
            result = self._prune(30)
        self.assertTrue(result.succeeded)
        self.assertEqual(result.removed, 0)
        self.assertEqual(len(result.skipped), 1)


if __name__ == "__main__":
    unittest.main()
