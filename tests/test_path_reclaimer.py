"""Tests for PathReclaimer against real temporary directories.

Run with:  python -m pytest tests/  or  python -m unittest discover tests/
"""

import os
import tempfile
import unittest
import unittest.mock as mock

from disk_reclaim.console import Console
from disk_reclaim.reclaim import paths
from disk_reclaim.reclaim.paths import PathReclaimer, describe_error, remove_entry


def _touch(path, content="x"):
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "w", encoding="utf-8") as fh:
        fh.write(content)


class _TempTree(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = self._tmp.name
        self.console = mock.Mock(spec=Console)

    def tearDown(self):
        self._tmp.cleanup()

    def make_files(self, count, subdir="cache"):
        files = []
        for i in range(count):
            path = os.path.join(self.root, subdir, f"file{i}.tmp")
            _touch(path)
            files.append(path)
        return files


# ── enumeration ───────────────────────────────────────────────────────────────

class TestReclaimEnumeration(_TempTree):

    def test_zero_matches_is_noop(self):
        pattern = os.path.join(self.root, "missing", "*")
        result = PathReclaimer(self.console).reclaim(pattern, "temp_files")
        self.assertEqual(result.items_affected, 0)
        self.assertEqual(result.items, [])
        self.assertTrue(result.succeeded)

    def test_deletes_files_and_directories(self):
        self.make_files(3)
        _touch(os.path.join(self.root, "cache", "nested", "deep", "a.bin"))
        pattern = os.path.join(self.root, "cache", "*")

        result = PathReclaimer(self.console).reclaim(pattern, "temp_files")

        self.assertEqual(result.items_affected, 4)
        self.assertEqual(result.removed, 4)
        self.assertEqual(os.listdir(os.path.join(self.root, "cache")), [])

    def test_hidden_entries_are_matched(self):
        _touch(os.path.join(self.root, "cache", ".hidden"))
        result = PathReclaimer(self.console).reclaim(os.path.join(self.root, "cache", "*"), "temp_files")
        self.assertEqual(result.items_affected, 1)
        self.assertFalse(os.path.exists(os.path.join(self.root, "cache", ".hidden")))

    def test_wildcard_segment_spans_profiles(self):
        for user in ("alice", "bob"):
            _touch(os.path.join(self.root, "Users", user, "Temp", "junk.tmp"))
        pattern = os.path.join(self.root, "Users", "*", "Temp", "*")

        result = PathReclaimer(self.console).reclaim(pattern, "temp_files")

        self.assertEqual(result.removed, 2)
        self.assertTrue(os.path.isdir(os.path.join(self.root, "Users", "alice", "Temp")))

    def test_reclaim_all_merges_patterns(self):
        self.make_files(2, "a")
        self.make_files(3, "b")
        result = PathReclaimer(self.console).reclaim_all(
            [os.path.join(self.root, "a", "*"), os.path.join(self.root, "b", "*")],
            "browser_cache",
        )
        self.assertEqual(result.stage, "browser_cache")
        self.assertEqual(result.items_affected, 5)
        self.assertEqual(result.removed, 5)


# ── failures ──────────────────────────────────────────────────────────────────

class TestLockedFiles(_TempTree):

    def test_one_locked_file_among_many(self):
        files = self.make_files(5)
        locked = files[2]
        real_remove = paths.remove_file

        def fake_remove(path):
            if path == locked:
                raise PermissionError(13, "The process cannot access the file", path)
            real_remove(path)

        with mock.patch("disk_reclaim.reclaim.paths.remove_file", side_effect=fake_remove):
            result = PathReclaimer(self.console).reclaim(
                os.path.join(self.root, "cache", "*"), "temp_files"
            )

        self.assertEqual(result.items_affected, 5)
        self.assertEqual(result.removed, 4)
        self.assertTrue(result.succeeded)
        self.assertEqual([i.path for i in result.skipped], [locked])
        self.assertIn("in use", result.skipped[0].skipped_reason)
        self.assertTrue(os.path.exists(locked))
        self.console.detail.assert_called()

    def test_remove_entry_missing_path_is_success(self):
        self.assertIsNone(remove_entry(os.path.join(self.root, "gone.tmp")))

    def test_describe_error_path_too_long(self):
        exc = OSError(36, "File name too long")
        self.assertIn("path too long", describe_error(exc))


# ── dry run ───────────────────────────────────────────────────────────────────

class TestDryRun(_TempTree):

    def test_dry_run_leaves_files_and_counts_match(self):
        files = self.make_files(4)
        pattern = os.path.join(self.root, "cache", "*")

        dry = PathReclaimer(self.console, dry_run=True).reclaim(pattern, "temp_files")

        for path in files:
            self.assertTrue(os.path.exists(path))
        self.assertEqual(dry.removed, 0)
        self.assertTrue(all(not i.attempted for i in dry.items))

        real = PathReclaimer(self.console).reclaim(pattern, "temp_files")
        self.assertEqual(dry.items_affected, real.items_affected)


if __name__ == "__main__":
    unittest.main()
