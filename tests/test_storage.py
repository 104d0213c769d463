"""Tests for the JSON file and in-memory storage backends."""

import json
import shutil
import tempfile
import unittest
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import patch

from timeboxcli.models import ActiveTimeBoxMissingNoteError, TimeBoxMissingNoteError
from timeboxcli.storage import (
    JsonFileStorage,
    MemoryStorage,
    StoreExistsError,
    StoreReadError,
    StoreWriteError,
)
from timeboxcli.tracker import TimeTracker

T0 = datetime(2024, 1, 5, 9, 0, tzinfo=timezone.utc)


def note(time, description="x"):
    return {"time": time, "description": description}


class TestJsonFileStorage(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        self.path = Path(self.tmpdir) / "tracker" / "timeboxes.json"
        self.storage = JsonFileStorage(self.path)

    def tearDown(self):
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def write(self, data):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data), encoding="utf-8")

    def test_init_creates_empty_store_and_gitignore(self):
        self.storage.init()
        self.assertEqual(json.loads(self.path.read_text()), {"active": None, "finished": []})
        self.assertEqual((self.path.parent / ".gitignore").read_text(), "*")

    def test_init_refuses_to_overwrite(self):
        self.write({"active": None, "finished": [{"notes": [note("2024-01-05T09:00:00Z")]}]})
        with self.assertRaises(StoreExistsError):
            self.storage.init()
        self.assertEqual(len(json.loads(self.path.read_text())["finished"]), 1)

    def test_load_missing_file_returns_empty_tracker(self):
        tracker = self.storage.load()
        self.assertIsNone(tracker.active)
        self.assertEqual(tracker.finished().total, 0)
        self.assertFalse(self.path.exists())

    def test_save_and_load_round_trip(self):
        clock_times = iter([T0, T0 + timedelta(minutes=30), T0 + timedelta(hours=2)])
        tracker = TimeTracker(clock=lambda: next(clock_times))
        tracker.begin("first")
        tracker.push_note("second")
        tracker.end()
        tracker.begin("third")

        self.storage.save(tracker)
        loaded = self.storage.load()

        self.assertEqual(loaded.active, tracker.active)
        self.assertEqual(loaded.finished_time_boxes, tracker.finished_time_boxes)
        self.assertAlmostEqual(loaded.finished_time_boxes[0].duration_in_minutes(), 30.0)

    def test_save_leaves_no_swap_file(self):
        self.storage.save(TimeTracker())
        leftovers = [p.name for p in self.path.parent.iterdir() if p.name.startswith(".__")]
        self.assertEqual(leftovers, [])
        self.assertTrue(self.path.exists())

    def test_failed_rename_keeps_old_content(self):
        self.write({"active": None, "finished": []})
        tracker = TimeTracker(clock=lambda: T0)
        tracker.begin("new")

        with patch("timeboxcli.storage.os.replace", side_effect=OSError("disk on fire")):
            with self.assertRaises(StoreWriteError):
                self.storage.save(tracker)

        self.assertEqual(json.loads(self.path.read_text()), {"active": None, "finished": []})

    def test_compact_format(self):
        JsonFileStorage(self.path, pretty=False).save(TimeTracker())
        self.assertEqual(self.path.read_text(), '{"active":null,"finished":[]}')

    def test_pretty_format(self):
        self.storage.save(TimeTracker())
        self.assertIn("\n", self.path.read_text())

    def test_invalid_json_fails(self):
        self.path.parent.mkdir(parents=True)
        self.path.write_text("{not json", encoding="utf-8")
        with self.assertRaises(StoreReadError) as cm:
            self.storage.load()
        self.assertEqual(cm.exception.path, self.path)

    def test_malformed_time_fails(self):
        self.write({"active": None, "finished": [{"notes": [note("yesterday-ish")]}]})
        with self.assertRaises(StoreReadError):
            self.storage.load()

    def test_null_description_fails(self):
        self.write({"active": None, "finished": [{"notes": [note("2024-01-05T09:00:00Z", None)]}]})
        with self.assertRaises(StoreReadError) as ctx:
            self.storage.load()
        self.assertEqual(ctx.exception.path, self.path)

    def test_non_string_description_fails(self):
        self.write({"active": {"notes": [note("2024-01-05T09:00:00Z", 42)]}, "finished": []})
        with self.assertRaises(StoreReadError):
            self.storage.load()

    def test_finished_without_notes_fails(self):
        self.write({
            "active": None,
            "finished": [{"notes": [note("2024-01-05T09:00:00Z")]}, {"notes": []}],
        })
        with self.assertRaises(TimeBoxMissingNoteError) as cm:
            self.storage.load()
        self.assertEqual(cm.exception.index, 1)

    def test_active_without_notes_fails(self):
        self.write({"active": {"notes": []}, "finished": []})
        with self.assertRaises(ActiveTimeBoxMissingNoteError):
            self.storage.load()

    def test_unsorted_active_notes_are_sorted_with_warning(self):
        self.write({
            "active": {"notes": [note("2024-01-05T10:00:00Z", "later"), note("2024-01-05T09:00:00Z", "earlier")]},
            "finished": [],
        })

        with self.assertLogs("timeboxcli.storage", level="WARNING") as logs:
            tracker = self.storage.load()

        self.assertEqual([n.description for n in tracker.active.notes], ["earlier", "later"])
        self.assertIn("Sorting in memory", logs.output[0])

    def test_unsorted_finished_boxes_are_sorted(self):
        self.write({
            "active": None,
            "finished": [
                {"notes": [note("2024-01-06T09:00:00Z", "b")]},
                {"notes": [note("2024-01-05T09:00:00Z", "a")]},
            ],
        })
        with self.assertLogs("timeboxcli.storage", level="WARNING"):
            tracker = self.storage.load()
        self.assertEqual([tb.notes[0].description for tb in tracker.finished_time_boxes], ["a", "b"])

    def test_reads_nanosecond_timestamps(self):
        self.write({"active": {"notes": [note("2024-01-05T09:00:00.123456789Z")]}, "finished": []})
        tracker = self.storage.load()
        self.assertEqual(tracker.active.time_start.microsecond, 123456)


class TestMemoryStorage(unittest.TestCase):

    def test_empty_load(self):
        storage = MemoryStorage()
        tracker = storage.load()
        self.assertIsNone(tracker.active)

    def test_save_then_load(self):
        storage = MemoryStorage(clock=lambda: T0)
        tracker = storage.load()
        tracker.begin("work")
        storage.save(tracker)

        reloaded = storage.load()
        self.assertEqual(reloaded.active.notes[0].description, "work")
        self.assertEqual(storage.saves, 1)

    def test_load_validates_snapshot(self):
        storage = MemoryStorage({"active": None, "finished": [{"notes": []}]})
        with self.assertRaises(TimeBoxMissingNoteError):
            storage.load()


if __name__ == "__main__":
    unittest.main()
