"""Persistence for the time tracker.

The tracker only depends on the ``Storage`` interface. ``JsonFileStorage``
keeps the state in a JSON file, ``MemoryStorage`` keeps a serialized
snapshot in memory and never touches the filesystem.
"""

import json
import logging
import os
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Callable

from .models import NoteUnsortedError, utc_now
from .tracker import TimeTracker
from .validation import check_tracker, sort_tracker

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Base exception for storage errors."""

    def __init__(self, message: str, path: Path | None = None):
        self.path = path
        super().__init__(message)


class StoreExistsError(StorageError):
    """A time tracker file exists already."""
    pass


class StoreReadError(StorageError):
    """The time tracker file could not be read or parsed."""
    pass


class StoreWriteError(StorageError):
    """The time tracker file could not be written."""
    pass


def restore_tracker(data: dict, clock: Callable[[], datetime] = utc_now) -> TimeTracker:
    """Build a validated tracker from a snapshot.

    Unsorted notes are sorted in memory with a warning. Missing notes raise.
    """
    tracker = TimeTracker.from_dict(data, clock=clock)
    try:
        check_tracker(tracker)
    except NoteUnsortedError as e:
        logger.warning(f"{e} -- Sorting in memory now.")
        sort_tracker(tracker)
    return tracker


class Storage(ABC):
    """Loads and saves a time tracker."""

    @abstractmethod
    def load(self) -> TimeTracker:
        """Return the stored tracker, or a fresh one if nothing is stored."""

    @abstractmethod
    def save(self, tracker: TimeTracker) -> None:
        """Persist the tracker."""


class MemoryStorage(Storage):
    """Keeps the tracker as a JSON-compatible snapshot in memory."""

    def __init__(self, snapshot: dict | None = None, clock: Callable[[], datetime] = utc_now):
        self.snapshot = snapshot
        self.clock = clock
        self.saves = 0

    def load(self) -> TimeTracker:
        if self.snapshot is None:
            return TimeTracker(clock=self.clock)
        return restore_tracker(self.snapshot, clock=self.clock)

    def save(self, tracker: TimeTracker) -> None:
        self.snapshot = tracker.to_dict()
        self.saves += 1


class JsonFileStorage(Storage):
    """Keeps the tracker in a JSON file.

    Saving writes a swap file next to the target and renames it over the
    target, so a crash mid-write leaves the old content in place.
    """

    def __init__(self, path: Path, pretty: bool = True, clock: Callable[[], datetime] = utc_now):
        self.path = Path(path)
        self.pretty = pretty
        self.clock = clock

    def dumps(self, tracker: TimeTracker) -> str:
        if self.pretty:
            return json.dumps(tracker.to_dict(), indent=2, ensure_ascii=False)
        return json.dumps(tracker.to_dict(), separators=(",", ":"), ensure_ascii=False)

    def init(self) -> Path:
        """Create the directory, an empty tracker file and a .gitignore.

        Raises:
            StoreExistsError: If the tracker file exists already
        """
        directory = self.path.parent
        directory.mkdir(parents=True, exist_ok=True)
        logger.debug(f"Created directories for: {directory}")

        try:
            with open(self.path, "x", encoding="utf-8") as f:
                f.write(self.dumps(TimeTracker(clock=self.clock)))
        except FileExistsError as e:
            raise StoreExistsError(f'Time tracker already exists on path: "{self.path}"', self.path) from e
        except OSError as e:
            raise StoreWriteError(f"Failed creating tracker file {self.path}: {e}", self.path) from e
        logger.debug(f"Created a new tracker file: {self.path}")

        gitignore = directory / ".gitignore"
        if not gitignore.exists():
            try:
                gitignore.write_text("*", encoding="utf-8")
            except OSError as e:
                raise StoreWriteError(f"Failed creating .gitignore file at {gitignore}: {e}", gitignore) from e
            logger.debug(f"Created a new .gitignore file: {gitignore}")

        return self.path

    def load(self) -> TimeTracker:
        if not self.path.exists():
            logger.debug(f"No tracker file found at {self.path}, starting empty")
            return TimeTracker(clock=self.clock)

        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise StoreReadError(f"Failed to deserialize tracker file {self.path}: {e}", self.path) from e
        except OSError as e:
            raise StoreReadError(f"Failed to read tracker file {self.path}: {e}", self.path) from e

        if not isinstance(data, dict):
            raise StoreReadError(f"Tracker file {self.path} does not contain a JSON object", self.path)

        try:
            tracker = restore_tracker(data, clock=self.clock)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise StoreReadError(f"Malformed time box in tracker file {self.path}: {e}", self.path) from e

        logger.debug(
            f"Loaded tracker from {self.path}: "
            f"active={tracker.is_active}, finished={len(tracker.finished_time_boxes)}"
        )
        return tracker

    def swap_path(self) -> Path:
        micros = int(self.clock().timestamp() * 1_000_000)
        return self.path.parent / f".__{micros}_swap_timeboxes.json"

    def save(self, tracker: TimeTracker) -> None:
        content = self.dumps(tracker)
        self.path.parent.mkdir(parents=True, exist_ok=True)

        path_swap = self.swap_path()
        try:
            with open(path_swap, "w", encoding="utf-8") as f:
                f.write(content)
        except OSError as e:
            raise StoreWriteError(f"Failed writing swap file {path_swap}: {e}", path_swap) from e
        logger.debug(f"Serialized swap file to disk: {path_swap}")

        try:
            os.replace(path_swap, self.path)
        except OSError as e:
            raise StoreWriteError(
                f'Failed overwriting tracker file "{self.path}" with the new content of the swap file '
                f'"{path_swap}". Do not run the program again until you resolve this issue, otherwise '
                "changes will be lost. Replace the contents of the tracker file with the swap file manually.",
                self.path,
            ) from e
        logger.debug("Replaced tracker file with newer content from the swap file")
