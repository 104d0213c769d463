"""Time tracking state machine.

A tracker is either idle or has exactly one active time box. Operations
that hand out time boxes return copies, the tracker keeps sole ownership
of its state.
"""

from dataclasses import replace
from datetime import datetime
from typing import Callable

from .models import (
    ActiveTimeBoxMissingNoteError,
    Note,
    TimeBox,
    TimeTrackerError,
    utc_now,
)
from .query import ALL, ListOptions, ListResult, SortOrder, list_time_boxes


class ActiveTimeBoxExistsAlreadyError(TimeTrackerError):
    """There is an active time box already."""

    def __init__(self):
        super().__init__("There is an active time box already")


class NoActiveTimeBoxError(TimeTrackerError):
    """There is no active time box."""

    def __init__(self):
        super().__init__("There is no active time box")


class NoTimeBoxError(TimeTrackerError):
    """There are no finished time boxes."""

    def __init__(self):
        super().__init__("There are no finished time boxes")


class TimeTracker:
    """Single-user time tracker holding one optional active time box and
    the list of finished ones."""

    def __init__(
        self,
        active: TimeBox | None = None,
        finished: list[TimeBox] | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.active = active
        self.finished_time_boxes = finished if finished is not None else []
        self.clock = clock

    def __repr__(self) -> str:
        return (
            f"TimeTracker(active={self.active!r}, "
            f"finished={len(self.finished_time_boxes)} time boxes)"
        )

    @property
    def is_active(self) -> bool:
        return self.active is not None

    def active_time_box(self) -> TimeBox | None:
        """Copy of the active time box, if there is one."""
        return self.active.copy() if self.active is not None else None

    def finished(self, options: ListOptions | None = None) -> ListResult:
        """Filtered, sorted and paginated view of the finished time boxes."""
        return list_time_boxes(self.finished_time_boxes, options or ListOptions())

    def begin(self, description: str) -> TimeBox:
        """Start a new active time box."""
        if self.active is not None:
            raise ActiveTimeBoxExistsAlreadyError()

        self.active = TimeBox(notes=[Note(time=self.clock(), description=description)])
        return self.active.copy()

    def push_note(self, description: str) -> TimeBox:
        """Append a note to the active time box."""
        if self.active is None:
            raise NoActiveTimeBoxError()

        self.active.notes.append(Note(time=self.clock(), description=description))
        return self.active.copy()

    def amend(self, description: str) -> TimeBox:
        """Replace the description of the active time box's last note."""
        if self.active is None:
            raise NoActiveTimeBoxError()
        if not self.active.notes:
            raise ActiveTimeBoxMissingNoteError()

        last = self.active.notes[-1]
        self.active.notes[-1] = replace(last, description=description.strip())
        return self.active.copy()

    def end(self) -> TimeBox:
        """Move the active time box to the finished time boxes."""
        if self.active is None:
            raise NoActiveTimeBoxError()

        time_box, self.active = self.active, None
        self.finished_time_boxes.append(time_box)
        return time_box.copy()

    def resume(self) -> TimeBox:
        """Make the last stored finished time box active again.

        Nothing is appended to it. Right after ``end`` this reopens the box
        that was just ended.
        """
        if self.active is not None:
            raise ActiveTimeBoxExistsAlreadyError()
        if not self.finished_time_boxes:
            raise NoTimeBoxError()

        self.active = self.finished_time_boxes.pop()
        return self.active.copy()

    def cancel(self) -> TimeBox:
        """Discard the active time box."""
        if self.active is None:
            raise NoActiveTimeBoxError()

        time_box, self.active = self.active, None
        return time_box

    def clear(self) -> int:
        """Remove all finished time boxes and return how many were removed.

        Does nothing and returns 0 while a time box is active.
        """
        if self.active is not None:
            return 0

        count = len(self.finished_time_boxes)
        self.finished_time_boxes.clear()
        return count

    def to_dict(self) -> dict:
        """Snapshot of the tracker, finished time boxes in ascending order."""
        finished = self.finished(ListOptions(take=ALL, order=SortOrder.ASCENDING)).items
        return {
            "active": self.active.to_dict() if self.active is not None else None,
            "finished": [tb.to_dict() for tb in finished],
        }

    @classmethod
    def from_dict(cls, data: dict, clock: Callable[[], datetime] = utc_now) -> "TimeTracker":
        """Build a tracker from a snapshot without validating it."""
        active = data.get("active")
        return cls(
            active=TimeBox.from_dict(active) if active is not None else None,
            finished=[TimeBox.from_dict(item) for item in data.get("finished") or []],
            clock=clock,
        )
