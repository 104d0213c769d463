"""Validation and repair of tracker state read from disk.

Someone could edit the JSON file by hand, so every load checks that:

1. The active time box has at least one note.
2. The active time box's notes are sorted by time.
3. Every finished time box has at least one note.
4. Every finished time box's notes are sorted by time, and the finished
   time boxes themselves are sorted by start time.

Missing notes are fatal. Unsorted notes can be repaired with
``sort_tracker``.
"""

from typing import TYPE_CHECKING

from .models import (
    ActiveTimeBoxMissingNoteError,
    Note,
    NoteUnsortedError,
    TimeBoxMissingNoteError,
    TimeBoxUnsortedError,
)

if TYPE_CHECKING:
    from .tracker import TimeTracker


def _check_notes_sorted(notes: list[Note]) -> None:
    previous = None
    for note in notes:
        if previous is not None and previous > note.time:
            raise NoteUnsortedError(note)
        previous = note.time


def check_tracker(tracker: "TimeTracker") -> None:
    """Raise the first problem found in the tracker's state.

    Missing notes are checked for the whole tracker before ordering, so a
    recoverable NoteUnsortedError never hides a fatal error.
    """
    if tracker.active is not None and not tracker.active.notes:
        raise ActiveTimeBoxMissingNoteError()

    for index, time_box in enumerate(tracker.finished_time_boxes):
        if not time_box.notes:
            raise TimeBoxMissingNoteError(index)

    if tracker.active is not None:
        _check_notes_sorted(tracker.active.notes)

    previous_start = None
    for time_box in tracker.finished_time_boxes:
        _check_notes_sorted(time_box.notes)
        if previous_start is not None and previous_start > time_box.time_start:
            raise TimeBoxUnsortedError(time_box.notes[0])
        previous_start = time_box.time_start


def sort_tracker(tracker: "TimeTracker") -> None:
    """Sort all notes by time and the finished time boxes by start time."""
    if tracker.active is not None:
        tracker.active.sort_notes()

    for time_box in tracker.finished_time_boxes:
        time_box.sort_notes()

    tracker.finished_time_boxes.sort(key=lambda tb: tb.time_start)
