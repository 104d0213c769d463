"""Data models for the time tracker."""

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone


class TimeTrackerError(Exception):
    """Base exception for time tracking errors."""
    pass


class TimeBoxMissingNoteError(TimeTrackerError):
    """A time box has no notes, so it has no start or stop time."""

    def __init__(self, index: int | None = None):
        self.index = index
        if index is None:
            super().__init__("Time box has no notes")
        else:
            super().__init__(f"Time box at index {index} has no notes")


class ActiveTimeBoxMissingNoteError(TimeTrackerError):
    """The active time box has no notes."""

    def __init__(self):
        super().__init__("Active time box has no notes")


class NoteUnsortedError(TimeTrackerError):
    """A note is earlier than the note before it.

    Notes are a chronological journal, so they should always be sorted.
    """

    def __init__(self, note: "Note"):
        self.note = note
        super().__init__(
            f"Note at {format_instant(note.time)} ({note.description!r}) "
            "is earlier than the note before it"
        )


class TimeBoxUnsortedError(NoteUnsortedError):
    """A finished time box starts before the time box stored before it."""

    def __init__(self, note: "Note"):
        self.note = note
        TimeTrackerError.__init__(
            self,
            f"Time box starting at {format_instant(note.time)} ({note.description!r}) "
            "starts before the time box stored before it",
        )


# Nanosecond fractions from older files are cut down to microseconds
_FRACTION = re.compile(r"(\.\d{6})\d+")


def utc_now() -> datetime:
    """Current instant as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def format_instant(value: datetime) -> str:
    """Format an instant as ISO-8601 UTC with a trailing Z."""
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def parse_instant(value: str) -> datetime:
    """Parse an ISO-8601 instant into an aware UTC datetime.

    Naive values are taken to be UTC.
    """
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    text = _FRACTION.sub(r"\1", text)
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


@dataclass(frozen=True)
class Note:
    """A timestamped entry in a time box."""

    time: datetime
    description: str

    def to_dict(self) -> dict:
        return {"time": format_instant(self.time), "description": self.description}

    @classmethod
    def from_dict(cls, data: dict) -> "Note":
        description = data.get("description", "")
        if not isinstance(description, str):
            raise TypeError(f"Note description must be a string, got {type(description).__name__}")
        return cls(time=parse_instant(data["time"]), description=description)


@dataclass
class TimeBox:
    """A tracked span of work, kept as a linear list of notes.

    The start and stop of a time box are the times of its first and last
    note. All derived values raise TimeBoxMissingNoteError when the box has
    no notes, which can only happen with hand-edited files.
    """

    notes: list[Note] = field(default_factory=list)

    @property
    def time_start(self) -> datetime:
        if not self.notes:
            raise TimeBoxMissingNoteError()
        return self.notes[0].time

    @property
    def time_stop(self) -> datetime:
        if not self.notes:
            raise TimeBoxMissingNoteError()
        return self.notes[-1].time

    @property
    def duration(self) -> timedelta:
        return self.time_stop - self.time_start

    def duration_active(self, now: datetime | None = None) -> timedelta:
        """Time elapsed since the box started, up to ``now``."""
        return (now or utc_now()) - self.time_start

    def duration_in_minutes(self) -> float:
        return self.duration.total_seconds() / 60

    def duration_in_hours(self) -> float:
        return self.duration.total_seconds() / 3600

    def duration_active_in_minutes(self, now: datetime | None = None) -> float:
        return self.duration_active(now).total_seconds() / 60

    def duration_active_in_hours(self, now: datetime | None = None) -> float:
        return self.duration_active(now).total_seconds() / 3600

    def sort_notes(self) -> None:
        """Sort notes by time. Equal times keep their order."""
        self.notes.sort(key=lambda note: note.time)

    def copy(self) -> "TimeBox":
        # Notes are frozen, so a new list is enough
        return TimeBox(notes=list(self.notes))

    def to_dict(self) -> dict:
        return {"notes": [note.to_dict() for note in self.notes]}

    @classmethod
    def from_dict(cls, data: dict) -> "TimeBox":
        return cls(notes=[Note.from_dict(item) for item in data.get("notes", [])])
