"""Text, CSV and JSON output for time boxes."""

import csv
import io
import json
from datetime import datetime

from .models import Note, TimeBox

TABLE_DATE_FORMAT = "%Y-%m-%d %H:%M"


def local_time(value: datetime, fmt: str = TABLE_DATE_FORMAT) -> str:
    return value.astimezone().strftime(fmt)


def local_rfc3339(value: datetime) -> str:
    """Local time with offset, second precision, e.g. 2024-01-05T13:00:00+01:00."""
    return value.astimezone().isoformat(timespec="seconds")


def generate_table(
    note_blocks: list[list[Note]],
    sum_label: str,
    date_label: str = "At",
    description_label: str = "Description",
    date_format: str = TABLE_DATE_FORMAT,
) -> str:
    """Draw notes as a two column table, one block of rows per time box.

    Multi-line descriptions continue on the following rows with an empty
    date cell. The footer holds ``sum_label`` under the date column.
    """
    date_width = max(
        len(date_label),
        len(datetime.now().strftime(date_format)),
        len(sum_label),
    )
    description_width = len(description_label)
    for block in note_blocks:
        for note in block:
            for line in note.description.splitlines():
                description_width = max(description_width, len(line))

    def border(left: str, middle: str, right: str) -> str:
        return f"{left}─{'─' * date_width}─{middle}─{'─' * description_width}─{right}"

    def row(date_cell: str, description_cell: str) -> str:
        return f"│ {date_cell:^{date_width}} │ {description_cell:<{description_width}} │"

    lines = [
        border("┌", "┬", "┐"),
        f"│ {date_label:^{date_width}} │ {description_label:^{description_width}} │",
        border("├", "┼", "┤"),
    ]

    for index, block in enumerate(note_blocks):
        if index > 0:
            lines.append(border("├", "┼", "┤"))
        for note in block:
            date_cell = local_time(note.time, date_format)
            # splitlines() yields nothing for an empty description
            for i, line in enumerate(note.description.splitlines() or [""]):
                lines.append(row(date_cell if i == 0 else "", line))

    lines.append(border("├", "┼", "┘"))
    lines.append(f"│ {sum_label:>{date_width}} │")
    lines.append(f"└─{'─' * date_width}─┘")

    return "\n".join(lines)


def generate_table_active(time_box: TimeBox, now: datetime | None = None) -> str:
    hours = time_box.duration_in_hours()
    hours_active = time_box.duration_active_in_hours(now)
    label = f"tasks {hours:.2f}h, {hours_active:.2f}h active"
    return generate_table([time_box.notes], label)


def generate_table_finished(time_boxes: list[TimeBox]) -> str:
    hours = sum(tb.duration_in_hours() for tb in time_boxes)
    return generate_table([tb.notes for tb in time_boxes], f"total {hours:.2f}h")


def generate_csv_export(time_boxes: list[TimeBox]) -> str:
    """Semicolon separated values, one row per time box."""
    output = io.StringIO()
    writer = csv.writer(output, delimiter=";", lineterminator="\n")
    writer.writerow(["time_start", "time_stop", "hours", "description"])

    for time_box in time_boxes:
        description = "\n".join(f"- {note.description}" for note in time_box.notes)
        writer.writerow([
            local_rfc3339(time_box.time_start),
            local_rfc3339(time_box.time_stop),
            f"{time_box.duration_in_hours():.2f}",
            description,
        ])

    return output.getvalue()


def time_box_export(time_box: TimeBox) -> dict:
    """JSON-ready time box including computed fields."""
    data = time_box.to_dict()
    data["time_start"] = local_rfc3339(time_box.time_start)
    data["time_stop"] = local_rfc3339(time_box.time_stop)
    data["hours"] = round(time_box.duration_in_hours(), 2)
    return data


def generate_json_export(time_boxes: list[TimeBox]) -> str:
    return json.dumps([time_box_export(tb) for tb in time_boxes], indent=2, ensure_ascii=False)


def generate_debug_export(time_boxes: list[TimeBox]) -> str:
    return "\n".join(repr(tb) for tb in time_boxes)
