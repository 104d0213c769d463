"""Parsing of date filters given on the command line."""

import calendar
from datetime import date, datetime, timedelta

from .query import DateFilter, ListFilter, RangeFilter

DATE_FORMAT = "%Y-%m-%d"

NAMED_FILTERS = ("today", "yesterday", "this-week", "last-week", "this-month", "last-month")


class DateFilterError(ValueError):
    """A date filter could not be parsed."""
    pass


def week_range(day: date) -> RangeFilter:
    """Monday to Sunday of the week containing ``day``."""
    start = day - timedelta(days=day.weekday())
    return RangeFilter(start, start + timedelta(days=6))


def month_range(year: int, month: int) -> RangeFilter:
    """First to last day of a calendar month."""
    last_day = calendar.monthrange(year, month)[1]
    return RangeFilter(date(year, month, 1), date(year, month, last_day))


def previous_month(year: int, month: int) -> tuple[int, int]:
    if month == 1:
        return year - 1, 12
    return year, month - 1


def parse_date(value: str) -> date:
    try:
        return datetime.strptime(value.strip(), DATE_FORMAT).date()
    except ValueError as e:
        raise DateFilterError(f"Invalid date '{value}': expected YYYY-MM-DD") from e


def parse_date_filter(value: str, today: date | None = None) -> ListFilter:
    """Turn a filter expression into a list filter.

    Accepts 'today', 'yesterday', 'this-week', 'last-week', 'this-month',
    'last-month', a single date YYYY-MM-DD or a range
    YYYY-MM-DD..YYYY-MM-DD. Named filters are relative to ``today``, which
    defaults to the current local date.
    """
    today = today or date.today()
    text = value.strip().lower()

    if text == "today":
        return DateFilter(today)
    if text == "yesterday":
        return DateFilter(today - timedelta(days=1))
    if text == "this-week":
        return week_range(today)
    if text == "last-week":
        return week_range(today - timedelta(days=7))
    if text == "this-month":
        return month_range(today.year, today.month)
    if text == "last-month":
        return month_range(*previous_month(today.year, today.month))

    if ".." in text:
        parts = text.split("..")
        if len(parts) != 2:
            raise DateFilterError("Range must be in format: YYYY-MM-DD..YYYY-MM-DD")
        start, end = parse_date(parts[0]), parse_date(parts[1])
        if start > end:
            raise DateFilterError("Start date must be before or equal to end date")
        return RangeFilter(start, end)

    return DateFilter(parse_date(text))
