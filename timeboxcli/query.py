"""Filtering, sorting and pagination over finished time boxes."""

import sys
from dataclasses import dataclass, field
from datetime import date
from enum import Enum

from .models import TimeBox

# Use as ``take`` to request every item
ALL = sys.maxsize


class SortOrder(Enum):
    """Order of listed time boxes by start time."""

    ASCENDING = "ascending"
    DESCENDING = "descending"


@dataclass(frozen=True)
class DateFilter:
    """Matches time boxes that started on a single local calendar date."""

    day: date

    def matches(self, day: date) -> bool:
        return day == self.day


@dataclass(frozen=True)
class RangeFilter:
    """Matches time boxes that started within an inclusive date range."""

    start: date
    end: date

    def matches(self, day: date) -> bool:
        return self.start <= day <= self.end


ListFilter = DateFilter | RangeFilter


@dataclass
class ListOptions:
    """Controls a single query over finished time boxes."""

    skip: int = 0
    take: int = 25
    order: SortOrder = SortOrder.DESCENDING
    filter: ListFilter | None = None

    @classmethod
    def page(
        cls,
        page: int,
        page_size: int,
        order: SortOrder = SortOrder.DESCENDING,
        filter: ListFilter | None = None,
    ) -> "ListOptions":
        """Options for the zero-based ``page`` of ``page_size`` items."""
        return cls(skip=page * page_size, take=page_size, order=order, filter=filter)


@dataclass
class ListResult:
    """A page of time boxes plus the count of all finished time boxes."""

    total: int
    items: list[TimeBox] = field(default_factory=list)


def local_start_date(time_box: TimeBox) -> date:
    """Calendar date of a time box's start in the local time zone."""
    return time_box.time_start.astimezone().date()


def list_time_boxes(time_boxes: list[TimeBox], options: ListOptions) -> ListResult:
    """Filter, sort and paginate time boxes.

    ``total`` always counts every given time box, regardless of the filter
    or the page. Descending order is the exact reverse of ascending order.
    """
    selected = list(time_boxes)
    if options.filter is not None:
        selected = [tb for tb in selected if options.filter.matches(local_start_date(tb))]

    selected.sort(key=lambda tb: tb.time_start)
    if options.order is SortOrder.DESCENDING:
        selected.reverse()

    skip = max(options.skip, 0)
    take = max(options.take, 0)
    page = selected[skip:skip + take]

    return ListResult(total=len(time_boxes), items=[tb.copy() for tb in page])
