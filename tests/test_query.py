"""Tests for filtering, sorting and pagination of finished time boxes."""

import unittest
from datetime import date, datetime, timezone

from timeboxcli.models import Note, TimeBox
from timeboxcli.query import (
    ALL,
    DateFilter,
    ListOptions,
    RangeFilter,
    SortOrder,
    list_time_boxes,
)
from timeboxcli.tracker import TimeTracker


def local_noon(year, month, day, hour=12):
    """Instant of a local wall-clock time, as UTC."""
    return datetime(year, month, day, hour).astimezone().astimezone(timezone.utc)


def box(description, start):
    return TimeBox(notes=[Note(start, description)])


class TestListOptions(unittest.TestCase):

    def test_defaults(self):
        options = ListOptions()
        self.assertEqual(options.skip, 0)
        self.assertEqual(options.take, 25)
        self.assertIs(options.order, SortOrder.DESCENDING)
        self.assertIsNone(options.filter)

    def test_page(self):
        options = ListOptions.page(3, 10)
        self.assertEqual(options.skip, 30)
        self.assertEqual(options.take, 10)


class TestListTimeBoxes(unittest.TestCase):

    def setUp(self):
        self.jan5 = box("jan5", local_noon(2024, 1, 5))
        self.jan6 = box("jan6", local_noon(2024, 1, 6))
        self.feb1 = box("feb1", local_noon(2024, 2, 1))
        # stored out of order on purpose
        self.boxes = [self.feb1, self.jan5, self.jan6]

    def names(self, result):
        return [tb.notes[0].description for tb in result.items]

    def test_single_date_filter(self):
        options = ListOptions(take=ALL, filter=DateFilter(date(2024, 1, 5)))
        result = list_time_boxes(self.boxes, options)
        self.assertEqual(self.names(result), ["jan5"])
        self.assertEqual(result.total, 3)

    def test_range_filter(self):
        options = ListOptions(
            take=ALL,
            order=SortOrder.ASCENDING,
            filter=RangeFilter(date(2024, 1, 1), date(2024, 1, 31)),
        )
        result = list_time_boxes(self.boxes, options)
        self.assertEqual(self.names(result), ["jan5", "jan6"])

    def test_range_filter_is_inclusive(self):
        options = ListOptions(
            take=ALL,
            order=SortOrder.ASCENDING,
            filter=RangeFilter(date(2024, 1, 6), date(2024, 2, 1)),
        )
        result = list_time_boxes(self.boxes, options)
        self.assertEqual(self.names(result), ["jan6", "feb1"])

    def test_filter_uses_local_date_early_in_the_day(self):
        early = box("early", local_noon(2024, 1, 5, hour=0))
        result = list_time_boxes([early], ListOptions(filter=DateFilter(date(2024, 1, 5))))
        self.assertEqual(self.names(result), ["early"])

    def test_sort_orders(self):
        ascending = list_time_boxes(self.boxes, ListOptions(take=ALL, order=SortOrder.ASCENDING))
        descending = list_time_boxes(self.boxes, ListOptions(take=ALL, order=SortOrder.DESCENDING))
        self.assertEqual(self.names(ascending), ["jan5", "jan6", "feb1"])
        self.assertEqual(self.names(descending), ["feb1", "jan6", "jan5"])

    def test_descending_is_reverse_of_ascending_with_ties(self):
        same = local_noon(2024, 1, 5)
        boxes = [box("a", same), box("b", same), box("c", local_noon(2024, 1, 4)), box("d", same)]
        ascending = list_time_boxes(boxes, ListOptions(take=ALL, order=SortOrder.ASCENDING))
        descending = list_time_boxes(boxes, ListOptions(take=ALL, order=SortOrder.DESCENDING))
        self.assertEqual(self.names(ascending), ["c", "a", "b", "d"])
        self.assertEqual(self.names(descending), list(reversed(self.names(ascending))))

    def test_pagination_is_applied_after_sorting(self):
        boxes = [box(f"{day:02d}", local_noon(2024, 3, day)) for day in (7, 3, 9, 1, 5, 2, 8, 4, 6)]
        pages = []
        page = 0
        while True:
            result = list_time_boxes(boxes, ListOptions.page(page, 4, order=SortOrder.ASCENDING))
            if not result.items:
                break
            self.assertEqual(result.total, 9)
            pages.append(self.names(result))
            page += 1

        self.assertEqual([len(p) for p in pages], [4, 4, 1])
        flat = [name for p in pages for name in p]
        self.assertEqual(len(set(flat)), len(flat))
        self.assertEqual(flat, [f"{day:02d}" for day in range(1, 10)])

    def test_pagination_after_filter(self):
        options = ListOptions(skip=1, take=1, order=SortOrder.ASCENDING,
                              filter=RangeFilter(date(2024, 1, 1), date(2024, 1, 31)))
        result = list_time_boxes(self.boxes, options)
        self.assertEqual(self.names(result), ["jan6"])
        self.assertEqual(result.total, 3)

    def test_skip_past_end(self):
        result = list_time_boxes(self.boxes, ListOptions(skip=10))
        self.assertEqual(result.items, [])
        self.assertEqual(result.total, 3)

    def test_default_take_limits_to_25(self):
        boxes = [box(str(i), local_noon(2024, 1, 1 + i % 28)) for i in range(30)]
        result = list_time_boxes(boxes, ListOptions())
        self.assertEqual(len(result.items), 25)
        self.assertEqual(result.total, 30)

    def test_tracker_finished_uses_query(self):
        tracker = TimeTracker(finished=self.boxes)
        result = tracker.finished(ListOptions(take=2))
        self.assertEqual(self.names(result), ["feb1", "jan6"])
        self.assertEqual(result.total, 3)


if __name__ == "__main__":
    unittest.main()
