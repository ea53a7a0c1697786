"""
Unit tests for CalendarStore: single events, the date index and queries.

Index contract:
- an event is listed under every date its span touches
- after any edit the index matches the event's current span
- a failed edit leaves both the event and the index unchanged
"""

import unittest
import uuid
from datetime import date, datetime, time, timezone
from unittest import mock

from mycalendar.errors import DuplicateEventError, InvalidEditError, InvalidRangeError, NotFoundError
from mycalendar.model import Location, Weekday
from mycalendar.properties import Property
from mycalendar.store import CalendarStore


def _dt(day: int, hour: int, minute: int = 0) -> datetime:
    return datetime(2025, 6, day, hour, minute)


class TestCreateAndIndex(unittest.TestCase):
    def setUp(self) -> None:
        self.store = CalendarStore()

    def test_create_and_list(self) -> None:
        ev = self.store.create_event("Review", _dt(2, 9), _dt(2, 10), location=Location.ONLINE)
        self.assertIs(self.store.get_event(ev.id), ev)
        self.assertEqual(self.store.get_events_list(date(2025, 6, 2)), [ev])
        self.assertEqual(self.store.get_events_list(date(2025, 6, 3)), [])

    def test_inverted_range_rejected(self) -> None:
        with self.assertRaises(InvalidRangeError):
            self.store.create_event("Bad", _dt(2, 10), _dt(2, 9))
        self.assertEqual(self.store.all_events(), [])

    def test_duplicate_rejected(self) -> None:
        self.store.create_event("Review", _dt(2, 9), _dt(2, 10))
        with self.assertRaises(DuplicateEventError):
            self.store.create_event("Review", _dt(2, 9), _dt(2, 10), description="again")
        # same subject and start but another end is a different event
        self.store.create_event("Review", _dt(2, 9), _dt(2, 11))
        self.assertEqual(len(self.store.all_events()), 2)

    def test_multi_day_event_in_every_bucket(self) -> None:
        ev = self.store.create_event("Conference", _dt(4, 10), _dt(6, 10))
        for day in (4, 5, 6):
            self.assertEqual(self.store.get_events_list(date(2025, 6, day)), [ev])

    def test_day_listing_sorted_by_start(self) -> None:
        late = self.store.create_event("Late", _dt(2, 15), _dt(2, 16))
        early = self.store.create_event("Early", _dt(2, 8), _dt(2, 9))
        self.assertEqual(self.store.get_events_list(date(2025, 6, 2)), [early, late])

    def test_lookup_by_subject_is_case_insensitive(self) -> None:
        ev = self.store.create_event("Review", _dt(2, 9), _dt(2, 10))
        self.assertEqual(self.store.get_events_by_subject_and_start_time("review", _dt(2, 9)), [ev])
        self.assertEqual(self.store.get_events_by_details("REVIEW", _dt(2, 9), _dt(2, 10)), [ev])
        self.assertEqual(self.store.get_events_by_details("Review", _dt(2, 9), _dt(2, 11)), [])


class TestQueries(unittest.TestCase):
    def setUp(self) -> None:
        self.store = CalendarStore()
        self.a = self.store.create_event("A", _dt(2, 9), _dt(2, 10))
        self.night = self.store.create_event("Night", _dt(4, 23), _dt(5, 1))
        self.c = self.store.create_event("C", _dt(6, 9), _dt(6, 10))
        self.deadline = self.store.create_event("Deadline", _dt(2, 17))

    def test_busy_boundaries(self) -> None:
        self.assertTrue(self.store.is_busy_at(_dt(2, 9)))
        self.assertTrue(self.store.is_busy_at(_dt(2, 9, 59)))
        self.assertFalse(self.store.is_busy_at(_dt(2, 10)))
        self.assertFalse(self.store.is_busy_at(_dt(2, 8, 59)))

    def test_busy_across_midnight(self) -> None:
        self.assertTrue(self.store.is_busy_at(_dt(5, 0, 30)))
        self.assertFalse(self.store.is_busy_at(_dt(5, 1)))

    def test_busy_at_point_event(self) -> None:
        self.assertTrue(self.store.is_busy_at(_dt(2, 17)))
        self.assertFalse(self.store.is_busy_at(_dt(2, 17, 1)))

    def test_range_lists_multi_day_event_once(self) -> None:
        found = self.store.get_events_list_in_date_range(_dt(4, 0), _dt(6, 0))
        self.assertEqual(found, [self.night])

    def test_range_excludes_touching_event(self) -> None:
        self.assertEqual(self.store.get_events_list_in_date_range(_dt(2, 10), _dt(2, 12)), [])

    def test_range_includes_point_event_at_boundary(self) -> None:
        self.assertEqual(self.store.get_events_list_in_date_range(_dt(2, 16), _dt(2, 17)), [self.deadline])

    def test_range_ordered(self) -> None:
        found = self.store.get_events_list_in_date_range(_dt(1, 0), _dt(7, 0))
        self.assertEqual(found, [self.a, self.deadline, self.night, self.c])

    def test_range_start_after_end(self) -> None:
        with self.assertRaises(InvalidRangeError):
            self.store.get_events_list_in_date_range(_dt(3, 0), _dt(2, 0))


class TestEditEvent(unittest.TestCase):
    def setUp(self) -> None:
        self.store = CalendarStore()

    def test_edit_subject(self) -> None:
        ev = self.store.create_event("Review", _dt(2, 9), _dt(2, 10))
        self.store.edit_event(ev.id, "subject", "Retro")
        found = self.store.get_event(ev.id)
        self.assertEqual(found.key(), ("Retro", _dt(2, 9), _dt(2, 10)))
        self.assertIsNone(found.location)
        self.assertEqual(self.store.get_events_by_subject_and_start_time("Retro", _dt(2, 9)), [ev])

    def test_edit_location_and_status(self) -> None:
        ev = self.store.create_event("Review", _dt(2, 9), _dt(2, 10))
        self.store.edit_event(ev.id, Property.LOCATION, "online:zoom")
        self.store.edit_event(ev.id, Property.STATUS, "private")
        self.assertEqual(ev.location_display(), "ONLINE: zoom")
        self.assertEqual(ev.status.value, "private")

    def test_unknown_id(self) -> None:
        with self.assertRaises(NotFoundError):
            self.store.edit_event(uuid.uuid4(), "subject", "x")

    def test_invalid_value_leaves_event_unchanged(self) -> None:
        ev = self.store.create_event("Review", _dt(2, 9), _dt(2, 10))
        with self.assertRaises(InvalidEditError):
            self.store.edit_event(ev.id, "start", "2025-06-02T11:00")
        self.assertEqual(ev.start, _dt(2, 9))
        self.assertEqual(self.store.get_events_list(date(2025, 6, 2)), [ev])

    def test_edit_into_duplicate_rolls_back(self) -> None:
        self.store.create_event("A", _dt(2, 9), _dt(2, 10))
        b = self.store.create_event("B", _dt(2, 9), _dt(2, 10))
        with self.assertRaises(DuplicateEventError):
            self.store.edit_event(b.id, "subject", "A")
        self.assertEqual(b.subject, "B")
        self.assertIn(b, self.store.get_events_list(date(2025, 6, 2)))

    def test_offset_date_time_rejected_and_index_kept(self) -> None:
        ev = self.store.create_event("A", _dt(2, 9), _dt(2, 10))
        with self.assertRaises(InvalidEditError):
            self.store.edit_event(ev.id, "start", "2025-06-02T09:30+02:00")
        self.assertEqual(ev.start, _dt(2, 9))
        self.assertEqual(self.store.get_events_list(date(2025, 6, 2)), [ev])
        self.assertTrue(self.store.is_busy_at(_dt(2, 9, 30)))

    def test_unexpected_failure_keeps_event_indexed(self) -> None:
        ev = self.store.create_event("Conference", _dt(4, 10), _dt(6, 10))
        # a value the parser never produces, compared against a naive start
        aware = datetime(2025, 6, 5, 12, tzinfo=timezone.utc)
        with mock.patch.object(Property, "parse", return_value=aware):
            with self.assertRaises(TypeError):
                self.store.edit_event(ev.id, Property.END, "ignored")
        self.assertEqual(ev.end, _dt(6, 10))
        for day in (4, 5, 6):
            self.assertEqual(self.store.get_events_list(date(2025, 6, day)), [ev])

    def test_shrinking_event_leaves_no_stale_bucket(self) -> None:
        ev = self.store.create_event("Conference", _dt(4, 10), _dt(6, 10))
        self.store.edit_event(ev.id, "end", "2025-06-04T12:00")
        self.assertEqual(self.store.get_events_list(date(2025, 6, 4)), [ev])
        self.assertEqual(self.store.get_events_list(date(2025, 6, 5)), [])
        self.assertEqual(self.store.get_events_list(date(2025, 6, 6)), [])

    def test_growing_event_is_reindexed(self) -> None:
        ev = self.store.create_event("Hack", _dt(2, 9), _dt(2, 10))
        self.store.edit_event(ev.id, "end", "2025-06-03T12:00")
        self.assertEqual(self.store.get_events_list(date(2025, 6, 3)), [ev])
        self.assertTrue(self.store.is_busy_at(_dt(3, 11)))

    def test_timing_edit_detaches_from_series(self) -> None:
        series = self.store.create_event_series(
            "Standup", time(9), time(10), {Weekday.MONDAY, Weekday.WEDNESDAY}, date(2025, 6, 2), repeats=3
        )
        (wed,) = self.store.get_events_by_subject_and_start_time("Standup", _dt(4, 9))
        self.store.edit_event(wed.id, "start", "2025-06-04T08:30")

        self.assertIsNone(wed.series_id)
        self.assertEqual(len(self.store.get_series_events(series.id)), 2)
        self.assertIn(date(2025, 6, 4), series.excluded_dates)

    def test_non_timing_edit_keeps_series(self) -> None:
        series = self.store.create_event_series(
            "Standup", time(9), time(10), {Weekday.MONDAY}, date(2025, 6, 2), repeats=2
        )
        first = self.store.get_series_events(series.id)[0]
        self.store.edit_event(first.id, "description", "moved to room 4")
        self.assertEqual(first.series_id, series.id)


if __name__ == "__main__":
    unittest.main()
