"""
Tests for the command language interpreter.

Output is captured through a rich Console writing to a StringIO.
"""

import io
import unittest
from datetime import date, datetime

from rich.console import Console

from mycalendar.calendars import CalendarSystem
from mycalendar.commands import CommandInterpreter
from mycalendar.errors import CalendarError, CommandSyntaxError
from mycalendar.view import CalendarView


class CommandTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.out = io.StringIO()
        self.system = CalendarSystem()
        view = CalendarView(Console(file=self.out, width=200, color_system=None))
        self.interp = CommandInterpreter(self.system, view)

    def run_lines(self, *lines: str) -> bool:
        return self.interp.run(lines)

    def output(self) -> str:
        return self.out.getvalue()

    def calendar(self):
        return self.system.require_current()


class TestCalendarCommands(CommandTestCase):
    def test_create_and_use(self) -> None:
        self.run_lines("create calendar --name Work --timezone Europe/Zurich", "use calendar --name Work")
        self.assertEqual(self.calendar().name, "Work")
        self.assertIn("Created calendar 'Work' (Europe/Zurich).", self.output())
        self.assertIn("Using calendar 'Work'.", self.output())

    def test_edit_calendar(self) -> None:
        self.run_lines(
            "create calendar --name Work --timezone UTC",
            "edit calendar --name Work --property timezone Asia/Tokyo",
            "edit calendar --name Work --property name Office",
        )
        self.assertEqual(self.system.calendar_names(), ["Office"])
        self.assertEqual(self.system.get_calendar("Office").timezone, "Asia/Tokyo")

    def test_event_command_without_calendar(self) -> None:
        with self.assertRaises(CalendarError):
            self.interp.execute("create event X from 2025-06-02T09:00 to 2025-06-02T10:00")


class TestEventCommands(CommandTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.run_lines("create calendar --name Work --timezone UTC", "use calendar --name Work")

    def test_create_single_event(self) -> None:
        self.run_lines("create event Team Review from 2025-06-02T09:00 to 2025-06-02T10:00")
        self.assertIn("Created event Team Review (2025-06-02T09:00 to 2025-06-02T10:00).", self.output())
        self.assertEqual(len(self.calendar().get_events_list(date(2025, 6, 2))), 1)

    def test_create_all_day_event(self) -> None:
        self.run_lines('create event "Offsite on site" on 2025-06-20')
        (ev,) = self.calendar().get_events_list(date(2025, 6, 20))
        self.assertEqual(ev.subject, "Offsite on site")
        self.assertEqual((ev.start, ev.end), (datetime(2025, 6, 20, 8), datetime(2025, 6, 20, 17)))

    def test_create_series(self) -> None:
        self.run_lines("create event Standup from 2025-06-02T09:00 to 2025-06-02T09:15 repeats MW for 4 times")
        self.assertIn("Created event series 'Standup' 09:00-09:15 on MW from 2025-06-02 4 times (4 events).", self.output())
        self.run_lines("create event Gym on 2025-06-03 repeats TR until 2025-06-10")
        self.assertEqual(len(self.calendar().all_events()), 7)

    def test_series_must_stay_within_a_day(self) -> None:
        self.run_lines("create event Shift from 2025-06-02T22:00 to 2025-06-03T06:00 repeats M for 2 times")
        self.assertIn("Error: Each event in a series can only last one day.", self.output())
        self.assertEqual(self.calendar().all_events(), [])

    def test_duplicate_reported_and_run_continues(self) -> None:
        reached_exit = self.run_lines(
            "create event A from 2025-06-02T09:00 to 2025-06-02T10:00",
            "create event A from 2025-06-02T09:00 to 2025-06-02T10:00",
            "create event B from 2025-06-02T11:00 to 2025-06-02T12:00",
            "exit",
            "create event C from 2025-06-02T13:00 to 2025-06-02T14:00",
        )
        self.assertTrue(reached_exit)
        self.assertIn("Error: Event already exists", self.output())
        self.assertEqual([ev.subject for ev in self.calendar().all_events()], ["A", "B"])

    def test_utc_offset_reported_and_run_continues(self) -> None:
        reached_exit = self.run_lines(
            "create event A from 2025-06-02T09:00 to 2025-06-02T10:00",
            "show status on 2025-06-02T09:30+02:00",
            "create event B from 2025-06-02T11:00+00:00 to 2025-06-02T12:00",
            "show status on 2025-06-02T09:30",
            "exit",
        )
        self.assertTrue(reached_exit)
        out = self.output()
        self.assertEqual(out.count("UTC offsets are not supported."), 2)
        self.assertIn("Busy: an event is scheduled at 2025-06-02T09:30.", out)
        self.assertEqual([ev.subject for ev in self.calendar().all_events()], ["A"])

    def test_syntax_errors(self) -> None:
        with self.assertRaises(CommandSyntaxError):
            self.interp.execute("launch rockets")
        with self.assertRaises(CommandSyntaxError):
            self.interp.execute("create event X from 2025-06-02 to 2025-06-02T10:00")
        with self.assertRaises(CommandSyntaxError):
            self.interp.execute("print events on")

    def test_edit_single_event(self) -> None:
        self.run_lines(
            "create event Review from 2025-06-02T09:00 to 2025-06-02T10:00",
            "edit event location Review from 2025-06-02T09:00 to 2025-06-02T10:00 with online:zoom",
        )
        (ev,) = self.calendar().all_events()
        self.assertEqual(ev.location_display(), "ONLINE: zoom")
        self.assertIn("Edited event 'Review' location to online:zoom.", self.output())

    def test_edit_events_from_occurrence(self) -> None:
        self.run_lines(
            "create event Standup from 2025-06-02T09:00 to 2025-06-02T10:00 repeats MW for 4 times",
            "edit events subject Standup from 2025-06-09T09:00 with Sync",
        )
        subjects = [ev.subject for ev in self.calendar().all_events()]
        self.assertEqual(subjects, ["Standup", "Standup", "Sync", "Sync"])

    def test_edit_series_from_any_occurrence(self) -> None:
        self.run_lines(
            "create event Standup from 2025-06-02T09:00 to 2025-06-02T10:00 repeats MW for 4 times",
            "edit series start Standup from 2025-06-09T09:00 with 11:00",
        )
        starts = [ev.start.hour for ev in self.calendar().all_events()]
        self.assertEqual(starts, [11, 11, 11, 11])

    def test_print_and_status(self) -> None:
        self.run_lines(
            "create event Review from 2025-06-02T09:00 to 2025-06-02T10:00",
            "print events on 2025-06-02",
            "print events on 2025-06-03",
            "show status on 2025-06-02T09:30",
            "show status on 2025-06-02T10:00",
        )
        out = self.output()
        self.assertIn("Events on 2025-06-02:\n- Review on 2025-06-02 from 09:00 to 10:00\n", out)
        self.assertIn("Events on 2025-06-03:\nNo events found.\n", out)
        self.assertIn("Busy: an event is scheduled at 2025-06-02T09:30.", out)
        self.assertIn("Available at 2025-06-02T10:00.", out)

    def test_print_range_and_conflicts(self) -> None:
        self.run_lines(
            "create event A from 2025-06-02T09:00 to 2025-06-02T10:00",
            "create event B from 2025-06-02T09:30 to 2025-06-02T11:00",
            "print events from 2025-06-02T00:00 to 2025-06-03T00:00",
            "print conflicts from 2025-06-02T00:00 to 2025-06-03T00:00",
        )
        out = self.output()
        self.assertIn("Events from 2025-06-02T00:00 to 2025-06-03T00:00:", out)
        self.assertIn("Conflicts found: 1", out)

    def test_copy_commands(self) -> None:
        self.run_lines(
            "create calendar --name Home --timezone UTC",
            "create event A from 2025-06-02T09:00 to 2025-06-02T10:00",
            "copy event A on 2025-06-02T09:00 --target Home to 2025-06-05T15:00",
            "copy events on 2025-06-02 --target Home to 2025-06-06",
            "copy events between 2025-06-01 and 2025-06-03 --target Home to 2025-07-01",
        )
        home = self.system.get_calendar("Home")
        self.assertEqual(
            [ev.start for ev in home.all_events()],
            [datetime(2025, 6, 5, 15), datetime(2025, 6, 6, 9), datetime(2025, 7, 2, 9)],
        )
        self.assertIn("Copied 1 events to 'Home'.", self.output())

    def test_comments_and_blank_lines_skipped(self) -> None:
        self.assertFalse(self.run_lines("", "# nothing here", "   "))
        self.assertEqual(self.output(), "")


if __name__ == "__main__":
    unittest.main()
