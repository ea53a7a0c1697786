"""
Command language interpreter.

Turns one text command into calls on the CalendarSystem and the calendar in
use, and reports the result through CalendarView. Examples:

    create calendar --name Work --timezone Europe/Zurich
    use calendar --name Work
    create event Standup from 2025-06-02T09:00 to 2025-06-02T09:15 repeats MTWRF for 10 times
    create event "Team Offsite" on 2025-06-20
    edit series location Standup from 2025-06-02T09:00 with online:zoom
    print events on 2025-06-02
    show status on 2025-06-02T09:05
    copy events between 2025-06-01 and 2025-06-07 --target Home to 2025-07-01
    exit

Keywords are case-insensitive. Subjects run until the next keyword; quote
them ("...") when they contain a keyword themselves.
"""

from __future__ import annotations

import logging
import shlex
from datetime import date, datetime, time
from typing import Iterable, Optional

from mycalendar.calendars import CalendarSystem, NamedCalendar
from mycalendar.conflicts import find_conflicts
from mycalendar.errors import CalendarError, CommandSyntaxError, InvalidRecurrenceError, NotFoundError
from mycalendar.model import Event, Weekday, format_datetime
from mycalendar.properties import CalendarProperty, Property
from mycalendar.view import CalendarView

logger = logging.getLogger(__name__)

# "create event X on <date>" spans the working day
ALL_DAY_START = time(8, 0)
ALL_DAY_END = time(17, 0)


class _Tokens:
    """
    Cursor over the words of one command line.
    """

    def __init__(self, line: str) -> None:
        try:
            self._items = shlex.split(line)
        except ValueError as exc:
            raise CommandSyntaxError(f"Cannot read command: {exc}") from exc
        self._pos = 0

    def has_more(self) -> bool:
        return self._pos < len(self._items)

    def peek(self) -> Optional[str]:
        return self._items[self._pos] if self.has_more() else None

    def next(self, what: str) -> str:
        if not self.has_more():
            raise CommandSyntaxError(f"Missing {what}.")
        tok = self._items[self._pos]
        self._pos += 1
        return tok

    def keyword(self, what: str) -> str:
        return self.next(what).lower()

    def expect(self, keyword: str) -> None:
        tok = self.next(f"'{keyword}'")
        if tok.lower() != keyword:
            raise CommandSyntaxError(f"Expected '{keyword}' but found '{tok}'.")

    def until(self, *keywords: str, what: str) -> str:
        words: list[str] = []
        while self.has_more() and self.peek().lower() not in keywords:
            words.append(self.next(what))
        if not words:
            raise CommandSyntaxError(f"Missing {what}.")
        return " ".join(words)

    def rest(self, what: str) -> str:
        words = self._items[self._pos:]
        self._pos = len(self._items)
        if not words:
            raise CommandSyntaxError(f"Missing {what}.")
        return " ".join(words)

    def done(self) -> None:
        if self.has_more():
            raise CommandSyntaxError(f"Unexpected input: {' '.join(self._items[self._pos:])}")


def _date(tokens: _Tokens) -> date:
    raw = tokens.next("date (YYYY-MM-DD)")
    try:
        return date.fromisoformat(raw)
    except ValueError as exc:
        raise CommandSyntaxError(f"Invalid date {raw!r}, expected YYYY-MM-DD.") from exc


def _datetime(tokens: _Tokens) -> datetime:
    raw = tokens.next("date-time (YYYY-MM-DDThh:mm)")
    if "T" not in raw:
        raise CommandSyntaxError(f"Invalid date-time {raw!r}, expected YYYY-MM-DDThh:mm.")
    try:
        value = datetime.fromisoformat(raw)
    except ValueError as exc:
        raise CommandSyntaxError(f"Invalid date-time {raw!r}, expected YYYY-MM-DDThh:mm.") from exc
    if value.tzinfo is not None:
        raise CommandSyntaxError(f"Invalid date-time {raw!r}, UTC offsets are not supported.")
    return value


def _single(events: list[Event]) -> Event:
    if not events:
        raise NotFoundError("No matching event found.")
    if len(events) > 1:
        raise CalendarError("Multiple events match, add the end time to pick one.")
    return events[0]


class CommandInterpreter:
    def __init__(self, system: CalendarSystem, view: Optional[CalendarView] = None) -> None:
        self.system = system
        self.view = view if view is not None else CalendarView()

    @property
    def calendar(self) -> NamedCalendar:
        return self.system.require_current()

    def execute(self, line: str) -> bool:
        """
        Run one command. Returns True for 'exit', False otherwise.

        Raises CalendarError (including CommandSyntaxError) on failure.
        """
        tokens = _Tokens(line)
        if not tokens.has_more():
            return False
        verb = tokens.keyword("command")
        logger.debug("command: %s", line.strip())

        if verb == "exit":
            tokens.done()
            return True
        if verb == "create":
            self._create(tokens)
        elif verb == "edit":
            self._edit(tokens)
        elif verb == "use":
            tokens.expect("calendar")
            tokens.expect("--name")
            name = tokens.next("calendar name")
            tokens.done()
            self.system.use_calendar(name)
            self.view.write(f"Using calendar '{name}'.")
        elif verb == "print":
            self._print(tokens)
        elif verb == "show":
            self._show(tokens)
        elif verb == "copy":
            self._copy(tokens)
        else:
            raise CommandSyntaxError(f"Unknown command '{verb}'.")
        return False

    def run(self, lines: Iterable[str]) -> bool:
        """
        Execute commands until 'exit'. Errors are reported and skipped.

        Returns True if an 'exit' command was reached.
        """
        for raw in lines:
            line = raw.strip()
            if not line or line.startswith("#"):
                continue
            try:
                if self.execute(line):
                    return True
            except CalendarError as exc:
                logger.debug("command failed: %s", line, exc_info=True)
                self.view.error(str(exc))
        return False

    # ------------------------------------------------------------------
    # create
    # ------------------------------------------------------------------

    def _create(self, tokens: _Tokens) -> None:
        what = tokens.keyword("'calendar' or 'event' after 'create'")
        if what == "calendar":
            tokens.expect("--name")
            name = tokens.next("calendar name")
            tokens.expect("--timezone")
            tz = tokens.next("timezone")
            tokens.done()
            cal = self.system.create_calendar(name, tz)
            self.view.write(f"Created calendar '{cal.name}' ({cal.timezone}).")
            return
        if what != "event":
            raise CommandSyntaxError(f"Invalid command 'create {what}'.")

        subject = tokens.until("on", "from", what="event subject")
        kw = tokens.keyword("'on' or 'from'")
        if kw == "on":
            day = _date(tokens)
            start = datetime.combine(day, ALL_DAY_START)
            end = datetime.combine(day, ALL_DAY_END)
        else:
            start = _datetime(tokens)
            tokens.expect("to")
            end = _datetime(tokens)

        if not tokens.has_more():
            ev = self.calendar.create_event(subject, start, end)
            self.view.write(f"Created event {ev}.")
            return

        tokens.expect("repeats")
        if start.date() != end.date():
            raise InvalidRecurrenceError("Each event in a series can only last one day.")
        days = Weekday.parse_symbols(tokens.next("weekdays to repeat (e.g. MWF)"))

        repeats = 0
        until: Optional[date] = None
        term = tokens.keyword("'for' or 'until'")
        if term == "for":
            raw = tokens.next("number of repetitions")
            try:
                repeats = int(raw)
            except ValueError as exc:
                raise CommandSyntaxError(f"Invalid repetition count {raw!r}.") from exc
            if repeats <= 0:
                raise InvalidRecurrenceError(f"Repetition count must be positive, got {repeats}.")
            tokens.expect("times")
        elif term == "until":
            until = _date(tokens)
        else:
            raise CommandSyntaxError("Expected 'for' or 'until' after 'repeats <weekdays>'.")
        tokens.done()

        series = self.calendar.create_event_series(
            subject, start.time(), end.time(), days, start.date(), series_end=until, repeats=repeats
        )
        count = len(self.calendar.get_series_events(series.id))
        self.view.write(f"Created event series {series.describe()} ({count} events).")

    # ------------------------------------------------------------------
    # edit
    # ------------------------------------------------------------------

    def _edit(self, tokens: _Tokens) -> None:
        scope = tokens.keyword("'calendar', 'event', 'events' or 'series' after 'edit'")
        if scope == "calendar":
            tokens.expect("--name")
            name = tokens.next("calendar name")
            tokens.expect("--property")
            prop = CalendarProperty.from_str(tokens.next("calendar property"))
            value = tokens.rest("new property value")
            cal = self.system.edit_calendar(name, prop, value)
            self.view.write(f"Edited calendar '{cal.name}' {prop.value} to {value}.")
            return
        if scope not in ("event", "events", "series"):
            raise CommandSyntaxError(f"Unknown edit scope '{scope}'.")

        prop = Property.from_str(tokens.next("event property"))
        subject = tokens.until("from", what="event subject")
        tokens.expect("from")
        start = _datetime(tokens)
        cal = self.calendar

        if scope == "event":
            tokens.expect("to")
            end = _datetime(tokens)
            tokens.expect("with")
            value = tokens.rest("new property value")
            ev = _single(cal.get_events_by_details(subject, start, end))
            cal.edit_event(ev.id, prop, value)
            self.view.write(f"Edited event '{subject}' {prop.value} to {value}.")
            return

        tokens.expect("with")
        value = tokens.rest("new property value")
        ev = _single(cal.get_events_by_subject_and_start_time(subject, start))
        if ev.series_id is None:
            cal.edit_event(ev.id, prop, value)
            self.view.write(f"Edited event '{subject}' {prop.value} to {value}.")
        elif scope == "series":
            cal.edit_series(ev.series_id, prop, value)
            self.view.write(f"Edited event series '{subject}' {prop.value} to {value}.")
        else:
            cal.edit_series_from_date(ev.series_id, prop, value, from_start=ev.start)
            self.view.write(
                f"Edited event series '{subject}' {prop.value} to {value} from {format_datetime(ev.start)}."
            )

    # ------------------------------------------------------------------
    # print / show
    # ------------------------------------------------------------------

    def _print(self, tokens: _Tokens) -> None:
        what = tokens.keyword("'events' or 'conflicts' after 'print'")
        if what == "conflicts":
            tokens.expect("from")
            start = _datetime(tokens)
            tokens.expect("to")
            end = _datetime(tokens)
            tokens.done()
            self.view.conflicts(find_conflicts(self.calendar.get_events_list_in_date_range(start, end)))
            return
        if what != "events":
            raise CommandSyntaxError("Expected 'events' or 'conflicts' after 'print'.")

        kw = tokens.keyword("'on' or 'from'")
        if kw == "on":
            day = _date(tokens)
            tokens.done()
            self.view.events_on(day, self.calendar.get_events_list(day))
        elif kw == "from":
            start = _datetime(tokens)
            tokens.expect("to")
            end = _datetime(tokens)
            tokens.done()
            self.view.events_between(start, end, self.calendar.get_events_list_in_date_range(start, end))
        else:
            raise CommandSyntaxError("Expected 'on' or 'from' after 'print events'.")

    def _show(self, tokens: _Tokens) -> None:
        tokens.expect("status")
        tokens.expect("on")
        instant = _datetime(tokens)
        tokens.done()
        self.view.status(instant, self.calendar.is_busy_at(instant))

    # ------------------------------------------------------------------
    # copy
    # ------------------------------------------------------------------

    def _target(self, tokens: _Tokens) -> str:
        tokens.expect("--target")
        name = tokens.next("target calendar name")
        tokens.expect("to")
        return name

    def _copy(self, tokens: _Tokens) -> None:
        what = tokens.keyword("'event' or 'events' after 'copy'")
        if what == "event":
            subject = tokens.until("on", what="event subject")
            tokens.expect("on")
            source_start = _datetime(tokens)
            target = self._target(tokens)
            target_start = _datetime(tokens)
            tokens.done()
            ev = self.system.copy_event(subject, source_start, target, target_start)
            self.view.write(f"Copied event to '{target}': {ev}.")
            return
        if what != "events":
            raise CommandSyntaxError(f"Invalid command 'copy {what}'.")

        kw = tokens.keyword("'on' or 'between'")
        if kw == "on":
            day = _date(tokens)
            target = self._target(tokens)
            target_day = _date(tokens)
            tokens.done()
            n = self.system.copy_events_on(day, target, target_day)
        elif kw == "between":
            first = _date(tokens)
            tokens.expect("and")
            last = _date(tokens)
            target = self._target(tokens)
            target_day = _date(tokens)
            tokens.done()
            n = self.system.copy_events_between(first, last, target, target_day)
        else:
            raise CommandSyntaxError("Expected 'on' or 'between' after 'copy events'.")
        self.view.write(f"Copied {n} events to '{target}'.")
