"""
Plain-text rendering of calendar output.

Everything the interpreter shows to the user goes through CalendarView, which
writes to a rich Console. Markup and highlighting are disabled so subjects
containing brackets are printed literally.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Optional

from rich.console import Console

from mycalendar.model import Event, format_datetime


def event_line(ev: Event) -> str:
    """
    One agenda line, e.g. "- Standup on 2025-06-02 from 09:00 to 09:15 @ ONLINE: zoom".
    """
    start = ev.start
    if ev.end is None:
        text = f"- {ev.subject} on {start.date().isoformat()} at {start.strftime('%H:%M')}"
    elif ev.end.date() == start.date():
        text = f"- {ev.subject} on {start.date().isoformat()} from {start.strftime('%H:%M')} to {ev.end.strftime('%H:%M')}"
    else:
        text = f"- {ev.subject} from {format_datetime(start)} to {format_datetime(ev.end)}"
    if ev.location is not None:
        text += f" @ {ev.location_display()}"
    return text


class CalendarView:
    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console if console is not None else Console(highlight=False)

    def write(self, msg: str = "") -> None:
        self.console.print(msg, markup=False, highlight=False)

    def error(self, msg: str) -> None:
        self.console.print(f"Error: {msg}", style="red", markup=False, highlight=False)

    def events_on(self, day: date, events: Iterable[Event]) -> None:
        self.write(f"Events on {day.isoformat()}:")
        self._event_lines(events)

    def events_between(self, start: datetime, end: datetime, events: Iterable[Event]) -> None:
        self.write(f"Events from {format_datetime(start)} to {format_datetime(end)}:")
        self._event_lines(events)

    def conflicts(self, pairs: list[tuple[Event, Event]]) -> None:
        if not pairs:
            self.write("No conflicts found.")
            return
        self.write(f"Conflicts found: {len(pairs)}")
        for a, b in pairs:
            self.write(f"{event_line(a)}  <->  {event_line(b)[2:]}")

    def status(self, instant: datetime, busy: bool) -> None:
        if busy:
            self.write(f"Busy: an event is scheduled at {format_datetime(instant)}.")
        else:
            self.write(f"Available at {format_datetime(instant)}.")

    def _event_lines(self, events: Iterable[Event]) -> None:
        shown = 0
        for ev in events:
            self.write(event_line(ev))
            shown += 1
        if not shown:
            self.write("No events found.")
