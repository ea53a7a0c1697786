"""
Named calendars and the container that manages them.

Each NamedCalendar is a CalendarStore with a unique name and a timezone
label. The label is validated against the IANA database (pytz) but never
used to convert times: copying between calendars shifts events by whole
days and keeps their wall-clock times.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from typing import Optional

import pytz

from mycalendar.errors import (
    CalendarError,
    DuplicateEventError,
    InvalidRangeError,
    InvalidTimezoneError,
    NotFoundError,
)
from mycalendar.model import Event, format_datetime
from mycalendar.properties import CalendarProperty
from mycalendar.store import CalendarStore

logger = logging.getLogger(__name__)


def validate_timezone(name: str) -> str:
    """
    Return the canonical zone name, or raise InvalidTimezoneError.
    """
    try:
        return pytz.timezone((name or "").strip()).zone
    except pytz.UnknownTimeZoneError as exc:
        raise InvalidTimezoneError(f"Invalid timezone: {name!r}") from exc


class NamedCalendar(CalendarStore):
    def __init__(self, name: str, timezone: str) -> None:
        super().__init__()
        self.name = name
        self.timezone = validate_timezone(timezone)

    def __repr__(self) -> str:
        return f"NamedCalendar({self.name!r}, {self.timezone!r})"


class CalendarSystem:
    """
    Registry of named calendars plus the calendar currently in use.
    """

    def __init__(self) -> None:
        self._calendars: dict[str, NamedCalendar] = {}
        self._current: Optional[NamedCalendar] = None

    @property
    def current(self) -> Optional[NamedCalendar]:
        return self._current

    def require_current(self) -> NamedCalendar:
        if self._current is None:
            raise CalendarError("No calendar in use. Use 'use calendar --name <name>' first.")
        return self._current

    def calendar_names(self) -> list[str]:
        return sorted(self._calendars)

    def get_calendar(self, name: str) -> NamedCalendar:
        cal = self._calendars.get((name or "").strip())
        if cal is None:
            raise NotFoundError(f"Calendar not found: {name}")
        return cal

    def create_calendar(self, name: str, timezone: str) -> NamedCalendar:
        clean = (name or "").strip()
        if not clean:
            raise CalendarError("Calendar name cannot be empty")
        if clean in self._calendars:
            raise CalendarError(f"Calendar with name '{clean}' already exists")
        cal = NamedCalendar(clean, timezone)
        self._calendars[clean] = cal
        logger.debug("created calendar %s (%s)", clean, cal.timezone)
        return cal

    def edit_calendar(self, name: str, prop: CalendarProperty, new_value: str) -> NamedCalendar:
        if not isinstance(prop, CalendarProperty):
            prop = CalendarProperty.from_str(prop)
        cal = self.get_calendar(name)

        if prop is CalendarProperty.NAME:
            new_name = (new_value or "").strip()
            if not new_name:
                raise CalendarError("Calendar name cannot be empty")
            if new_name != cal.name and new_name in self._calendars:
                raise CalendarError(f"Calendar with name '{new_name}' already exists")
            del self._calendars[cal.name]
            cal.name = new_name
            self._calendars[new_name] = cal
        else:
            cal.timezone = validate_timezone(new_value)
        return cal

    def use_calendar(self, name: str) -> NamedCalendar:
        self._current = self.get_calendar(name)
        return self._current

    # ------------------------------------------------------------------
    # Copying between calendars
    # ------------------------------------------------------------------

    def copy_event(self, subject: str, source_start: datetime, target_name: str, target_start: datetime) -> Event:
        """
        Copy the single event named `subject` starting at `source_start` in the
        current calendar to `target_name`, starting at `target_start` with the
        same duration.
        """
        source = self.require_current()
        target = self.get_calendar(target_name)

        matches = source.get_events_by_subject_and_start_time(subject, source_start)
        if not matches:
            raise NotFoundError(f"Event not found: {subject} starting at {format_datetime(source_start)}")
        if len(matches) > 1:
            raise CalendarError("Multiple events found with the same name and start time")

        ev = matches[0]
        end = target_start + ev.duration if ev.end is not None else None
        return target.create_event(
            ev.subject,
            target_start,
            end,
            description=ev.description,
            location=ev.location,
            location_detail=ev.location_detail,
            status=ev.status,
        )

    def copy_events_on(self, source_day: date, target_name: str, target_day: date) -> int:
        """
        Copy every event touching `source_day` to `target_day` in another calendar.
        """
        source = self.require_current()
        target = self.get_calendar(target_name)
        return self._copy_shifted(source.get_events_list(source_day), target, target_day - source_day)

    def copy_events_between(self, start_day: date, end_day: date, target_name: str, target_start: date) -> int:
        """
        Copy the events overlapping [start_day, end_day] so that start_day lands on target_start.
        """
        source = self.require_current()
        target = self.get_calendar(target_name)
        if start_day > end_day:
            raise InvalidRangeError(f"Start date {start_day} cannot be after end date {end_day}")

        window_start = datetime.combine(start_day, time.min)
        window_end = datetime.combine(end_day + timedelta(days=1), time.min)
        events = [
            ev
            for ev in source.get_events_list_in_date_range(window_start, window_end)
            if ev.start < window_end
        ]
        return self._copy_shifted(events, target, target_start - start_day)

    def _copy_shifted(self, events: list[Event], target: NamedCalendar, shift: timedelta) -> int:
        copied = 0
        for ev in events:
            end = ev.end + shift if ev.end is not None else None
            try:
                target.create_event(
                    ev.subject,
                    ev.start + shift,
                    end,
                    description=ev.description,
                    location=ev.location,
                    location_detail=ev.location_detail,
                    status=ev.status,
                )
            except DuplicateEventError as exc:
                # one duplicate does not abort the rest of the copy
                logger.warning("skipped copying '%s': %s", ev.subject, exc)
                continue
            copied += 1
        return copied
