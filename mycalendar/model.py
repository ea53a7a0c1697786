"""
Central data model definitions used across the project.

This module defines the canonical structure of calendar events so that:
- the store, the series generator and the command layer share the same fields
- timing invariants (end never before start) are enforced in one place
- series membership is dropped automatically when an occurrence is retimed
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Iterator, Optional

from mycalendar.errors import CalendarError, InvalidEnumValueError, InvalidRangeError


def format_datetime(value: Optional[datetime]) -> str:
    """
    Render a date-time the way the command language writes it: 'YYYY-MM-DDThh:mm'.
    """
    if value is None:
        return "None"
    return value.isoformat(timespec="minutes")


class Location(Enum):
    PHYSICAL = "physical"
    ONLINE = "online"

    @classmethod
    def from_str(cls, token: str) -> "Location":
        raw = (token or "").strip().lower()
        for loc in cls:
            if loc.value == raw:
                return loc
        valid = ", ".join(m.value for m in cls)
        raise InvalidEnumValueError(f"Invalid location: {token!r}, valid values are: {valid}")


class EventStatus(Enum):
    PUBLIC = "public"
    PRIVATE = "private"

    @classmethod
    def from_str(cls, token: str) -> "EventStatus":
        raw = (token or "").strip().lower()
        for status in cls:
            if status.value == raw:
                return status
        valid = ", ".join(m.value for m in cls)
        raise InvalidEnumValueError(f"Invalid event status: {token!r}, valid values are: {valid}")


class Weekday(Enum):
    """
    Days of the week with the single-letter symbols used in 'repeats MWF'.

    The value is the Python weekday number (Monday == 0), so
    Weekday(d.weekday()) gives the weekday of a date.
    """

    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6

    @property
    def symbol(self) -> str:
        return _WEEKDAY_SYMBOLS[self]

    @classmethod
    def of(cls, day: date) -> "Weekday":
        return cls(day.weekday())

    @classmethod
    def from_symbol(cls, char: str) -> "Weekday":
        c = (char or "").strip().upper()
        for day, sym in _WEEKDAY_SYMBOLS.items():
            if sym == c:
                return day
        raise InvalidEnumValueError(f"Invalid weekday symbol: {char!r}")

    @classmethod
    def parse_symbols(cls, chars: str) -> frozenset["Weekday"]:
        """
        Parse a weekday string such as 'MWF' or 'TR' into a set of weekdays.
        """
        if not chars or not chars.strip():
            raise InvalidEnumValueError("Missing weekday symbols")
        return frozenset(cls.from_symbol(c) for c in chars.strip())


_WEEKDAY_SYMBOLS = {
    Weekday.MONDAY: "M",
    Weekday.TUESDAY: "T",
    Weekday.WEDNESDAY: "W",
    Weekday.THURSDAY: "R",
    Weekday.FRIDAY: "F",
    Weekday.SATURDAY: "S",
    Weekday.SUNDAY: "U",
}


class Event:
    """
    One concrete calendar occurrence (single or generated by a series).

    The id is fixed at construction. Two events count as duplicates when
    their key() (subject, start, end) is equal; object equality stays
    identity-based so events can live in sets and dict buckets safely.
    """

    def __init__(
        self,
        subject: str,
        start: datetime,
        end: Optional[datetime] = None,
        description: Optional[str] = None,
        location: Optional[Location] = None,
        location_detail: Optional[str] = None,
        status: Optional[EventStatus] = None,
        series_id: Optional[uuid.UUID] = None,
    ) -> None:
        if start is None:
            raise InvalidRangeError("Event start is required")
        if end is not None and end < start:
            raise InvalidRangeError(
                f"End {format_datetime(end)} cannot be before start {format_datetime(start)}"
            )
        self._id = uuid.uuid4()
        self.subject = subject
        self._start = start
        self._end = end
        self.description = description
        self.location = location
        self.location_detail = location_detail
        self.status = status
        self._series_id = series_id

    @property
    def id(self) -> uuid.UUID:
        return self._id

    @property
    def start(self) -> datetime:
        return self._start

    @start.setter
    def start(self, value: datetime) -> None:
        if value is None:
            raise InvalidRangeError("Event start is required")
        if self._end is not None and value > self._end:
            raise InvalidRangeError(
                f"New start {format_datetime(value)} cannot be after end {format_datetime(self._end)}"
            )
        self._start = value
        # retiming one occurrence takes it out of its series
        self._series_id = None

    @property
    def end(self) -> Optional[datetime]:
        return self._end

    @end.setter
    def end(self, value: Optional[datetime]) -> None:
        if value is not None and value < self._start:
            raise InvalidRangeError(
                f"New end {format_datetime(value)} cannot be before start {format_datetime(self._start)}"
            )
        self._end = value
        self._series_id = None

    @property
    def series_id(self) -> Optional[uuid.UUID]:
        return self._series_id

    @property
    def duration(self) -> Optional[timedelta]:
        if self._end is None:
            return None
        return self._end - self._start

    def key(self) -> tuple[str, datetime, Optional[datetime]]:
        """
        Duplicate-detection key: subject, start and end only.
        """
        return (self.subject, self._start, self._end)

    def occupied_dates(self) -> Iterator[date]:
        """
        Yield every calendar date the event touches, start date to end date inclusive.
        """
        day = self._start.date()
        last = self._end.date() if self._end is not None else day
        while day <= last:
            yield day
            day += timedelta(days=1)

    def location_display(self) -> str:
        if self.location is None:
            return ""
        if self.location_detail:
            return f"{self.location.name}: {self.location_detail}"
        return self.location.name

    def snapshot(self) -> dict:
        return {
            "subject": self.subject,
            "start": self._start,
            "end": self._end,
            "description": self.description,
            "location": self.location,
            "location_detail": self.location_detail,
            "status": self.status,
            "series_id": self._series_id,
        }

    def restore(self, snap: dict) -> None:
        """
        Put back a snapshot() taken earlier. Used to undo a rejected edit.
        """
        self.subject = snap["subject"]
        self._start = snap["start"]
        self._end = snap["end"]
        self.description = snap["description"]
        self.location = snap["location"]
        self.location_detail = snap["location_detail"]
        self.status = snap["status"]
        self._series_id = snap["series_id"]

    def move_to_series(self, series_id: uuid.UUID) -> None:
        """
        Re-point a current member to the series that took over its part of the rule.

        Only the store calls this, when a series is split; it never attaches an
        event that was detached by a timing edit.
        """
        if self._series_id is None:
            raise CalendarError("Detached events cannot join a series")
        self._series_id = series_id

    def __repr__(self) -> str:
        return f"Event(id={self._id}, {self})"

    def __str__(self) -> str:
        text = f"{self.subject} ({format_datetime(self._start)} to {format_datetime(self._end)})"
        if self.location is not None:
            text += f" @ {self.location_display()}"
        return text
