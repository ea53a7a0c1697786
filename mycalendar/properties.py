"""
Property tokens used by edit commands.

Editing is keyed by a property name string ('subject', 'start', ...). The
string is decoded once into a closed enum; each member knows how to parse a
raw value and how to assign it, with an explicit branch per member.
"""

from __future__ import annotations

from datetime import datetime, time
from enum import Enum
from typing import Any, Union

from mycalendar.errors import CalendarError, InvalidEditError, InvalidRangeError, UnknownPropertyError
from mycalendar.model import Event, EventStatus, Location
from mycalendar.series import EventSeries


def _from_token(cls, token: str):
    raw = (token or "").strip().lower()
    for member in cls:
        if member.value == raw:
            return member
    valid = ", ".join(m.value for m in cls)
    raise UnknownPropertyError(f"Invalid property: {token!r}, valid values are: {valid}")


def parse_datetime(raw: str) -> datetime:
    try:
        value = datetime.fromisoformat((raw or "").strip())
    except ValueError as exc:
        raise InvalidEditError(f"Invalid date-time {raw!r}, expected YYYY-MM-DDThh:mm") from exc
    if value.tzinfo is not None:
        raise InvalidEditError(f"Invalid date-time {raw!r}, UTC offsets are not supported")
    return value


def parse_time_of_day(raw: str) -> time:
    """
    Accept 'hh:mm' or a full 'YYYY-MM-DDThh:mm' (only the time part is used).
    """
    text = (raw or "").strip()
    try:
        value = datetime.fromisoformat(text) if "T" in text else time.fromisoformat(text)
    except ValueError as exc:
        raise InvalidEditError(f"Invalid time {raw!r}, expected hh:mm") from exc
    if value.tzinfo is not None:
        raise InvalidEditError(f"Invalid time {raw!r}, UTC offsets are not supported")
    return value.time() if isinstance(value, datetime) else value


class Property(Enum):
    SUBJECT = "subject"
    START = "start"
    END = "end"
    DESCRIPTION = "description"
    LOCATION = "location"
    STATUS = "status"

    @classmethod
    def from_str(cls, token: str) -> "Property":
        return _from_token(cls, token)

    @property
    def is_timing(self) -> bool:
        return self in (Property.START, Property.END)

    def parse(self, raw: str) -> Any:
        """
        Decode a raw command value into the typed value for this property.

        LOCATION values are 'physical', 'online' or 'online:zoom-link' and
        decode to a (Location, detail) pair.
        """
        if self is Property.SUBJECT:
            subject = (raw or "").strip()
            if not subject:
                raise InvalidEditError("Subject cannot be empty")
            return subject
        if self is Property.START or self is Property.END:
            return parse_datetime(raw)
        if self is Property.DESCRIPTION:
            return raw
        if self is Property.LOCATION:
            kind, _, detail = (raw or "").partition(":")
            try:
                return Location.from_str(kind), (detail.strip() or None)
            except CalendarError as exc:
                raise InvalidEditError(str(exc)) from exc
        if self is Property.STATUS:
            try:
                return EventStatus.from_str(raw)
            except CalendarError as exc:
                raise InvalidEditError(str(exc)) from exc
        raise UnknownPropertyError(f"Unhandled property {self.value}")

    def assign(self, target: Union[Event, EventSeries], value: Any) -> None:
        """
        Write an already parsed value to an event or a series template.

        Timing properties are only meaningful on events; a series is retimed
        through EventSeries.retimed().
        """
        if self is Property.SUBJECT:
            target.subject = value
        elif self is Property.DESCRIPTION:
            target.description = value
        elif self is Property.LOCATION:
            target.location, target.location_detail = value
        elif self is Property.STATUS:
            target.status = value
        elif not isinstance(target, Event):
            raise InvalidEditError(f"Property {self.value} cannot be assigned to a series template")
        else:
            try:
                if self is Property.START:
                    target.start = value
                else:
                    target.end = value
            except InvalidRangeError as exc:
                raise InvalidEditError(str(exc)) from exc

    def apply(self, target: Union[Event, EventSeries], raw: str) -> None:
        self.assign(target, self.parse(raw))


class CalendarProperty(Enum):
    NAME = "name"
    TIMEZONE = "timezone"

    @classmethod
    def from_str(cls, token: str) -> "CalendarProperty":
        return _from_token(cls, token)
