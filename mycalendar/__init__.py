"""
MyCalendar: in-memory calendar engine with recurring series and a command interpreter.
"""

from mycalendar.calendars import CalendarSystem, NamedCalendar
from mycalendar.errors import CalendarError
from mycalendar.model import Event, EventStatus, Location, Weekday
from mycalendar.properties import CalendarProperty, Property
from mycalendar.series import EventSeries
from mycalendar.store import CalendarStore

__all__ = [
    "CalendarError",
    "CalendarProperty",
    "CalendarStore",
    "CalendarSystem",
    "Event",
    "EventSeries",
    "EventStatus",
    "Location",
    "NamedCalendar",
    "Property",
    "Weekday",
]
