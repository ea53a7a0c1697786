"""
Error types raised by the calendar engine.

Every failure is a subclass of CalendarError, which itself is a ValueError,
so callers can either catch the specific kind or report any calendar failure
with a single except clause. Nothing in the engine is fatal: the command
interpreter prints the message and carries on with the next command.
"""

from __future__ import annotations


class CalendarError(ValueError):
    """Base class for all calendar failures."""


class InvalidRangeError(CalendarError):
    """End before start, or a range query whose start lies after its end."""


class DuplicateEventError(CalendarError):
    """An event with the same subject, start and end already exists."""


class InvalidRecurrenceError(CalendarError):
    """A series rule that cannot produce a well-formed set of occurrences."""


class NotFoundError(CalendarError):
    """The requested event or calendar does not exist."""


class InvalidEditError(CalendarError):
    """A new property value that would break an event or series invariant."""


class UnknownPropertyError(CalendarError):
    """Unrecognised property token."""


class InvalidEnumValueError(CalendarError):
    """Unrecognised location, status or weekday literal."""


class InvalidTimezoneError(CalendarError):
    """Timezone label that is not a known IANA zone name."""


class CommandSyntaxError(CalendarError):
    """A command line that does not follow the command grammar."""
