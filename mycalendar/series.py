"""
Recurring event series.

A series is a rule, not a list: start time, duration, a set of weekdays and
one termination condition (a number of occurrences OR an inclusive end date).
generate_events() turns the rule into concrete Event objects.

Generation rule:
    walk day by day from start_date; every date whose weekday is in the set
    is one occurrence slot; stop after `occurrences` slots or once the walk
    passes end_date.

The first occurrence is NOT forced onto start_date: if start_date's weekday is
not in the set, the first slot is the next matching date.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import date, datetime, time, timedelta
from typing import Iterable, Iterator, Optional

from mycalendar.errors import InvalidRecurrenceError
from mycalendar.model import Event, EventStatus, Location, Weekday


def _span(day: date, start: time, end: time) -> timedelta:
    return datetime.combine(day, end) - datetime.combine(day, start)


@dataclass(eq=False)
class EventSeries:
    subject: str
    start_time: time
    duration: timedelta
    days: frozenset[Weekday]
    start_date: date
    occurrences: Optional[int] = None
    end_date: Optional[date] = None
    description: Optional[str] = None
    location: Optional[Location] = None
    location_detail: Optional[str] = None
    status: Optional[EventStatus] = None
    # slots whose occurrence was detached by an individual timing edit
    excluded_dates: frozenset[date] = frozenset()
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    def __post_init__(self) -> None:
        self.days = frozenset(self.days or ())
        self.excluded_dates = frozenset(self.excluded_dates or ())
        self._validate()

    @classmethod
    def from_times(
        cls,
        subject: str,
        start_time: time,
        end_time: time,
        days: Iterable[Weekday],
        start_date: date,
        occurrences: Optional[int] = None,
        end_date: Optional[date] = None,
        **template,
    ) -> "EventSeries":
        """
        Build a series from a start and end time on the same day.
        """
        duration = _span(start_date, start_time, end_time)
        if duration < timedelta(0):
            raise InvalidRecurrenceError("Series events must start and end on the same day")
        return cls(
            subject=subject,
            start_time=start_time,
            duration=duration,
            days=frozenset(days or ()),
            start_date=start_date,
            occurrences=occurrences,
            end_date=end_date,
            **template,
        )

    def _validate(self) -> None:
        if not self.days:
            raise InvalidRecurrenceError("At least one recurrence day required")

        has_count = self.occurrences is not None
        has_end = self.end_date is not None
        if has_count and has_end:
            raise InvalidRecurrenceError("Specify either an occurrence count or an end date, not both")
        if not has_count and not has_end:
            raise InvalidRecurrenceError("Must specify either occurrence count or end date")
        if has_count and self.occurrences <= 0:
            raise InvalidRecurrenceError(f"Occurrence count must be positive, got {self.occurrences}")
        if has_end and self.end_date < self.start_date:
            raise InvalidRecurrenceError(
                f"Series end date {self.end_date} is before its start date {self.start_date}"
            )

        if self.duration < timedelta(0):
            raise InvalidRecurrenceError("Series duration cannot be negative")
        first = datetime.combine(self.start_date, self.start_time)
        if (first + self.duration).date() != first.date():
            raise InvalidRecurrenceError("Duration would cross day boundary")

    @property
    def end_time(self) -> time:
        return (datetime.combine(self.start_date, self.start_time) + self.duration).time()

    @property
    def is_count_based(self) -> bool:
        return self.occurrences is not None

    def _exceeds_limit(self, day: date, slots: int) -> bool:
        if self.end_date is not None:
            return day > self.end_date
        return slots >= self.occurrences

    def slot_dates(self) -> Iterator[date]:
        """
        Yield every occurrence date of the rule, including excluded ones.
        """
        day = self.start_date
        slots = 0
        while not self._exceeds_limit(day, slots):
            if Weekday.of(day) in self.days:
                slots += 1
                yield day
            day += timedelta(days=1)

    def occurrence_on(self, day: date) -> Event:
        start = datetime.combine(day, self.start_time)
        return Event(
            self.subject,
            start,
            start + self.duration,
            description=self.description,
            location=self.location,
            location_detail=self.location_detail,
            status=self.status,
            series_id=self.id,
        )

    def generate_events(self) -> list[Event]:
        """
        Materialise the rule into fresh Event objects, ordered by start.

        Excluded slots still count toward `occurrences` but produce no event.
        A date-based window without a matching weekday gives an empty list.
        """
        return [self.occurrence_on(day) for day in self.slot_dates() if day not in self.excluded_dates]

    def exclude(self, day: date) -> None:
        self.excluded_dates = self.excluded_dates | {day}

    def retimed(self, start_time: Optional[time] = None, end_time: Optional[time] = None) -> "EventSeries":
        """
        Validated copy (same id) with a new start and/or end time of day.

        A new start keeps the duration; a new end changes it.
        Raises InvalidRecurrenceError and leaves self untouched on failure.
        """
        new_start = start_time if start_time is not None else self.start_time
        new_duration = self.duration
        if end_time is not None:
            new_duration = _span(self.start_date, new_start, end_time)
            if new_duration < timedelta(0):
                raise InvalidRecurrenceError(
                    f"New end time {end_time.isoformat(timespec='minutes')} is before start time "
                    f"{new_start.isoformat(timespec='minutes')}"
                )
        return replace(self, start_time=new_start, duration=new_duration)

    def split_at(self, cutoff: date) -> tuple["EventSeries", "EventSeries"]:
        """
        Split the rule into (head, tail) around `cutoff`.

        head keeps this id and every slot before the cutoff; tail gets a new id,
        starts at the cutoff and covers exactly the remaining slots.
        """
        slots = list(self.slot_dates())
        before = [d for d in slots if d < cutoff]
        after = [d for d in slots if d >= cutoff]
        if not before or not after:
            raise InvalidRecurrenceError(f"Cannot split series {self.id} at {cutoff}")

        if self.is_count_based:
            head = replace(self, occurrences=len(before))
            tail_limits = {"occurrences": len(after), "end_date": None}
        else:
            head = replace(self, end_date=cutoff - timedelta(days=1))
            tail_limits = {"occurrences": None, "end_date": self.end_date}

        head.excluded_dates = frozenset(d for d in self.excluded_dates if d < cutoff)
        tail = replace(
            self,
            id=uuid.uuid4(),
            start_date=cutoff,
            excluded_dates=frozenset(d for d in self.excluded_dates if d >= cutoff),
            **tail_limits,
        )
        return head, tail

    def describe(self) -> str:
        days = "".join(d.symbol for d in sorted(self.days, key=lambda d: d.value))
        times = f"{self.start_time.isoformat(timespec='minutes')}-{self.end_time.isoformat(timespec='minutes')}"
        if self.is_count_based:
            until = f"{self.occurrences} times"
        else:
            until = f"until {self.end_date.isoformat()}"
        return f"'{self.subject}' {times} on {days} from {self.start_date.isoformat()} {until}"
