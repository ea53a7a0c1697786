"""
In-memory calendar engine.

CalendarStore owns every Event and EventSeries of one calendar and keeps a
date index on top of them:

    date -> {event id -> Event}     every date an event's span touches
    id   -> Event                   the owning map
    id   -> EventSeries             recurrence rules

A multi-day event sits in one bucket per date it touches. All bucket updates
go through _index()/_unindex(), so an edit that shrinks or moves an event
never leaves a stale entry behind.

Edit scopes:
- edit_event: one occurrence; retiming it detaches it from its series
- edit_series: every current member of the series
- edit_series_from_date: members starting at or after a given instant; the
  series is split so the earlier occurrences keep the old rule

Series-wide timing edits regenerate the occurrences: the old generation of
Event objects is dropped and a fresh one sharing the series id is inserted.
Every mutating operation is all-or-nothing.
"""

from __future__ import annotations

import logging
import threading
import uuid
from datetime import date, datetime, time, timedelta
from typing import Iterable, Optional, Union

from mycalendar.errors import (
    CalendarError,
    DuplicateEventError,
    InvalidEditError,
    InvalidRangeError,
    InvalidRecurrenceError,
    NotFoundError,
)
from mycalendar.model import Event, EventStatus, Location, Weekday, format_datetime
from mycalendar.properties import Property, parse_time_of_day
from mycalendar.series import EventSeries

logger = logging.getLogger(__name__)

PropertyToken = Union[Property, str]


def _by_start(events: Iterable[Event]) -> list[Event]:
    return sorted(events, key=lambda ev: (ev.start, ev.subject))


def _as_property(token: PropertyToken) -> Property:
    if isinstance(token, Property):
        return token
    return Property.from_str(token)


def _is_point(event: Event) -> bool:
    return event.end is None or event.end == event.start


def _contains(event: Event, instant: datetime) -> bool:
    # start inclusive, end exclusive; a zero-length event only covers its own instant
    if _is_point(event):
        return event.start == instant
    return event.start <= instant < event.end


def _overlaps(event: Event, start: datetime, end: datetime) -> bool:
    if start == end:
        return _contains(event, start)
    if _is_point(event):
        return start <= event.start <= end
    return event.start < end and event.end > start


class CalendarStore:
    """
    Date-indexed store of events and recurring series for a single calendar.

    One RLock guards all public operations; the engine is meant for a single
    caller, the lock only makes each operation atomic if that ever changes.
    """

    def __init__(self) -> None:
        self._by_date: dict[date, dict[uuid.UUID, Event]] = {}
        self._events: dict[uuid.UUID, Event] = {}
        self._series: dict[uuid.UUID, EventSeries] = {}
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Index bookkeeping
    # ------------------------------------------------------------------

    def _index(self, event: Event) -> None:
        for day in event.occupied_dates():
            self._by_date.setdefault(day, {})[event.id] = event

    def _unindex(self, event: Event) -> None:
        for day in event.occupied_dates():
            bucket = self._by_date.get(day)
            if bucket is None:
                continue
            bucket.pop(event.id, None)
            if not bucket:
                del self._by_date[day]

    def _insert(self, event: Event) -> None:
        self._events[event.id] = event
        self._index(event)

    def _remove(self, event: Event) -> None:
        self._unindex(event)
        self._events.pop(event.id, None)

    def _find_duplicate(self, key: tuple, ignore: Iterable[uuid.UUID] = ()) -> Optional[Event]:
        subject, start, _ = key
        skip = set(ignore)
        for ev in self._by_date.get(start.date(), {}).values():
            if ev.id not in skip and ev.key() == key:
                return ev
        return None

    def _check_no_duplicates(self, candidates: Iterable[Event], ignore: Iterable[uuid.UUID] = ()) -> None:
        """
        Raise DuplicateEventError if any candidate collides with a stored event
        (outside `ignore`) or with another candidate.
        """
        skip = set(ignore)
        seen: set[tuple] = set()
        for ev in candidates:
            key = ev.key()
            if key in seen or self._find_duplicate(key, skip) is not None:
                raise DuplicateEventError(f"Duplicate event: {ev}")
            seen.add(key)

    def _members(self, series_id: uuid.UUID) -> list[Event]:
        return _by_start(ev for ev in self._events.values() if ev.series_id == series_id)

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def create_event(
        self,
        subject: str,
        start: datetime,
        end: Optional[datetime] = None,
        description: Optional[str] = None,
        location: Optional[Location] = None,
        location_detail: Optional[str] = None,
        status: Optional[EventStatus] = None,
    ) -> Event:
        """
        Create a single event and index it under every date from start to end.

        Raises InvalidRangeError if end is before start and DuplicateEventError
        if an event with the same subject, start and end already exists.
        """
        with self._lock:
            if end is not None and end < start:
                raise InvalidRangeError(
                    f"Start {format_datetime(start)} cannot be after end {format_datetime(end)}"
                )
            event = Event(
                subject,
                start,
                end,
                description=description,
                location=location,
                location_detail=location_detail,
                status=status,
            )
            if self._find_duplicate(event.key()) is not None:
                raise DuplicateEventError(f"Event already exists: {event}")
            self._insert(event)
            logger.debug("created event %s", event)
            return event

    def create_event_series(
        self,
        subject: str,
        start_time: time,
        end_time: time,
        days: Iterable[Weekday],
        series_start: date,
        series_end: Optional[date] = None,
        repeats: int = 0,
        description: Optional[str] = None,
        location: Optional[Location] = None,
        status: Optional[EventStatus] = None,
        location_detail: Optional[str] = None,
    ) -> EventSeries:
        """
        Create a recurring series and insert all of its occurrences.

        `repeats` > 0 selects a count-based series, `series_end` a date-based
        one; giving both or neither, or a negative count, is an
        InvalidRecurrenceError. If any occurrence duplicates an existing
        event nothing is inserted.
        """
        with self._lock:
            if repeats is not None and repeats < 0:
                raise InvalidRecurrenceError(f"Repetition count cannot be negative, got {repeats}")
            series = EventSeries.from_times(
                subject,
                start_time,
                end_time,
                days,
                series_start,
                occurrences=repeats if repeats and repeats > 0 else None,
                end_date=series_end,
                description=description,
                location=location,
                location_detail=location_detail,
                status=status,
            )
            events = series.generate_events()
            self._check_no_duplicates(events)

            for ev in events:
                self._insert(ev)
            self._series[series.id] = series
            logger.debug("created series %s with %d occurrences", series.describe(), len(events))
            return series

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_event(self, event_id: uuid.UUID) -> Optional[Event]:
        with self._lock:
            return self._events.get(event_id)

    def get_event_series_by_id(self, series_id: uuid.UUID) -> Optional[EventSeries]:
        with self._lock:
            return self._series.get(series_id)

    def get_series_events(self, series_id: uuid.UUID) -> list[Event]:
        with self._lock:
            return self._members(series_id)

    def all_events(self) -> list[Event]:
        with self._lock:
            return _by_start(self._events.values())

    def get_events_list(self, day: date) -> list[Event]:
        """
        All events whose span touches `day`, ordered by start.
        """
        with self._lock:
            return _by_start(self._by_date.get(day, {}).values())

    def get_events_list_in_date_range(self, start: datetime, end: datetime) -> list[Event]:
        """
        Events overlapping [start, end], each listed once even if it spans several days.

        Overlap rule:
            event.start < end AND event.end > start
        Zero-length and open-ended events count when start <= event.start <= end.
        """
        if start > end:
            raise InvalidRangeError(
                f"Range start {format_datetime(start)} is after range end {format_datetime(end)}"
            )
        with self._lock:
            found: dict[uuid.UUID, Event] = {}
            day = start.date()
            while day <= end.date():
                found.update(self._by_date.get(day, {}))
                day += timedelta(days=1)
            return _by_start(ev for ev in found.values() if _overlaps(ev, start, end))

    def get_events_by_subject_and_start_time(self, subject: str, start: datetime) -> list[Event]:
        needle = (subject or "").casefold()
        return [
            ev
            for ev in self.get_events_list(start.date())
            if ev.subject.casefold() == needle and ev.start == start
        ]

    def get_events_by_details(self, subject: str, start: datetime, end: Optional[datetime]) -> list[Event]:
        return [ev for ev in self.get_events_by_subject_and_start_time(subject, start) if ev.end == end]

    def is_busy_at(self, instant: datetime) -> bool:
        """
        True iff some event covers `instant` (start inclusive, end exclusive).
        """
        return any(_contains(ev, instant) for ev in self.get_events_list(instant.date()))

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------

    def edit_event(self, event_id: uuid.UUID, prop: PropertyToken, new_value: str) -> Event:
        """
        Change one property of one event.

        Raises NotFoundError for an unknown id, InvalidEditError for a value
        that cannot be applied and DuplicateEventError when the edited event
        would duplicate another one. On failure the event is left unchanged.
        A START/END edit detaches the event from its series.
        """
        with self._lock:
            event = self._events.get(event_id)
            if event is None:
                raise NotFoundError(f"Event not found: {event_id}")
            prop = _as_property(prop)
            value = prop.parse(new_value)

            snap = event.snapshot()
            self._unindex(event)
            try:
                prop.assign(event, value)
                clash = self._find_duplicate(event.key(), ignore=[event.id])
                if clash is not None:
                    raise DuplicateEventError(f"Event conflicts with existing event: {clash}")
            except Exception:
                event.restore(snap)
                raise
            finally:
                # the event is back in its buckets whether or not the edit held
                self._index(event)

            old_series_id = snap["series_id"]
            if prop.is_timing and old_series_id is not None:
                series = self._series.get(old_series_id)
                if series is not None:
                    series.exclude(snap["start"].date())
                logger.info("event %s detached from series %s", event.id, old_series_id)
            logger.debug("edited event %s: %s -> %r", event.id, prop.value, new_value)
            return event

    def edit_series(self, series_id: uuid.UUID, prop: PropertyToken, new_value: str) -> None:
        """
        Change one property for a whole series.

        SUBJECT/DESCRIPTION/LOCATION/STATUS are written to the series template
        and to every current member. START/END retime the rule and replace all
        members with a freshly generated set. An unknown series id is a no-op.
        """
        with self._lock:
            series = self._series.get(series_id)
            if series is None:
                logger.info("edit_series: unknown series %s, nothing to do", series_id)
                return
            prop = _as_property(prop)
            members = self._members(series_id)

            if prop.is_timing:
                retimed = self._retime(series, prop, new_value)
                self._swap_generation(members, retimed)
            else:
                value = prop.parse(new_value)
                self._check_subject_change(members, prop, value)
                prop.assign(series, value)
                for ev in members:
                    prop.assign(ev, value)
            logger.debug("edited series %s: %s -> %r", series_id, prop.value, new_value)

    def edit_series_from_date(
        self,
        series_id: uuid.UUID,
        prop: PropertyToken,
        new_value: str,
        from_start: Optional[datetime] = None,
    ) -> None:
        """
        Change one property for the members starting at or after `from_start`.

        The series is split: the earlier occurrences keep the original rule
        and id, the later ones move to a new series carrying the change.
        Without `from_start` (or when it precedes the first occurrence) this is
        the same as edit_series. An unknown series id is a no-op.
        """
        with self._lock:
            series = self._series.get(series_id)
            if series is None:
                logger.info("edit_series_from_date: unknown series %s, nothing to do", series_id)
                return
            if from_start is None:
                self.edit_series(series_id, prop, new_value)
                return

            prop = _as_property(prop)
            later = [ev for ev in self._members(series_id) if ev.start >= from_start]
            if not later:
                logger.info("series %s has no occurrence from %s", series_id, format_datetime(from_start))
                return
            cutoff = later[0].start.date()
            if not any(day < cutoff for day in series.slot_dates()):
                self.edit_series(series_id, prop, new_value)
                return

            head, tail = series.split_at(cutoff)
            if prop.is_timing:
                tail = self._retime(tail, prop, new_value)
                self._swap_generation(later, tail)
            else:
                value = prop.parse(new_value)
                self._check_subject_change(later, prop, value)
                prop.assign(tail, value)
                for ev in later:
                    prop.assign(ev, value)
                    ev.move_to_series(tail.id)
                self._series[tail.id] = tail
            self._series[head.id] = head
            logger.info("series %s split at %s into new series %s", series_id, cutoff, tail.id)

    # ------------------------------------------------------------------
    # Series edit helpers
    # ------------------------------------------------------------------

    def _retime(self, series: EventSeries, prop: Property, raw: str) -> EventSeries:
        new_time = parse_time_of_day(raw)
        try:
            if prop is Property.START:
                return series.retimed(start_time=new_time)
            return series.retimed(end_time=new_time)
        except InvalidRecurrenceError as exc:
            raise InvalidEditError(str(exc)) from exc

    def _check_subject_change(self, members: list[Event], prop: Property, value) -> None:
        if prop is not Property.SUBJECT:
            return
        ignore = [ev.id for ev in members]
        for ev in members:
            clash = self._find_duplicate((value, ev.start, ev.end), ignore)
            if clash is not None:
                raise DuplicateEventError(f"Renaming series occurrence would duplicate {clash}")

    def _swap_generation(self, old_members: list[Event], series: EventSeries) -> None:
        """
        Replace `old_members` with a fresh generation of `series`, or change nothing.
        """
        fresh = series.generate_events()
        self._check_no_duplicates(fresh, ignore=[ev.id for ev in old_members])
        for ev in old_members:
            self._remove(ev)
        for ev in fresh:
            self._insert(ev)
        self._series[series.id] = series
        logger.debug("regenerated series %s: %d -> %d occurrences", series.id, len(old_members), len(fresh))
