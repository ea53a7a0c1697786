"""
Conflict detection.

Given calendar events, detect pairs whose time spans overlap.
Overlap rule:
    start < other_end AND end > other_start

Duplicates are rejected by the store; conflicts are only reported, a busy
slot can still be double-booked on purpose.
"""

from __future__ import annotations

from typing import Iterable

from mycalendar.model import Event


def _overlaps(a: Event, b: Event) -> bool:
    # touching endpoints (a.end == b.start) do not overlap
    return a.start < b.end and a.end > b.start


def find_conflicts(events: Iterable[Event]) -> list[tuple[Event, Event]]:
    """
    Find overlapping event pairs (A, B), each pair once, A starting first.

    Open-ended and zero-length events occupy no time and never conflict.
    """
    timed = sorted(
        (ev for ev in events if ev.end is not None and ev.end > ev.start),
        key=lambda ev: (ev.start, ev.end),
    )

    conflicts: list[tuple[Event, Event]] = []
    for i, first in enumerate(timed):
        for second in timed[i + 1:]:
            # sorted by start: nothing later can overlap once this one starts after first ends
            if second.start >= first.end:
                break
            if _overlaps(first, second):
                conflicts.append((first, second))
    return conflicts
