# src/taskflow_portal/scheduling/recurrence.py

"""
Recurrence expansion for calendar events.

expand() turns stored events into concrete dated occurrences for a window.
It is pure: same events + same window -> same occurrences, nothing stored.

Stepping rules:
- daily: +1 day, weekly: +7 days
- monthly: same day-of-month as the base date, clamped to the month's length
  (Jan 31 -> Feb 28/29 -> Mar 31); each step is computed from the base date so
  clamping never drifts
- stepping stops at the earlier of range_end and recurrence_until, or after
  max_steps steps per event
"""

from __future__ import annotations

import calendar
from collections.abc import Iterable
from datetime import date, timedelta

from ..core.models import CalendarEvent, Occurrence, Recurrence

MAX_STEPS = 500


def add_months(base: date, months: int) -> date:
    month_index = base.month - 1 + months
    year = base.year + month_index // 12
    month = month_index % 12 + 1
    day = min(base.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def step_date(base: date, recurrence: Recurrence, step: int) -> date:
    if recurrence == Recurrence.DAILY:
        return base + timedelta(days=step)
    if recurrence == Recurrence.WEEKLY:
        return base + timedelta(days=7 * step)
    if recurrence == Recurrence.MONTHLY:
        return add_months(base, step)
    return base


def _single(event: CalendarEvent) -> Occurrence:
    return Occurrence(
        id=event.id,
        source_event_id=event.id,
        title=event.title,
        date=event.date,
        description=event.description,
        recurrence=event.recurrence,
        occurrence=False,
    )


def expand(
    events: Iterable[CalendarEvent],
    range_start: date,
    range_end: date,
    *,
    max_steps: int = MAX_STEPS,
) -> list[Occurrence]:
    out: list[Occurrence] = []

    for event in events:
        if event.recurrence == Recurrence.NONE:
            # Non-recurring events are always listed, whatever the window.
            out.append(_single(event))
            continue

        limit = range_end
        if event.recurrence_until is not None and event.recurrence_until < limit:
            limit = event.recurrence_until

        step = 0
        cursor = event.date
        while cursor <= limit and step < max_steps:
            if cursor >= range_start:
                key = cursor.isoformat()
                out.append(
                    Occurrence(
                        id=f"{event.id}-{key}",
                        source_event_id=event.id,
                        title=event.title,
                        date=cursor,
                        description=event.description,
                        recurrence=event.recurrence,
                        occurrence=True,
                    )
                )
            step += 1
            cursor = step_date(event.date, event.recurrence, step)

    return out


def occurrences_on(occurrences: Iterable[Occurrence], day: date) -> list[Occurrence]:
    return [o for o in occurrences if o.date == day]
