# tests/test_recurrence.py

from __future__ import annotations

from datetime import date

from taskflow_portal.core.models import CalendarEvent, Recurrence
from taskflow_portal.scheduling.recurrence import add_months, expand, occurrences_on


def _event(event_id: str, day: date, recurrence: Recurrence = Recurrence.NONE, until: date | None = None):
    return CalendarEvent(id=event_id, title=event_id, date=day, recurrence=recurrence, recurrence_until=until)


def test_daily_event_fills_window() -> None:
    ev = _event("standup", date(2026, 3, 1), Recurrence.DAILY)

    out = expand([ev], date(2026, 3, 1), date(2026, 3, 10))

    assert len(out) == 10
    assert out[0].id == "standup-2026-03-01"
    assert out[-1].date == date(2026, 3, 10)
    assert all(o.occurrence and o.source_event_id == "standup" for o in out)


def test_window_start_after_event_start() -> None:
    ev = _event("standup", date(2026, 3, 1), Recurrence.DAILY)

    out = expand([ev], date(2026, 3, 5), date(2026, 3, 7))

    assert [o.date.day for o in out] == [5, 6, 7]


def test_weekly_stops_at_recurrence_until() -> None:
    ev = _event("sync", date(2026, 3, 2), Recurrence.WEEKLY, until=date(2026, 3, 20))

    out = expand([ev], date(2026, 3, 1), date(2026, 4, 30))

    assert [o.date for o in out] == [date(2026, 3, 2), date(2026, 3, 9), date(2026, 3, 16)]


def test_monthly_clamps_to_month_end_without_drift() -> None:
    ev = _event("close", date(2026, 1, 31), Recurrence.MONTHLY)

    out = expand([ev], date(2026, 1, 1), date(2026, 5, 31))

    assert [o.date for o in out] == [
        date(2026, 1, 31),
        date(2026, 2, 28),
        date(2026, 3, 31),
        date(2026, 4, 30),
        date(2026, 5, 31),
    ]
    assert add_months(date(2028, 1, 31), 1) == date(2028, 2, 29)


def test_non_recurring_event_always_listed() -> None:
    ev = _event("launch", date(2020, 1, 1))

    out = expand([ev], date(2026, 3, 1), date(2026, 3, 31))

    assert len(out) == 1
    assert out[0].id == "launch"
    assert out[0].occurrence is False


def test_step_limit_bounds_expansion() -> None:
    ev = _event("tick", date(2026, 1, 1), Recurrence.DAILY)

    out = expand([ev], date(2026, 1, 1), date(2027, 1, 1), max_steps=5)

    assert len(out) == 5


def test_expansion_is_deterministic_and_filterable() -> None:
    events = [
        _event("a", date(2026, 3, 1), Recurrence.WEEKLY),
        _event("b", date(2026, 3, 8)),
    ]

    first = expand(events, date(2026, 3, 1), date(2026, 3, 31))
    second = expand(events, date(2026, 3, 1), date(2026, 3, 31))

    assert first == second
    assert {o.source_event_id for o in occurrences_on(first, date(2026, 3, 8))} == {"a", "b"}
