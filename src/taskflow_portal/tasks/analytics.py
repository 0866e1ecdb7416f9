# src/taskflow_portal/tasks/analytics.py

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date

from ..core.models import Task, TaskStatus, User


@dataclass(frozen=True, slots=True)
class AssigneeLoad:
    user_id: str
    name: str
    open: int
    completed: int


@dataclass(frozen=True, slots=True)
class PortalStats:
    total: int
    by_status: dict[str, int]
    overdue: int
    completion_rate: float
    reopened: int
    by_assignee: list[AssigneeLoad] = field(default_factory=list)


def summarize(tasks: Iterable[Task], users: Iterable[User], *, today: date) -> PortalStats:
    """Read-only dashboard numbers. Overdue = deadline before today and not Completed."""
    items = list(tasks)
    by_status = {str(s): 0 for s in TaskStatus}
    for t in items:
        by_status[str(t.status)] += 1

    overdue = sum(
        1 for t in items if t.deadline is not None and t.deadline < today and t.status != TaskStatus.COMPLETED
    )
    completed = by_status[str(TaskStatus.COMPLETED)]
    rate = completed / len(items) if items else 0.0

    loads: list[AssigneeLoad] = []
    for user in users:
        mine = [t for t in items if t.assigned_to == user.id]
        if not mine:
            continue
        done = sum(1 for t in mine if t.status == TaskStatus.COMPLETED)
        loads.append(AssigneeLoad(user_id=user.id, name=user.name, open=len(mine) - done, completed=done))

    return PortalStats(
        total=len(items),
        by_status=by_status,
        overdue=overdue,
        completion_rate=rate,
        reopened=sum(t.reopen_count for t in items),
        by_assignee=loads,
    )
