# src/taskflow_portal/undo/entries.py

"""
Undo entries: one variant per reversible operation.

Each variant carries exactly the data its inverse needs. Entries are immutable
records; the Undo Log only appends and pops them.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..core.models import CalendarEvent, Task, TaskStatus, User


@dataclass(frozen=True, slots=True)
class StatusChange:
    task_id: str
    previous_status: TaskStatus
    next_status: TaskStatus


@dataclass(frozen=True, slots=True)
class Create:
    task_id: str


@dataclass(frozen=True, slots=True)
class Update:
    # Task as it was before the update.
    previous: Task


@dataclass(frozen=True, slots=True)
class Delete:
    task: Task


@dataclass(frozen=True, slots=True)
class ImportSnapshot:
    """Collections replaced by a backup import."""

    users: tuple[User, ...]
    tasks: tuple[Task, ...]
    calendar_events: tuple[CalendarEvent, ...]


UndoEntry = StatusChange | Create | Update | Delete | ImportSnapshot
