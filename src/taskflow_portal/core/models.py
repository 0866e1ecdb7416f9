# src/taskflow_portal/core/models.py

"""
Entity types for the portal.

All entities are frozen dataclasses: every mutation produces a new value, which
lets undo entries hold exact snapshots without copying and keeps task history
append-only (a new tuple with the newest entry first).
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from enum import StrEnum
from typing import Any


class Role(StrEnum):
    MANAGER = "Manager"
    EMPLOYEE = "Employee"

    @classmethod
    def from_raw(cls, raw: object) -> Role | None:
        try:
            return cls(str(raw))
        except ValueError:
            return None


class TaskStatus(StrEnum):
    """Workflow state of a task."""

    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"

    @classmethod
    def from_raw(cls, raw: object) -> TaskStatus:
        if raw is None:
            return cls.PENDING
        try:
            return cls(str(raw))
        except ValueError:
            return cls.PENDING


class Priority(StrEnum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"

    @classmethod
    def from_raw(cls, raw: object) -> Priority:
        if raw is None:
            return cls.MEDIUM
        try:
            return cls(str(raw))
        except ValueError:
            return cls.MEDIUM


class Recurrence(StrEnum):
    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"

    @classmethod
    def from_raw(cls, raw: object) -> Recurrence:
        if raw is None:
            return cls.NONE
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            return cls.NONE


class Theme(StrEnum):
    LIGHT = "light"
    DARK = "dark"


class Severity(StrEnum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"

    @classmethod
    def from_raw(cls, raw: object) -> Severity:
        try:
            return cls(str(raw))
        except ValueError:
            return cls.INFO


class HistoryKind(StrEnum):
    CREATED = "created"
    ASSIGNED = "assigned"
    STATUS_CHANGE = "status-change"
    EDITED = "edited"
    COMMENT = "comment"
    SUBTASK = "subtask"
    REVERTED = "reverted"


class StatusSource(StrEnum):
    """Where a status change was requested from (recorded in history meta)."""

    BUTTON = "button"
    DRAG_DROP = "drag-drop"
    KEYBOARD_SHORTCUT = "keyboard-shortcut"
    CONTINUE_WORK = "continue-work"


@dataclass(frozen=True, slots=True)
class User:
    id: str
    name: str
    role: Role
    username: str = ""
    password: str = ""
    github_username: str = ""
    avatar_ref: str = ""


@dataclass(frozen=True, slots=True)
class ChecklistItem:
    id: str
    text: str
    completed: bool = False


@dataclass(frozen=True, slots=True)
class Comment:
    id: str
    text: str
    author_id: str
    created_at: str


@dataclass(frozen=True, slots=True)
class HistoryEntry:
    id: str
    kind: HistoryKind | str
    actor_id: str
    message: str
    created_at: str
    meta: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class Task:
    id: str
    title: str
    description: str = ""
    priority: Priority = Priority.MEDIUM
    deadline: date | None = None
    assigned_to: str = ""
    status: TaskStatus = TaskStatus.PENDING
    labels: tuple[str, ...] = ()
    dependencies: tuple[str, ...] = ()
    subtasks: tuple[ChecklistItem, ...] = ()
    comments: tuple[Comment, ...] = ()
    # Newest first; only ever grows at the front.
    history: tuple[HistoryEntry, ...] = ()
    reopen_count: int = 0
    created_at: str = ""
    updated_at: str = ""

    def with_history(self, entry: HistoryEntry) -> Task:
        return replace(self, history=(entry, *self.history))

    def incomplete_subtasks(self) -> list[ChecklistItem]:
        return [s for s in self.subtasks if not s.completed]


@dataclass(frozen=True, slots=True)
class CalendarEvent:
    id: str
    title: str
    date: date
    description: str = ""
    recurrence: Recurrence = Recurrence.NONE
    recurrence_until: date | None = None
    created_by: str = ""
    created_at: str = ""
    auto_generated: bool = False


@dataclass(frozen=True, slots=True)
class Occurrence:
    """A calendar event pinned to one concrete date. Computed, never stored."""

    id: str
    source_event_id: str
    title: str
    date: date
    description: str = ""
    recurrence: Recurrence = Recurrence.NONE
    occurrence: bool = False


@dataclass(frozen=True, slots=True)
class Notification:
    id: str
    message: str
    severity: Severity = Severity.INFO
    read: bool = False
    created_at: str = ""


@dataclass(frozen=True, slots=True)
class Toast:
    id: str
    message: str
    undoable: bool = True


@dataclass(frozen=True, slots=True)
class OpResult:
    """Outcome of a user-facing operation. Policy rejections come back as ok=False."""

    ok: bool
    message: str = ""
    data: Any = None

    @classmethod
    def success(cls, message: str = "", data: Any = None) -> OpResult:
        return cls(ok=True, message=message, data=data)

    @classmethod
    def failure(cls, message: str) -> OpResult:
        return cls(ok=False, message=message)
