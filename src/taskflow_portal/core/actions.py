# src/taskflow_portal/core/actions.py

"""
Actions understood by the reducer.

Each action is a small immutable record. Collection updates carry an updater
function (old collection -> new collection) so a commit always works on the
state that is current at dispatch time, even after an await.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from ..undo.entries import UndoEntry
from .models import CalendarEvent, Notification, Task, Theme, Toast, User
from .state import Session

TasksUpdater = Callable[[tuple[Task, ...]], tuple[Task, ...]]
UsersUpdater = Callable[[tuple[User, ...]], tuple[User, ...]]
EventsUpdater = Callable[[tuple[CalendarEvent, ...]], tuple[CalendarEvent, ...]]


@dataclass(frozen=True, slots=True)
class Initialize:
    users: tuple[User, ...]
    tasks: tuple[Task, ...]
    calendar_events: tuple[CalendarEvent, ...]
    notifications: tuple[Notification, ...]
    theme: Theme
    session: Session


@dataclass(frozen=True, slots=True)
class SetLoading:
    loading: bool


@dataclass(frozen=True, slots=True)
class SetError:
    error: str | None


@dataclass(frozen=True, slots=True)
class UpdateUsers:
    updater: UsersUpdater


@dataclass(frozen=True, slots=True)
class UpdateTasks:
    updater: TasksUpdater


@dataclass(frozen=True, slots=True)
class UpdateCalendarEvents:
    updater: EventsUpdater


@dataclass(frozen=True, slots=True)
class SetSession:
    session: Session


@dataclass(frozen=True, slots=True)
class SetTheme:
    theme: Theme


@dataclass(frozen=True, slots=True)
class PushNotification:
    notification: Notification
    limit: int = 150


@dataclass(frozen=True, slots=True)
class MarkNotificationRead:
    notification_id: str


@dataclass(frozen=True, slots=True)
class MarkAllNotificationsRead:
    pass


@dataclass(frozen=True, slots=True)
class RemoveNotification:
    notification_id: str


@dataclass(frozen=True, slots=True)
class SetToast:
    toast: Toast


@dataclass(frozen=True, slots=True)
class ClearToast:
    # None clears whatever toast is live; an id clears only that toast.
    toast_id: str | None = None


@dataclass(frozen=True, slots=True)
class PushUndo:
    entry: UndoEntry
    limit: int = 25


@dataclass(frozen=True, slots=True)
class PopUndo:
    pass


Action = (
    Initialize
    | SetLoading
    | SetError
    | UpdateUsers
    | UpdateTasks
    | UpdateCalendarEvents
    | SetSession
    | SetTheme
    | PushNotification
    | MarkNotificationRead
    | MarkAllNotificationsRead
    | RemoveNotification
    | SetToast
    | ClearToast
    | PushUndo
    | PopUndo
)


def describe(action: Any) -> str:
    """Short action name for logs."""
    return type(action).__name__
