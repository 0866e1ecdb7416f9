# src/taskflow_portal/core/state.py

from __future__ import annotations

from dataclasses import dataclass

from ..undo.entries import UndoEntry
from .models import CalendarEvent, Notification, Role, Task, Theme, Toast, User


@dataclass(frozen=True, slots=True)
class Session:
    logged_in: bool = False
    user_id: str = ""
    role: Role | None = None

    @property
    def is_manager(self) -> bool:
        return self.logged_in and self.role == Role.MANAGER

    @property
    def actor_id(self) -> str:
        return self.user_id or "system"


LOGGED_OUT = Session()


@dataclass(frozen=True, slots=True)
class AppState:
    """
    Aggregate root of the portal.

    Exactly one AppState is live per running instance (owned by the store).
    It is replaced wholesale by the reducer on every action, never mutated.
    """

    initialized: bool = False
    loading: bool = False
    error: str | None = None

    users: tuple[User, ...] = ()
    tasks: tuple[Task, ...] = ()
    calendar_events: tuple[CalendarEvent, ...] = ()
    notifications: tuple[Notification, ...] = ()
    theme: Theme = Theme.LIGHT
    session: Session = LOGGED_OUT

    # Oldest first; the newest entry is the last one.
    undo_stack: tuple[UndoEntry, ...] = ()
    toast: Toast | None = None

    def find_task(self, task_id: str) -> Task | None:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    def find_user(self, user_id: str) -> User | None:
        for user in self.users:
            if user.id == user_id:
                return user
        return None

    def find_event(self, event_id: str) -> CalendarEvent | None:
        for event in self.calendar_events:
            if event.id == event_id:
                return event
        return None

    def user_name(self, user_id: str, default: str = "Employee") -> str:
        user = self.find_user(user_id)
        return user.name if user is not None else default
