# src/taskflow_portal/storage/codec.py

"""
JSON codec for the persisted snapshot.

Snapshot shape (camelCase keys, JSON-compatible values):
  {users[], tasks[], calendarEvents[], notifications[], theme, session}

Decoding is lenient and field-by-field: unknown enum values fall back to
defaults, malformed nested items are dropped, and nothing raises for bad
element data. Only the top-level shape is checked by the snapshot store.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from ..core.ids import create_id, now_iso, parse_date
from ..core.models import (
    CalendarEvent,
    ChecklistItem,
    Comment,
    HistoryEntry,
    Notification,
    Recurrence,
    Role,
    Severity,
    Task,
    Theme,
    User,
)
from ..core.state import LOGGED_OUT, AppState, Session
from ..tasks.normalize import build_task


def _date_str(value: Any) -> str:
    return value.isoformat() if value is not None else ""


# ---- encode ----


def user_to_dict(user: User) -> dict[str, Any]:
    return {
        "id": user.id,
        "name": user.name,
        "role": str(user.role),
        "username": user.username,
        "password": user.password,
        "githubUsername": user.github_username,
        "avatarDataUrl": user.avatar_ref,
    }


def subtask_to_dict(item: ChecklistItem) -> dict[str, Any]:
    return {"id": item.id, "text": item.text, "completed": item.completed}


def comment_to_dict(comment: Comment) -> dict[str, Any]:
    return {
        "id": comment.id,
        "text": comment.text,
        "authorId": comment.author_id,
        "createdAt": comment.created_at,
    }


def history_to_dict(entry: HistoryEntry) -> dict[str, Any]:
    return {
        "id": entry.id,
        "type": str(entry.kind),
        "actorId": entry.actor_id,
        "message": entry.message,
        "createdAt": entry.created_at,
        "meta": dict(entry.meta),
    }


def task_to_dict(task: Task) -> dict[str, Any]:
    return {
        "id": task.id,
        "title": task.title,
        "description": task.description,
        "priority": str(task.priority),
        "deadline": _date_str(task.deadline),
        "assignedTo": task.assigned_to,
        "status": str(task.status),
        "labels": list(task.labels),
        "dependencies": list(task.dependencies),
        "subtasks": [subtask_to_dict(s) for s in task.subtasks],
        "comments": [comment_to_dict(c) for c in task.comments],
        "history": [history_to_dict(h) for h in task.history],
        "reopenCount": task.reopen_count,
        "createdAt": task.created_at,
        "updatedAt": task.updated_at,
    }


def event_to_dict(event: CalendarEvent) -> dict[str, Any]:
    return {
        "id": event.id,
        "title": event.title,
        "date": _date_str(event.date),
        "description": event.description,
        "recurrence": str(event.recurrence),
        "recurrenceUntil": _date_str(event.recurrence_until),
        "createdBy": event.created_by,
        "createdAt": event.created_at,
        "autoGenerated": event.auto_generated,
    }


def notification_to_dict(n: Notification) -> dict[str, Any]:
    return {
        "id": n.id,
        "message": n.message,
        "type": str(n.severity),
        "read": n.read,
        "createdAt": n.created_at,
    }


def session_to_dict(session: Session) -> dict[str, Any]:
    return {
        "loggedIn": session.logged_in,
        "userId": session.user_id,
        "role": str(session.role) if session.role is not None else "",
    }


def state_to_snapshot(state: AppState) -> dict[str, Any]:
    return {
        "users": [user_to_dict(u) for u in state.users],
        "tasks": [task_to_dict(t) for t in state.tasks],
        "calendarEvents": [event_to_dict(e) for e in state.calendar_events],
        "notifications": [notification_to_dict(n) for n in state.notifications],
        "theme": str(state.theme),
        "session": session_to_dict(state.session),
    }


# ---- decode ----


def _mappings(raw: Any) -> Iterable[Mapping[str, Any]]:
    if not isinstance(raw, list):
        return []
    return [item for item in raw if isinstance(item, Mapping)]


def user_from_dict(raw: Mapping[str, Any]) -> User | None:
    role = Role.from_raw(raw.get("role"))
    user_id = str(raw.get("id") or "")
    if role is None or not user_id:
        return None
    return User(
        id=user_id,
        name=str(raw.get("name") or ""),
        role=role,
        username=str(raw.get("username") or ""),
        password=str(raw.get("password") or ""),
        github_username=str(raw.get("githubUsername") or ""),
        avatar_ref=str(raw.get("avatarDataUrl") or ""),
    )


def comment_from_dict(raw: Mapping[str, Any]) -> Comment:
    return Comment(
        id=str(raw.get("id") or create_id("comment")),
        text=str(raw.get("text") or ""),
        author_id=str(raw.get("authorId") or ""),
        created_at=str(raw.get("createdAt") or ""),
    )


def history_from_dict(raw: Mapping[str, Any]) -> HistoryEntry:
    meta = raw.get("meta")
    return HistoryEntry(
        id=str(raw.get("id") or create_id("hist")),
        kind=str(raw.get("type") or ""),
        actor_id=str(raw.get("actorId") or ""),
        message=str(raw.get("message") or ""),
        created_at=str(raw.get("createdAt") or ""),
        meta=dict(meta) if isinstance(meta, Mapping) else {},
    )


def task_from_dict(raw: Mapping[str, Any]) -> Task:
    return build_task(
        {
            "id": raw.get("id"),
            "title": raw.get("title"),
            "description": raw.get("description"),
            "priority": raw.get("priority"),
            "deadline": raw.get("deadline"),
            "assigned_to": raw.get("assignedTo"),
            "status": raw.get("status"),
            "labels": raw.get("labels"),
            "dependencies": raw.get("dependencies"),
            "subtasks": raw.get("subtasks"),
            "comments": [comment_from_dict(c) for c in _mappings(raw.get("comments"))],
            "history": [history_from_dict(h) for h in _mappings(raw.get("history"))],
            "reopen_count": raw.get("reopenCount"),
            "created_at": raw.get("createdAt"),
            "updated_at": raw.get("updatedAt"),
        }
    )


def event_from_dict(raw: Mapping[str, Any]) -> CalendarEvent | None:
    day = parse_date(raw.get("date"))
    if day is None:
        return None
    recurrence = Recurrence.from_raw(raw.get("recurrence"))
    return CalendarEvent(
        id=str(raw.get("id") or create_id("event")),
        title=str(raw.get("title") or ""),
        date=day,
        description=str(raw.get("description") or ""),
        recurrence=recurrence,
        recurrence_until=None if recurrence == Recurrence.NONE else parse_date(raw.get("recurrenceUntil")),
        created_by=str(raw.get("createdBy") or ""),
        created_at=str(raw.get("createdAt") or now_iso()),
        auto_generated=bool(raw.get("autoGenerated")),
    )


def notification_from_dict(raw: Mapping[str, Any]) -> Notification:
    return Notification(
        id=str(raw.get("id") or create_id("notif")),
        message=str(raw.get("message") or ""),
        severity=Severity.from_raw(raw.get("type")),
        read=bool(raw.get("read")),
        created_at=str(raw.get("createdAt") or ""),
    )


def session_from_dict(raw: Any) -> Session:
    """A session missing any of loggedIn/userId/role comes back logged out."""
    if not isinstance(raw, Mapping):
        return LOGGED_OUT
    role = Role.from_raw(raw.get("role"))
    user_id = str(raw.get("userId") or "")
    if not raw.get("loggedIn") or not user_id or role is None:
        return LOGGED_OUT
    return Session(logged_in=True, user_id=user_id, role=role)


def theme_from_raw(raw: Any) -> Theme:
    return Theme.DARK if raw == "dark" else Theme.LIGHT


def users_from_list(raw: Any) -> tuple[User, ...]:
    return tuple(u for u in (user_from_dict(r) for r in _mappings(raw)) if u is not None)


def tasks_from_list(raw: Any) -> tuple[Task, ...]:
    return tuple(task_from_dict(r) for r in _mappings(raw))


def events_from_list(raw: Any) -> tuple[CalendarEvent, ...]:
    events = (event_from_dict(r) for r in _mappings(raw))
    return tuple(sorted((e for e in events if e is not None), key=lambda e: e.date))


def notifications_from_list(raw: Any) -> tuple[Notification, ...]:
    return tuple(notification_from_dict(r) for r in _mappings(raw))
