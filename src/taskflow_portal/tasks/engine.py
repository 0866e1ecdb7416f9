# src/taskflow_portal/tasks/engine.py

"""
Workflow engine.

Owns every user-facing mutation of the portal:
- role-gated task status transitions (with the completion gate),
- checklist / comment edits,
- manager-only create / update / delete (create and update go through the
  mutation simulator),
- employees, calendar events, profile, session, theme and backup import/export.

Every committed task change appends history, and reversible ones push an undo
entry and emit an undoable toast plus a notification.

Policy violations never raise: they come back as OpResult(ok=False) and are
mirrored into the notification feed as warnings. The only exception callers
see on purpose is TransientMutationError from create/update.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import fields, replace
from typing import Any

from ..core import actions as a
from ..core.ids import create_id, now_iso, parse_date
from ..core.models import (
    CalendarEvent,
    ChecklistItem,
    Comment,
    HistoryEntry,
    HistoryKind,
    OpResult,
    Recurrence,
    Role,
    Severity,
    StatusSource,
    Task,
    TaskStatus,
    Theme,
    User,
)
from ..core.state import LOGGED_OUT, AppState, Session
from ..core.store import PortalStore
from ..notify.feed import NotificationFeed
from ..storage import codec
from ..undo.entries import Create, Delete, ImportSnapshot, StatusChange, Update
from ..undo.undo_log import UndoLog
from .gate import completion_blocker
from .normalize import build_task, prune_dependencies
from .simulation import MutationSimulator, TransientMutationError

logger = logging.getLogger(__name__)

# Transitions an assigned employee may request; managers may request any change.
EMPLOYEE_TRANSITIONS: dict[TaskStatus, tuple[TaskStatus, ...]] = {
    TaskStatus.PENDING: (TaskStatus.IN_PROGRESS,),
    TaskStatus.IN_PROGRESS: (TaskStatus.COMPLETED,),
    TaskStatus.COMPLETED: (TaskStatus.IN_PROGRESS,),
}

# Payload keys a manager may change through update(); everything else is kept.
EDITABLE_FIELDS = (
    "title",
    "description",
    "priority",
    "deadline",
    "assigned_to",
    "status",
    "labels",
    "dependencies",
    "subtasks",
)

# Fields an explicit None clears in update(); for the rest None means "keep".
CLEARABLE_FIELDS = ("deadline", "assigned_to")

MANAGER_ONLY = "Only manager can perform this action."
NOT_FOUND = "Task not found."
NOT_ALLOWED = "Not allowed for this task."


class WorkflowEngine:
    def __init__(
        self,
        store: PortalStore,
        feed: NotificationFeed,
        undo_log: UndoLog,
        simulator: MutationSimulator,
        *,
        create_latency_seconds: float = 0.9,
        update_latency_seconds: float = 0.85,
    ) -> None:
        self._store = store
        self._feed = feed
        self._undo = undo_log
        self._simulator = simulator
        self._create_latency = create_latency_seconds
        self._update_latency = update_latency_seconds

    @property
    def state(self) -> AppState:
        return self._store.state

    # ---- helpers ----

    def _reject(self, message: str) -> OpResult:
        logger.info("Rejected: %s", message)
        self._feed.push_notification(message, Severity.WARNING)
        return OpResult.failure(message)

    def _can_touch(self, task: Task) -> bool:
        session = self.state.session
        if session.is_manager:
            return True
        return (
            session.logged_in
            and session.role == Role.EMPLOYEE
            and bool(session.user_id)
            and session.user_id == task.assigned_to
        )

    def _entry(self, kind: HistoryKind, message: str, meta: dict[str, Any] | None = None) -> HistoryEntry:
        return HistoryEntry(
            id=create_id("hist"),
            kind=kind,
            actor_id=self.state.session.actor_id,
            message=message,
            created_at=now_iso(),
            meta=meta or {},
        )

    def _put_task(self, task: Task) -> None:
        self._store.dispatch(
            a.UpdateTasks(lambda tasks: tuple(task if t.id == task.id else t for t in tasks))
        )

    def _touchable(self, task_id: str) -> Task | OpResult:
        task = self.state.find_task(task_id)
        if task is None:
            return self._reject(NOT_FOUND)
        if not self._can_touch(task):
            return self._reject(NOT_ALLOWED)
        return task

    # ---- session / theme ----

    def login(self, username: str, password: str) -> OpResult:
        safe_username = str(username or "").strip().lower()
        safe_password = str(password or "")
        user = next(
            (
                u
                for u in self.state.users
                if u.username.lower() == safe_username and u.password == safe_password
            ),
            None,
        )
        if user is None:
            logger.info("Login failed for username=%s", safe_username)
            return OpResult.failure("Invalid credentials.")

        self._store.dispatch(a.SetSession(Session(logged_in=True, user_id=user.id, role=user.role)))
        self._feed.push_notification(f"Signed in as {user.name}", Severity.SUCCESS)
        logger.info("Signed in user_id=%s role=%s", user.id, user.role)
        return OpResult.success(f"Signed in as {user.name}", data=user)

    def logout(self) -> OpResult:
        self._store.dispatch(a.SetSession(LOGGED_OUT))
        self._feed.push_notification("You have been signed out.", Severity.INFO)
        return OpResult.success("Signed out.")

    def toggle_theme(self) -> Theme:
        theme = Theme.LIGHT if self.state.theme == Theme.DARK else Theme.DARK
        self._store.dispatch(a.SetTheme(theme))
        return theme

    # ---- status workflow ----

    def set_status(
        self,
        task_id: str,
        next_status: TaskStatus | str,
        source: StatusSource | str = StatusSource.BUTTON,
    ) -> OpResult:
        task = self.state.find_task(task_id)
        if task is None:
            return self._reject(NOT_FOUND)

        if not self._can_touch(task):
            return self._reject(NOT_ALLOWED)

        try:
            target = TaskStatus(str(next_status))
        except ValueError:
            return self._reject(f"Unknown status: {next_status}.")

        if not self.state.session.is_manager:
            if target not in EMPLOYEE_TRANSITIONS.get(task.status, ()):
                return self._reject(f"Invalid transition from {task.status}.")

        if task.status == target:
            return self._reject(f"Task is already {target}.")

        if target == TaskStatus.COMPLETED:
            blocker = completion_blocker(task, self.state.tasks)
            if blocker:
                return self._reject(blocker)

        previous = task.status
        reopen_count = task.reopen_count
        if previous == TaskStatus.COMPLETED and target == TaskStatus.IN_PROGRESS:
            reopen_count += 1

        changed = replace(task, status=target, reopen_count=reopen_count, updated_at=now_iso())
        changed = changed.with_history(
            self._entry(
                HistoryKind.STATUS_CHANGE,
                f"Status changed from {previous} to {target}.",
                {"fromStatus": str(previous), "toStatus": str(target), "source": str(source)},
            )
        )
        self._put_task(changed)
        self._undo.push(StatusChange(task_id=task.id, previous_status=previous, next_status=target))
        self._feed.push_toast(f'Moved "{task.title}" to {target}', undoable=True)
        self._feed.push_notification(
            f'"{task.title}" is now {target}.',
            Severity.SUCCESS if target == TaskStatus.COMPLETED else Severity.INFO,
        )
        logger.info("Task %s: %s -> %s (source=%s)", task.id, previous, target, source)
        return OpResult.success(f"Moved to {target}", data=changed)

    def reopen(self, task_id: str) -> OpResult:
        return self.set_status(task_id, TaskStatus.IN_PROGRESS, StatusSource.CONTINUE_WORK)

    def completion_blocker_for(self, task_id: str) -> str | None:
        task = self.state.find_task(task_id)
        if task is None or task.status == TaskStatus.COMPLETED:
            return None
        return completion_blocker(task, self.state.tasks)

    # ---- comments / checklist (not undoable) ----

    def add_comment(self, task_id: str, text: str) -> OpResult:
        message = str(text or "").strip()
        if not message:
            return self._reject("Comment cannot be empty.")

        found = self._touchable(task_id)
        if isinstance(found, OpResult):
            return found

        now = now_iso()
        comment = Comment(id=create_id("comment"), text=message, author_id=self.state.session.actor_id, created_at=now)
        changed = replace(found, comments=(comment, *found.comments), updated_at=now)
        self._put_task(changed.with_history(self._entry(HistoryKind.COMMENT, "Comment added.")))
        return OpResult.success("Comment added.", data=comment)

    def toggle_checklist_item(self, task_id: str, subtask_id: str) -> OpResult:
        found = self._touchable(task_id)
        if isinstance(found, OpResult):
            return found
        if not any(s.id == subtask_id for s in found.subtasks):
            return self._reject("Checklist item not found.")

        subtasks = tuple(
            replace(s, completed=not s.completed) if s.id == subtask_id else s for s in found.subtasks
        )
        changed = replace(found, subtasks=subtasks, updated_at=now_iso())
        self._put_task(
            changed.with_history(
                self._entry(HistoryKind.SUBTASK, "Checklist updated.", {"subtaskId": subtask_id})
            )
        )
        return OpResult.success("Checklist updated.")

    def add_checklist_item(self, task_id: str, text: str) -> OpResult:
        safe_text = str(text or "").strip()
        if not safe_text:
            return self._reject("Subtask text is required.")

        found = self._touchable(task_id)
        if isinstance(found, OpResult):
            return found

        item = ChecklistItem(id=create_id("subtask"), text=safe_text, completed=False)
        changed = replace(found, subtasks=(*found.subtasks, item), updated_at=now_iso())
        self._put_task(changed.with_history(self._entry(HistoryKind.SUBTASK, "Checklist item added.")))
        return OpResult.success("Checklist item added.", data=item)

    # ---- manager CRUD ----

    async def create(self, payload: Mapping[str, Any]) -> OpResult:
        """
        Create a task (Manager only).

        Raises TransientMutationError when the simulated hop fails; state then
        carries the error message and a failure notification.
        """
        if not self.state.session.is_manager:
            return self._reject(MANAGER_ONLY)
        if not str(payload.get("title") or "").strip():
            return self._reject("Task title is required.")

        return await self._simulated(
            latency=self._create_latency,
            failure_message="Simulated network error while creating task.",
            commit=lambda: self._commit_create(payload),
        )

    async def update(self, task_id: str, payload: Mapping[str, Any]) -> OpResult:
        """Merge `payload` over an existing task (Manager only). See create() for failures."""
        if not self.state.session.is_manager:
            return self._reject(MANAGER_ONLY)

        return await self._simulated(
            latency=self._update_latency,
            failure_message="Simulated network error while updating task.",
            commit=lambda: self._commit_update(task_id, payload),
        )

    async def _simulated(
        self,
        *,
        latency: float,
        failure_message: str,
        commit: Callable[[], OpResult],
    ) -> OpResult:
        self._store.dispatch(a.SetLoading(True))
        self._store.dispatch(a.SetError(None))
        try:
            return await self._simulator.run(
                latency_seconds=latency,
                failure_message=failure_message,
                commit=commit,
            )
        except TransientMutationError as exc:
            self._store.dispatch(a.SetError(str(exc)))
            self._feed.push_notification(str(exc), Severity.ERROR)
            raise
        finally:
            self._store.dispatch(a.SetLoading(False))

    def _commit_create(self, payload: Mapping[str, Any]) -> OpResult:
        current = self.state
        now = now_iso()
        base = {key: payload.get(key) for key in EDITABLE_FIELDS}
        base.update(id=create_id("task"), comments=(), history=(), reopen_count=0, created_at=now, updated_at=now)

        task = prune_dependencies(build_task(base), (t.id for t in current.tasks))
        task = task.with_history(self._entry(HistoryKind.CREATED, "Task created."))
        task = task.with_history(
            self._entry(
                HistoryKind.ASSIGNED,
                f"Assigned to {current.user_name(task.assigned_to)}.",
                {"assignedTo": task.assigned_to},
            )
        )

        self._store.dispatch(a.UpdateTasks(lambda tasks: (task, *tasks)))
        self._undo.push(Create(task_id=task.id))
        self._feed.push_toast(f'Created "{task.title}"', undoable=True)
        self._feed.push_notification(f'Task "{task.title}" assigned.', Severity.SUCCESS)
        logger.info("Task created id=%s assigned_to=%s", task.id, task.assigned_to)
        return OpResult.success(f'Task "{task.title}" assigned.', data=task)

    def _commit_update(self, task_id: str, payload: Mapping[str, Any]) -> OpResult:
        current = self.state
        existing = current.find_task(task_id)
        if existing is None:
            return self._reject(NOT_FOUND)

        base = {f.name: getattr(existing, f.name) for f in fields(Task)}
        for key in EDITABLE_FIELDS:
            if key not in payload:
                continue
            if payload[key] is not None or key in CLEARABLE_FIELDS:
                base[key] = payload[key]

        merged = prune_dependencies(build_task(base), (t.id for t in current.tasks))

        if merged.status == TaskStatus.COMPLETED:
            blocker = completion_blocker(merged, current.tasks)
            if blocker:
                return self._reject(blocker)

        details_changed = any(
            getattr(merged, name) != getattr(existing, name)
            for name in ("title", "description", "priority", "deadline", "labels", "dependencies", "subtasks")
        )
        reassigned = merged.assigned_to != existing.assigned_to
        status_changed = merged.status != existing.status

        if not (details_changed or reassigned or status_changed):
            logger.info("Update of %s changed nothing", task_id)
            return OpResult.success("No changes to save.", data=existing)

        result = replace(merged, updated_at=now_iso())
        if status_changed and existing.status == TaskStatus.COMPLETED and merged.status == TaskStatus.IN_PROGRESS:
            result = replace(result, reopen_count=existing.reopen_count + 1)

        if reassigned:
            result = result.with_history(
                self._entry(
                    HistoryKind.ASSIGNED,
                    f"Reassigned to {current.user_name(merged.assigned_to)}.",
                    {"from": existing.assigned_to, "to": merged.assigned_to},
                )
            )
        if status_changed:
            result = result.with_history(
                self._entry(
                    HistoryKind.STATUS_CHANGE,
                    f"Status changed from {existing.status} to {merged.status}.",
                    {"fromStatus": str(existing.status), "toStatus": str(merged.status)},
                )
            )
        if details_changed:
            result = result.with_history(self._entry(HistoryKind.EDITED, "Task details updated."))

        self._put_task(result)
        self._undo.push(Update(previous=existing))
        self._feed.push_toast(f'Updated "{result.title}"', undoable=True)
        self._feed.push_notification(f'Task "{result.title}" updated.', Severity.INFO)
        logger.info(
            "Task updated id=%s reassigned=%s status_changed=%s details_changed=%s",
            task_id,
            reassigned,
            status_changed,
            details_changed,
        )
        return OpResult.success(f'Task "{result.title}" updated.', data=result)

    def delete(self, task_id: str) -> OpResult:
        if not self.state.session.is_manager:
            return self._reject(MANAGER_ONLY)
        task = self.state.find_task(task_id)
        if task is None:
            return self._reject(NOT_FOUND)

        def _remove(tasks: tuple[Task, ...]) -> tuple[Task, ...]:
            kept = []
            for t in tasks:
                if t.id == task_id:
                    continue
                if task_id in t.dependencies:
                    t = replace(t, dependencies=tuple(d for d in t.dependencies if d != task_id))
                kept.append(t)
            return tuple(kept)

        self._store.dispatch(a.UpdateTasks(_remove))
        self._undo.push(Delete(task=task))
        self._feed.push_toast(f'Deleted "{task.title}"', undoable=True)
        self._feed.push_notification(f'Task "{task.title}" deleted.', Severity.WARNING)
        logger.info("Task deleted id=%s", task_id)
        return OpResult.success(f'Task "{task.title}" deleted.', data=task)

    def undo_last(self) -> bool:
        return self._undo.undo_last()

    # ---- people ----

    def add_employee(self, name: str, username: str, password: str) -> OpResult:
        if not self.state.session.is_manager:
            return self._reject(MANAGER_ONLY)

        safe_name = str(name or "").strip()
        safe_username = str(username or "").strip().lower()
        safe_password = str(password or "").strip()
        if not safe_name or not safe_username or not safe_password:
            return self._reject("Employee name, username, and password are required.")
        if any(u.username.strip().lower() == safe_username for u in self.state.users):
            return self._reject("Username already exists.")

        employee = User(
            id=create_id("emp"),
            name=safe_name,
            role=Role.EMPLOYEE,
            username=safe_username,
            password=safe_password,
        )
        self._store.dispatch(a.UpdateUsers(lambda users: (*users, employee)))
        self._feed.push_notification(f'Employee "{employee.name}" added.', Severity.SUCCESS)
        logger.info("Employee added id=%s username=%s", employee.id, employee.username)
        return OpResult.success(f'Employee "{employee.name}" added.', data=employee)

    def update_user_profile(self, user_id: str, github_username: str = "", avatar_ref: str = "") -> OpResult:
        session = self.state.session
        if not session.logged_in or (session.user_id != user_id and not session.is_manager):
            return self._reject("Not allowed to edit this profile.")
        if self.state.find_user(user_id) is None:
            return self._reject("User not found.")

        def _apply(users: tuple[User, ...]) -> tuple[User, ...]:
            return tuple(
                replace(
                    u,
                    github_username=str(github_username or "").strip(),
                    avatar_ref=str(avatar_ref or ""),
                )
                if u.id == user_id
                else u
                for u in users
            )

        self._store.dispatch(a.UpdateUsers(_apply))
        self._feed.push_notification("Profile updated.", Severity.SUCCESS)
        return OpResult.success("Profile updated.")

    # ---- calendar ----

    def add_calendar_event(
        self,
        title: str,
        date: Any,
        description: str = "",
        recurrence: Recurrence | str = Recurrence.NONE,
        recurrence_until: Any = None,
    ) -> OpResult:
        session = self.state.session
        if not session.logged_in:
            return self._reject("Sign in to add event.")

        safe_title = str(title or "").strip()
        day = parse_date(date)
        if not safe_title or day is None:
            return self._reject("Event title and date are required.")

        rec = Recurrence.from_raw(recurrence)
        until = None if rec == Recurrence.NONE else parse_date(recurrence_until)
        if until is not None and until < day:
            return self._reject("Recurrence end date must be after start date.")

        event = CalendarEvent(
            id=create_id("event"),
            title=safe_title,
            date=day,
            description=str(description or "").strip(),
            recurrence=rec,
            recurrence_until=until,
            created_by=session.user_id,
            created_at=now_iso(),
            auto_generated=False,
        )
        self._store.dispatch(
            a.UpdateCalendarEvents(lambda events: tuple(sorted((event, *events), key=lambda e: e.date)))
        )
        self._feed.push_notification(f'Event "{safe_title}" scheduled.', Severity.SUCCESS)
        return OpResult.success(f'Event "{safe_title}" scheduled.', data=event)

    def delete_calendar_event(self, event_id: str) -> OpResult:
        event = self.state.find_event(event_id)
        if event is None:
            return self._reject("Event not found.")

        session = self.state.session
        if not (session.is_manager or (session.logged_in and event.created_by == session.user_id)):
            return self._reject("Not allowed to remove this event.")

        self._store.dispatch(
            a.UpdateCalendarEvents(lambda events: tuple(e for e in events if e.id != event_id))
        )
        self._feed.push_notification(f'Event "{event.title}" removed.', Severity.INFO)
        return OpResult.success(f'Event "{event.title}" removed.')

    # ---- backup ----

    def export_backup(self) -> dict[str, Any]:
        state = self.state
        return {
            "version": 1,
            "exportedAt": now_iso(),
            "users": [codec.user_to_dict(u) for u in state.users],
            "tasks": [codec.task_to_dict(t) for t in state.tasks],
            "calendarEvents": [codec.event_to_dict(e) for e in state.calendar_events],
            "theme": str(state.theme),
        }

    def import_backup(self, payload: Any) -> OpResult:
        """
        Replace users, tasks and calendar events with a backup (Manager only).

        Assignees that don't reference an imported user are cleared and
        dependencies that don't reference an imported task are pruned.
        The import is undoable.
        """
        if not self.state.session.is_manager:
            return self._reject(MANAGER_ONLY)
        if not isinstance(payload, Mapping):
            return self._reject("Invalid backup payload.")
        if not isinstance(payload.get("users"), list) or not isinstance(payload.get("tasks"), list):
            return self._reject("Backup is missing users or tasks.")

        users = codec.users_from_list(payload.get("users"))
        if not any(u.role == Role.MANAGER for u in users):
            return self._reject("Backup must include at least one manager.")

        user_ids = {u.id for u in users}
        tasks = codec.tasks_from_list(payload.get("tasks"))
        task_ids = [t.id for t in tasks]
        tasks = tuple(
            prune_dependencies(
                t if t.assigned_to in user_ids else replace(t, assigned_to=""),
                task_ids,
            )
            for t in tasks
        )
        events = codec.events_from_list(payload.get("calendarEvents"))

        previous = self.state
        self._store.dispatch(a.UpdateUsers(lambda _users: users))
        self._store.dispatch(a.UpdateTasks(lambda _tasks: tasks))
        self._store.dispatch(a.UpdateCalendarEvents(lambda _events: events))
        self._undo.push(
            ImportSnapshot(
                users=previous.users,
                tasks=previous.tasks,
                calendar_events=previous.calendar_events,
            )
        )
        self._feed.push_notification("Backup imported successfully.", Severity.SUCCESS)
        logger.info("Backup imported: %d users, %d tasks, %d events", len(users), len(tasks), len(events))
        return OpResult.success("Backup imported successfully.")
