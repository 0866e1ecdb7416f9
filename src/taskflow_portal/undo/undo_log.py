# src/taskflow_portal/undo/undo_log.py

from __future__ import annotations

import logging
from dataclasses import replace

from ..core import actions as a
from ..core.ids import create_id, now_iso
from ..core.models import HistoryEntry, HistoryKind, Severity, Task, TaskStatus
from ..core.store import PortalStore
from ..notify.feed import NotificationFeed
from .entries import Create, Delete, ImportSnapshot, StatusChange, UndoEntry, Update

logger = logging.getLogger(__name__)

UNDO_LIMIT = 25


class UndoLog:
    """
    Bounded single-level undo.

    push() appends and drops the oldest entries beyond the limit.
    undo_last() pops the newest entry and applies its inverse. Undo is a
    system action: it is not subject to role or transition checks.
    There is no redo.
    """

    def __init__(self, store: PortalStore, feed: NotificationFeed, *, limit: int = UNDO_LIMIT) -> None:
        self._store = store
        self._feed = feed
        self._limit = max(1, int(limit))

    @property
    def limit(self) -> int:
        return self._limit

    def __len__(self) -> int:
        return len(self._store.state.undo_stack)

    def entries(self) -> tuple[UndoEntry, ...]:
        return self._store.state.undo_stack

    def push(self, entry: UndoEntry) -> None:
        self._store.dispatch(a.PushUndo(entry, limit=self._limit))

    def undo_last(self) -> bool:
        stack = self._store.state.undo_stack
        if not stack:
            return False

        latest = stack[-1]
        if isinstance(latest, StatusChange):
            self._revert_status(latest)
            self._feed.push_notification("Status change reverted.", Severity.INFO)
        elif isinstance(latest, Create):
            self._store.dispatch(
                a.UpdateTasks(lambda tasks: tuple(t for t in tasks if t.id != latest.task_id))
            )
            self._feed.push_notification("Created task removed.", Severity.INFO)
        elif isinstance(latest, Update):
            previous = latest.previous
            self._store.dispatch(
                a.UpdateTasks(
                    lambda tasks: tuple(previous if t.id == previous.id else t for t in tasks)
                )
            )
            self._feed.push_notification("Task update reverted.", Severity.INFO)
        elif isinstance(latest, Delete):
            removed = latest.task
            self._store.dispatch(a.UpdateTasks(lambda tasks: _reinsert(tasks, removed)))
            self._feed.push_notification("Deleted task restored.", Severity.INFO)
        elif isinstance(latest, ImportSnapshot):
            self._store.dispatch(a.UpdateUsers(lambda _users: latest.users))
            self._store.dispatch(a.UpdateTasks(lambda _tasks: latest.tasks))
            self._store.dispatch(a.UpdateCalendarEvents(lambda _events: latest.calendar_events))
            self._feed.push_notification("Backup import reverted.", Severity.INFO)
        else:
            raise TypeError(f"Unknown undo entry: {type(latest).__name__}")

        self._store.dispatch(a.PopUndo())
        self._feed.dismiss_toast()
        logger.info("Undo applied: %s (remaining=%d)", type(latest).__name__, len(self))
        return True

    def _revert_status(self, entry: StatusChange) -> None:
        actor_id = self._store.state.session.actor_id

        def _apply(task: Task) -> Task:
            reopen_count = task.reopen_count
            if entry.previous_status == TaskStatus.COMPLETED and entry.next_status == TaskStatus.IN_PROGRESS:
                reopen_count = max(0, reopen_count - 1)
            reverted = replace(
                task,
                status=entry.previous_status,
                reopen_count=reopen_count,
                updated_at=now_iso(),
            )
            return reverted.with_history(
                HistoryEntry(
                    id=create_id("hist"),
                    kind=HistoryKind.REVERTED,
                    actor_id=actor_id,
                    message=f"Undo: status restored to {entry.previous_status}.",
                    created_at=now_iso(),
                    meta={
                        "fromStatus": str(entry.next_status),
                        "toStatus": str(entry.previous_status),
                    },
                )
            )

        self._store.dispatch(
            a.UpdateTasks(
                lambda tasks: tuple(_apply(t) if t.id == entry.task_id else t for t in tasks)
            )
        )


def _reinsert(tasks: tuple[Task, ...], removed: Task) -> tuple[Task, ...]:
    # A task recreated under the same id wins over the deleted copy.
    if any(t.id == removed.id for t in tasks):
        return tasks
    return (removed, *tasks)
