# tests/test_undo.py

from __future__ import annotations

from dataclasses import replace

import pytest

from taskflow_portal.core import actions as a
from taskflow_portal.core.models import HistoryKind, TaskStatus
from taskflow_portal.undo.entries import StatusChange

from .fakes import sign_in


def test_empty_log_returns_false(portal) -> None:
    assert portal.engine.undo_last() is False
    assert len(portal.undo) == 0


def test_undo_status_change_restores_and_records(portal) -> None:
    sign_in(portal, "hari")
    portal.engine.set_status("task-1", TaskStatus.IN_PROGRESS)
    assert portal.state.toast is not None

    assert portal.engine.undo_last() is True

    task = portal.state.find_task("task-1")
    assert task.status == TaskStatus.PENDING
    assert task.history[0].kind == HistoryKind.REVERTED
    assert task.history[0].message == "Undo: status restored to Pending."
    assert task.history[0].meta == {"fromStatus": "In Progress", "toStatus": "Pending"}
    assert task.history[1].kind == HistoryKind.STATUS_CHANGE
    assert portal.state.toast is None
    assert portal.state.notifications[0].message == "Status change reverted."
    assert portal.state.undo_stack == ()


def test_undo_reopen_decrements_counter(portal) -> None:
    sign_in(portal, "sarath")
    portal.engine.reopen("task-3")
    assert portal.state.find_task("task-3").reopen_count == 1

    portal.engine.undo_last()

    task = portal.state.find_task("task-3")
    assert task.status == TaskStatus.COMPLETED
    assert task.reopen_count == 0


def test_undo_ignores_role_checks(portal) -> None:
    sign_in(portal, "hari")
    portal.engine.set_status("task-1", TaskStatus.IN_PROGRESS)
    portal.engine.logout()

    assert portal.engine.undo_last() is True
    assert portal.state.find_task("task-1").status == TaskStatus.PENDING
    assert portal.state.find_task("task-1").history[0].actor_id == "system"


@pytest.mark.asyncio
async def test_undo_create_removes_task(portal) -> None:
    sign_in(portal, "jeswanth")
    created = (await portal.engine.create({"title": "Temp", "assigned_to": "emp-1"})).data

    assert portal.engine.undo_last()

    assert portal.state.find_task(created.id) is None
    assert len(portal.state.tasks) == 3
    assert portal.state.notifications[0].message == "Created task removed."


@pytest.mark.asyncio
async def test_undo_update_restores_previous_snapshot(portal) -> None:
    sign_in(portal, "jeswanth")
    original = portal.state.find_task("task-2")
    await portal.engine.update("task-2", {"title": "Renamed", "priority": "Low", "labels": "x"})

    assert portal.engine.undo_last()

    assert portal.state.find_task("task-2") == original
    assert portal.state.notifications[0].message == "Task update reverted."


def test_undo_delete_reinserts_without_restoring_dependents(portal) -> None:
    portal.store.dispatch(
        a.UpdateTasks(
            lambda tasks: tuple(replace(t, dependencies=("task-3",)) if t.id == "task-2" else t for t in tasks)
        )
    )
    sign_in(portal, "jeswanth")
    deleted = portal.state.find_task("task-3")
    portal.engine.delete("task-3")

    assert portal.engine.undo_last()

    assert portal.state.tasks[0] == deleted
    assert len(portal.state.tasks) == 3
    assert portal.state.find_task("task-2").dependencies == ()
    assert portal.state.notifications[0].message == "Deleted task restored."


def test_capacity_keeps_newest_entries(portal) -> None:
    sign_in(portal, "jeswanth")
    for i in range(30):
        target = TaskStatus.PENDING if i % 2 == 0 else TaskStatus.IN_PROGRESS
        assert portal.engine.set_status("task-2", target).ok

    entries = portal.undo.entries()
    assert len(entries) == 25
    assert portal.undo.limit == 25
    # 30 pushes: the 5 oldest were dropped, so the oldest kept one is push #6 (i=5).
    assert entries[0] == StatusChange("task-2", TaskStatus.PENDING, TaskStatus.IN_PROGRESS)
    assert entries[-1] == StatusChange("task-2", TaskStatus.PENDING, TaskStatus.IN_PROGRESS)

    for _ in range(25):
        assert portal.engine.undo_last()
    assert portal.engine.undo_last() is False


def test_undo_only_reverts_newest_entry(portal) -> None:
    sign_in(portal, "jeswanth")
    portal.engine.set_status("task-1", TaskStatus.IN_PROGRESS)
    portal.engine.set_status("task-2", TaskStatus.PENDING)

    portal.engine.undo_last()

    assert portal.state.find_task("task-2").status == TaskStatus.IN_PROGRESS
    assert portal.state.find_task("task-1").status == TaskStatus.IN_PROGRESS
    assert len(portal.undo) == 1


def test_undo_backup_import(portal) -> None:
    sign_in(portal, "jeswanth")
    tasks_before = portal.state.tasks
    backup = {
        "users": [{"id": "mgr-9", "name": "Ana", "role": "Manager", "username": "ana", "password": "pw"}],
        "tasks": [{"id": "t-1", "title": "Only task", "assignedTo": "ghost", "dependencies": ["t-1", "t-2"]}],
    }

    assert portal.engine.import_backup(backup).ok
    imported = portal.state.find_task("t-1")
    assert imported.assigned_to == ""
    assert imported.dependencies == ()
    assert [u.id for u in portal.state.users] == ["mgr-9"]

    assert portal.engine.undo_last()

    assert portal.state.tasks == tasks_before
    assert portal.state.find_user("mgr-1") is not None
    assert portal.state.notifications[0].message == "Backup import reverted."


def test_undo_delete_restores_identical_task(portal) -> None:
    sign_in(portal, "jeswanth")
    original = portal.state.find_task("task-3")

    portal.engine.delete("task-3")
    portal.engine.undo_last()

    restored = portal.state.find_task("task-3")
    assert restored == original
    assert restored.history == original.history


def test_undo_delete_does_not_overwrite_recreated_id(portal) -> None:
    sign_in(portal, "jeswanth")
    portal.engine.delete("task-3")
    replacement = replace(portal.state.tasks[0], id="task-3", title="Recreated")
    portal.store.dispatch(a.UpdateTasks(lambda tasks: (replacement, *tasks)))

    assert portal.engine.undo_last()

    assert [t.title for t in portal.state.tasks if t.id == "task-3"] == ["Recreated"]
