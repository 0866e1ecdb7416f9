# tests/test_engine_status.py

from __future__ import annotations

from dataclasses import replace

import pytest

from taskflow_portal.core import actions as a
from taskflow_portal.core.models import HistoryKind, Role, Severity, TaskStatus, Theme
from taskflow_portal.undo.entries import StatusChange

from .fakes import sign_in


def _set_dependencies(portal, task_id: str, deps: tuple[str, ...]) -> None:
    portal.store.dispatch(
        a.UpdateTasks(
            lambda tasks: tuple(replace(t, dependencies=deps) if t.id == task_id else t for t in tasks)
        )
    )


def test_login_is_case_insensitive_and_sets_session(portal) -> None:
    result = portal.engine.login("  HARI ", "12345")

    assert result.ok
    assert portal.state.session.user_id == "emp-1"
    assert portal.state.session.role == Role.EMPLOYEE
    assert portal.state.notifications[0].message == "Signed in as Hari"


def test_login_failure_does_not_notify(portal) -> None:
    before = portal.state.notifications

    result = portal.engine.login("hari", "wrong")

    assert not result.ok
    assert result.message == "Invalid credentials."
    assert portal.state.notifications == before
    assert not portal.state.session.logged_in


def test_logout_and_theme_toggle(portal) -> None:
    sign_in(portal, "jeswanth")
    portal.engine.logout()
    assert not portal.state.session.logged_in

    assert portal.engine.toggle_theme() == Theme.DARK
    assert portal.engine.toggle_theme() == Theme.LIGHT


def test_employee_starts_assigned_task(portal) -> None:
    sign_in(portal, "hari")

    result = portal.engine.set_status("task-1", "In Progress", "drag-drop")

    assert result.ok
    assert result.message == "Moved to In Progress"
    task = portal.state.find_task("task-1")
    assert task.status == TaskStatus.IN_PROGRESS
    assert task.history[0].kind == HistoryKind.STATUS_CHANGE
    assert task.history[0].actor_id == "emp-1"
    assert task.history[0].meta == {"fromStatus": "Pending", "toStatus": "In Progress", "source": "drag-drop"}
    assert portal.state.undo_stack[-1] == StatusChange("task-1", TaskStatus.PENDING, TaskStatus.IN_PROGRESS)
    assert portal.state.toast.message == 'Moved "Design task board layout" to In Progress'
    assert portal.state.toast.undoable


def test_employee_cannot_skip_in_progress(portal) -> None:
    sign_in(portal, "hari")
    before = portal.state.find_task("task-1")

    result = portal.engine.set_status("task-1", TaskStatus.COMPLETED)

    assert not result.ok
    assert result.message == "Invalid transition from Pending."
    assert portal.state.find_task("task-1") == before
    assert portal.state.undo_stack == ()
    assert portal.state.notifications[0].severity == Severity.WARNING


def test_employee_cannot_touch_foreign_task(portal) -> None:
    sign_in(portal, "hari")

    result = portal.engine.set_status("task-2", TaskStatus.COMPLETED)

    assert result.message == "Not allowed for this task."
    assert portal.state.find_task("task-2").status == TaskStatus.IN_PROGRESS


def test_signed_out_user_is_rejected(portal) -> None:
    result = portal.engine.set_status("task-1", TaskStatus.IN_PROGRESS)

    assert not result.ok
    assert result.message == "Not allowed for this task."


def test_unknown_task(portal) -> None:
    sign_in(portal, "jeswanth")

    assert portal.engine.set_status("nope", TaskStatus.IN_PROGRESS).message == "Task not found."


def test_manager_may_jump_straight_to_completed(portal) -> None:
    sign_in(portal, "jeswanth")

    result = portal.engine.set_status("task-1", TaskStatus.COMPLETED)

    assert result.ok
    assert portal.state.find_task("task-1").status == TaskStatus.COMPLETED
    assert portal.state.notifications[0].severity == Severity.SUCCESS


def test_same_status_and_unknown_status_rejected(portal) -> None:
    sign_in(portal, "jeswanth")

    assert portal.engine.set_status("task-2", TaskStatus.IN_PROGRESS).message == "Task is already In Progress."
    assert portal.engine.set_status("task-2", "Archived").message == "Unknown status: Archived."
    assert portal.state.undo_stack == ()


def test_reopen_counts_and_records_source(portal) -> None:
    sign_in(portal, "sarath")

    result = portal.engine.reopen("task-3")

    assert result.ok
    task = portal.state.find_task("task-3")
    assert task.status == TaskStatus.IN_PROGRESS
    assert task.reopen_count == 1
    assert task.history[0].meta["source"] == "continue-work"


def test_dependency_blocks_completion(portal) -> None:
    _set_dependencies(portal, "task-2", ("task-1",))
    sign_in(portal, "sarath")

    result = portal.engine.set_status("task-2", TaskStatus.COMPLETED)

    assert not result.ok
    assert result.message == 'Complete dependency "Design task board layout" first.'
    assert portal.engine.completion_blocker_for("task-2") == result.message


def test_checklist_gate_then_complete(portal) -> None:
    sign_in(portal, "sarath")
    item = portal.engine.add_checklist_item("task-2", "write tests").data

    blocked = portal.engine.set_status("task-2", TaskStatus.COMPLETED)
    assert blocked.message == "Finish checklist (1 pending)."

    assert portal.engine.toggle_checklist_item("task-2", item.id).ok
    done = portal.engine.set_status("task-2", TaskStatus.COMPLETED)

    assert done.ok
    assert portal.state.find_task("task-2").status == TaskStatus.COMPLETED


def test_completion_blocker_for_completed_or_unknown_is_none(portal) -> None:
    assert portal.engine.completion_blocker_for("task-3") is None
    assert portal.engine.completion_blocker_for("missing") is None


def test_comment_and_checklist_are_not_undoable(portal) -> None:
    sign_in(portal, "hari")

    assert portal.engine.add_comment("task-1", "   ").message == "Comment cannot be empty."
    result = portal.engine.add_comment("task-1", "On it")

    assert result.ok
    task = portal.state.find_task("task-1")
    assert task.comments[0].text == "On it"
    assert task.comments[0].author_id == "emp-1"
    assert task.history[0].kind == HistoryKind.COMMENT
    assert portal.engine.toggle_checklist_item("task-1", "missing").message == "Checklist item not found."
    assert portal.state.undo_stack == ()


def test_add_employee_validation(portal) -> None:
    sign_in(portal, "jeswanth")

    assert portal.engine.add_employee("", "x", "y").message == (
        "Employee name, username, and password are required."
    )
    assert portal.engine.add_employee("Other Hari", "HARI", "pw").message == "Username already exists."

    result = portal.engine.add_employee("Maya", "maya", "pw")
    assert result.ok
    assert portal.state.users[-1].role == Role.EMPLOYEE
    assert portal.engine.login("maya", "pw").ok


def test_employee_cannot_add_employee(portal) -> None:
    sign_in(portal, "hari")

    assert portal.engine.add_employee("Maya", "maya", "pw").message == "Only manager can perform this action."


def test_profile_update_self_only(portal) -> None:
    sign_in(portal, "hari")

    assert not portal.engine.update_user_profile("emp-2", github_username="someone").ok
    assert portal.engine.update_user_profile("emp-1", github_username=" hari-dev ").ok
    assert portal.state.find_user("emp-1").github_username == "hari-dev"


def test_blocked_completion_clears_once_dependency_and_checklist_are_done(portal) -> None:
    _set_dependencies(portal, "task-2", ("task-1",))
    sign_in(portal, "jeswanth")
    item = portal.engine.add_checklist_item("task-2", "review").data

    blocked = portal.engine.set_status("task-2", TaskStatus.COMPLETED)
    assert not blocked.ok
    assert "Design task board layout" in blocked.message

    assert portal.engine.set_status("task-1", TaskStatus.COMPLETED).ok
    assert portal.engine.toggle_checklist_item("task-2", item.id).ok

    assert portal.engine.set_status("task-2", TaskStatus.COMPLETED).ok


@pytest.mark.parametrize(
    ("current", "target", "allowed"),
    [
        (TaskStatus.PENDING, TaskStatus.IN_PROGRESS, True),
        (TaskStatus.IN_PROGRESS, TaskStatus.COMPLETED, True),
        (TaskStatus.COMPLETED, TaskStatus.IN_PROGRESS, True),
        (TaskStatus.PENDING, TaskStatus.COMPLETED, False),
        (TaskStatus.IN_PROGRESS, TaskStatus.PENDING, False),
        (TaskStatus.COMPLETED, TaskStatus.PENDING, False),
    ],
)
def test_employee_transition_matrix(portal, current, target, allowed) -> None:
    # task-1 has no dependencies or checklist, so the gate never blocks here
    portal.store.dispatch(
        a.UpdateTasks(lambda tasks: tuple(replace(t, status=current) if t.id == "task-1" else t for t in tasks))
    )
    sign_in(portal, "hari")
    assert portal.engine.completion_blocker_for("task-1") is None

    result = portal.engine.set_status("task-1", target)

    assert result.ok is allowed
    if allowed:
        assert portal.state.find_task("task-1").status == target
    else:
        assert result.message == f"Invalid transition from {current}."
        assert portal.state.find_task("task-1").status == current
