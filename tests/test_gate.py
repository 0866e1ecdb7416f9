# tests/test_gate.py

from __future__ import annotations

from taskflow_portal.core.models import ChecklistItem, Task, TaskStatus
from taskflow_portal.tasks.gate import completion_blocker


def _task(task_id: str, status: TaskStatus = TaskStatus.PENDING, **kw) -> Task:
    return Task(id=task_id, title=task_id.upper(), status=status, **kw)


def test_unfinished_dependency_blocks() -> None:
    dep = _task("a")
    task = _task("b", TaskStatus.IN_PROGRESS, dependencies=("a",))

    assert completion_blocker(task, [dep, task]) == 'Complete dependency "A" first.'


def test_first_blocking_dependency_in_stored_order_wins() -> None:
    done = _task("a", TaskStatus.COMPLETED)
    first = _task("b", TaskStatus.IN_PROGRESS)
    second = _task("c")
    task = _task("d", dependencies=("a", "c", "b"))

    assert completion_blocker(task, [done, first, second, task]) == 'Complete dependency "C" first.'


def test_missing_dependency_is_ignored() -> None:
    task = _task("b", dependencies=("ghost",))

    assert completion_blocker(task, [task]) is None


def test_checklist_counts_pending_items_after_dependencies_pass() -> None:
    dep = _task("a", TaskStatus.COMPLETED)
    task = _task(
        "b",
        dependencies=("a",),
        subtasks=(
            ChecklistItem(id="s1", text="one", completed=True),
            ChecklistItem(id="s2", text="two"),
            ChecklistItem(id="s3", text="three"),
        ),
    )

    assert completion_blocker(task, [dep, task]) == "Finish checklist (2 pending)."


def test_dependency_reported_before_checklist() -> None:
    dep = _task("a")
    task = _task("b", dependencies=("a",), subtasks=(ChecklistItem(id="s1", text="one"),))

    assert completion_blocker(task, [dep, task]) == 'Complete dependency "A" first.'


def test_nothing_blocks_and_inputs_untouched() -> None:
    task = _task("b", subtasks=(ChecklistItem(id="s1", text="one", completed=True),))
    before = task

    assert completion_blocker(task, [task]) is None
    assert task == before
