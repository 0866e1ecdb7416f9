# src/taskflow_portal/tasks/gate.py

from __future__ import annotations

from collections.abc import Iterable

from ..core.models import Task, TaskStatus


def completion_blocker(task: Task, all_tasks: Iterable[Task]) -> str | None:
    """
    Why `task` cannot enter Completed yet, or None when nothing blocks it.

    Checked in order:
    1) the first dependency (in stored order) that exists and is not Completed;
       dependencies that no longer exist are ignored
    2) the number of incomplete checklist items

    Pure: never mutates its inputs.
    """
    by_id = {t.id: t for t in all_tasks}

    for dep_id in task.dependencies:
        dep = by_id.get(dep_id)
        if dep is not None and dep.status != TaskStatus.COMPLETED:
            return f'Complete dependency "{dep.title}" first.'

    pending = task.incomplete_subtasks()
    if pending:
        return f"Finish checklist ({len(pending)} pending)."

    return None
