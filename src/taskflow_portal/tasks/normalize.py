# src/taskflow_portal/tasks/normalize.py

"""
Normalization of raw task fields.

UI collaborators send raw values: comma-separated strings for labels,
dependencies and checklist items, free-form enum strings, loose dates. These
helpers turn them into the canonical shapes stored on Task. Bad enum values
fall back to safe defaults (Pending / Medium) instead of failing.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import replace
from typing import Any

from ..core.ids import create_id, now_iso, parse_date
from ..core.models import ChecklistItem, Comment, HistoryEntry, Priority, Task, TaskStatus


def _split(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        raw: Iterable[Any] = value.split(",")
    elif isinstance(value, Iterable):
        raw = value
    else:
        raw = [value]
    return [str(item).strip() for item in raw if str(item).strip()]


def _dedupe(items: Iterable[str]) -> tuple[str, ...]:
    # dict keeps first-seen order
    return tuple(dict.fromkeys(items))


def normalize_labels(value: Any) -> tuple[str, ...]:
    return _dedupe(_split(value))


def normalize_dependencies(value: Any) -> tuple[str, ...]:
    return _dedupe(_split(value))


def normalize_subtasks(value: Any) -> tuple[ChecklistItem, ...]:
    """
    Accepts:
    - "a, b, c" -> three new incomplete items
    - ["a", "b"] -> two new incomplete items
    - [{"id": ..., "text": ..., "completed": ...}] or ChecklistItem values
    Items with empty text are dropped; any other shape yields no items.
    """
    if value is None:
        return ()
    if isinstance(value, str):
        return tuple(ChecklistItem(id=create_id("subtask"), text=t) for t in _split(value))
    if isinstance(value, Mapping) or not isinstance(value, Iterable):
        return ()

    out: list[ChecklistItem] = []
    for item in value:
        if isinstance(item, ChecklistItem):
            if item.text.strip():
                out.append(item)
            continue
        if isinstance(item, str):
            text = item.strip()
            if text:
                out.append(ChecklistItem(id=create_id("subtask"), text=text))
            continue
        if not isinstance(item, Mapping):
            continue
        text = str(item.get("text") or "").strip()
        if not text:
            continue
        out.append(
            ChecklistItem(
                id=str(item.get("id") or create_id("subtask")),
                text=text,
                completed=bool(item.get("completed")),
            )
        )
    return tuple(out)


def build_task(fields: Mapping[str, Any]) -> Task:
    """
    Build a Task from snake_case fields, re-validating each one.

    comments/history must already be Comment/HistoryEntry values (anything else
    is dropped); the storage codec converts persisted dicts before calling this.
    """
    now = now_iso()
    try:
        reopen_count = max(0, int(fields.get("reopen_count") or 0))
    except (TypeError, ValueError, OverflowError):
        reopen_count = 0

    return Task(
        id=str(fields.get("id") or create_id("task")),
        title=str(fields.get("title") or "").strip(),
        description=str(fields.get("description") or "").strip(),
        priority=Priority.from_raw(fields.get("priority")),
        deadline=parse_date(fields.get("deadline")),
        assigned_to=str(fields.get("assigned_to") or ""),
        status=TaskStatus.from_raw(fields.get("status")),
        labels=normalize_labels(fields.get("labels")),
        dependencies=normalize_dependencies(fields.get("dependencies")),
        subtasks=normalize_subtasks(fields.get("subtasks")),
        comments=tuple(c for c in fields.get("comments") or () if isinstance(c, Comment)),
        history=tuple(h for h in fields.get("history") or () if isinstance(h, HistoryEntry)),
        reopen_count=reopen_count,
        created_at=str(fields.get("created_at") or now),
        updated_at=str(fields.get("updated_at") or now),
    )


def prune_dependencies(task: Task, known_ids: Iterable[str]) -> Task:
    """Drop self-references and ids that don't name an existing task."""
    known = set(known_ids)
    kept = tuple(d for d in task.dependencies if d != task.id and d in known)
    if kept == task.dependencies:
        return task
    return replace(task, dependencies=kept)
