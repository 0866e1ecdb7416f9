# src/taskflow_portal/storage/snapshot_store.py

from __future__ import annotations

import contextlib
import json
import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

from ..core import actions as a
from ..core.ports import PersistedSnapshot, SnapshotRepo
from ..core.state import AppState
from ..core.store import PortalStore
from ..tasks.normalize import prune_dependencies
from . import codec
from .seed import seed_snapshot

logger = logging.getLogger(__name__)

_PERSISTED_FIELDS = ("users", "tasks", "calendar_events", "notifications", "theme", "session")


class JsonFileSnapshotRepo:
    """
    Snapshot file on local disk.

    Writes are atomic (tmp file + os.replace), so a crash mid-write leaves the
    previous full snapshot in place.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def read(self) -> Any | None:
        if not self._path.exists():
            return None
        return json.loads(self._path.read_text("utf-8"))

    def write(self, payload: PersistedSnapshot) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(".tmp")
        try:
            tmp.write_text(json.dumps(payload, ensure_ascii=False, indent=2), "utf-8")
            os.replace(tmp, self._path)
        except Exception:
            with contextlib.suppress(OSError):
                tmp.unlink(missing_ok=True)
            raise
        with contextlib.suppress(Exception):
            # Best-effort: snapshot holds demo credentials, keep the file private on disk.
            os.chmod(self._path, 0o600)


class SnapshotStore:
    """
    Loads the initial aggregate and persists it after every committed change.

    - load(): stored snapshot if it has users[] and tasks[], else seed data;
      read/parse errors also fall back to seed data (logged, never raised)
    - attach(store): subscribe so each change to a persisted slice writes a
      full snapshot; write errors are logged and swallowed
    """

    def __init__(self, repo: SnapshotRepo) -> None:
        self._repo = repo

    def load(self) -> a.Initialize:
        raw: Any | None
        try:
            raw = self._repo.read()
        except Exception:
            logger.exception("Failed to read snapshot; using seed data")
            raw = None

        if not _valid_shape(raw):
            if raw is not None:
                logger.warning("Stored snapshot has an unexpected shape; using seed data")
            else:
                logger.info("No stored snapshot; using seed data")
            raw = seed_snapshot()

        return _decode(raw)

    def persist(self, state: AppState) -> None:
        try:
            self._repo.write(codec.state_to_snapshot(state))
            logger.debug("Snapshot saved: %d users, %d tasks", len(state.users), len(state.tasks))
        except Exception:
            logger.exception("Failed to save snapshot")

    def attach(self, store: PortalStore) -> Callable[[], None]:
        def _on_change(old: AppState, new: AppState) -> None:
            if not new.initialized:
                return
            if not old.initialized or any(
                getattr(old, name) is not getattr(new, name) for name in _PERSISTED_FIELDS
            ):
                self.persist(new)

        return store.subscribe(_on_change)


def _valid_shape(raw: Any) -> bool:
    return (
        isinstance(raw, dict)
        and isinstance(raw.get("users"), list)
        and isinstance(raw.get("tasks"), list)
    )


def _decode(raw: dict[str, Any]) -> a.Initialize:
    tasks = codec.tasks_from_list(raw.get("tasks"))
    task_ids = [t.id for t in tasks]
    tasks = tuple(prune_dependencies(t, task_ids) for t in tasks)

    return a.Initialize(
        users=codec.users_from_list(raw.get("users")),
        tasks=tasks,
        calendar_events=codec.events_from_list(raw.get("calendarEvents")),
        notifications=codec.notifications_from_list(raw.get("notifications")),
        theme=codec.theme_from_raw(raw.get("theme")),
        session=codec.session_from_dict(raw.get("session")),
    )
