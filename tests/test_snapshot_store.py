# tests/test_snapshot_store.py

from __future__ import annotations

import json
from pathlib import Path

import pytest

from taskflow_portal.cli.bootstrap import create_portal, initialize
from taskflow_portal.core.models import Role, Theme
from taskflow_portal.storage import codec, snapshot_store
from taskflow_portal.storage.seed import seed_snapshot
from taskflow_portal.storage.snapshot_store import JsonFileSnapshotRepo, SnapshotStore

from .fakes import BrokenSnapshotRepo, InMemorySnapshotRepo, sign_in


def test_missing_snapshot_loads_seed() -> None:
    action = SnapshotStore(InMemorySnapshotRepo()).load()

    assert [u.username for u in action.users] == ["jeswanth", "hari", "sarath"]
    assert [t.id for t in action.tasks] == ["task-1", "task-2", "task-3"]
    assert action.theme == Theme.LIGHT
    assert not action.session.logged_in


def test_bad_shape_or_read_error_falls_back_to_seed() -> None:
    bad_shape = SnapshotStore(InMemorySnapshotRepo({"users": "nope", "tasks": []})).load()
    broken = SnapshotStore(BrokenSnapshotRepo()).load()

    assert len(bad_shape.tasks) == 3
    assert len(broken.users) == 3


def test_load_prunes_dangling_dependencies_and_keeps_session() -> None:
    payload = seed_snapshot()
    payload["tasks"][0]["dependencies"] = ["task-1", "task-2", "ghost"]
    payload["session"] = {"loggedIn": True, "userId": "mgr-1", "role": "Manager"}
    payload["theme"] = "dark"

    action = SnapshotStore(InMemorySnapshotRepo(payload)).load()

    assert action.tasks[0].dependencies == ("task-2",)
    assert action.session.role == Role.MANAGER
    assert action.theme == Theme.DARK


def test_incomplete_session_comes_back_logged_out() -> None:
    payload = seed_snapshot()
    payload["session"] = {"loggedIn": True, "userId": "mgr-1"}

    action = SnapshotStore(InMemorySnapshotRepo(payload)).load()

    assert not action.session.logged_in


def test_every_commit_is_persisted_but_toasts_are_not(portal, repo) -> None:
    writes = len(repo.writes)
    assert writes >= 1

    portal.feed.push_toast("ephemeral")
    assert len(repo.writes) == writes

    sign_in(portal, "hari")
    portal.engine.set_status("task-1", "In Progress")

    saved = repo.writes[-1]
    assert saved["session"] == {"loggedIn": True, "userId": "emp-1", "role": "Employee"}
    assert next(t for t in saved["tasks"] if t["id"] == "task-1")["status"] == "In Progress"
    assert "toast" not in saved and "undoStack" not in saved


def test_state_survives_restart(settings, rng, sleeper, repo) -> None:
    first = create_portal(settings=settings, repo=repo, random_source=rng, sleep=sleeper)
    initialize(first)
    sign_in(first, "sarath")
    first.engine.add_comment("task-2", "Halfway there")

    second = create_portal(settings=settings, repo=repo, random_source=rng, sleep=sleeper)
    initialize(second)

    assert second.state.tasks == first.state.tasks
    assert second.state.session == first.state.session
    # undo history is in-memory only
    assert second.state.undo_stack == ()


def test_write_failures_are_swallowed(settings, rng, sleeper) -> None:
    p = create_portal(settings=settings, repo=BrokenSnapshotRepo(), random_source=rng, sleep=sleeper)
    initialize(p)
    sign_in(p, "hari")

    assert p.engine.set_status("task-1", "In Progress").ok


def test_json_file_repo_round_trip(tmp_path: Path) -> None:
    repo = JsonFileSnapshotRepo(tmp_path / "nested" / "snapshot.json")
    assert repo.read() is None

    payload = seed_snapshot()
    repo.write(payload)

    assert repo.read() == json.loads(json.dumps(payload))
    assert not (tmp_path / "nested" / "snapshot.tmp").exists()


def test_codec_round_trip_keeps_task_facets(portal) -> None:
    tasks = portal.state.tasks

    decoded = codec.tasks_from_list([codec.task_to_dict(t) for t in tasks])

    assert decoded == tasks


def test_corrupt_task_fields_are_cleaned_on_load() -> None:
    payload = json.loads(
        '{"users": [], "tasks": ['
        '{"id": "t1", "title": "scalar checklist", "subtasks": 5},'
        '{"id": "t2", "title": "mapping checklist", "subtasks": {"text": "x"}},'
        '{"id": "t3", "title": "huge counter", "reopenCount": Infinity}'
        "]}"
    )

    action = SnapshotStore(InMemorySnapshotRepo(payload)).load()

    assert [t.id for t in action.tasks] == ["t1", "t2", "t3"]
    assert [t.subtasks for t in action.tasks] == [(), (), ()]
    assert action.tasks[2].reopen_count == 0


def test_failed_replace_leaves_no_tmp_file(tmp_path: Path, monkeypatch) -> None:
    repo = JsonFileSnapshotRepo(tmp_path / "snapshot.json")

    def boom(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(snapshot_store.os, "replace", boom)

    with pytest.raises(OSError):
        repo.write(seed_snapshot())

    assert not (tmp_path / "snapshot.tmp").exists()
    assert not (tmp_path / "snapshot.json").exists()
