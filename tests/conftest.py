# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from taskflow_portal.cli.bootstrap import Portal, create_portal, initialize

from .fakes import FixedRandom, InMemorySnapshotRepo, RecordingSleeper


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with create_portal().

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the environment and any local .env.
    """
    return SimpleNamespace(
        app_name="taskflow-test",
        log_level="DEBUG",
        console_enabled=False,
        # Paths (tmp per test run)
        data_dir=tmp_path,
        snapshot_path=tmp_path / "snapshot.json",
        # Capacities
        undo_limit=25,
        notification_limit=150,
        toast_timeout_seconds=5.5,
        # Simulation
        create_latency_seconds=0.9,
        update_latency_seconds=0.85,
        failure_rate=0.2,
        # Calendar
        recurrence_max_steps=500,
    )


@pytest.fixture()
def repo() -> InMemorySnapshotRepo:
    return InMemorySnapshotRepo()


@pytest.fixture()
def rng() -> FixedRandom:
    return FixedRandom()


@pytest.fixture()
def sleeper() -> RecordingSleeper:
    return RecordingSleeper()


@pytest.fixture()
def portal(
    settings: SimpleNamespace,
    repo: InMemorySnapshotRepo,
    rng: FixedRandom,
    sleeper: RecordingSleeper,
) -> Portal:
    """
    Portal seeded with the demo data, wired with deterministic fakes.

    Nobody is signed in; tests use fakes.sign_in() to pick a role.
    """
    p = create_portal(settings=settings, repo=repo, random_source=rng, sleep=sleeper)
    initialize(p)
    return p
