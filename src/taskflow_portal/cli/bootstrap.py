# src/taskflow_portal/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires store, feed, undo log, simulator and engine together,
- hooks the snapshot store so every committed change is persisted.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass

from ..config import get_settings
from ..core.ports import RandomSource, Sleeper, SnapshotRepo
from ..core.store import PortalStore
from ..notify.feed import NotificationFeed
from ..storage.snapshot_store import JsonFileSnapshotRepo, SnapshotStore
from ..tasks.engine import WorkflowEngine
from ..tasks.simulation import MutationSimulator
from ..undo.undo_log import UndoLog

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Portal:
    settings: object
    store: PortalStore
    feed: NotificationFeed
    undo: UndoLog
    engine: WorkflowEngine
    snapshots: SnapshotStore

    @property
    def state(self):
        return self.store.state


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.snapshot_path.parent.mkdir(parents=True, exist_ok=True)


def create_portal(
    *,
    settings=None,
    repo: SnapshotRepo | None = None,
    random_source: RandomSource | None = None,
    sleep: Sleeper | None = None,
) -> Portal:
    """
    Build a Portal from the provided settings.

    Keeping settings and collaborators injectable makes the app easier to test.
    If settings is None, falls back to get_settings(); if repo is None, the
    snapshot lives in a JSON file at settings.snapshot_path.
    """
    if settings is None:
        settings = get_settings()

    if repo is None:
        _ensure_local_dirs(settings)
        repo = JsonFileSnapshotRepo(settings.snapshot_path)

    store = PortalStore()
    feed = NotificationFeed(
        store,
        limit=settings.notification_limit,
        toast_timeout_seconds=settings.toast_timeout_seconds,
    )
    undo = UndoLog(store, feed, limit=settings.undo_limit)
    simulator = MutationSimulator(
        failure_rate=settings.failure_rate,
        random_source=random_source or random.random,
        sleep=sleep or asyncio.sleep,
    )
    engine = WorkflowEngine(
        store,
        feed,
        undo,
        simulator,
        create_latency_seconds=settings.create_latency_seconds,
        update_latency_seconds=settings.update_latency_seconds,
    )
    snapshots = SnapshotStore(repo)
    snapshots.attach(store)

    return Portal(settings=settings, store=store, feed=feed, undo=undo, engine=engine, snapshots=snapshots)


def initialize(portal: Portal) -> None:
    """Load the stored snapshot (or seed data) once. Later calls are no-ops."""
    if portal.store.state.initialized:
        return
    portal.store.dispatch(portal.snapshots.load())
    state = portal.store.state
    logger.info(
        "Portal initialized: %d users, %d tasks, %d events",
        len(state.users),
        len(state.tasks),
        len(state.calendar_events),
    )
