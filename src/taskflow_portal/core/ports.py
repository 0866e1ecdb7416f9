# src/taskflow_portal/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps storage and randomness/latency sources swappable and makes testing easier.
"""

from typing import Any, Awaitable, Protocol

PersistedSnapshot = dict[str, Any]
# JSON-shaped snapshot: {"users": [...], "tasks": [...], "calendarEvents": [...], ...}.


class RandomSource(Protocol):
    """Returns a float in [0, 1). Used to decide simulated failures."""

    def __call__(self) -> float: ...


class Sleeper(Protocol):
    """Awaitable delay (asyncio.sleep-compatible)."""

    def __call__(self, seconds: float) -> Awaitable[None]: ...


class SnapshotRepo(Protocol):
    """
    Where aggregate snapshots live.

    read() returns the raw decoded payload (or None when nothing was stored);
    write() replaces the stored snapshot with a full, self-consistent payload.
    """

    def read(self) -> Any | None: ...
    def write(self, payload: PersistedSnapshot) -> None: ...
