# src/taskflow_portal/tasks/simulation.py

from __future__ import annotations

"""
Mutation simulation.

Task create/update go through a fake "network hop": an awaited latency, then a
coin flip that may raise TransientMutationError. Both the random source and the
sleeper are injected so tests can make the outcome deterministic.
"""

import asyncio
import logging
import random
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TypeVar

from ..core.ports import RandomSource, Sleeper

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TransientMutationError(RuntimeError):
    """Simulated transport failure. Nothing was mutated; the caller may retry."""


@dataclass(slots=True)
class MutationSimulator:
    failure_rate: float = 0.2
    random_source: RandomSource = field(default=random.random)
    sleep: Sleeper = field(default=asyncio.sleep)

    async def run(
        self,
        *,
        latency_seconds: float,
        failure_message: str,
        commit: Callable[[], T],
    ) -> T:
        """
        Await the simulated latency, maybe fail, then run `commit`.

        The failure is raised before `commit` is called, so a failed attempt
        never touches state.
        """
        await self.sleep(max(0.0, float(latency_seconds)))

        rate = min(1.0, max(0.0, float(self.failure_rate)))
        roll = self.random_source()
        if roll < rate:
            logger.warning("Simulated mutation failure (roll=%.3f rate=%.2f): %s", roll, rate, failure_message)
            raise TransientMutationError(failure_message)

        return commit()
