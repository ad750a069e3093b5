"""
Readiness Gate - runs discovery at most once per process.

States move strictly forward::

    NOT_STARTED --start()--> IN_FLIGHT(task) --task done--> COMPLETED(outcome)

The NOT_STARTED check and the creation of the task happen without any
``await`` in between, so every caller that arrives before the run finishes
shares the same task.
"""

import asyncio
import logging
from enum import Enum
from typing import Optional

from .controller import ConvergenceController, CountSource, DiscoveryOutcome

logger = logging.getLogger(__name__)


class GateState(str, Enum):
    NOT_STARTED = "not_started"
    IN_FLIGHT = "in_flight"
    COMPLETED = "completed"


class ReadinessGate:
    """Single-assignment readiness signal shared by all callers."""

    def __init__(self, controller: ConvergenceController):
        self.controller = controller
        self._state = GateState.NOT_STARTED
        self._task: Optional[asyncio.Task] = None
        self._outcome: Optional[DiscoveryOutcome] = None

    @property
    def state(self) -> GateState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is GateState.COMPLETED

    @property
    def outcome(self) -> Optional[DiscoveryOutcome]:
        return self._outcome

    def start(self, count_source: CountSource) -> "asyncio.Task[DiscoveryOutcome]":
        """
        Start the discovery run in the background if it has not started yet.

        Returns the task of the (single) run. ``count_source`` is ignored when a
        run already exists.
        """
        if self._task is None:
            self._task = asyncio.get_running_loop().create_task(self._run(count_source))
            self._state = GateState.IN_FLIGHT
            logger.debug("Discovery run started")
        return self._task

    async def _run(self, count_source: CountSource) -> DiscoveryOutcome:
        try:
            outcome = await self.controller.run(count_source)
        except Exception:
            # The next caller starts a fresh run
            logger.error("Discovery run failed", exc_info=True)
            self._task = None
            self._state = GateState.NOT_STARTED
            raise
        self._outcome = outcome
        self._state = GateState.COMPLETED
        return outcome

    async def ensure_ready(self, count_source: CountSource) -> DiscoveryOutcome:
        """
        Wait until discovery has finished.

        Returns immediately with the stored outcome once completed; otherwise
        starts the run (first caller only) and waits on the shared task.
        Cancelling a waiting caller does not cancel the run.
        """
        if self._state is GateState.COMPLETED:
            return self._outcome
        task = self.start(count_source)
        return await asyncio.shield(task)
