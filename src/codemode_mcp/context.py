"""
Bridge context - the objects shared by every operation.

Built once per process and passed down explicitly, so tests can assemble a
context around fake clients, clocks and caches.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from .client import ToolClient
from .config import BridgeSettings
from .discovery import ConvergenceController, DiscoveryOutcome, ReadinessGate, ToolCountCache
from .discovery.cache import wall_clock_ms

logger = logging.getLogger(__name__)


@dataclass
class BridgeContext:
    settings: BridgeSettings
    client: ToolClient
    cache: ToolCountCache
    controller: ConvergenceController
    gate: ReadinessGate

    @classmethod
    def create(
        cls,
        settings: BridgeSettings,
        client: Optional[ToolClient] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        now_ms: Callable[[], int] = wall_clock_ms,
    ) -> "BridgeContext":
        """
        Wire up the cache, controller and gate for ``settings``.

        Raises:
            pydantic.ValidationError: If the discovery configuration is invalid
        """
        if client is None:
            client = ToolClient(
                max_retries=settings.max_retries,
                initial_backoff=settings.initial_backoff,
                max_backoff=settings.max_backoff,
            )
        cache = ToolCountCache(settings.cache_file, settings.cache_ttl_ms, now_ms=now_ms)
        controller = ConvergenceController(settings.discovery, cache=cache, clock=clock, sleep=sleep)
        return cls(
            settings=settings,
            client=client,
            cache=cache,
            controller=controller,
            gate=ReadinessGate(controller),
        )

    def start_discovery(self) -> "asyncio.Task[DiscoveryOutcome]":
        """Start waiting for discovery in the background."""
        return self.gate.start(self.client.count_tools)

    async def ensure_ready(self) -> DiscoveryOutcome:
        """Wait for the (single) discovery run to finish."""
        return await self.gate.ensure_ready(self.client.count_tools)
