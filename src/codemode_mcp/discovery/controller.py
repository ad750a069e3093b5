"""
Discovery Convergence Controller

Decides when an asynchronously growing tool population is complete enough to
proceed. There is no completion signal from the upstream servers, so the
controller polls a count source on a fixed cadence and stops when one of three
rules fires:

A. the count reached the count cached by a previous run
B. the count reached a large enough fraction of a large cached count
C. the count stayed unchanged for ``stable_threshold`` consecutive polls

Rules are evaluated in that order on every poll. When none fires before
``timeout_ms`` the run ends as timed out with the last observed count. A count
read still pending at the deadline is abandoned like a failed poll.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict

from ..config import DiscoveryConfig
from .cache import ToolCountCache

logger = logging.getLogger(__name__)

CountSource = Callable[[], Awaitable[int]]

PROGRESS_LOG_INTERVAL = 2.0


class DiscoveryStatus(str, Enum):
    COMPLETE = "complete"
    TIMED_OUT = "timed_out"


class ResolutionReason(str, Enum):
    EXPECTED_COUNT = "expected_count"
    EARLY_EXIT = "early_exit"
    STABLE = "stable"
    TIMEOUT = "timeout"


class DiscoveryOutcome(BaseModel):
    """Terminal result of one discovery run."""
    model_config = ConfigDict(frozen=True)

    status: DiscoveryStatus
    reason: ResolutionReason
    tool_count: int
    expected_tools: int = 0
    elapsed_ms: int = 0
    polls: int = 0

    @property
    def complete(self) -> bool:
        return self.status is DiscoveryStatus.COMPLETE


@dataclass
class PollSample:
    count: int
    at: float


class DiscoveryState:
    """
    Mutable bookkeeping for a single run.

    Once ``completed`` is set the state is frozen and any further assignment
    raises ``AttributeError``.
    """

    __slots__ = ("running", "completed", "last_count", "stable_streak", "start_time")

    def __init__(self, start_time: float):
        self.running = True
        self.completed = False
        self.last_count = 0
        self.stable_streak = 0
        self.start_time = start_time

    def __setattr__(self, name: str, value: Any) -> None:
        if getattr(self, "completed", False):
            raise AttributeError(f"DiscoveryState is completed; cannot set {name}")
        object.__setattr__(self, name, value)

    def finish(self) -> None:
        self.running = False
        self.completed = True

    def as_dict(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in self.__slots__}


class ConvergenceController:
    """
    Polls a count source until discovery converges or times out.

    The controller is independent of where the count comes from: it only needs
    an async callable returning a non-negative integer.
    """

    def __init__(
        self,
        config: Union[DiscoveryConfig, Dict[str, Any]],
        cache: Optional[ToolCountCache] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """
        Args:
            config: Discovery tuning; a dict is validated into DiscoveryConfig
            cache: Optional count cache providing the expected count
            clock: Monotonic clock in seconds
            sleep: Coroutine used to wait between polls

        Raises:
            pydantic.ValidationError: If the configuration is invalid
        """
        self.config = DiscoveryConfig.model_validate(config)
        self.cache = cache
        self._clock = clock
        self._sleep = sleep
        self.state: Optional[DiscoveryState] = None

    def _elapsed_ms(self, state: DiscoveryState) -> int:
        return int(round((self._clock() - state.start_time) * 1000))

    def _expected_tools(self) -> int:
        if self.cache is None:
            return 0
        try:
            entry = self.cache.load()
        except Exception as e:
            logger.warning(f"Ignoring tool cache: {e}")
            return 0
        return entry.tool_count if entry else 0

    def _remaining_ms(self, state: DiscoveryState) -> int:
        return self.config.timeout_ms - self._elapsed_ms(state)

    async def _poll(self, count_source: CountSource, deadline_ms: int) -> Optional[PollSample]:
        """Read the count once; failures and reads slower than ``deadline_ms`` are logged and reported as None."""
        try:
            count = await asyncio.wait_for(count_source(), timeout=deadline_ms / 1000)
        except asyncio.TimeoutError:
            logger.warning(f"Discovery poll did not return within {deadline_ms}ms")
            return None
        except Exception as e:
            logger.warning(f"Discovery poll error: {e}")
            return None
        if isinstance(count, bool) or not isinstance(count, int) or count < 0:
            logger.warning(f"Discovery poll returned an invalid tool count: {count!r}")
            return None
        return PollSample(count=count, at=self._clock())

    def _evaluate(self, state: DiscoveryState, current: int, expected: int) -> Optional[ResolutionReason]:
        """Apply the completion rules to one non-zero sample."""
        config = self.config

        if expected > 0 and current >= expected:
            return ResolutionReason.EXPECTED_COUNT

        if (expected >= config.min_tools_for_early_exit and
                current >= expected * config.early_exit_threshold):
            return ResolutionReason.EARLY_EXIT

        if current == state.last_count:
            state.stable_streak += 1
            if state.stable_streak >= config.stable_threshold:
                return ResolutionReason.STABLE
        else:
            state.stable_streak = 0
            state.last_count = current
        return None

    async def run(self, count_source: CountSource) -> DiscoveryOutcome:
        """
        Run one discovery loop.

        Args:
            count_source: Async callable returning the current tool count

        Returns:
            DiscoveryOutcome; the loop never raises for poll or cache failures
        """
        config = self.config
        state = DiscoveryState(start_time=self._clock())
        self.state = state

        expected = self._expected_tools()
        if expected > 0:
            logger.info(f"Expecting ~{expected} tools based on cache...")
        logger.info(
            f"Waiting for tool discovery (timeout: {config.timeout_ms}ms, "
            f"poll: {config.poll_interval_ms}ms)..."
        )

        polls = 0
        last_observed = 0
        last_log = None

        remaining = self._remaining_ms(state)
        while remaining > 0:
            sample = await self._poll(count_source, remaining)
            polls += 1

            if sample is not None:
                last_observed = sample.count
                if sample.count > 0:
                    previous = state.last_count
                    reason = self._evaluate(state, sample.count, expected)
                    if reason is not None:
                        return self._resolve(state, DiscoveryStatus.COMPLETE, reason,
                                             sample.count, expected, polls)
                    if sample.count != previous and (last_log is None or
                                                     sample.at - last_log > PROGRESS_LOG_INTERVAL):
                        logger.info(f"Discovered {sample.count} tools so far...")
                        last_log = sample.at

            remaining = self._remaining_ms(state)
            if remaining > 0:
                await self._sleep(min(config.poll_interval_ms, remaining) / 1000)
                remaining = self._remaining_ms(state)

        return self._resolve(state, DiscoveryStatus.TIMED_OUT, ResolutionReason.TIMEOUT,
                             last_observed, expected, polls)

    def _resolve(
        self,
        state: DiscoveryState,
        status: DiscoveryStatus,
        reason: ResolutionReason,
        count: int,
        expected: int,
        polls: int,
    ) -> DiscoveryOutcome:
        elapsed = self._elapsed_ms(state)
        state.last_count = count
        state.finish()

        if status is DiscoveryStatus.COMPLETE:
            detail = ""
            if reason is ResolutionReason.EXPECTED_COUNT:
                detail = " (reached expected count)"
            elif reason is ResolutionReason.EARLY_EXIT:
                detail = f" (early exit at {round(count / expected * 100)}%)"
            logger.info(f"Tool discovery complete: {count} tools in {elapsed}ms{detail}")
        else:
            logger.warning(f"Tool discovery timeout after {elapsed}ms. Found {count} tools.")

        if self.cache is not None and count > 0:
            self.cache.save(count)

        return DiscoveryOutcome(
            status=status,
            reason=reason,
            tool_count=count,
            expected_tools=expected,
            elapsed_ms=elapsed,
            polls=polls,
        )
