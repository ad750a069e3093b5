"""Unit tests for the discovery convergence controller.

Time is driven by FakeClock: every poll interval advances the clock instantly.
"""

import asyncio

import pytest
from pydantic import ValidationError

from codemode_mcp.config import DiscoveryConfig
from codemode_mcp.discovery import (
    ConvergenceController,
    DiscoveryStatus,
    ResolutionReason,
)

from .conftest import ScriptedCountSource


def make_controller(config, fake_clock, cache=None):
    return ConvergenceController(config, cache=cache, clock=fake_clock, sleep=fake_clock.sleep)


@pytest.mark.asyncio
@pytest.mark.parametrize("threshold", [1, 2, 3, 5])
async def test_resolves_exactly_at_kth_stable_poll(fake_clock, discovery_config, threshold):
    """A constant count resolves on the poll where the streak reaches the threshold."""
    config = discovery_config.model_copy(update={"stable_threshold": threshold})
    source = ScriptedCountSource([7])

    outcome = await make_controller(config, fake_clock).run(source)

    assert outcome.status is DiscoveryStatus.COMPLETE
    assert outcome.reason is ResolutionReason.STABLE
    assert outcome.tool_count == 7
    # First poll records the count, the next `threshold` polls are the stable ones
    assert source.calls == threshold + 1
    assert outcome.polls == threshold + 1
    assert outcome.elapsed_ms == threshold * config.poll_interval_ms


@pytest.mark.asyncio
async def test_growing_count_does_not_resolve_early(fake_clock, discovery_config):
    source = ScriptedCountSource([1, 2, 3, 4, 4, 4])

    outcome = await make_controller(discovery_config, fake_clock).run(source)

    assert outcome.reason is ResolutionReason.STABLE
    assert outcome.tool_count == 4
    assert source.calls == 6


@pytest.mark.asyncio
async def test_cached_expected_count_resolves_on_first_poll(fake_clock, discovery_config, count_cache):
    count_cache.save(12)
    source = ScriptedCountSource([12])

    outcome = await make_controller(discovery_config, fake_clock, count_cache).run(source)

    assert outcome.status is DiscoveryStatus.COMPLETE
    assert outcome.reason is ResolutionReason.EXPECTED_COUNT
    assert outcome.expected_tools == 12
    assert source.calls == 1
    assert fake_clock.sleeps == []


@pytest.mark.asyncio
async def test_count_above_expected_also_matches(fake_clock, discovery_config, count_cache):
    count_cache.save(5)

    outcome = await make_controller(discovery_config, fake_clock, count_cache).run(ScriptedCountSource([9]))

    assert outcome.reason is ResolutionReason.EXPECTED_COUNT
    assert count_cache.load().tool_count == 9


@pytest.mark.asyncio
async def test_early_exit_on_high_coverage(fake_clock, discovery_config, count_cache):
    count_cache.save(200)
    source = ScriptedCountSource([190])

    outcome = await make_controller(discovery_config, fake_clock, count_cache).run(source)

    assert outcome.status is DiscoveryStatus.COMPLETE
    assert outcome.reason is ResolutionReason.EARLY_EXIT
    assert outcome.tool_count == 190
    assert source.calls == 1


@pytest.mark.asyncio
async def test_expected_count_takes_precedence_over_early_exit(fake_clock, discovery_config, count_cache):
    # 200 of 200 satisfies both the expected count and the early-exit coverage
    count_cache.save(200)

    outcome = await make_controller(discovery_config, fake_clock, count_cache).run(ScriptedCountSource([200]))

    assert outcome.reason is ResolutionReason.EXPECTED_COUNT
    assert outcome.polls == 1


@pytest.mark.asyncio
async def test_early_exit_preempts_pending_stability(fake_clock, discovery_config, count_cache):
    config = discovery_config.model_copy(update={"stable_threshold": 3})
    count_cache.save(200)
    source = ScriptedCountSource([150, 150, 190, 190])

    outcome = await make_controller(config, fake_clock, count_cache).run(source)

    assert outcome.reason is ResolutionReason.EARLY_EXIT
    assert outcome.tool_count == 190
    assert source.calls == 3


@pytest.mark.asyncio
async def test_no_early_exit_below_coverage(fake_clock, discovery_config, count_cache):
    count_cache.save(200)
    source = ScriptedCountSource([150, 189, 189, 189])

    outcome = await make_controller(discovery_config, fake_clock, count_cache).run(source)

    assert outcome.reason is ResolutionReason.STABLE
    assert outcome.tool_count == 189
    assert source.calls == 4


@pytest.mark.asyncio
async def test_no_early_exit_for_small_expected_population(fake_clock, discovery_config, count_cache):
    # 19 of 20 is 95%, but 20 is below min_tools_for_early_exit
    count_cache.save(20)
    source = ScriptedCountSource([19])

    outcome = await make_controller(discovery_config, fake_clock, count_cache).run(source)

    assert outcome.reason is ResolutionReason.STABLE
    assert source.calls == 3


@pytest.mark.asyncio
async def test_zero_count_times_out(fake_clock, discovery_config, count_cache):
    source = ScriptedCountSource([0])

    outcome = await make_controller(discovery_config, fake_clock, count_cache).run(source)

    assert outcome.status is DiscoveryStatus.TIMED_OUT
    assert outcome.reason is ResolutionReason.TIMEOUT
    assert outcome.tool_count == 0
    assert outcome.elapsed_ms == discovery_config.timeout_ms
    assert not outcome.complete
    # A zero-count timeout leaves the cache untouched
    assert count_cache.load() is None


@pytest.mark.asyncio
async def test_timeout_with_tools_updates_cache(fake_clock, discovery_config, count_cache):
    source = ScriptedCountSource(list(range(1, 100)))

    outcome = await make_controller(discovery_config, fake_clock, count_cache).run(source)

    assert outcome.status is DiscoveryStatus.TIMED_OUT
    # Polls run at 0, 100, ..., 900ms; none is taken at the deadline itself
    assert outcome.tool_count == 10
    assert outcome.polls == 10
    assert count_cache.load().tool_count == 10


@pytest.mark.asyncio
async def test_poll_error_does_not_stop_the_loop(fake_clock, discovery_config):
    source = ScriptedCountSource([3, RuntimeError("server hiccup"), 3, 3])

    outcome = await make_controller(discovery_config, fake_clock).run(source)

    assert outcome.status is DiscoveryStatus.COMPLETE
    assert outcome.tool_count == 3
    assert source.calls == 4


@pytest.mark.asyncio
async def test_source_always_failing_times_out(fake_clock, discovery_config):
    source = ScriptedCountSource([ConnectionError("down")])

    outcome = await make_controller(discovery_config, fake_clock).run(source)

    assert outcome.status is DiscoveryStatus.TIMED_OUT
    assert outcome.tool_count == 0


@pytest.mark.asyncio
async def test_invalid_count_is_treated_as_poll_error(fake_clock, discovery_config):
    source = ScriptedCountSource([-1, 4, 4, 4])

    outcome = await make_controller(discovery_config, fake_clock).run(source)

    assert outcome.tool_count == 4
    assert source.calls == 4


@pytest.mark.asyncio
async def test_transient_decrease_resets_streak(fake_clock, discovery_config):
    source = ScriptedCountSource([5, 5, 4, 4, 4])

    outcome = await make_controller(discovery_config, fake_clock).run(source)

    assert outcome.reason is ResolutionReason.STABLE
    assert outcome.tool_count == 4
    assert source.calls == 5


@pytest.mark.asyncio
async def test_stable_resolution_is_cached(fake_clock, discovery_config, count_cache):
    await make_controller(discovery_config, fake_clock, count_cache).run(ScriptedCountSource([8]))

    assert count_cache.load().tool_count == 8


@pytest.mark.asyncio
async def test_state_is_frozen_after_completion(fake_clock, discovery_config):
    controller = make_controller(discovery_config, fake_clock)
    await controller.run(ScriptedCountSource([2]))

    state = controller.state
    assert state.completed is True
    assert state.running is False
    assert state.last_count == 2
    with pytest.raises(AttributeError):
        state.stable_streak = 0


@pytest.mark.parametrize("overrides", [
    {"poll_interval_ms": 0},
    {"stable_threshold": 0},
    {"timeout_ms": -5},
    {"early_exit_threshold": 0},
    {"early_exit_threshold": 1.5},
    {"min_tools_for_early_exit": 0},
])
def test_invalid_config_fails_at_construction(fake_clock, overrides):
    base = DiscoveryConfig().model_dump()
    with pytest.raises(ValidationError):
        ConvergenceController({**base, **overrides}, clock=fake_clock, sleep=fake_clock.sleep)


def test_config_accepts_dict(fake_clock):
    controller = ConvergenceController({"poll_interval_ms": 50}, clock=fake_clock, sleep=fake_clock.sleep)
    assert controller.config.poll_interval_ms == 50
    assert controller.config.stable_threshold == 2


@pytest.mark.asyncio
async def test_hung_count_source_is_bounded_by_timeout():
    async def never_returns():
        await asyncio.Event().wait()

    config = DiscoveryConfig(poll_interval_ms=20, timeout_ms=100)

    outcome = await asyncio.wait_for(ConvergenceController(config).run(never_returns), timeout=5)

    assert outcome.status is DiscoveryStatus.TIMED_OUT
    assert outcome.tool_count == 0


@pytest.mark.asyncio
async def test_last_sleep_is_capped_at_the_deadline(fake_clock):
    config = DiscoveryConfig(poll_interval_ms=300, timeout_ms=1000)
    source = ScriptedCountSource([0])

    outcome = await make_controller(config, fake_clock).run(source)

    assert outcome.status is DiscoveryStatus.TIMED_OUT
    assert outcome.elapsed_ms == 1000
    assert fake_clock.sleeps == [0.3, 0.3, 0.3, 0.1]
    assert source.calls == 4
