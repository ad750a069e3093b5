"""
Tool discovery convergence.

Upstream servers connect at different speeds and never announce that they are
done, so readiness is inferred from the tool count: the controller polls it,
the cache remembers the previous total and the gate makes sure only one run
happens per process.
"""

from .cache import CacheEntry, ToolCountCache
from .controller import (
    ConvergenceController,
    DiscoveryOutcome,
    DiscoveryState,
    DiscoveryStatus,
    ResolutionReason,
)
from .gate import GateState, ReadinessGate

__all__ = [
    "CacheEntry",
    "ToolCountCache",
    "ConvergenceController",
    "DiscoveryOutcome",
    "DiscoveryState",
    "DiscoveryStatus",
    "ResolutionReason",
    "GateState",
    "ReadinessGate",
]
