# src/codemode_mcp/config.py
"""
Bridge configuration.

Settings come from environment variables; the discovery tuning can also be
overridden by the ``discovery`` block of the bridge config file.
"""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_CONFIG_FILENAME = ".codemode_config.json"
DEFAULT_CACHE_FILENAME = ".tool_cache.json"
DEFAULT_CACHE_TTL_MS = 60 * 60 * 1000


class DiscoveryConfig(BaseModel):
    """Tuning for the discovery convergence loop."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    poll_interval_ms: int = Field(default=250, gt=0, description="Delay between two polls of the tool count")
    stable_threshold: int = Field(default=2, gt=0, description="Consecutive unchanged polls required to call discovery stable")
    timeout_ms: int = Field(default=30000, gt=0, description="Upper bound on the time spent waiting for discovery")
    early_exit_threshold: float = Field(default=0.95, gt=0, le=1, description="Fraction of the expected tool count that allows an early exit")
    min_tools_for_early_exit: int = Field(default=100, gt=0, description="Early exit only applies when at least this many tools are expected")


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value else default


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    return float(value) if value else default


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if not value:
        return default
    return value.lower() in ("1", "true", "yes", "on")


@dataclass
class BridgeSettings:
    """Process-level settings for the bridge."""
    config_file: Optional[Path] = None
    state_dir: Path = field(default_factory=Path.cwd)
    cache_ttl_ms: int = DEFAULT_CACHE_TTL_MS
    discovery: DiscoveryConfig = field(default_factory=DiscoveryConfig)
    discovery_blocking: bool = True

    # Upstream connection retries
    max_retries: int = 3
    initial_backoff: float = 1.0
    max_backoff: float = 10.0

    log_level: str = "INFO"
    transport: str = "stdio"

    def __post_init__(self):
        if self.cache_ttl_ms <= 0:
            raise ValueError("cache_ttl_ms must be positive")
        if self.max_retries < 1:
            raise ValueError("max_retries must be at least 1")

    @property
    def cache_file(self) -> Path:
        return Path(self.state_dir) / DEFAULT_CACHE_FILENAME

    @classmethod
    def from_environment(cls) -> "BridgeSettings":
        """Build settings from environment variables."""
        config_file = os.getenv("CODEMODE_CONFIG_FILE")
        state_dir = os.getenv("CODEMODE_STATE_DIR")

        discovery = DiscoveryConfig(
            poll_interval_ms=_env_int("DISCOVERY_POLL_INTERVAL_MS", 250),
            stable_threshold=_env_int("DISCOVERY_STABLE_THRESHOLD", 2),
            timeout_ms=_env_int("DISCOVERY_TIMEOUT_MS", 30000),
            early_exit_threshold=_env_float("DISCOVERY_EARLY_EXIT_THRESHOLD", 0.95),
            min_tools_for_early_exit=_env_int("DISCOVERY_MIN_TOOLS_FOR_EARLY_EXIT", 100),
        )

        return cls(
            config_file=Path(config_file).resolve() if config_file else None,
            state_dir=Path(state_dir) if state_dir else Path.cwd(),
            cache_ttl_ms=_env_int("CODEMODE_CACHE_TTL_MS", DEFAULT_CACHE_TTL_MS),
            discovery=discovery,
            discovery_blocking=_env_bool("DISCOVERY_BLOCKING", True),
            max_retries=_env_int("MANUAL_MAX_RETRIES", 3),
            initial_backoff=_env_float("MANUAL_INITIAL_BACKOFF", 1.0),
            max_backoff=_env_float("MANUAL_MAX_BACKOFF", 10.0),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            transport=os.getenv("MCP_TRANSPORT", "stdio").lower(),
        )

    def with_discovery_overrides(self, overrides: Dict[str, Any]) -> "BridgeSettings":
        """
        Apply a ``discovery`` block from the config file on top of these settings.

        Raises:
            pydantic.ValidationError: If the merged values are invalid
        """
        if not overrides:
            return self
        merged = {**self.discovery.model_dump(), **overrides}
        self.discovery = DiscoveryConfig(**merged)
        return self
