"""
Manual definitions and bridge config file loading.

A "manual" is one upstream tool provider: an MCP server started as a
subprocess (stdio) or reached over HTTP (sse / streamable-http).
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

import yaml
from pydantic import BaseModel, Field, model_validator

from ..config import DEFAULT_CONFIG_FILENAME

logger = logging.getLogger(__name__)


class ManualConfig(BaseModel):
    """Call template for one upstream MCP server."""
    name: str = Field(..., min_length=1, description="Unique manual name, used as the tool name prefix")
    transport: Literal["stdio", "sse", "streamable-http"] = Field(
        default="stdio",
        description="How to reach the upstream server"
    )
    command: Optional[str] = Field(default=None, description="Executable to launch (stdio only)")
    args: List[str] = Field(default_factory=list, description="Command line arguments (stdio only)")
    env: Dict[str, str] = Field(default_factory=dict, description="Environment variables for the server process")
    cwd: Optional[str] = Field(default=None, description="Working directory for the server process")
    url: Optional[str] = Field(default=None, description="Endpoint URL (sse and streamable-http)")
    headers: Dict[str, str] = Field(default_factory=dict, description="Extra HTTP headers")

    @model_validator(mode="after")
    def _check_transport_fields(self) -> "ManualConfig":
        if "." in self.name:
            raise ValueError("manual name must not contain '.'")
        if self.transport == "stdio" and not self.command:
            raise ValueError("stdio manuals require a command")
        if self.transport != "stdio" and not self.url:
            raise ValueError(f"{self.transport} manuals require a url")
        return self


class BridgeConfigFile(BaseModel):
    """Contents of the bridge config file."""
    manuals: List[ManualConfig] = Field(default_factory=list)
    discovery: Dict[str, Any] = Field(default_factory=dict)


def locate_config_file(explicit: Optional[Path], cwd: Path, package_dir: Path) -> Path:
    """
    Pick the config file: explicit path, then working directory, then package directory.
    """
    if explicit is not None:
        if not explicit.exists():
            logger.warning(f"Config file specified in CODEMODE_CONFIG_FILE not found: {explicit}")
        return explicit
    candidate = cwd / DEFAULT_CONFIG_FILENAME
    if candidate.exists():
        return candidate
    return package_dir / DEFAULT_CONFIG_FILENAME


def load_config_file(path: Path) -> BridgeConfigFile:
    """
    Load the bridge config file.

    A missing file yields an empty config. A file that cannot be parsed is
    reported and also yields an empty config; an individual invalid manual
    is skipped with a warning.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.info(f"No config file at {path}; starting without manuals")
        return BridgeConfigFile()
    except OSError as e:
        logger.warning(f"Could not read config file {path}: {e}")
        return BridgeConfigFile()

    try:
        if path.suffix in (".yaml", ".yml"):
            raw = yaml.safe_load(text) or {}
        else:
            raw = json.loads(text)
    except (ValueError, yaml.YAMLError) as e:
        logger.warning(f"Could not parse config file {path}: {e}")
        return BridgeConfigFile()

    if not isinstance(raw, dict):
        logger.warning(f"Config file {path} must contain an object")
        return BridgeConfigFile()

    manuals = []
    for entry in raw.get("manuals") or []:
        try:
            manuals.append(ManualConfig.model_validate(entry))
        except ValueError as e:
            logger.warning(f"Skipping invalid manual in {path}: {e}")

    discovery = raw.get("discovery") or {}
    if not isinstance(discovery, dict):
        logger.warning(f"Ignoring non-object 'discovery' block in {path}")
        discovery = {}

    return BridgeConfigFile(manuals=manuals, discovery=discovery)
