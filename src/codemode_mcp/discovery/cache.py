"""
Tool Count Cache - remembers how many tools the last discovery run found.

The cached count is only a hint used to finish future discovery runs sooner.
Every failure here degrades to "no cache"; nothing is ever raised to callers.
"""

import json
import logging
import os
import tempfile
import time
from pathlib import Path
from typing import Callable, Optional

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


def wall_clock_ms() -> int:
    """Current wall-clock time in integer milliseconds."""
    return int(time.time() * 1000)


class CacheEntry(BaseModel):
    """A persisted tool count."""
    tool_count: int = Field(..., ge=0, alias="toolCount")
    timestamp: int = Field(..., ge=0, description="Milliseconds since the epoch")

    model_config = ConfigDict(populate_by_name=True)


class ToolCountCache:
    """
    File-backed cache of the last stable tool count.

    The record is a single JSON object ``{"toolCount": int, "timestamp": int}``
    that is always rewritten as a whole.
    """

    def __init__(self, path: Path, ttl_ms: int, now_ms: Callable[[], int] = wall_clock_ms):
        """
        Args:
            path: Location of the cache record
            ttl_ms: Age after which an entry is ignored
            now_ms: Wall clock in milliseconds (injectable for tests)
        """
        if ttl_ms <= 0:
            raise ValueError("ttl_ms must be positive")
        self.path = Path(path)
        self.ttl_ms = ttl_ms
        self._now_ms = now_ms

    def load(self) -> Optional[CacheEntry]:
        """
        Load the cached entry.

        Returns:
            The entry, or None if it is missing, unreadable, corrupt or expired
        """
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Could not read tool cache {self.path}: {e}")
            return None

        try:
            entry = CacheEntry.model_validate(json.loads(raw))
        except (ValueError, TypeError, RecursionError) as e:
            logger.warning(f"Ignoring corrupt tool cache {self.path}: {e}")
            return None

        age = self._now_ms() - entry.timestamp
        if age < 0:
            logger.warning(f"Ignoring tool cache {self.path}: timestamp is in the future")
            return None
        if age >= self.ttl_ms:
            logger.debug(f"Tool cache expired ({age}ms old, ttl {self.ttl_ms}ms)")
            return None
        return entry

    def save(self, tool_count: int) -> None:
        """Overwrite the cached entry with ``tool_count`` stamped with the current time."""
        try:
            entry = CacheEntry(toolCount=tool_count, timestamp=self._now_ms())
        except ValueError as e:
            logger.error(f"Refusing to cache invalid tool count {tool_count!r}: {e}")
            return

        payload = json.dumps(entry.model_dump(by_alias=True))
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=".tool_cache.", dir=self.path.parent)
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
            os.replace(tmp_name, self.path)
            tmp_name = None
            logger.debug(f"Saved tool count {tool_count} to {self.path}")
        except OSError as e:
            logger.error(f"Failed to save tool cache: {e}")
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    pass

    def clear(self) -> None:
        """Remove the cached entry if present."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove tool cache {self.path}: {e}")
