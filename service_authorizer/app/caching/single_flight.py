"""
Per-key single-flight cache.

Each key maps to a cell that is ABSENT, PENDING (one in-flight load shared
by every caller) or COMPLETED (the loaded value, kept for the lifetime of
the cache). Failed loads are not cached: the pending cell is dropped so the
next caller starts a fresh load.

All access must happen on one event loop. The lookup and the installation
of the pending task run without a suspension point in between, so at most
one load per key can be started.
"""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import Awaitable, Callable, Dict, Generic, Hashable, Optional, TypeVar, TYPE_CHECKING

from shared.logging import get_logger

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class CellState(Enum):
    """State of a single cache cell."""
    ABSENT = "absent"
    PENDING = "pending"
    COMPLETED = "completed"


class SingleFlightCache(Generic[K, V]):
    """Memoizes async loads per key, collapsing concurrent loads into one."""

    def __init__(self, name: str, *, metrics: Optional["MetricsCollector"] = None) -> None:
        self.name = name
        self.metrics = metrics
        self.logger = get_logger(f"authorizer.cache.{name}")
        self._values: Dict[K, V] = {}
        self._pending: Dict[K, "asyncio.Future[V]"] = {}

    def __len__(self) -> int:
        return len(self._values)

    def state(self, key: K) -> CellState:
        """Return the current state of the cell for ``key``."""
        if key in self._values:
            return CellState.COMPLETED
        if key in self._pending:
            return CellState.PENDING
        return CellState.ABSENT

    def peek(self, key: K) -> Optional[V]:
        """Return the completed value for ``key`` without loading."""
        return self._values.get(key)

    async def get_or_load(self, key: K, loader: Callable[[], Awaitable[V]]) -> V:
        """Return the value for ``key``, running ``loader`` only if no value or load exists."""
        if key in self._values:
            self._record("hit")
            return self._values[key]

        pending = self._pending.get(key)
        if pending is None:
            self._record("miss")
            self.logger.debug("Starting load", key=str(key))
            pending = asyncio.ensure_future(self._load(key, loader))
            self._pending[key] = pending
        else:
            self._record("joined")

        # Shielded so a cancelled caller does not cancel the load other callers share.
        return await asyncio.shield(pending)

    async def _load(self, key: K, loader: Callable[[], Awaitable[V]]) -> V:
        try:
            value = await loader()
            self._values[key] = value
            return value
        except Exception as exc:
            self.logger.warning("Load failed, cell cleared", key=str(key), error=str(exc))
            raise
        finally:
            self._pending.pop(key, None)

    def _record(self, result: str) -> None:
        if self.metrics:
            self.metrics.increment_counter("cache_lookups_total", cache=self.name, result=result)
