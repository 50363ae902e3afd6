"""Periodic background sync.

:class:`SyncScheduler` owns one asyncio task that runs a sync pass over its
collections right away and then every ``interval`` seconds.  ``start()`` is
idempotent and ``stop()`` tears the task down; the process-wide instance is
reached through :func:`default_scheduler`.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any, Sequence

from walker.reconciler import Reconciler, SyncReport
from walker.record import COLLECTIONS, Collection

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 30.0


class SyncScheduler:
    """Runs :meth:`Reconciler.trigger_sync` on a fixed interval."""

    def __init__(
        self,
        reconciler: Reconciler,
        collections: Sequence[Collection[Any]] | None = None,
        *,
        interval: float = DEFAULT_INTERVAL,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self.reconciler = reconciler
        self.collections = list(collections) if collections is not None else list(COLLECTIONS.values())
        self.interval = interval
        self.passes = 0
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> bool:
        """Start the background loop; return ``False`` if it was already running.

        Must be called from inside a running event loop.
        """
        if self.running:
            return False
        self._task = asyncio.get_running_loop().create_task(self._loop(), name="walker-sync")
        logger.info("Background sync started (every %.1fs)", self.interval)
        return True

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.info("Background sync stopped")

    async def run_once(self) -> list[SyncReport]:
        """One pass over every collection; failures are logged, not raised."""
        reports: list[SyncReport] = []
        for collection in self.collections:
            try:
                reports.append(await self.reconciler.trigger_sync(collection))
            except Exception:  # noqa: BLE001
                # keep the loop alive; the next tick retries
                logger.exception("Sync pass for %s crashed", collection.name)
        self.passes += 1
        return reports

    async def _loop(self) -> None:
        while True:
            await self.run_once()
            await asyncio.sleep(self.interval)


# ---------------------------------------------------------------------------
# Process-wide instance
# ---------------------------------------------------------------------------

_default: SyncScheduler | None = None


def default_scheduler(
    reconciler: Reconciler | None = None,
    collections: Sequence[Collection[Any]] | None = None,
    *,
    interval: float = DEFAULT_INTERVAL,
) -> SyncScheduler:
    """Return the process-wide scheduler, creating it on first use."""
    global _default
    if _default is None:
        if reconciler is None:
            raise RuntimeError("the first default_scheduler() call needs a reconciler")
        _default = SyncScheduler(reconciler, collections, interval=interval)
    return _default


async def reset_default_scheduler() -> None:
    """Stop and forget the process-wide scheduler."""
    global _default
    scheduler, _default = _default, None
    if scheduler is not None:
        await scheduler.stop()
