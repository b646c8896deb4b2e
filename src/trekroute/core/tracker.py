"""Metric Tracker — Detached, best-effort delivery of metric events.

Events are pushed onto a bounded ``asyncio.Queue`` and delivered by a
single background worker. Submitting never blocks: a full queue drops the
event. Delivery failures are logged and discarded, never retried.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING

from trekroute.models.experiment import MetricEvent, UserIdentity

if TYPE_CHECKING:
    from trekroute.core.resolver import ExperimentResolver

logger = logging.getLogger(__name__)


class MetricTracker:
    """Background sender for ``MetricEvent`` objects.

    Attributes:
        dropped: Number of events discarded because the queue was full.
        failed: Number of events whose delivery raised.
    """

    def __init__(self, resolver: ExperimentResolver, max_queue_size: int = 1000) -> None:
        self._resolver = resolver
        self._queue: asyncio.Queue[tuple[UserIdentity, MetricEvent]] = asyncio.Queue(maxsize=max_queue_size)
        self._worker: asyncio.Task[None] | None = None
        self.dropped = 0
        self.failed = 0

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    async def start(self) -> None:
        """Spawn the delivery worker (idempotent)."""
        if self.running:
            return
        self._worker = asyncio.create_task(self._run(), name="trekroute-metric-tracker")
        logger.info("Metric tracker started")

    def submit(self, identity: UserIdentity, event: MetricEvent) -> bool:
        """Queue an event for delivery; returns False if it was dropped."""
        try:
            self._queue.put_nowait((identity, event))
        except asyncio.QueueFull:
            self.dropped += 1
            logger.warning("Metric queue full, dropping '%s' event for %s", event.kind, identity.user_id)
            return False
        return True

    async def _run(self) -> None:
        while True:
            identity, event = await self._queue.get()
            try:
                await self._resolver.track(identity, event)
            except Exception:
                self.failed += 1
                logger.warning("Failed to deliver '%s' event for %s", event.kind, identity.user_id, exc_info=True)
            finally:
                self._queue.task_done()

    async def stop(self, drain_timeout: float = 5.0) -> None:
        """Give queued events up to ``drain_timeout`` seconds, then stop the worker."""
        if self._worker is None:
            return

        if self.running:
            try:
                await asyncio.wait_for(self._queue.join(), timeout=drain_timeout)
            except TimeoutError:
                logger.warning("Metric tracker stopped with %d undelivered events", self._queue.qsize())

        self._worker.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._worker
        self._worker = None
        logger.info("Metric tracker stopped")
