"""Client-side dashboard refresh: a bus event or a poll tick reloads the snapshot.

For staff dashboard clients and bots that keep their own view of the store;
the API itself does not run this loop.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

SnapshotT = TypeVar("SnapshotT")

DEFAULT_POLL_INTERVAL_SECONDS = 15.0


class DashboardRefreshLoop(Generic[SnapshotT]):
    """Re-fetch a full list on any bus event, or every ``poll_interval`` at the latest.

    ``handle`` can be registered as a bus subscriber from any thread. Bursts
    of events that arrive during a fetch collapse into one more refresh.
    """

    def __init__(
        self,
        fetch: Callable[[], Awaitable[SnapshotT]],
        on_snapshot: Callable[[SnapshotT], None],
        poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
    ) -> None:
        if poll_interval <= 0:
            raise ValueError("poll_interval must be > 0")
        self._fetch = fetch
        self._on_snapshot = on_snapshot
        self._poll_interval = poll_interval
        self._wake = asyncio.Event()
        self._stopped = False
        self._loop: asyncio.AbstractEventLoop | None = None
        self.refresh_count = 0

    def handle(self, topic: str, message: str) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        loop.call_soon_threadsafe(self._wake.set)

    def stop(self) -> None:
        self._stopped = True
        loop = self._loop
        if loop is not None and not loop.is_closed():
            loop.call_soon_threadsafe(self._wake.set)

    async def run(self) -> None:
        self._loop = asyncio.get_running_loop()
        while not self._stopped:
            self._wake.clear()
            try:
                snapshot = await self._fetch()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("dashboard_refresh_failed")
            else:
                self.refresh_count += 1
                self._on_snapshot(snapshot)

            if self._stopped:
                break
            try:
                await asyncio.wait_for(self._wake.wait(), timeout=self._poll_interval)
            except asyncio.TimeoutError:
                pass
