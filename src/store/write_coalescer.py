"""Debounced persistence of full collection snapshots.

Bursts of rewrite requests collapse into one physical write of the
latest snapshot. A synchronous mode bypasses the debounce window.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable

from core.logging_config import get_logger
from core.types import Record

_LOGGER = get_logger(__name__)

PersistFn = Callable[[list[Record]], Awaitable[None]]


class WriteCoalescer:
    """Schedulable write task with submit, flush, and cancel.

    Only the newest snapshot submitted before the window elapses is
    written; earlier snapshots are discarded. Delayed writes run one
    after another so an older snapshot never lands after a newer one.
    A delayed write that fails is logged and re-raised inside its
    background task, where no caller observes it.
    """

    def __init__(
        self,
        persist: PersistFn,
        window_seconds: float,
        synchronous: bool = False,
        label: str = "",
        logger: Any = None,
    ) -> None:
        """Create a coalescer.

        Args:
            persist: Coroutine function performing one physical write.
            window_seconds: Debounce window in seconds.
            synchronous: Persist on every submit instead of debouncing.
            label: Name included in log events, usually the document path.
            logger: Optional structured logger override.
        """
        self._persist = persist
        self._window_seconds = window_seconds
        self._synchronous = synchronous
        self._label = label
        self._logger = logger or _LOGGER
        self._pending: list[Record] | None = None
        self._latest: list[Record] | None = None
        self._timer: asyncio.TimerHandle | None = None
        self._in_flight: asyncio.Task[None] | None = None

    @property
    def synchronous(self) -> bool:
        return self._synchronous

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    @property
    def latest_unpersisted(self) -> list[Record] | None:
        """Newest submitted snapshot not yet confirmed on disk."""
        return self._latest

    async def submit(self, records: list[Record]) -> None:
        """Accept a snapshot for persistence.

        Args:
            records: Full record sequence to write.
        """
        if self._synchronous:
            await self._write(records)
            return
        self._latest = records
        self._pending = records
        if self._timer is None:
            loop = asyncio.get_running_loop()
            self._timer = loop.call_later(self._window_seconds, self._start_delayed_write)

    async def flush(self) -> None:
        """Cancel the timer and write the buffered snapshot now."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._in_flight is not None:
            await asyncio.wait([self._in_flight])
        snapshot = self._take_pending()
        if snapshot is not None:
            await self._write(snapshot)

    def cancel(self) -> None:
        """Drop the timer and buffered snapshot without writing."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._pending is not None and self._latest is self._pending:
            self._latest = None
        self._pending = None

    def _take_pending(self) -> list[Record] | None:
        snapshot = self._pending
        self._pending = None
        return snapshot

    def _start_delayed_write(self) -> None:
        self._timer = None
        snapshot = self._take_pending()
        if snapshot is None:
            return
        loop = asyncio.get_running_loop()
        self._in_flight = loop.create_task(self._delayed_write(snapshot, self._in_flight))

    async def _delayed_write(
        self,
        snapshot: list[Record],
        previous: asyncio.Task[None] | None,
    ) -> None:
        if previous is not None and not previous.done():
            await asyncio.wait([previous])
        try:
            await self._write(snapshot)
        except Exception as error:
            self._logger.error(
                "delayed_write_failed",
                path=self._label,
                record_count=len(snapshot),
                error=str(error),
            )
            raise
        finally:
            if self._in_flight is asyncio.current_task():
                self._in_flight = None

    async def _write(self, snapshot: list[Record]) -> None:
        await self._persist(snapshot)
        if self._latest is snapshot:
            self._latest = None
