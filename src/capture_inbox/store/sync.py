"""Debounced remote writes.

Mutations land in a single PendingWrite slot and push a deadline forward;
one timer task flushes the slot once the quiet period has elapsed. A flush
sends one bulk replace when one is required (or when several mutations
coalesced), otherwise the single append or delete.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable

from capture_inbox.errors import PersistenceUnavailable, Unauthorized
from capture_inbox.models.capture import Capture
from capture_inbox.store.remote import RemoteStore

logger = logging.getLogger(__name__)

REMOTE_ERRORS = (PersistenceUnavailable, Unauthorized)


@dataclass
class PendingWrite:
    """Latest collection snapshot plus the mutations since the last flush."""

    snapshot: list[Capture] = field(default_factory=list)
    appended: list[Capture] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    replace: bool = False

    @property
    def requires_replace(self) -> bool:
        return self.replace or len(self.appended) + len(self.deleted) > 1


class DebouncedWriter:
    def __init__(
        self,
        remote: RemoteStore,
        quiet_period: float = 3.0,
        before_flush: Callable[[], Awaitable[None]] | None = None,
    ) -> None:
        self._remote = remote
        self._quiet_period = quiet_period
        self._before_flush = before_flush
        self._pending: PendingWrite | None = None
        self._deadline = 0.0
        self._timer: asyncio.Task | None = None
        self._lock = asyncio.Lock()

    @property
    def pending(self) -> PendingWrite | None:
        return self._pending

    def schedule_append(self, capture: Capture, snapshot: list[Capture]) -> None:
        pending = self._slot(snapshot)
        pending.appended.append(capture)
        self._arm()

    def schedule_delete(self, capture_id: str, snapshot: list[Capture]) -> None:
        pending = self._slot(snapshot)
        unsent = [c for c in pending.appended if c.id != capture_id]
        if len(unsent) != len(pending.appended):
            pending.appended = unsent
        elif capture_id not in pending.deleted:
            pending.deleted.append(capture_id)
        self._arm()

    def schedule_replace(self, snapshot: list[Capture]) -> None:
        self._slot(snapshot).replace = True
        self._arm()

    async def flush(self) -> bool:
        """Write the pending slot now.

        Returns False when the write was skipped for lack of a credential;
        the slot is kept for a later cycle.

        Raises:
            PersistenceUnavailable, Unauthorized: The write failed. The slot
                is requeued as a full replace.
        """
        async with self._lock:
            if self._pending is None:
                return True
            if not self._remote.has_credential():
                logger.info("No remote credential, keeping captures local-only")
                return False
            if self._before_flush is not None:
                await self._before_flush()

            pending, self._pending = self._pending, None
            if pending is None:
                return True
            try:
                await self._write(pending)
            except REMOTE_ERRORS:
                self._requeue(pending)
                raise
            return True

    async def aclose(self) -> None:
        """Cancel the timer and make a final flush attempt."""
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
            try:
                await self._timer
            except asyncio.CancelledError:
                pass
        self._timer = None
        try:
            await self.flush()
        except REMOTE_ERRORS as exc:
            logger.error("Final remote write failed, captures remain in the local cache: %s", exc)

    def _slot(self, snapshot: list[Capture]) -> PendingWrite:
        if self._pending is None:
            self._pending = PendingWrite()
        self._pending.snapshot = list(snapshot)
        return self._pending

    def _requeue(self, failed: PendingWrite) -> None:
        if self._pending is None:
            failed.replace = True
            self._pending = failed
        else:
            self._pending.replace = True

    def _arm(self) -> None:
        loop = asyncio.get_running_loop()
        self._deadline = loop.time() + self._quiet_period
        if self._timer is None or self._timer.done():
            self._timer = asyncio.create_task(self._run_timer())

    async def _run_timer(self) -> None:
        loop = asyncio.get_running_loop()
        while self._pending is not None:
            while (delay := self._deadline - loop.time()) > 0:
                await asyncio.sleep(delay)
            try:
                if not await self.flush():
                    return
            except REMOTE_ERRORS as exc:
                logger.warning("Remote write failed, will retry on the next cycle: %s", exc)
                return

    async def _write(self, pending: PendingWrite) -> None:
        if pending.requires_replace:
            await self._remote.save_all(pending.snapshot)
            logger.info("Remote store replaced with %d captures", len(pending.snapshot))
            return
        for capture in pending.appended:
            await self._remote.append(capture)
        for capture_id in pending.deleted:
            await self._remote.delete(capture_id)
