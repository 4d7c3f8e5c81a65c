"""In-memory capture collection backed by a local cache and a remote store.

The collection is ordered newest first. Every mutation swaps in a new list,
so readers see either the state before or after it. The local cache is
written synchronously on each mutation; remote writes go through a
DebouncedWriter.
"""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Awaitable, Callable

from capture_inbox.errors import (
    CaptureNotFound,
    ClassificationUnavailable,
    InvalidInput,
    Unauthorized,
)
from capture_inbox.extraction import detect_content_type
from capture_inbox.fallback import classify_fallback
from capture_inbox.models.capture import (
    AI_DERIVED_FIELDS,
    ActionTaken,
    Capture,
    Category,
    ContentType,
    new_capture_id,
    utc_now,
)
from capture_inbox.models.context import ClassificationContext
from capture_inbox.store.local import LocalCache
from capture_inbox.store.remote import RemoteStore
from capture_inbox.store.sync import REMOTE_ERRORS, DebouncedWriter

logger = logging.getLogger(__name__)

Classify = Callable[[str, ContentType, ClassificationContext | None], Awaitable[Capture]]


def _touch(previous: datetime) -> datetime:
    return max(utc_now(), previous + timedelta(microseconds=1))


class CaptureRepository:
    """Owns the capture collection and its persistence.

    Args:
        classifier: Async callable (content, content_type, context) -> Capture.
            Expected to raise ClassificationUnavailable on failure, in which
            case the rule-based fallback classifies instead.
        cache: Local JSON cache, loaded by start().
        remote: Optional remote store; None keeps the inbox local-only.
        quiet_period: Seconds of inactivity before pending remote writes flush.
        context: User rules/memories passed to both classifiers.
    """

    def __init__(
        self,
        classifier: Classify,
        cache: LocalCache,
        remote: RemoteStore | None = None,
        quiet_period: float = 3.0,
        context: ClassificationContext | None = None,
    ) -> None:
        self._classify = classifier
        self._cache = cache
        self._remote = remote
        self._context = context
        self._captures: list[Capture] = []
        self._generations: dict[str, int] = {}
        self._mutated = False
        self._deleted_before_load: set[str] = set()
        self._remote_loaded = remote is None
        self._reconcile_lock = asyncio.Lock()
        self._hydration: asyncio.Task | None = None
        self._writer = (
            DebouncedWriter(remote, quiet_period, before_flush=self._ensure_reconciled)
            if remote is not None
            else None
        )

    async def start(self) -> None:
        """Load the local cache, then reconcile with the remote in the background."""
        self._captures = self._cache.load()
        logger.info("Loaded %d captures from local cache", len(self._captures))
        if self._remote is not None:
            self._hydration = asyncio.create_task(self._hydrate())

    async def wait_hydrated(self) -> None:
        if self._hydration is not None:
            await self._hydration

    def get(self, capture_id: str) -> Capture | None:
        return next((c for c in self._captures if c.id == capture_id), None)

    async def create(self, content: str, content_type: ContentType | None = None) -> Capture:
        """Classify content and insert the result at the head of the collection.

        Raises:
            InvalidInput: content is blank.
        """
        if not isinstance(content, str) or not content.strip():
            raise InvalidInput("Capture content must not be empty")
        content_type = content_type or detect_content_type(content)

        classified = await self._run_classifier(content, content_type)
        ids = {c.id for c in self._captures}
        capture_id = classified.id
        while capture_id in ids:
            capture_id = new_capture_id()
        now = utc_now()
        capture = classified.model_copy(
            update={"id": capture_id, "created_at": now, "updated_at": now}
        )

        self._commit([capture, *self._captures])
        if self._writer is not None:
            self._writer.schedule_append(capture, self._captures)
        logger.info(
            "Capture created",
            extra={
                "capture_id": capture.id,
                "category": capture.category.value,
                "classified_by": capture.classified_by.value,
            },
        )
        return capture

    async def delete(self, capture_id: str) -> None:
        """Remove a capture. Deleting an unknown id is a no-op."""
        remaining = [c for c in self._captures if c.id != capture_id]
        if len(remaining) == len(self._captures):
            return
        self._generations.pop(capture_id, None)
        if not self._remote_loaded:
            self._deleted_before_load.add(capture_id)
        self._commit(remaining)
        if self._writer is not None:
            self._writer.schedule_delete(capture_id, self._captures)

    async def reprocess(self, capture_id: str, content: str | None = None) -> Capture:
        """Re-run classification, replacing every AI-derived field.

        id, created_at and action_taken are preserved. When a newer
        reprocess of the same capture starts before this one finishes, this
        result is discarded and the current record is returned.

        Raises:
            CaptureNotFound: No capture has this id.
            InvalidInput: content was given but is blank.
        """
        existing = self.get(capture_id)
        if existing is None:
            raise CaptureNotFound(capture_id)
        if content is not None and (not isinstance(content, str) or not content.strip()):
            raise InvalidInput("Capture content must not be empty")

        if content is None:
            content, content_type = existing.raw_content, existing.content_type
        else:
            content_type = detect_content_type(content)

        generation = self._generations.get(capture_id, 0) + 1
        self._generations[capture_id] = generation
        fresh = await self._run_classifier(content, content_type)

        current = self.get(capture_id)
        if current is None:
            raise CaptureNotFound(capture_id)
        if self._generations.get(capture_id) != generation:
            logger.info("Discarding superseded reprocess result for %s", capture_id)
            return current

        updates = {field: getattr(fresh, field) for field in AI_DERIVED_FIELDS}
        updates.update(
            raw_content=content,
            content_type=content_type,
            source=fresh.source,
            updated_at=_touch(current.updated_at),
        )
        return self._replace(current.model_copy(update=updates))

    async def mark_action(self, capture_id: str, action: ActionTaken | str) -> Capture:
        """Record a downstream action (added to lead tracker, tasks, ...).

        Raises:
            CaptureNotFound: No capture has this id.
            InvalidInput: action is not a known ActionTaken value.
        """
        current = self.get(capture_id)
        if current is None:
            raise CaptureNotFound(capture_id)
        try:
            action = ActionTaken(action)
        except ValueError as exc:
            raise InvalidInput(f"Unknown action {action!r}") from exc
        return self._replace(
            current.model_copy(
                update={"action_taken": action, "updated_at": _touch(current.updated_at)}
            )
        )

    async def sync(self) -> None:
        """Flush pending remote writes now.

        Raises:
            Unauthorized: No credential is available, or it was rejected.
            PersistenceUnavailable: The remote store could not be written.
        """
        if self._writer is None:
            return
        if not await self._writer.flush():
            raise Unauthorized("No credential available for the remote store")

    async def aclose(self) -> None:
        """Stop background work and make a final flush attempt."""
        if self._hydration is not None and not self._hydration.done():
            self._hydration.cancel()
            try:
                await self._hydration
            except asyncio.CancelledError:
                pass
        if self._writer is not None:
            await self._writer.aclose()
        if self._remote is not None:
            await self._remote.aclose()

    async def _run_classifier(self, content: str, content_type: ContentType) -> Capture:
        try:
            return await self._classify(content, content_type, self._context)
        except ClassificationUnavailable as exc:
            logger.warning("Remote classification unavailable, using fallback: %s", exc)
            return classify_fallback(content, content_type, self._context)

    def _commit(self, captures: list[Capture]) -> None:
        self._captures = captures
        self._mutated = True
        self._cache.save(self._captures)

    def _replace(self, updated: Capture) -> Capture:
        self._commit([updated if c.id == updated.id else c for c in self._captures])
        if self._writer is not None:
            self._writer.schedule_replace(self._captures)
        return updated

    async def _hydrate(self) -> None:
        try:
            await self._ensure_reconciled()
        except REMOTE_ERRORS as exc:
            logger.warning("Remote hydration failed, keeping local captures: %s", exc)

    async def _ensure_reconciled(self) -> None:
        """Load the remote collection once and merge it with the local one.

        Raises:
            Unauthorized, PersistenceUnavailable: The remote could not be read.
        """
        async with self._reconcile_lock:
            if self._remote_loaded or self._remote is None:
                return
            remote = await self._remote.load()
            self._remote_loaded = True
            self._apply_remote(remote)

    def _apply_remote(self, remote: list[Capture]) -> None:
        deleted, self._deleted_before_load = self._deleted_before_load, set()
        if not remote:
            logger.info("Remote store is empty, keeping %d local captures", len(self._captures))
            if self._captures and self._writer is not None:
                self._writer.schedule_replace(self._captures)
            return

        remote_ids = {c.id for c in remote}
        if self._mutated:
            # Local wins by id; remote rows deleted here stay deleted
            local_ids = {c.id for c in self._captures}
            additions = [c for c in remote if c.id not in local_ids and c.id not in deleted]
            merged = self._captures + additions
        else:
            # Cache rows created after the remote's last write were never flushed
            newest = max(c.updated_at for c in remote)
            unsynced = [
                c for c in self._captures if c.id not in remote_ids and c.created_at > newest
            ]
            if not unsynced:
                self._captures = remote
                self._cache.save(self._captures)
                logger.info("Hydrated %d captures from remote store", len(remote))
                return
            merged = unsynced + remote

        merged.sort(key=lambda c: c.created_at, reverse=True)
        self._commit(merged)
        if self._writer is not None:
            self._writer.schedule_replace(self._captures)
        logger.info(
            "Merged remote store into local captures",
            extra={"remote": len(remote), "merged": len(merged)},
        )

    def list(self, category: Category | None = None) -> "list[Capture]":
        """Return a copy of the collection, newest first, optionally filtered."""
        if category is None:
            return [*self._captures]
        return [c for c in self._captures if c.category == category]
