"""Tests for the debounced remote writer."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from capture_inbox.errors import PersistenceUnavailable
from capture_inbox.models.capture import Capture
from capture_inbox.store.sync import DebouncedWriter, PendingWrite

QUIET = 0.05


def _make_remote(has_credential: bool = True) -> MagicMock:
    remote = MagicMock()
    remote.has_credential.return_value = has_credential
    remote.save_all = AsyncMock()
    remote.append = AsyncMock()
    remote.delete = AsyncMock()
    return remote


def _captures(n: int) -> list[Capture]:
    return [Capture(raw_content=f"capture {i}") for i in range(n)]


async def test_rapid_mutations_coalesce_into_one_write():
    """N mutations inside the quiet period produce exactly one remote write."""
    remote = _make_remote()
    writer = DebouncedWriter(remote, quiet_period=QUIET)
    captures = _captures(5)

    for i, capture in enumerate(captures):
        writer.schedule_append(capture, captures[: i + 1])
    await asyncio.sleep(QUIET * 4)

    remote.save_all.assert_awaited_once_with(captures)
    remote.append.assert_not_awaited()
    assert writer.pending is None


async def test_single_append_is_sent_as_append():
    remote = _make_remote()
    writer = DebouncedWriter(remote, quiet_period=QUIET)
    (capture,) = _captures(1)

    writer.schedule_append(capture, [capture])
    await asyncio.sleep(QUIET * 4)

    remote.append.assert_awaited_once_with(capture)
    remote.save_all.assert_not_awaited()


async def test_new_mutation_pushes_deadline():
    remote = _make_remote()
    writer = DebouncedWriter(remote, quiet_period=QUIET)
    a, b = _captures(2)

    writer.schedule_append(a, [a])
    await asyncio.sleep(QUIET * 0.6)
    writer.schedule_append(b, [b, a])
    await asyncio.sleep(QUIET * 0.6)
    remote.save_all.assert_not_awaited()

    await asyncio.sleep(QUIET * 3)
    remote.save_all.assert_awaited_once_with([b, a])


async def test_delete_of_unsent_append_cancels_it():
    remote = _make_remote()
    writer = DebouncedWriter(remote, quiet_period=QUIET)
    (capture,) = _captures(1)

    writer.schedule_append(capture, [capture])
    writer.schedule_delete(capture.id, [])

    assert writer.pending.appended == []
    assert writer.pending.deleted == []


async def test_replace_sends_snapshot():
    remote = _make_remote()
    writer = DebouncedWriter(remote, quiet_period=QUIET)
    captures = _captures(2)

    writer.schedule_replace(captures)
    assert await writer.flush() is True

    remote.save_all.assert_awaited_once_with(captures)


async def test_failed_write_is_requeued_as_replace():
    remote = _make_remote()
    remote.append.side_effect = PersistenceUnavailable("down")
    writer = DebouncedWriter(remote, quiet_period=QUIET)
    (capture,) = _captures(1)
    writer.schedule_append(capture, [capture])

    with pytest.raises(PersistenceUnavailable):
        await writer.flush()

    assert writer.pending is not None
    assert writer.pending.replace is True
    assert await writer.flush() is True
    remote.save_all.assert_awaited_once_with([capture])


async def test_timer_failure_is_logged_not_raised(caplog):
    remote = _make_remote()
    remote.append.side_effect = PersistenceUnavailable("down")
    writer = DebouncedWriter(remote, quiet_period=QUIET)
    (capture,) = _captures(1)

    writer.schedule_append(capture, [capture])
    await asyncio.sleep(QUIET * 4)

    assert writer.pending is not None
    assert any("will retry" in r.getMessage() for r in caplog.records)


async def test_no_credential_keeps_pending_local():
    remote = _make_remote(has_credential=False)
    writer = DebouncedWriter(remote, quiet_period=QUIET)
    (capture,) = _captures(1)
    writer.schedule_append(capture, [capture])

    assert await writer.flush() is False

    assert writer.pending is not None
    remote.append.assert_not_awaited()


async def test_before_flush_runs_first():
    remote = _make_remote()
    order = []
    remote.append.side_effect = lambda c: order.append("append")

    async def before_flush():
        order.append("reconcile")

    writer = DebouncedWriter(remote, quiet_period=QUIET, before_flush=before_flush)
    (capture,) = _captures(1)
    writer.schedule_append(capture, [capture])
    await writer.flush()

    assert order == ["reconcile", "append"]


async def test_aclose_flushes_pending():
    remote = _make_remote()
    writer = DebouncedWriter(remote, quiet_period=10)
    (capture,) = _captures(1)
    writer.schedule_append(capture, [capture])

    await writer.aclose()

    remote.append.assert_awaited_once_with(capture)


def test_pending_write_requires_replace():
    (capture,) = _captures(1)
    assert PendingWrite(appended=[capture]).requires_replace is False
    assert PendingWrite(appended=[capture], deleted=["cap_x"]).requires_replace is True
    assert PendingWrite(replace=True).requires_replace is True
