"""Capture persistence: local JSON cache, remote HTTP store, debounced sync."""

from capture_inbox.store.local import LocalCache
from capture_inbox.store.remote import RemoteStore
from capture_inbox.store.sync import DebouncedWriter, PendingWrite

__all__ = [
    "DebouncedWriter",
    "LocalCache",
    "PendingWrite",
    "RemoteStore",
]
