"""
Per-key mutual exclusion.

Serializes work on a single key (a payment hash) without serializing work on
unrelated keys. Entries are reference counted and dropped as soon as no thread
holds, waits on or pins them, so the lock table never outgrows the set of keys
that are in flight.
"""

import threading
from contextlib import contextmanager
from typing import Dict, Iterator


class _Entry:
    __slots__ = ("lock", "refs")

    def __init__(self):
        self.lock = threading.Lock()
        self.refs = 0


class KeyedLock:
    """
    Single-flight lock keyed by string.

    Usage:
        locks = KeyedLock()
        with locks.pin(payment_hash):
            ...  # slow work outside the lock; is_busy(payment_hash) is True
            with locks.hold(payment_hash):
                ...  # only one thread per payment_hash in here
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._entries: Dict[str, _Entry] = {}

    def _acquire_entry(self, key: str) -> _Entry:
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._entries[key] = _Entry()
            entry.refs += 1
            return entry

    def _release_entry(self, key: str, entry: _Entry) -> None:
        with self._guard:
            entry.refs -= 1
            if entry.refs == 0:
                del self._entries[key]

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        entry = self._acquire_entry(key)
        try:
            with entry.lock:
                yield
        finally:
            self._release_entry(key, entry)

    @contextmanager
    def pin(self, key: str) -> Iterator[None]:
        """Mark key busy without taking its lock."""
        entry = self._acquire_entry(key)
        try:
            yield
        finally:
            self._release_entry(key, entry)

    def is_busy(self, key: str) -> bool:
        """Whether any thread holds, waits on or pins key."""
        with self._guard:
            return key in self._entries

    def __len__(self) -> int:
        """Number of keys currently in flight."""
        with self._guard:
            return len(self._entries)
