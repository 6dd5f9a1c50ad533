"""Slots that hold filters and sort orders while a query runs.

A query registers its filter or sort order and gets a small integer id.
SQL functions pass that id back to evaluate documents. The id is released
when the query is done. A registry holds at most ``buf_size`` entries at a
time. ``register`` blocks until a slot is free.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar

from .filters import Filter
from .sorting import Sort
from .syncpool import DocBuffer, SyncPool
from .values import ValueParseError, decode

T = TypeVar("T")


@dataclass
class _Entry(Generic[T]):
    in_use: bool = False
    value: Optional[T] = None
    buf: Optional[DocBuffer] = None


class _Registry(Generic[T]):
    """Fixed-size table of entries addressed by one-based ids."""

    def __init__(self, sync_pool: SyncPool, buf_size: int) -> None:
        if buf_size <= 0:
            raise ValueError("registry size must be positive")
        self._pool = sync_pool
        self._entries: list[_Entry[T]] = [_Entry() for _ in range(buf_size)]
        self._slots = threading.Semaphore(buf_size)
        self._lock = threading.Lock()

    def register(self, value: T) -> int:
        self._slots.acquire()
        with self._lock:
            for pos, entry in enumerate(self._entries):
                if not entry.in_use:
                    entry.in_use = True
                    entry.value = value
                    entry.buf = self._pool.get_doc_buf()
                    return pos + 1
        raise RuntimeError("integrity violation")

    def release(self, entry_id: int) -> None:
        with self._lock:
            entry = self._entry(entry_id)
            if entry.buf is not None:
                self._pool.release_doc_buf(entry.buf)
            entry.buf = None
            entry.value = None
            entry.in_use = False
        self._slots.release()

    def get(self, entry_id: int) -> T:
        return self._entry(entry_id).value  # type: ignore[return-value]

    def _entry(self, entry_id: int) -> _Entry[T]:
        if not 1 <= entry_id <= len(self._entries):
            raise ValueError(f"registry id {entry_id} is out of range")
        entry = self._entries[entry_id - 1]
        if not entry.in_use:
            raise ValueError(f"registry id {entry_id} is not in use")
        return entry


def _decode(data: bytes) -> tuple[bool, Any]:
    try:
        return True, decode(bytes(data))
    except (ValueParseError, ValueError):
        return False, None


class FilterRegistry:
    """Holds the filters of running queries."""

    def __init__(self, sync_pool: SyncPool, buf_size: int) -> None:
        self._registry: _Registry[Filter] = _Registry(sync_pool, buf_size)

    def register(self, flt: Filter) -> int:
        """Store a filter and return its id, waiting for a free slot if needed."""
        return self._registry.register(flt)

    def release(self, entry_id: int) -> None:
        """Free the slot of a registered filter."""
        self._registry.release(entry_id)

    def filter(self, entry_id: int, data: bytes) -> bool:
        """Return whether the encoded document matches the registered filter."""
        flt = self._registry.get(entry_id)
        decoded, value = _decode(data)
        if not decoded:
            return False
        return flt.ok(value)


class SortRegistry:
    """Holds the sort orders of running queries."""

    def __init__(self, sync_pool: SyncPool, buf_size: int) -> None:
        self._registry: _Registry[Sort] = _Registry(sync_pool, buf_size)

    def register(self, sort: Sort) -> int:
        """Store a sort order and return its id, waiting for a free slot if needed."""
        return self._registry.register(sort)

    def release(self, entry_id: int) -> None:
        """Free the slot of a registered sort order."""
        self._registry.release(entry_id)

    def sort(self, entry_id: int, data: bytes) -> bytes:
        """Return the sort key of the encoded document; empty if it cannot be read."""
        order = self._registry.get(entry_id)
        decoded, value = _decode(data)
        if not decoded:
            return b""
        return bytes(order.append_key(b"", value))