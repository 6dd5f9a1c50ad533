"""A pool of reusable document buffers."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field


@dataclass
class DocBuffer:
    """Scratch buffers used while encoding and decoding documents."""

    small_buf: bytearray = field(default_factory=bytearray)
    doc_buf: bytearray = field(default_factory=bytearray)

    def approx_size(self) -> int:
        """Return the number of bytes held by the buffers."""
        return len(self.small_buf) + len(self.doc_buf)


class SyncPool:
    """Thread-safe pool of DocBuffer objects.

    Buffers larger than ``size_limit`` are dropped on release; a limit of
    zero or less keeps every buffer.
    """

    def __init__(self, size_limit: int = 0) -> None:
        self.size_limit = size_limit
        self._free: list[DocBuffer] = []
        self._lock = threading.Lock()

    def get_doc_buf(self) -> DocBuffer:
        """Take a buffer from the pool, or a new one when the pool is empty."""
        with self._lock:
            if self._free:
                return self._free.pop()
        return DocBuffer()

    def release_doc_buf(self, buf: DocBuffer) -> None:
        """Return a buffer to the pool unless it exceeds the size limit."""
        if self.size_limit > 0 and buf.approx_size() > self.size_limit:
            return
        with self._lock:
            self._free.append(buf)