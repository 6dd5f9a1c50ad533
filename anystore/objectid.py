"""Twelve-byte object identifiers: timestamp, process bytes and a counter."""

from __future__ import annotations

import secrets
import string
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_HEX_DIGITS = frozenset(string.hexdigits)
_PROCESS_UNIQUE = secrets.token_bytes(5)


class _Counter:
    """Thread-safe 32-bit wrapping counter seeded with random bits."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._value = secrets.randbits(32)

    def next(self) -> int:
        with self._lock:
            self._value = (self._value + 1) & 0xFFFFFFFF
            return self._value


_counter = _Counter()


class InvalidHexError(ValueError):
    """The hex string cannot be converted to an ObjectID."""

    def __init__(self) -> None:
        super().__init__("the provided hex string is not a valid ObjectID")


@dataclass(frozen=True)
class ObjectID:
    """An immutable twelve-byte identifier."""

    raw: bytes = bytes(12)

    def __post_init__(self) -> None:
        raw = bytes(self.raw)
        if len(raw) != 12:
            raise ValueError("an ObjectID is exactly 12 bytes")
        object.__setattr__(self, "raw", raw)

    def timestamp(self) -> datetime:
        """Return the creation time stored in the first four bytes, in UTC."""
        return _EPOCH + timedelta(seconds=int.from_bytes(self.raw[:4], "big"))

    def hex(self) -> str:
        """Return the 24-character lower-case hex form."""
        return self.raw.hex()

    def is_zero(self) -> bool:
        """Return True for the all-zero identifier."""
        return self.raw == bytes(12)

    def __bytes__(self) -> bytes:
        return self.raw

    def __str__(self) -> str:
        return f'ObjectID("{self.hex()}")'


NIL_OBJECT_ID = ObjectID()


def object_id_from_timestamp(timestamp: datetime) -> ObjectID:
    """Generate an identifier for the given time; naive times are taken as UTC."""
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    seconds = (timestamp - _EPOCH) // timedelta(seconds=1)
    counter = _counter.next() & 0xFFFFFF
    raw = (
        (seconds & 0xFFFFFFFF).to_bytes(4, "big")
        + _PROCESS_UNIQUE
        + counter.to_bytes(3, "big")
    )
    return ObjectID(raw)


def new_object_id() -> ObjectID:
    """Generate a new identifier for the current time."""
    return object_id_from_timestamp(datetime.now(timezone.utc))


def object_id_from_hex(s: str) -> ObjectID:
    """Parse a 24-character hex string; raise InvalidHexError otherwise."""
    if len(s) != 24 or not all(ch in _HEX_DIGITS for ch in s):
        raise InvalidHexError()
    return ObjectID(bytes.fromhex(s))


def is_valid_object_id(s: str) -> bool:
    """Return whether ``s`` is the hex form of an identifier."""
    try:
        object_id_from_hex(s)
    except InvalidHexError:
        return False
    return True