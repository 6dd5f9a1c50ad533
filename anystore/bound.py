"""Key ranges over encoded values, used to narrow index lookups."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from .values import ValueParseError, format_key


@dataclass(frozen=True)
class Bound:
    """A range of encoded keys; an empty start or end means unbounded."""

    start: bytes = b""
    end: bytes = b""
    start_include: bool = False
    end_include: bool = False
    prefix: bytes = b""

    def _key_str(self, key: bytes) -> str:
        if self.prefix and len(key) > len(self.prefix):
            key = key[len(self.prefix):]
        try:
            return format_key(key)
        except ValueParseError:
            return key.hex()

    def _is_open(self, key: bytes) -> bool:
        return not key or key == self.prefix or key == self.prefix + b"\xff"

    def __str__(self) -> str:
        if self._is_open(self.start):
            left = "[-inf"
        else:
            left = ("['" if self.start_include else "('") + self._key_str(self.start) + "'"
        if self._is_open(self.end):
            right = "inf]"
        else:
            right = "'" + self._key_str(self.end) + ("']" if self.end_include else "')")
        return f"{left},{right}"


def _overlap(a: Bound, b: Bound) -> bool:
    if not a.end or not b.start:
        return True
    if a.end == b.start:
        return a.end_include or b.start_include
    return a.end > b.start


def _min_start(a: Bound, b: Bound) -> tuple[bytes, bool]:
    if not a.start:
        return a.start, True
    if not b.start:
        return b.start, True
    if a.start <= b.start:
        return a.start, a.start_include
    return b.start, b.start_include


def _max_end(a: Bound, b: Bound) -> tuple[bytes, bool]:
    if not a.end:
        return a.end, True
    if not b.end:
        return b.end, True
    if a.end >= b.end:
        return a.end, a.end_include
    return b.end, b.end_include


def _merge(a: Bound, b: Bound) -> Bound:
    start, start_include = _min_start(a, b)
    end, end_include = _max_end(a, b)
    return Bound(start=start, end=end, start_include=start_include, end_include=end_include)


def _mutually_overlap(a: Bound, b: Bound) -> bool:
    return _overlap(a, b) and _overlap(b, a)


class Bounds(tuple):
    """An immutable sequence of bounds kept ordered by start key."""

    def __new__(cls, items: Iterable[Bound] = ()) -> Bounds:
        return super().__new__(cls, items)

    def append_bound(self, bound: Bound) -> Bounds:
        """Return new bounds with ``bound`` merged into every overlapping bound."""
        result = []
        merged = False
        for existing in self:
            if _mutually_overlap(existing, bound):
                result.append(_merge(existing, bound))
                merged = True
            else:
                result.append(existing)
        if not merged:
            result.append(bound)
            result.sort(key=lambda b: b.start)
        return Bounds(result)

    def merge(self) -> Bounds:
        """Return bounds in which no two neighbours overlap."""
        if not any(_mutually_overlap(a, b) for a, b in zip(self, self[1:])):
            return self
        merged = Bounds()
        for bound in self:
            merged = merged.append_bound(bound)
        return merged.merge()

    def __str__(self) -> str:
        if not self:
            return ""
        return "Bounds{" + ",".join(str(b) for b in self) + "}"

    def __repr__(self) -> str:
        return f"Bounds({list(self)!r})"