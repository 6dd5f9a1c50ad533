"""A fixed-size set of 256 bit positions, stored as an immutable value."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

_SIZE = 256
_MASK = (1 << _SIZE) - 1


def _check_pos(pos: int) -> int:
    if not 0 <= pos < _SIZE:
        raise ValueError(f"bit position {pos} is out of range 0..{_SIZE - 1}")
    return pos


@dataclass(frozen=True)
class Bitmap256:
    """Bitmap of 256 elements; every operation returns a new bitmap."""

    bits: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.bits <= _MASK:
            raise ValueError("bitmap value does not fit in 256 bits")

    def set(self, pos: int) -> Bitmap256:
        """Return a copy with the bit at ``pos`` set."""
        return Bitmap256(self.bits | (1 << _check_pos(pos)))

    def clear(self, pos: int) -> Bitmap256:
        """Return a copy with the bit at ``pos`` cleared."""
        return Bitmap256(self.bits & ~(1 << _check_pos(pos)))

    def get(self, pos: int) -> bool:
        """Return whether the bit at ``pos`` is set."""
        return bool((self.bits >> _check_pos(pos)) & 1)

    def union(self, other: Bitmap256) -> Bitmap256:
        """Return the bitwise OR of both bitmaps."""
        return Bitmap256(self.bits | other.bits)

    def count_leading_ones(self) -> int:
        """Count consecutive set bits starting from position 0."""
        return ((~self.bits) & (self.bits + 1)).bit_length() - 1

    def count(self) -> int:
        """Return the total number of set bits."""
        return bin(self.bits).count("1")

    def iterate(self) -> Iterator[int]:
        """Yield the positions of set bits in ascending order."""
        bits = self.bits
        while bits:
            lowest = bits & -bits
            yield lowest.bit_length() - 1
            bits ^= lowest

    def subtract(self, other: Bitmap256) -> Bitmap256:
        """Return the bits set in ``other`` that are not set in this bitmap."""
        return Bitmap256(other.bits & ~self.bits & _MASK)