"""Query filters: matching document values and deriving index bounds."""

from __future__ import annotations

import abc
import enum
import itertools
import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence

from .bound import Bound, Bounds
from .values import ValueType, decode, dumps, encode, type_of

OR_EXPRESSION_LIMIT = 950


class _Missing(enum.Enum):
    MISSING = "MISSING"

    def __repr__(self) -> str:
        return "MISSING"


MISSING = _Missing.MISSING
"""Marker for a field that is absent, as opposed to a null value."""


def get_path(value: Any, path: Sequence[str]) -> Any:
    """Follow a field path through objects and arrays; return MISSING if absent."""
    for part in path:
        if isinstance(value, dict):
            if part not in value:
                return MISSING
            value = value[part]
        elif isinstance(value, (list, tuple)) and part.isascii() and part.isdigit():
            index = int(part)
            if index >= len(value):
                return MISSING
            value = value[index]
        else:
            return MISSING
    return value


def _bounds(bounds: Iterable[Bound] | None) -> Bounds:
    if bounds is None:
        return Bounds()
    return bounds if isinstance(bounds, Bounds) else Bounds(bounds)


class Filter(abc.ABC):
    """A condition on a document value."""

    @abc.abstractmethod
    def ok(self, value: Any) -> bool:
        """Return whether the value satisfies the condition."""

    @abc.abstractmethod
    def index_bounds(self, field_name: str, bounds: Bounds | None = None) -> Bounds:
        """Return ``bounds`` extended with ranges for ``field_name``, if applicable."""


class CompOp(enum.IntEnum):
    """Comparison operators."""

    EQ = 0
    GT = 1
    GTE = 2
    LT = 3
    LTE = 4
    NE = 5

    @property
    def symbol(self) -> str:
        return _OP_SYMBOLS[self]


_OP_SYMBOLS = {
    CompOp.EQ: "$eq",
    CompOp.GT: "$gt",
    CompOp.GTE: "$gte",
    CompOp.LT: "$lt",
    CompOp.LTE: "$lte",
    CompOp.NE: "$ne",
}


@dataclass(frozen=True)
class Comp(Filter):
    """Compares the encoded value with ``eq_value``; arrays match by element."""

    op: CompOp
    eq_value: bytes
    not_array: bool = False

    def _comp(self, data: bytes) -> bool:
        c = (self.eq_value > data) - (self.eq_value < data)
        if self.op is CompOp.EQ:
            return c == 0
        if self.op is CompOp.GT:
            return c < 0
        if self.op is CompOp.GTE:
            return c <= 0
        if self.op is CompOp.LT:
            return c > 0
        if self.op is CompOp.LTE:
            return c >= 0
        if self.op is CompOp.NE:
            return c != 0
        raise ValueError(f"unexpected comp op: {self.op}")

    def ok(self, value: Any) -> bool:
        if value is MISSING:
            value = None
        if not isinstance(value, (list, tuple)):
            return self._comp(encode(value))
        whole = () if self.not_array else (value,)
        candidates = (encode(item) for item in itertools.chain(whole, value))
        if self.op is CompOp.NE:
            return all(self._comp(data) for data in candidates)
        return any(self._comp(data) for data in candidates)

    def index_bounds(self, field_name: str, bounds: Bounds | None = None) -> Bounds:
        bs = _bounds(bounds)
        v = self.eq_value
        if self.op is CompOp.EQ:
            return bs.append_bound(Bound(start=v, end=v, start_include=True, end_include=True))
        if self.op is CompOp.GT:
            return bs.append_bound(Bound(start=v))
        if self.op is CompOp.GTE:
            return bs.append_bound(Bound(start=v, start_include=True))
        if self.op is CompOp.LT:
            return bs.append_bound(Bound(end=v))
        if self.op is CompOp.LTE:
            return bs.append_bound(Bound(end=v, end_include=True))
        if self.op is CompOp.NE:
            return bs.append_bound(Bound(end=v)).append_bound(Bound(start=v))
        raise ValueError(f"unexpected comp op: {self.op}")

    def __str__(self) -> str:
        return f'{{"{self.op.symbol}": {dumps(decode(self.eq_value))}}}'


def new_comp(op: CompOp, value: Any) -> Comp:
    """Build a comparison with a plain value."""
    return Comp(CompOp(op), encode(value))


@dataclass(frozen=True)
class Key(Filter):
    """Applies a filter to the value at a field path."""

    path: tuple[str, ...]
    filter: Filter

    def __post_init__(self) -> None:
        object.__setattr__(self, "path", tuple(self.path))

    def ok(self, value: Any) -> bool:
        return self.filter.ok(get_path(value, self.path))

    def index_bounds(self, field_name: str, bounds: Bounds | None = None) -> Bounds:
        bs = _bounds(bounds)
        if ".".join(self.path) == field_name:
            return self.filter.index_bounds(field_name, bs)
        return bs

    def __str__(self) -> str:
        return f'{{"{".".join(self.path)}": {self.filter}}}'


@dataclass(frozen=True)
class _Group(Filter):
    filters: tuple[Filter, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "filters", tuple(self.filters))

    def _render(self, op: str) -> str:
        return f'{{"{op}":[{", ".join(str(f) for f in self.filters)}]}}'


class And(_Group):
    """Matches when every sub-filter matches."""

    def ok(self, value: Any) -> bool:
        return all(f.ok(value) for f in self.filters)

    def index_bounds(self, field_name: str, bounds: Bounds | None = None) -> Bounds:
        bs = _bounds(bounds)
        for f in self.filters:
            result = f.index_bounds(field_name, bs)
            if len(result) != len(bs):
                return result
        return bs

    def __str__(self) -> str:
        return self._render("$and")


class Or(_Group):
    """Matches when any sub-filter matches."""

    def ok(self, value: Any) -> bool:
        return any(f.ok(value) for f in self.filters)

    def index_bounds(self, field_name: str, bounds: Bounds | None = None) -> Bounds:
        bs = _bounds(bounds)
        if len(self.filters) > OR_EXPRESSION_LIMIT:
            return bs
        for f in self.filters:
            before = len(bs)
            bs = f.index_bounds(field_name, bs)
            if len(bs) == before:
                return Bounds()
        return bs

    def __str__(self) -> str:
        return self._render("$or")


class Nor(_Group):
    """Matches when no sub-filter matches."""

    def ok(self, value: Any) -> bool:
        return not any(f.ok(value) for f in self.filters)

    def index_bounds(self, field_name: str, bounds: Bounds | None = None) -> Bounds:
        return _bounds(bounds)

    def __str__(self) -> str:
        return self._render("$nor")


@dataclass(frozen=True)
class In(Filter):
    """Matches values (or array elements) equal to one of the encoded values."""

    values: tuple[bytes, ...] = ()
    _lookup: frozenset = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        unique = tuple(dict.fromkeys(bytes(v) for v in self.values))
        object.__setattr__(self, "values", unique)
        object.__setattr__(self, "_lookup", frozenset(unique))

    def ok(self, value: Any) -> bool:
        if value is MISSING:
            return False
        if isinstance(value, (list, tuple)):
            return any(encode(item) in self._lookup for item in value)
        return encode(value) in self._lookup

    def index_bounds(self, field_name: str, bounds: Bounds | None = None) -> Bounds:
        bs = _bounds(bounds)
        if len(self.values) < OR_EXPRESSION_LIMIT:
            for v in self.values:
                bs = bs.append_bound(Bound(start=v, end=v, start_include=True, end_include=True))
        return bs

    def __str__(self) -> str:
        return f'{{"$in":[{", ".join(dumps(decode(v)) for v in self.values)}]}}'


def new_in(values: Iterable[Any]) -> In:
    """Build an $in filter from plain values."""
    return In(tuple(encode(v) for v in values))


@dataclass(frozen=True)
class Not(Filter):
    """Negates a filter."""

    filter: Filter

    def ok(self, value: Any) -> bool:
        return not self.filter.ok(value)

    def index_bounds(self, field_name: str, bounds: Bounds | None = None) -> Bounds:
        return _bounds(bounds)

    def __str__(self) -> str:
        return f'{{"$not": {self.filter}}}'


@dataclass(frozen=True)
class All(Filter):
    """Matches everything."""

    def ok(self, value: Any) -> bool:
        return True

    def index_bounds(self, field_name: str, bounds: Bounds | None = None) -> Bounds:
        return _bounds(bounds)

    def __str__(self) -> str:
        return "null"


@dataclass(frozen=True)
class Exists(Filter):
    """Matches any value that is present."""

    def ok(self, value: Any) -> bool:
        return value is not MISSING

    def index_bounds(self, field_name: str, bounds: Bounds | None = None) -> Bounds:
        return _bounds(bounds)

    def __str__(self) -> str:
        return '{"$exists": true}'


@dataclass(frozen=True)
class TypeFilter(Filter):
    """Matches values of one type."""

    type: ValueType

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", ValueType(self.type))

    def ok(self, value: Any) -> bool:
        if value is MISSING:
            return False
        return type_of(value) is self.type

    def index_bounds(self, field_name: str, bounds: Bounds | None = None) -> Bounds:
        key = bytes([int(self.type), 255])
        return _bounds(bounds).append_bound(
            Bound(start=key[:1], end=key, start_include=True, end_include=True)
        )

    def __str__(self) -> str:
        return f'{{"$type": "{self.type}"}}'


_FLAG_GROUP = re.compile(r"\(\?([imsU]*(?:-[imsU]*)?)\)")


def _translate_pattern(pattern: str) -> str:
    """Rewrite mid-pattern flag groups such as ``(?i)`` into scoped groups."""
    out: list[str] = []
    levels: list[list[str]] = [[]]
    in_class = False
    i, n = 0, len(pattern)
    while i < n:
        ch = pattern[i]
        if ch == "\\":
            esc = pattern[i:i + 2]
            out.append(r"\Z" if esc == r"\z" else esc)
            i += len(esc)
            continue
        if in_class:
            if ch == "]":
                in_class = False
            out.append(ch)
            i += 1
            continue
        if ch == "[":
            out.append(ch)
            i += 1
            in_class = True
            if pattern.startswith("^", i):
                out.append("^")
                i += 1
            if pattern.startswith("]", i):
                out.append("]")
                i += 1
            continue
        if ch == "(":
            match = _FLAG_GROUP.match(pattern, i)
            if match and match.group(1).strip("-"):
                flags = match.group(1)
                if "U" in flags:
                    raise re.error("the ungreedy flag is not supported", pattern, i)
                opener = f"(?{flags}:"
                out.append(opener)
                levels[-1].append(opener)
                i = match.end()
                continue
            levels.append([])
            out.append(ch)
            i += 1
            continue
        if ch == ")" and len(levels) > 1:
            out.append(")" * len(levels.pop()) + ")")
            i += 1
            continue
        if ch == "|":
            opened = levels[-1]
            out.append(")" * len(opened) + "|")
            out.extend(opened)
            i += 1
            continue
        out.append(ch)
        i += 1
    out.extend(")" * len(level) for level in reversed(levels))
    return "".join(out)


_SPECIAL_CHARS = frozenset("^$|*+?(){}[]\\.")


def _find_prefix(pattern: str) -> str:
    result = []
    escaped = False
    for char in pattern:
        if escaped:
            escaped = False
            result.append(char)
            continue
        if char == "\\":
            escaped = True
            continue
        if char in _SPECIAL_CHARS:
            break
        result.append(char)
    return "".join(result)


def extract_prefix(pattern: str) -> str:
    """Return the literal prefix of an anchored, case-sensitive pattern, or ''."""
    if not pattern.startswith("^") or pattern.startswith("^(?i)"):
        return ""
    return _find_prefix(pattern[1:])


@dataclass(frozen=True)
class Regexp(Filter):
    """Matches strings, or arrays holding a string, that contain the pattern."""

    pattern: str
    _compiled: re.Pattern = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_compiled", re.compile(_translate_pattern(self.pattern)))

    def ok(self, value: Any) -> bool:
        if isinstance(value, str):
            return self._compiled.search(value) is not None
        if isinstance(value, (list, tuple)):
            for item in value:
                if not isinstance(item, str):
                    return False
                if self._compiled.search(item) is not None:
                    return True
        return False

    def index_bounds(self, field_name: str, bounds: Bounds | None = None) -> Bounds:
        prefix = extract_prefix(self.pattern)
        if not prefix:
            return Bounds()
        start = encode(prefix)[:-1]
        return _bounds(bounds).append_bound(
            Bound(start=start, end=start + b"\xff", start_include=True, end_include=True)
        )

    def __str__(self) -> str:
        return f'{{"$regex": "{self.pattern}"}}'


@dataclass(frozen=True)
class Size(Filter):
    """Matches arrays of the given length."""

    size: int

    def ok(self, value: Any) -> bool:
        if not isinstance(value, (list, tuple)):
            return False
        return len(value) == self.size

    def index_bounds(self, field_name: str, bounds: Bounds | None = None) -> Bounds:
        return _bounds(bounds)

    def __str__(self) -> str:
        return f'{{"$size": {self.size}}}'