"""Sort orders and the sort keys they produce for documents."""

from __future__ import annotations

import abc
from dataclasses import dataclass
from typing import Any, Iterable

from .filters import MISSING, get_path
from .values import encode, encode_inverted


class Sort(abc.ABC):
    """A sort order over documents."""

    @abc.abstractmethod
    def fields(self) -> list[SortField]:
        """Return the fields this order sorts by."""

    @abc.abstractmethod
    def append_key(self, key: bytes, value: Any) -> bytes:
        """Return ``key`` extended with the sort key of the document ``value``."""


@dataclass(frozen=True)
class SortField(Sort):
    """Sort by one field, ascending unless ``reverse`` is set."""

    field: str = ""
    path: tuple[str, ...] = ()
    reverse: bool = False

    def __post_init__(self) -> None:
        path = tuple(self.path)
        if not path and self.field:
            path = tuple(self.field.split("."))
        object.__setattr__(self, "path", path)

    def fields(self) -> list[SortField]:
        return [self]

    def append_key(self, key: bytes, value: Any) -> bytes:
        found = get_path(value, self.path)
        if found is MISSING:
            found = None
        if self.reverse:
            return bytes(key) + encode_inverted(found)
        return bytes(key) + encode(found)


class Sorts(Sort, tuple):
    """Several sort orders applied one after another."""

    def __new__(cls, items: Iterable[Sort] = ()) -> Sorts:
        return tuple.__new__(cls, items)

    def fields(self) -> list[SortField]:
        return [f for s in self for f in s.fields()]

    def append_key(self, key: bytes, value: Any) -> bytes:
        for s in self:
            key = s.append_key(key, value)
        return key

    def __repr__(self) -> str:
        return f"Sorts({list(self)!r})"


def _parse_sort_string(text: str) -> SortField:
    if text.startswith("-"):
        name = text[1:]
        return SortField(field=name, path=tuple(name.split(".")), reverse=True)
    return SortField(field=text, path=tuple(text.split(".")))


def parse_sort(*args: Any) -> Sort:
    """Build a sort from field names ("a.b", "-c" for descending) or Sort objects."""
    result: list[Sort] = []
    for arg in args:
        if isinstance(arg, str):
            result.append(_parse_sort_string(arg))
        elif isinstance(arg, Sort):
            if not arg.fields():
                raise ValueError("sort interface must provide some fields")
            result.append(arg)
        else:
            raise TypeError(f"unexpected sort argument type: {type(arg).__name__}")
    if len(result) == 1:
        return result[0]
    return Sorts(result)