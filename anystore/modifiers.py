"""Document modifiers: field updates and array operators.

A modifier never changes the value it is given; ``modify`` returns a new
document together with a flag that tells whether anything changed.
"""

from __future__ import annotations

import abc
import copy
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional

from .filters import MISSING, Filter
from .values import ValueType, dumps, type_of


class ModifyError(ValueError):
    """A modifier cannot be parsed or applied."""


def _type_mismatch(expected: str, value: Any) -> str:
    return f"value doesn't contain {expected}; it contains {type_of(value)}"


def _equal(a: Any, b: Any) -> bool:
    """Deep equality that tells numbers and booleans apart and ignores key order."""
    if a is MISSING or b is MISSING:
        return a is b
    kind = type_of(a)
    if kind is not type_of(b):
        return False
    if kind is ValueType.ARRAY:
        return len(a) == len(b) and all(_equal(x, y) for x, y in zip(a, b))
    if kind is ValueType.OBJECT:
        return a.keys() == b.keys() and all(_equal(a[k], b[k]) for k in a)
    return a == b


def _index(segment: str) -> Optional[int]:
    if segment.isascii() and segment.isdigit():
        return int(segment)
    return None


def _cannot_create(segment: str, element: Any) -> ModifyError:
    return ModifyError(f"cannot create field '{segment}' in element {dumps(element)}")


def _child(container: Any, segment: str, create: bool) -> Any:
    if isinstance(container, dict):
        return container.get(segment, MISSING)
    if isinstance(container, list):
        idx = _index(segment)
        if idx is not None:
            return container[idx] if idx < len(container) else MISSING
    if create:
        raise _cannot_create(segment, container)
    return MISSING


def _assign(container: Any, segment: str, new: Any) -> None:
    if isinstance(container, dict):
        if new is MISSING:
            container.pop(segment, None)
        else:
            container[segment] = new
        return
    idx = _index(segment) if isinstance(container, list) else None
    if idx is None:
        if new is MISSING:
            return
        raise _cannot_create(segment, container)
    if new is MISSING:
        if idx < len(container):
            del container[idx]
    elif idx < len(container):
        container[idx] = new
    elif idx == len(container):
        container.append(new)
    else:
        raise _cannot_create(segment, container)


def _walk(container: Any, path: tuple[str, ...], create: bool,
          update: Callable[[Any], Any]) -> None:
    """Replace the value at ``path`` with ``update(current)``; MISSING deletes it."""
    if not path:
        raise ModifyError("empty field path")
    segment, rest = path[0], path[1:]
    current = _child(container, segment, create)
    if not rest:
        _assign(container, segment, update(current))
        return
    if current is MISSING:
        if not create:
            update(MISSING)
            return
        fresh: dict = {}
        _walk(fresh, rest, create, update)
        if fresh:
            _assign(container, segment, fresh)
        return
    _walk(current, rest, create, update)


def _apply(value: Any, path: tuple[str, ...], create: bool,
           update: Callable[[Any], Any]) -> Any:
    doc = copy.deepcopy(value)
    _walk(doc, path, create, update)
    return doc


def _as_path(path: Any) -> tuple[str, ...]:
    if isinstance(path, str):
        return tuple(path.split("."))
    return tuple(path)


def _require_array(value: Any) -> list:
    if not isinstance(value, list):
        raise ModifyError("failed to pop item, " + _type_mismatch("array", value))
    return value


class Modifier(abc.ABC):
    """A change applied to a document."""

    @abc.abstractmethod
    def modify(self, value: Any) -> tuple[Any, bool]:
        """Return the modified document and whether it changed."""


@dataclass(frozen=True)
class ModifyFunc(Modifier):
    """A modifier backed by a plain function returning ``(result, modified)``."""

    func: Optional[Callable[[Any], tuple[Any, bool]]] = None

    def modify(self, value: Any) -> tuple[Any, bool]:
        if self.func is None:
            raise ModifyError("modify func is not set")
        return self.func(value)


class ModifierChain(Modifier, tuple):
    """Several modifiers applied in order."""

    def __new__(cls, items: Iterable[Modifier] = ()) -> ModifierChain:
        return tuple.__new__(cls, items)

    def modify(self, value: Any) -> tuple[Any, bool]:
        result, modified = value, False
        for modifier in self:
            result, changed = modifier.modify(result)
            modified = modified or changed
        return result, modified

    def __repr__(self) -> str:
        return f"ModifierChain({list(self)!r})"


@dataclass(frozen=True)
class _PathModifier(Modifier):
    path: tuple[str, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "path", _as_path(self.path))


@dataclass(frozen=True)
class SetModifier(_PathModifier):
    """Set a field, creating missing objects on the way."""

    value: Any = None

    def modify(self, value: Any) -> tuple[Any, bool]:
        modified = False

        def update(current: Any) -> Any:
            nonlocal modified
            modified = not _equal(current, self.value)
            return copy.deepcopy(self.value)

        result = _apply(value, self.path, True, update)
        return result, modified


@dataclass(frozen=True)
class UnsetModifier(_PathModifier):
    """Remove a field or array element."""

    def modify(self, value: Any) -> tuple[Any, bool]:
        modified = False

        def update(current: Any) -> Any:
            nonlocal modified
            modified = current is not MISSING
            return MISSING

        result = _apply(value, self.path, False, update)
        return result, modified


@dataclass(frozen=True)
class IncModifier(_PathModifier):
    """Add a number to a numeric field; a missing field is set to the amount."""

    amount: float = 0

    def modify(self, value: Any) -> tuple[Any, bool]:
        def update(current: Any) -> Any:
            if current is MISSING:
                return self.amount
            if type_of(current) is not ValueType.NUMBER:
                raise ModifyError(f"not numeric value '{dumps(current)}'")
            return current + self.amount

        return _apply(value, self.path, True, update), True if True else False

    def __call__(self, value: Any) -> tuple[Any, bool]:
        return self.modify(value)


@dataclass(frozen=True)
class RenameModifier(_PathModifier):
    """Move a field's value to another path."""

    new_path: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        super().__post_init__()
        object.__setattr__(self, "new_path", _as_path(self.new_path))

    def modify(self, value: Any) -> tuple[Any, bool]:
        doc = copy.deepcopy(value)
        old = MISSING

        def take(current: Any) -> Any:
            nonlocal old
            old = current
            return MISSING

        _walk(doc, self.path, True, take)
        modified = old is not MISSING
        if modified:
            def put(current: Any) -> Any:
                nonlocal modified
                modified = not _equal(current, old)
                return old

            _walk(doc, self.new_path, True, put)
        return doc, modified


@dataclass(frozen=True)
class PopModifier(_PathModifier):
    """Drop the last (direction 1) or first (any other direction) array element."""

    direction: int = 1

    def modify(self, value: Any) -> tuple[Any, bool]:
        modified = False

        def update(current: Any) -> Any:
            nonlocal modified
            if current is MISSING:
                return MISSING
            items = _require_array(current)
            if not items:
                return items
            modified = True
            return items[:-1] if self.direction == 1 else items[1:]

        result = _apply(value, self.path, True, update)
        return result, modified


@dataclass(frozen=True)
class PushModifier(_PathModifier):
    """Append a value to an existing array."""

    value: Any = None

    def modify(self, value: Any) -> tuple[Any, bool]:
        modified = False

        def update(current: Any) -> Any:
            nonlocal modified
            if current is MISSING:
                return MISSING
            items = _require_array(current)
            items.append(copy.deepcopy(self.value))
            modified = True
            return items

        result = _apply(value, self.path, True, update)
        return result, modified


def _remove(items: list, should_remove: Callable[[Any], bool]) -> tuple[list, bool]:
    kept = [item for item in items if not should_remove(item)]
    return kept, len(kept) != len(items)


@dataclass(frozen=True)
class PullModifier(_PathModifier):
    """Remove array elements matching a filter, or equal to a value."""

    filter: Optional[Filter] = None
    value: Any = None

    def _matches(self, item: Any) -> bool:
        if self.filter is not None:
            return self.filter.ok(item)
        return _equal(item, self.value)

    def modify(self, value: Any) -> tuple[Any, bool]:
        modified = False

        def update(current: Any) -> Any:
            nonlocal modified
            if current is MISSING:
                return MISSING
            items = _require_array(current)
            if not items:
                return items
            kept, modified = _remove(items, self._matches)
            return kept

        result = _apply(value, self.path, True, update)
        return result, modified


@dataclass(frozen=True)
class PullAllModifier(_PathModifier):
    """Remove every array element equal to one of the given values."""

    values: tuple = ()

    def __post_init__(self) -> None:
        super().__post_init__()
        object.__setattr__(self, "values", tuple(self.values))

    def modify(self, value: Any) -> tuple[Any, bool]:
        modified = False

        def update(current: Any) -> Any:
            nonlocal modified
            if current is MISSING:
                return MISSING
            items = _require_array(current)
            kept, modified = _remove(
                items, lambda item: any(_equal(item, v) for v in self.values)
            )
            return kept

        result = _apply(value, self.path, True, update)
        return result, modified


@dataclass(frozen=True)
class AddToSetModifier(_PathModifier):
    """Append a value to an array unless an equal element is present."""

    value: Any = None

    def modify(self, value: Any) -> tuple[Any, bool]:
        modified = False

        def update(current: Any) -> Any:
            nonlocal modified
            items = [] if current is MISSING else _require_array(current)
            if any(_equal(self.value, item) for item in items):
                return items
            items.append(copy.deepcopy(self.value))
            modified = True
            return items

        result = _apply(value, self.path, True, update)
        return result, modified