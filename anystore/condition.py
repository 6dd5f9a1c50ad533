"""Parsing query conditions into filters."""

from __future__ import annotations

import enum
import re
from typing import Any

from .filters import (
    All,
    And,
    Comp,
    CompOp,
    Exists,
    Filter,
    In,
    Key,
    Nor,
    Not,
    Or,
    Regexp,
    Size,
    TypeFilter,
)
from .values import ValueParseError, ValueType, encode, parse, type_of


class ConditionError(ValueError):
    """A query condition cannot be parsed."""


class _Op(enum.Enum):
    AND = "$and"
    OR = "$or"
    NOR = "$nor"
    NE = "$ne"
    EQ = "$eq"
    GT = "$gt"
    GTE = "$gte"
    LT = "$lt"
    LTE = "$lte"
    IN = "$in"
    NIN = "$nin"
    ALL = "$all"
    NOT = "$not"
    EXISTS = "$exists"
    TYPE = "$type"
    REGEX = "$regex"
    SIZE = "$size"


_TOP_LEVEL = frozenset({_Op.AND, _Op.OR, _Op.NOR})

_COMP_OPS = {
    _Op.EQ: CompOp.EQ,
    _Op.NE: CompOp.NE,
    _Op.GT: CompOp.GT,
    _Op.GTE: CompOp.GTE,
    _Op.LT: CompOp.LT,
    _Op.LTE: CompOp.LTE,
}

_TYPE_NAMES = {str(t): t for t in ValueType}


def _operator(key: str) -> _Op | None:
    if not key.startswith("$"):
        return None
    try:
        return _Op(key)
    except ValueError:
        raise ConditionError(f"unknown operator: {key}") from None


def _is_integral(value: Any) -> bool:
    if type_of(value) is not ValueType.NUMBER:
        return False
    return isinstance(value, int) or float(value).is_integer()


def _comp(op: CompOp, value: Any) -> Comp:
    return Comp(op, encode(value), not_array=not isinstance(value, list))


def parse_condition(cond: Any) -> Filter:
    """Turn a condition (JSON text, encoded bytes, plain data or a Filter) into a Filter."""
    if cond is None:
        return All()
    if isinstance(cond, Filter):
        return cond
    try:
        return _parse_and(parse(cond))
    except ValueParseError as exc:
        raise ConditionError(str(exc)) from exc


def _parse_array(value: Any, name: str) -> list[Filter]:
    if not isinstance(value, list):
        raise ConditionError(f"{name} must be an array")
    return [_parse_and(item) for item in value]


def _parse_and(value: Any) -> Filter:
    if not isinstance(value, dict):
        raise ConditionError("query filter must be an object")
    filters: list[Filter] = []
    for key, item in value.items():
        op = _operator(key)
        if op is None:
            filters.append(_parse_comp(key, item))
        elif op is _Op.AND:
            subs = _parse_array(item, "$and")
            filters.append(subs[0] if len(subs) == 1 else And(subs))
        elif op is _Op.OR:
            subs = _parse_array(item, "$or")
            filters.append(subs[0] if len(subs) == 1 else Or(subs))
        elif op is _Op.NOR:
            filters.append(Nor(_parse_array(item, "$nor")))
        else:
            raise ConditionError(f"unknown top level operator: {key}")
    if not filters:
        return All()
    if len(filters) == 1:
        return filters[0]
    return And(filters)


def _parse_comp(key: str, value: Any) -> Filter:
    path = tuple(key.split("."))
    if isinstance(value, dict):
        return Key(path, _parse_comp_obj(value))
    return Key(path, _comp(CompOp.EQ, value))


def _parse_comp_obj(value: dict) -> Filter:
    ops = _parse_comp_ops(value)
    if ops is None:
        return _comp(CompOp.EQ, value)
    return ops


def _parse_comp_ops(value: Any) -> Filter | None:
    """Parse an object of comparison operators; None if it holds plain fields."""
    if not isinstance(value, dict):
        raise ConditionError("expected object")
    filters: list[Filter] = []
    has_non_op = False
    for key, item in value.items():
        op = _operator(key)
        if op is None:
            if filters:
                raise ConditionError(f"unexpected field after comparison operators: {key}")
            has_non_op = True
            continue
        if op in _TOP_LEVEL:
            raise ConditionError(f"unexpected comparison operator: {key}")
        if has_non_op:
            raise ConditionError("mixed operators and values")
        filters.append(_make_comp_filter(op, item))
    if has_non_op or not filters:
        return None
    if len(filters) == 1:
        return filters[0]
    return And(filters)


def _make_comp_filter(op: _Op, value: Any) -> Filter:
    if op in _COMP_OPS:
        return _comp(_COMP_OPS[op], value)
    if op is _Op.NOT:
        try:
            inner = _parse_comp_ops(value)
        except ConditionError as exc:
            raise ConditionError(f"{exc} for operator $not") from exc
        if inner is None:
            raise ConditionError("no operators found for $not")
        return Not(inner)
    if op is _Op.EXISTS:
        return _parse_exists(value)
    if op is _Op.TYPE:
        return _parse_type(value)
    if op is _Op.REGEX:
        return _parse_regex(value)
    if op is _Op.SIZE:
        return _parse_size(value)
    return _make_array_comp(op, value)


def _parse_exists(value: Any) -> Filter:
    kind = type_of(value)
    if kind in (ValueType.FALSE, ValueType.NULL):
        return Not(Exists())
    if kind is ValueType.NUMBER and value == 0:
        return Not(Exists())
    return Exists()


def _parse_type(value: Any) -> Filter:
    kind = type_of(value)
    if kind is ValueType.NUMBER:
        if not _is_integral(value) or int(value) not in {int(t) for t in ValueType}:
            raise ConditionError(f"unexpected type: {value}")
        return TypeFilter(ValueType(int(value)))
    if kind is ValueType.STRING:
        if value not in _TYPE_NAMES:
            raise ConditionError(f"unexpected type: {value}")
        return TypeFilter(_TYPE_NAMES[value])
    raise ConditionError(f"unexpected type: {value!r}")


def _parse_regex(value: Any) -> Filter:
    if not isinstance(value, str):
        raise ConditionError(f"unexpected type: {value!r}")
    try:
        return Regexp(value)
    except re.error as exc:
        raise ConditionError(f"failed to parse regular expression: {exc}") from exc


def _parse_size(value: Any) -> Filter:
    if not _is_integral(value):
        raise ConditionError(f"failed to extract size: {value!r} is not an integer")
    return Size(int(value))


def _make_array_comp(op: _Op, value: Any) -> Filter:
    if not isinstance(value, list):
        raise ConditionError(f"expected array for {op.value} operator")
    if op is _Op.IN:
        return In(tuple(encode(item) for item in value))
    eqs = [_comp(CompOp.EQ, item) for item in value]
    if op is _Op.NIN:
        return Nor(eqs)
    if op is _Op.ALL:
        return And(eqs)
    raise ConditionError(f"unexpected operator: {op.value}")