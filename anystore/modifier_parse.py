"""Parsing update documents such as ``{"$set": {...}}`` into modifiers."""

from __future__ import annotations

from typing import Any, Callable

from .condition import ConditionError, parse_condition
from .filters import Key
from .modifiers import (
    AddToSetModifier,
    IncModifier,
    Modifier,
    ModifierChain,
    ModifyError,
    PopModifier,
    PullAllModifier,
    PullModifier,
    PushModifier,
    RenameModifier,
    SetModifier,
    UnsetModifier,
)
from .values import ValueParseError, ValueType, parse, type_of


def _type_mismatch(expected: str, value: Any) -> str:
    return f"value doesn't contain {expected}; it contains {type_of(value)}"


def _path(field: str) -> tuple[str, ...]:
    return tuple(field.split("."))


def _new_set(field: str, arg: Any) -> Modifier:
    return SetModifier(_path(field), arg)


def _new_unset(field: str, arg: Any) -> Modifier:
    return UnsetModifier(_path(field))


def _new_inc(field: str, arg: Any) -> Modifier:
    if type_of(arg) is not ValueType.NUMBER:
        raise ModifyError(f"not numeric value for $inc in field '{field}'")
    return IncModifier(_path(field), arg)


def _new_rename(field: str, arg: Any) -> Modifier:
    if not isinstance(arg, str):
        raise ModifyError("failed to rename field: " + _type_mismatch("string", arg))
    return RenameModifier(_path(field), _path(arg))


def _new_pop(field: str, arg: Any) -> Modifier:
    if type_of(arg) is not ValueType.NUMBER:
        raise ModifyError("failed to pop item, " + _type_mismatch("number", arg))
    if arg not in (1, -1):
        raise ModifyError("failed to pop item: wrong argument")
    return PopModifier(_path(field), int(arg))


def _new_push(field: str, arg: Any) -> Modifier:
    return PushModifier(_path(field), arg)


def _new_pull(field: str, arg: Any) -> Modifier:
    if isinstance(arg, dict):
        try:
            parsed = parse_condition({"value": arg})
        except ConditionError:
            parsed = None
        if isinstance(parsed, Key):
            return PullModifier(_path(field), filter=parsed.filter)
    return PullModifier(_path(field), value=arg)


def _new_pull_all(field: str, arg: Any) -> Modifier:
    if not isinstance(arg, list):
        raise ModifyError("failed to pop item, " + _type_mismatch("array", arg))
    return PullAllModifier(_path(field), tuple(arg))


def _new_add_to_set(field: str, arg: Any) -> Modifier:
    return AddToSetModifier(_path(field), arg)


_CREATORS: dict[str, Callable[[str, Any], Modifier]] = {
    "$set": _new_set,
    "$unset": _new_unset,
    "$inc": _new_inc,
    "$rename": _new_rename,
    "$pop": _new_pop,
    "$push": _new_push,
    "$pull": _new_pull,
    "$pullAll": _new_pull_all,
    "$addToSet": _new_add_to_set,
}


def parse_modifier(modifier: Any) -> Modifier:
    """Turn JSON text, encoded bytes, plain data or a Modifier into a Modifier."""
    if isinstance(modifier, Modifier):
        return modifier
    try:
        value = parse(modifier)
    except ValueParseError as exc:
        raise ModifyError(str(exc)) from exc
    if not isinstance(value, dict):
        raise ModifyError(_type_mismatch("object", value))
    chain: list[Modifier] = []
    for key, spec in value.items():
        create = _CREATORS.get(key)
        if create is None:
            raise ModifyError(f"unknown modifier '{key}'")
        if not isinstance(spec, dict):
            raise ModifyError(_type_mismatch("object", spec))
        for field, arg in spec.items():
            if field.startswith("$"):
                raise ModifyError(f"unexpect identifier '{field}'")
            chain.append(create(field, arg))
    if not chain:
        raise ModifyError("empty modifier")
    return ModifierChain(chain)