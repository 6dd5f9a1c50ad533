"""Document values: their types, parsing and the order-preserving binary encoding.

Values are plain Python data: None, bool, int, float, str, list and dict.
In the encoding every value starts with its type byte, so values of different
types sort by type and values of one type sort by their natural order.
"""

from __future__ import annotations

import enum
import json
import struct
from typing import Any

_END = 0
_MAX_EXACT = 1 << 53


class ValueType(enum.IntEnum):
    """Value types; the number is also the leading byte of an encoded value."""

    NULL = 1
    NUMBER = 2
    STRING = 3
    FALSE = 4
    TRUE = 5
    ARRAY = 6
    OBJECT = 7

    def __str__(self) -> str:
        return self.name.lower()


class ValueParseError(ValueError):
    """Input cannot be turned into a document value."""


def type_of(value: Any) -> ValueType:
    """Return the type of a document value; raise TypeError for other objects."""
    if value is None:
        return ValueType.NULL
    if value is True:
        return ValueType.TRUE
    if value is False:
        return ValueType.FALSE
    if isinstance(value, (int, float)):
        return ValueType.NUMBER
    if isinstance(value, str):
        return ValueType.STRING
    if isinstance(value, (list, tuple)):
        return ValueType.ARRAY
    if isinstance(value, dict):
        return ValueType.OBJECT
    raise TypeError(f"unsupported value type: {type(value).__name__}")


def _reject_constant(name: str) -> Any:
    raise ValueParseError(f"unsupported JSON constant: {name}")


def parse(value: Any) -> Any:
    """Turn JSON text, encoded bytes or plain Python data into a document value."""
    if isinstance(value, str):
        try:
            return json.loads(value, parse_constant=_reject_constant)
        except json.JSONDecodeError as exc:
            raise ValueParseError(str(exc)) from exc
    if isinstance(value, (bytes, bytearray, memoryview)):
        return decode(bytes(value))
    try:
        text = json.dumps(value)
    except (TypeError, ValueError) as exc:
        raise ValueParseError(str(exc)) from exc
    return parse(text)


def _plain(value: Any) -> Any:
    if isinstance(value, float) and value.is_integer() and abs(value) < _MAX_EXACT:
        return int(value)
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    if isinstance(value, dict):
        return {key: _plain(item) for key, item in value.items()}
    return value


def dumps(value: Any) -> str:
    """Return compact JSON text; whole floats are written as integers."""
    return json.dumps(_plain(value), separators=(",", ":"), ensure_ascii=False)


def _pack_number(value: int | float) -> bytes:
    try:
        number = float(value)
    except OverflowError as exc:
        raise ValueParseError(f"number out of range: {value}") from exc
    if number == 0:
        number = 0.0
    raw = struct.pack(">d", number)
    if raw[0] & 0x80:
        return bytes(b ^ 0xFF for b in raw)
    return bytes([raw[0] ^ 0x80]) + raw[1:]


def _unpack_number(raw: bytes) -> int | float:
    if raw[0] & 0x80:
        raw = bytes([raw[0] ^ 0x80]) + raw[1:]
    else:
        raw = bytes(b ^ 0xFF for b in raw)
    (number,) = struct.unpack(">d", raw)
    if number.is_integer() and abs(number) <= _MAX_EXACT:
        return int(number)
    return number


def _encode_string(out: bytearray, text: str) -> None:
    if "\x00" in text:
        raise ValueParseError("strings with NUL characters cannot be encoded")
    out.append(ValueType.STRING)
    out += text.encode("utf-8")
    out.append(_END)


def _encode_into(out: bytearray, value: Any) -> None:
    kind = type_of(value)
    if kind is ValueType.STRING:
        _encode_string(out, value)
        return
    out.append(kind)
    if kind is ValueType.NUMBER:
        out += _pack_number(value)
    elif kind is ValueType.ARRAY:
        for item in value:
            _encode_into(out, item)
        out.append(_END)
    elif kind is ValueType.OBJECT:
        for key, item in value.items():
            if not isinstance(key, str):
                raise TypeError(f"object keys must be strings, not {type(key).__name__}")
            _encode_string(out, key)
            _encode_into(out, item)
        out.append(_END)


def encode(value: Any) -> bytes:
    """Encode a document value so that byte order follows value order."""
    out = bytearray()
    _encode_into(out, value)
    return bytes(out)


def encode_inverted(value: Any) -> bytes:
    """Encode a value with every byte inverted, reversing its sort order."""
    return bytes(b ^ 0xFF for b in encode(value))


class _Reader:
    def __init__(self, data: bytes) -> None:
        self.data = data
        self.pos = 0
        self.inverted = False

    def at_end(self) -> bool:
        return self.pos >= len(self.data)

    def peek(self) -> int:
        if self.at_end():
            raise ValueParseError("unexpected end of encoded value")
        byte = self.data[self.pos]
        return byte ^ 0xFF if self.inverted else byte

    def byte(self) -> int:
        byte = self.peek()
        self.pos += 1
        return byte

    def take(self, size: int) -> bytes:
        if self.pos + size > len(self.data):
            raise ValueParseError("unexpected end of encoded value")
        chunk = self.data[self.pos:self.pos + size]
        self.pos += size
        return bytes(b ^ 0xFF for b in chunk) if self.inverted else chunk

    def text(self) -> str:
        chunk = bytearray()
        while (byte := self.byte()) != _END:
            chunk.append(byte)
        try:
            return chunk.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ValueParseError("invalid UTF-8 in encoded string") from exc

    def value(self) -> Any:
        code = self.byte()
        try:
            kind = ValueType(code)
        except ValueError as exc:
            raise ValueParseError(f"unknown type byte {code}") from exc
        if kind is ValueType.NULL:
            return None
        if kind is ValueType.TRUE:
            return True
        if kind is ValueType.FALSE:
            return False
        if kind is ValueType.NUMBER:
            return _unpack_number(self.take(8))
        if kind is ValueType.STRING:
            return self.text()
        if kind is ValueType.ARRAY:
            items = []
            while self.peek() != _END:
                items.append(self.value())
            self.pos += 1
            return items
        result = {}
        while self.peek() != _END:
            key = self.value()
            if not isinstance(key, str):
                raise ValueParseError("object key is not a string")
            result[key] = self.value()
        self.pos += 1
        return result


def decode(data: bytes) -> Any:
    """Decode exactly one encoded value."""
    reader = _Reader(bytes(data))
    value = reader.value()
    if not reader.at_end():
        raise ValueParseError("trailing bytes after encoded value")
    return value


def format_key(data: bytes) -> str:
    """Render a key made of encoded (possibly inverted) values, joined by '/'."""
    reader = _Reader(bytes(data))
    parts = []
    while not reader.at_end():
        reader.inverted = reader.data[reader.pos] >= 0x80
        parts.append(dumps(reader.value()))
    return "/".join(parts)