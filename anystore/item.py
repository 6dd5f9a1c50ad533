"""Stored documents and JSON helpers for string arrays."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from .values import encode, type_of


class DocWithoutIdError(ValueError):
    """A document has no "id" field."""

    def __init__(self) -> None:
        super().__init__("document without id")


@dataclass(frozen=True)
class Item:
    """A document that is an object with an "id" field."""

    value: dict

    def __post_init__(self) -> None:
        if not isinstance(self.value, dict):
            raise ValueError(
                f"value doesn't contain object; it contains {type_of(self.value)}"
            )
        if "id" not in self.value:
            raise DocWithoutIdError()

    def id_key(self) -> bytes:
        """Return the encoded id of the document."""
        return encode(self.value["id"])


def string_array_to_json(array: list[str]) -> str:
    """Render a list of strings as a compact JSON array."""
    return json.dumps(list(array), separators=(",", ":"), ensure_ascii=False)


def json_to_string_array(text: str) -> list[str]:
    """Read a JSON array; elements that are not strings become empty strings."""
    value: Any = json.loads(text)
    if not isinstance(value, list):
        raise ValueError(f"value doesn't contain array; it contains {type_of(value)}")
    return [item if isinstance(item, str) else "" for item in value]