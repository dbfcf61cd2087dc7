"""Shared VRAM anchors that several segments can start from or extend."""

from __future__ import annotations

from dataclasses import dataclass
from itertools import combinations
from typing import Any, Optional, Tuple

from .errors import EmptyValueError, InvalidFieldComboError
from .fields import FieldReader, coerce_int, coerce_str, coerce_str_list

_VRAM_CLASS_FIELDS = ("name", "fixed_vram", "fixed_symbol", "follows_classes")


@dataclass(frozen=True)
class VramClass:
    name: str
    fixed_vram: Optional[int] = None
    fixed_symbol: Optional[str] = None
    follows_classes: Tuple[str, ...] = ()

    @classmethod
    def from_raw(cls, raw: Any) -> "VramClass":
        reader = FieldReader(raw, "vram_class", _VRAM_CLASS_FIELDS)
        name = reader.get("name", coerce_str)
        if name == "":
            raise EmptyValueError("name")
        for first, second in combinations(_VRAM_CLASS_FIELDS[1:], 2):
            if reader.has_value(first) and reader.has_value(second):
                raise InvalidFieldComboError(first, second)
        return cls(
            name=name,
            fixed_vram=reader.get_non_null_no_default("fixed_vram", coerce_int),
            fixed_symbol=reader.get_non_null_no_default("fixed_symbol", coerce_str),
            follows_classes=tuple(reader.get_non_null("follows_classes", list, coerce_str_list)),
        )
