"""Free standing script directives: symbol assignments, EXTERNs and ASSERTs."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .errors import EmptyValueError
from .fields import FieldReader, coerce_bool, coerce_str
from .runtime import CONDITION_FIELDS, Conditions


def _required_name(reader: FieldReader, name: str = "name") -> str:
    value = reader.get(name, coerce_str)
    if value == "":
        raise EmptyValueError(name)
    return value


def _coerce_expression(value: Any, name: str) -> str:
    # YAML reads unquoted hex literals as ints; addresses go back out in hex.
    if isinstance(value, int) and not isinstance(value, bool):
        return f"0x{value:X}" if value >= 0 else f"-0x{-value:X}"
    return coerce_str(value, name)


@dataclass(frozen=True)
class SymbolAssignment:
    name: str
    value: str
    provide: bool = False
    hidden: bool = False
    conditions: Conditions = field(default_factory=Conditions)

    @classmethod
    def from_raw(cls, raw: Any) -> "SymbolAssignment":
        reader = FieldReader(raw, "symbol_assignment", ("name", "value", "provide", "hidden") + CONDITION_FIELDS)
        return cls(
            name=_required_name(reader),
            value=reader.get("value", _coerce_expression),
            provide=reader.get_non_null("provide", lambda: False, coerce_bool),
            hidden=reader.get_non_null("hidden", lambda: False, coerce_bool),
            conditions=Conditions.from_reader(reader),
        )


@dataclass(frozen=True)
class RequiredSymbol:
    name: str
    conditions: Conditions = field(default_factory=Conditions)

    @classmethod
    def from_raw(cls, raw: Any) -> "RequiredSymbol":
        reader = FieldReader(raw, "required_symbol", ("name",) + CONDITION_FIELDS)
        return cls(name=_required_name(reader), conditions=Conditions.from_reader(reader))


@dataclass(frozen=True)
class AssertEntry:
    check: str
    error_message: str
    conditions: Conditions = field(default_factory=Conditions)

    @classmethod
    def from_raw(cls, raw: Any) -> "AssertEntry":
        reader = FieldReader(raw, "assert", ("check", "error_message") + CONDITION_FIELDS)
        return cls(
            check=_required_name(reader, "check"),
            error_message=reader.get("error_message", coerce_str),
            conditions=Conditions.from_reader(reader),
        )
