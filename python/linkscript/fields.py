"""Helpers for reading optionally-populated fields out of raw document records.

Layout documents distinguish three states for most fields: the key is absent,
the key is present with an explicit ``null``, or the key carries a value.  The
distinction matters because ``null`` can override an inherited default while
absence keeps it.  :class:`FieldReader` exposes one accessor per policy so the
model constructors read like a table of rules.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from .errors import InvalidValueError, MissingValueError, NullValueError, UnknownFieldError

Converter = Callable[[Any, str], Any]


def coerce_int(value: Any, field: str) -> int:
    if isinstance(value, bool):
        raise InvalidValueError(field, value)
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text, 0)
        except ValueError as exc:
            raise InvalidValueError(field, value) from exc
    raise InvalidValueError(field, value)


def coerce_bool(value: Any, field: str) -> bool:
    if isinstance(value, bool):
        return value
    raise InvalidValueError(field, value)


def coerce_str(value: Any, field: str) -> str:
    if isinstance(value, str):
        return value
    # YAML happily turns unquoted numbers into ints, symbol values are text.
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    raise InvalidValueError(field, value)


def coerce_str_list(value: Any, field: str) -> List[str]:
    if not isinstance(value, (list, tuple)):
        raise InvalidValueError(field, value)
    return [coerce_str(item, f"{field}[{idx}]") for idx, item in enumerate(value)]


def coerce_str_map(value: Any, field: str) -> Dict[str, str]:
    if not isinstance(value, Mapping):
        raise InvalidValueError(field, value)
    return {coerce_str(k, field): coerce_str(v, f"{field}.{k}") for k, v in value.items()}


def coerce_int_map(value: Any, field: str) -> Dict[str, int]:
    if not isinstance(value, Mapping):
        raise InvalidValueError(field, value)
    return {coerce_str(k, field): coerce_int(v, f"{field}.{k}") for k, v in value.items()}


def coerce_str_list_map(value: Any, field: str) -> Dict[str, List[str]]:
    if not isinstance(value, Mapping):
        raise InvalidValueError(field, value)
    return {coerce_str(k, field): coerce_str_list(v, f"{field}.{k}") for k, v in value.items()}


def _identity(value: Any, field: str) -> Any:
    return value


class FieldReader:
    """Read fields of one raw record, rejecting keys outside ``allowed``."""

    def __init__(self, raw: Any, context: str, allowed: Iterable[str]) -> None:
        if raw is None:
            raw = {}
        if not isinstance(raw, Mapping):
            raise InvalidValueError(context, raw)
        allowed_set = set(allowed)
        for key in raw:
            if key not in allowed_set:
                raise UnknownFieldError(str(key), context)
        self.raw = raw
        self.context = context

    def is_absent(self, name: str) -> bool:
        return name not in self.raw

    def has_value(self, name: str) -> bool:
        return self.raw.get(name) is not None

    def get(self, name: str, convert: Converter = _identity) -> Any:
        """Required field: absent and null are both errors."""
        if name not in self.raw:
            raise MissingValueError(name)
        value = self.raw[name]
        if value is None:
            raise NullValueError(name)
        return convert(value, name)

    def get_non_null(self, name: str, default: Callable[[], Any], convert: Converter = _identity) -> Any:
        """Optional field that can not be set to null."""
        if name not in self.raw:
            return default()
        value = self.raw[name]
        if value is None:
            raise NullValueError(name)
        return convert(value, name)

    def get_non_null_no_default(self, name: str, convert: Converter = _identity) -> Optional[Any]:
        if name not in self.raw:
            return None
        value = self.raw[name]
        if value is None:
            raise NullValueError(name)
        return convert(value, name)

    def get_optional_nullable(self, name: str, default: Callable[[], Any], convert: Converter = _identity) -> Optional[Any]:
        """Optional field where an explicit null overrides ``default`` with None."""
        if name not in self.raw:
            return default()
        value = self.raw[name]
        if value is None:
            return None
        return convert(value, name)
