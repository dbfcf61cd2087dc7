"""Runtime options: active tags for conditional inclusion and path placeholders."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional

from .errors import InvalidValueError, MissingCustomOptionError
from .fields import FieldReader

CONDITION_FIELDS = ("exclude_if_any", "exclude_if_all", "include_if_any", "include_if_all")

_PLACEHOLDER_RE = re.compile(r"\{([^{}]*)\}")


def _normalise_tag(value: Any, field_name: str) -> str:
    if isinstance(value, str):
        if not value:
            raise InvalidValueError(field_name, value)
        return value
    if isinstance(value, (list, tuple)) and len(value) == 2:
        key, val = value
        return f"{key}={val}"
    raise InvalidValueError(field_name, value)


def _coerce_tags(value: Any, field_name: str) -> FrozenSet[str]:
    if not isinstance(value, (list, tuple)):
        raise InvalidValueError(field_name, value)
    return frozenset(_normalise_tag(item, f"{field_name}[{idx}]") for idx, item in enumerate(value))


@dataclass(frozen=True)
class Conditions:
    """Tag sets gating whether a directive is emitted."""

    exclude_if_any: FrozenSet[str] = frozenset()
    exclude_if_all: FrozenSet[str] = frozenset()
    include_if_any: FrozenSet[str] = frozenset()
    include_if_all: FrozenSet[str] = frozenset()

    @classmethod
    def from_reader(cls, reader: FieldReader) -> "Conditions":
        values = {
            name: reader.get_non_null(name, frozenset, _coerce_tags)
            for name in CONDITION_FIELDS
        }
        return cls(**values)

    def matches(self, active: FrozenSet[str]) -> bool:
        if self.exclude_if_any and not self.exclude_if_any.isdisjoint(active):
            return False
        if self.exclude_if_all and self.exclude_if_all <= active:
            return False
        if self.include_if_any and self.include_if_any.isdisjoint(active):
            return False
        if self.include_if_all and not self.include_if_all <= active:
            return False
        return True


@dataclass
class RuntimeSettings:
    """Options supplied per invocation rather than by the layout document."""

    tags: FrozenSet[str] = frozenset()
    custom_options: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.tags = frozenset(self.tags)
        self.custom_options = dict(self.custom_options)
        self._active = self.tags | frozenset(f"{k}={v}" for k, v in self.custom_options.items())

    @classmethod
    def from_options(
        cls,
        tags: Optional[Iterable[str]] = None,
        custom_options: Optional[Mapping[str, str]] = None,
    ) -> "RuntimeSettings":
        return cls(tags=frozenset(tags or ()), custom_options=dict(custom_options or {}))

    @property
    def active_tags(self) -> FrozenSet[str]:
        return self._active

    def should_emit(self, conditions: Conditions) -> bool:
        return conditions.matches(self._active)

    def expand_path(self, path: str) -> str:
        """Substitute ``{key}`` placeholders with custom option values."""

        def _replace(match: "re.Match[str]") -> str:
            key = match.group(1)
            if key not in self.custom_options:
                raise MissingCustomOptionError(key)
            return self.custom_options[key]

        return _PLACEHOLDER_RE.sub(_replace, path)
