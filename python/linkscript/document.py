"""Whole layout document and its YAML loader."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional, Tuple, Union

import yaml

from .directives import AssertEntry, RequiredSymbol, SymbolAssignment
from .errors import DuplicateValueError, FailedFileOpenError, FailedYamlParsingError, InvalidValueError
from .fields import FieldReader, coerce_str
from .segment import Segment
from .settings import Settings
from .vram_class import VramClass

LOGGER = logging.getLogger("linkscript.document")

_DOCUMENT_FIELDS = (
    "settings",
    "segments",
    "vram_classes",
    "symbol_assignments",
    "required_symbols",
    "asserts",
    "entry",
)


def _raw_list(reader: FieldReader, name: str) -> List[Any]:
    value = reader.get_non_null(name, list)
    if not isinstance(value, list):
        raise InvalidValueError(name, value)
    return value


def _check_unique(kind: str, names: List[str]) -> None:
    seen = set()
    for name in names:
        if name in seen:
            raise DuplicateValueError(kind, name)
        seen.add(name)


@dataclass(frozen=True)
class Document:
    settings: Settings = field(default_factory=Settings)
    segments: Tuple[Segment, ...] = ()
    vram_classes: Tuple[VramClass, ...] = ()
    symbol_assignments: Tuple[SymbolAssignment, ...] = ()
    required_symbols: Tuple[RequiredSymbol, ...] = ()
    asserts: Tuple[AssertEntry, ...] = ()
    entry: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Any) -> "Document":
        """Build a validated document out of an already parsed mapping."""
        reader = FieldReader(data, "document", _DOCUMENT_FIELDS)
        settings = Settings.from_raw(reader.get_non_null("settings", dict))

        raw_segments = reader.get("segments")
        if not isinstance(raw_segments, list):
            raise InvalidValueError("segments", raw_segments)
        segments = tuple(Segment.from_raw(item, settings) for item in raw_segments)
        _check_unique("segment name", [seg.name for seg in segments])

        vram_classes = tuple(VramClass.from_raw(item) for item in _raw_list(reader, "vram_classes"))
        _check_unique("vram class name", [vc.name for vc in vram_classes])

        return cls(
            settings=settings,
            segments=segments,
            vram_classes=vram_classes,
            symbol_assignments=tuple(
                SymbolAssignment.from_raw(item) for item in _raw_list(reader, "symbol_assignments")
            ),
            required_symbols=tuple(RequiredSymbol.from_raw(item) for item in _raw_list(reader, "required_symbols")),
            asserts=tuple(AssertEntry.from_raw(item) for item in _raw_list(reader, "asserts")),
            entry=reader.get_non_null_no_default("entry", coerce_str),
        )

    @classmethod
    def read(cls, path: Union[str, Path]) -> "Document":
        source = Path(path)
        try:
            text = source.read_text(encoding="utf-8")
        except OSError as exc:
            raise FailedFileOpenError(str(source), str(exc)) from exc
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise FailedYamlParsingError(str(source), str(exc)) from exc
        document = cls.from_mapping(data)
        LOGGER.debug(
            "loaded %s: %d segments, %d vram classes",
            source,
            len(document.segments),
            len(document.vram_classes),
        )
        return document
