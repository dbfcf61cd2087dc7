"""Segment description: one contiguously laid out region of the output."""

from __future__ import annotations

from dataclasses import dataclass, field
from itertools import combinations
from typing import Any, Dict, List, Optional, Tuple

from .errors import EmptyValueError, InvalidFieldComboError, InvalidValueError
from .fields import (
    FieldReader,
    coerce_bool,
    coerce_int,
    coerce_int_map,
    coerce_str,
    coerce_str_list,
    coerce_str_list_map,
)
from .files import FileInfo, parse_file_info
from .runtime import CONDITION_FIELDS, Conditions
from .settings import Settings

_PLACEMENT_FIELDS = ("fixed_vram", "fixed_symbol", "follows_segment", "vram_class")

_GP_INFO_FIELDS = ("section", "offset", "provide", "hidden") + CONDITION_FIELDS

_SEGMENT_FIELDS = (
    "name",
    "dir",
    "subalign",
    "segment_start_align",
    "segment_end_align",
    "section_start_align",
    "section_end_align",
    "sections_start_alignment",
    "sections_end_alignment",
    "alloc_sections",
    "noload_sections",
    "sections_subgroups",
    "wildcard_sections",
    "fill_value",
    "gp_info",
    "files",
) + _PLACEMENT_FIELDS + CONDITION_FIELDS


@dataclass(frozen=True)
class GpInfo:
    """Where to place ``_gp`` relative to the start of one section."""

    section: str
    offset: int = 0
    provide: bool = False
    hidden: bool = False
    conditions: Conditions = field(default_factory=Conditions)

    @classmethod
    def from_raw(cls, raw: Any) -> "GpInfo":
        reader = FieldReader(raw, "gp_info", _GP_INFO_FIELDS)
        return cls(
            section=reader.get("section", coerce_str),
            offset=reader.get_non_null("offset", lambda: 0, coerce_int),
            provide=reader.get_non_null("provide", lambda: False, coerce_bool),
            hidden=reader.get_non_null("hidden", lambda: False, coerce_bool),
            conditions=Conditions.from_reader(reader),
        )


@dataclass(frozen=True)
class Segment:
    name: str
    files: Tuple[FileInfo, ...] = ()

    fixed_vram: Optional[int] = None
    fixed_symbol: Optional[str] = None
    follows_segment: Optional[str] = None
    vram_class: Optional[str] = None

    dir: str = ""

    subalign: Optional[int] = None
    segment_start_align: Optional[int] = None
    segment_end_align: Optional[int] = None
    section_start_align: Optional[int] = None
    section_end_align: Optional[int] = None
    sections_start_alignment: Dict[str, int] = field(default_factory=dict)
    sections_end_alignment: Dict[str, int] = field(default_factory=dict)

    alloc_sections: List[str] = field(default_factory=list)
    noload_sections: List[str] = field(default_factory=list)
    sections_subgroups: Dict[str, List[str]] = field(default_factory=dict)

    wildcard_sections: bool = True
    fill_value: Optional[int] = None
    gp_info: Optional[GpInfo] = None

    conditions: Conditions = field(default_factory=Conditions)

    @classmethod
    def from_raw(cls, raw: Any, settings: Settings) -> "Segment":
        reader = FieldReader(raw, "segment", _SEGMENT_FIELDS)

        name = reader.get("name", coerce_str)
        if name == "":
            raise EmptyValueError("name")

        for first, second in combinations(_PLACEMENT_FIELDS, 2):
            if reader.has_value(first) and reader.has_value(second):
                raise InvalidFieldComboError(first, second)

        raw_files = reader.get("files")
        if not isinstance(raw_files, (list, tuple)):
            raise InvalidValueError("files", raw_files)
        files = tuple(parse_file_info(item, settings) for item in raw_files)

        gp_raw = reader.get_non_null_no_default("gp_info")
        return cls(
            name=name,
            files=files,
            fixed_vram=reader.get_non_null_no_default("fixed_vram", coerce_int),
            fixed_symbol=reader.get_non_null_no_default("fixed_symbol", coerce_str),
            follows_segment=reader.get_non_null_no_default("follows_segment", coerce_str),
            vram_class=reader.get_non_null_no_default("vram_class", coerce_str),
            dir=reader.get_non_null("dir", lambda: "", coerce_str),
            subalign=reader.get_optional_nullable("subalign", lambda: settings.subalign, coerce_int),
            segment_start_align=reader.get_optional_nullable(
                "segment_start_align", lambda: settings.segment_start_align, coerce_int
            ),
            segment_end_align=reader.get_optional_nullable(
                "segment_end_align", lambda: settings.segment_end_align, coerce_int
            ),
            section_start_align=reader.get_optional_nullable(
                "section_start_align", lambda: settings.section_start_align, coerce_int
            ),
            section_end_align=reader.get_optional_nullable(
                "section_end_align", lambda: settings.section_end_align, coerce_int
            ),
            sections_start_alignment=reader.get_non_null(
                "sections_start_alignment", lambda: dict(settings.sections_start_alignment), coerce_int_map
            ),
            sections_end_alignment=reader.get_non_null(
                "sections_end_alignment", lambda: dict(settings.sections_end_alignment), coerce_int_map
            ),
            alloc_sections=reader.get_non_null(
                "alloc_sections", lambda: list(settings.alloc_sections), coerce_str_list
            ),
            noload_sections=reader.get_non_null(
                "noload_sections", lambda: list(settings.noload_sections), coerce_str_list
            ),
            sections_subgroups=reader.get_non_null(
                "sections_subgroups",
                lambda: {k: list(v) for k, v in settings.sections_subgroups.items()},
                coerce_str_list_map,
            ),
            wildcard_sections=reader.get_non_null(
                "wildcard_sections", lambda: settings.wildcard_sections, coerce_bool
            ),
            fill_value=reader.get_optional_nullable("fill_value", lambda: settings.fill_value, coerce_int),
            gp_info=GpInfo.from_raw(gp_raw) if gp_raw is not None else None,
            conditions=Conditions.from_reader(reader),
        )
