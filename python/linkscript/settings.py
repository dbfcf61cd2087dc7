"""Document wide settings and the defaults segments inherit from them."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .fields import (
    FieldReader,
    coerce_bool,
    coerce_int,
    coerce_int_map,
    coerce_str,
    coerce_str_list,
    coerce_str_list_map,
)
from .naming import LinkerSymbolsStyle

DEFAULT_ALLOC_SECTIONS = (".text", ".data", ".rodata", ".sdata")
DEFAULT_NOLOAD_SECTIONS = (".sbss", ".scommon", ".bss", "COMMON")


def _coerce_style(value: Any, name: str) -> LinkerSymbolsStyle:
    return LinkerSymbolsStyle.parse(value, name)


@dataclass(frozen=True)
class Settings:
    base_path: str = ""
    linker_symbols_style: LinkerSymbolsStyle = LinkerSymbolsStyle.SPLAT
    hardcoded_gp_value: Optional[int] = None

    d_path: Optional[str] = None
    target_path: Optional[str] = None

    symbols_header_path: Optional[str] = None
    symbols_header_type: str = "char"
    symbols_header_as_array: bool = True

    sections_allowlist: List[str] = field(default_factory=list)
    sections_allowlist_extra: List[str] = field(default_factory=list)
    sections_denylist: List[str] = field(default_factory=list)
    discard_wildcard_section: bool = False

    # Segment defaults
    alloc_sections: List[str] = field(default_factory=lambda: list(DEFAULT_ALLOC_SECTIONS))
    noload_sections: List[str] = field(default_factory=lambda: list(DEFAULT_NOLOAD_SECTIONS))
    subalign: Optional[int] = None
    segment_start_align: Optional[int] = None
    segment_end_align: Optional[int] = None
    section_start_align: Optional[int] = None
    section_end_align: Optional[int] = None
    sections_start_alignment: Dict[str, int] = field(default_factory=dict)
    sections_end_alignment: Dict[str, int] = field(default_factory=dict)
    sections_subgroups: Dict[str, List[str]] = field(default_factory=dict)
    wildcard_sections: bool = True
    fill_value: Optional[int] = None

    single_segment_mode: bool = False
    emit_sections_kind_symbols: bool = True
    emit_section_symbols: bool = True

    partial_scripts_folder: Optional[str] = None
    partial_build_segments_folder: Optional[str] = None

    @classmethod
    def from_raw(cls, raw: Any) -> "Settings":
        reader = FieldReader(raw, "settings", _SETTINGS_FIELDS)
        defaults = cls()
        values: Dict[str, Any] = {}
        for name, (policy, convert) in _SETTINGS_FIELDS.items():
            default = getattr(defaults, name)
            if policy == "nullable":
                values[name] = reader.get_optional_nullable(name, lambda d=default: d, convert)
            else:
                values[name] = reader.get_non_null(name, lambda d=default: d, convert)
        return cls(**values)


# field name -> (null policy, converter)
_SETTINGS_FIELDS = {
    "base_path": ("non_null", coerce_str),
    "linker_symbols_style": ("non_null", _coerce_style),
    "hardcoded_gp_value": ("nullable", coerce_int),
    "d_path": ("nullable", coerce_str),
    "target_path": ("nullable", coerce_str),
    "symbols_header_path": ("nullable", coerce_str),
    "symbols_header_type": ("non_null", coerce_str),
    "symbols_header_as_array": ("non_null", coerce_bool),
    "sections_allowlist": ("non_null", coerce_str_list),
    "sections_allowlist_extra": ("non_null", coerce_str_list),
    "sections_denylist": ("non_null", coerce_str_list),
    "discard_wildcard_section": ("non_null", coerce_bool),
    "alloc_sections": ("non_null", coerce_str_list),
    "noload_sections": ("non_null", coerce_str_list),
    "subalign": ("nullable", coerce_int),
    "segment_start_align": ("nullable", coerce_int),
    "segment_end_align": ("nullable", coerce_int),
    "section_start_align": ("nullable", coerce_int),
    "section_end_align": ("nullable", coerce_int),
    "sections_start_alignment": ("non_null", coerce_int_map),
    "sections_end_alignment": ("non_null", coerce_int_map),
    "sections_subgroups": ("non_null", coerce_str_list_map),
    "wildcard_sections": ("non_null", coerce_bool),
    "fill_value": ("nullable", coerce_int),
    "single_segment_mode": ("non_null", coerce_bool),
    "emit_sections_kind_symbols": ("non_null", coerce_bool),
    "emit_section_symbols": ("non_null", coerce_bool),
    "partial_scripts_folder": ("nullable", coerce_str),
    "partial_build_segments_folder": ("nullable", coerce_str),
}
