"""Linker symbol naming conventions."""

from __future__ import annotations

import re
from enum import Enum

from .errors import InvalidValueError

_WORD_RE = re.compile(r"[A-Za-z0-9]+")


def _splat_section(section: str) -> str:
    return section.replace(".", "_").upper()


def _makerom_section(section: str) -> str:
    return "".join(word[:1].upper() + word[1:].lower() for word in _WORD_RE.findall(section))


class LinkerSymbolsStyle(Enum):
    """Naming scheme used for every generated address symbol."""

    SPLAT = "splat"
    MAKEROM = "makerom"

    @classmethod
    def parse(cls, value: object, field: str = "linker_symbols_style") -> "LinkerSymbolsStyle":
        try:
            return cls(str(value).lower())
        except ValueError as exc:
            raise InvalidValueError(field, value) from exc

    # Segment ROM addresses

    def segment_rom_start(self, seg: str) -> str:
        if self is LinkerSymbolsStyle.MAKEROM:
            return f"_{seg}SegmentRomStart"
        return f"{seg}_ROM_START"

    def segment_rom_end(self, seg: str) -> str:
        if self is LinkerSymbolsStyle.MAKEROM:
            return f"_{seg}SegmentRomEnd"
        return f"{seg}_ROM_END"

    def segment_rom_size(self, seg: str) -> str:
        if self is LinkerSymbolsStyle.MAKEROM:
            return f"_{seg}SegmentRomSize"
        return f"{seg}_ROM_SIZE"

    # Segment VRAM addresses

    def segment_vram_start(self, seg: str) -> str:
        if self is LinkerSymbolsStyle.MAKEROM:
            return f"_{seg}SegmentStart"
        return f"{seg}_VRAM"

    def segment_vram_end(self, seg: str) -> str:
        if self is LinkerSymbolsStyle.MAKEROM:
            return f"_{seg}SegmentEnd"
        return f"{seg}_VRAM_END"

    def segment_vram_size(self, seg: str) -> str:
        if self is LinkerSymbolsStyle.MAKEROM:
            return f"_{seg}SegmentSize"
        return f"{seg}_VRAM_SIZE"

    # Per section of a segment

    def segment_section_start(self, seg: str, section: str) -> str:
        if self is LinkerSymbolsStyle.MAKEROM:
            return f"_{seg}Segment{_makerom_section(section)}Start"
        return f"{seg}{_splat_section(section)}_START"

    def segment_section_end(self, seg: str, section: str) -> str:
        if self is LinkerSymbolsStyle.MAKEROM:
            return f"_{seg}Segment{_makerom_section(section)}End"
        return f"{seg}{_splat_section(section)}_END"

    def segment_section_size(self, seg: str, section: str) -> str:
        if self is LinkerSymbolsStyle.MAKEROM:
            return f"_{seg}Segment{_makerom_section(section)}Size"
        return f"{seg}{_splat_section(section)}_SIZE"

    # VRAM classes

    def vram_class_start(self, name: str) -> str:
        if self is LinkerSymbolsStyle.MAKEROM:
            return f"_{name}ClassStart"
        return f"{name}_CLASS_VRAM"

    def vram_class_end(self, name: str) -> str:
        if self is LinkerSymbolsStyle.MAKEROM:
            return f"_{name}ClassEnd"
        return f"{name}_CLASS_VRAM_END"

    def vram_class_size(self, name: str) -> str:
        if self is LinkerSymbolsStyle.MAKEROM:
            return f"_{name}ClassSize"
        return f"{name}_CLASS_VRAM_SIZE"

    def linker_offset(self, name: str) -> str:
        if self is LinkerSymbolsStyle.MAKEROM:
            return f"_{name}Offset"
        return f"{name}_OFFSET"
