"""Linker script generation.

:class:`LinkerWriter` walks a validated :class:`~linkscript.document.Document`
once and produces the ``SECTIONS`` block plus the free standing directives.
While doing so it records every input path it references (for the dependency
file) and every address symbol it defines (for the symbol header).

Phases::

    IDLE --begin_sections--> OPEN --end_sections--> CLOSED

Single segment mode skips the ROM bookkeeping and goes straight from IDLE to
CLOSED through :meth:`LinkerWriter.add_single_segment`.
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Sequence, TextIO, Tuple, Union

from . import exporters
from .directives import AssertEntry, RequiredSymbol, SymbolAssignment
from .document import Document
from .errors import MissingVramClassForSegmentError, SubgroupCycleError
from .files import ArchiveFile, FileGroup, FileInfo, LinkerOffsetEntry, ObjectFile, PadEntry
from .runtime import RuntimeSettings
from .script_buffer import ScriptBuffer
from .segment import Segment

LOGGER = logging.getLogger("linkscript.writer")

PathLike = Union[str, Path]


class Phase(Enum):
    IDLE = "idle"
    OPEN = "open"
    CLOSED = "closed"


def join_path(*parts: str) -> str:
    """Join path fragments with ``/`` keeping each fragment's text as written.

    Empty fragments are skipped and an absolute fragment replaces everything
    before it.
    """
    path = ""
    for part in parts:
        if not part:
            continue
        if part.startswith("/") or not path:
            path = part
        elif path.endswith("/"):
            path += part
        else:
            path += "/" + part
    return path


class LinkerWriter:
    def __init__(
        self,
        document: Document,
        runtime: Optional[RuntimeSettings] = None,
        *,
        reference_partial_objects: bool = False,
    ) -> None:
        self.document = document
        self.settings = document.settings
        self.runtime = runtime or RuntimeSettings()
        self.style = self.settings.linker_symbols_style
        self.reference_partial_objects = reference_partial_objects

        self.emit_sections_kind_symbols = self.settings.emit_sections_kind_symbols
        self.emit_section_symbols = self.settings.emit_section_symbols

        self.buffer = ScriptBuffer()
        self.phase = Phase.IDLE
        self.single_segment = False

        self._files_paths: Dict[str, None] = {}
        self._vram_classes = {vram_class.name: vram_class for vram_class in document.vram_classes}
        self._emitted_classes: Dict[str, None] = {}

    # Read-only views used by the exporters

    @property
    def linker_symbols(self) -> List[str]:
        return self.buffer.linker_symbols

    @property
    def files_paths(self) -> List[str]:
        return list(self._files_paths)

    def vram_class_emitted(self, name: str) -> bool:
        return name in self._emitted_classes

    # Whole document

    def add_whole_document(self) -> None:
        doc = self.document
        self.add_all_segments(doc.segments)
        self.add_all_symbol_assignments(doc.symbol_assignments)
        self.add_all_required_symbols(doc.required_symbols)
        self.add_all_asserts(doc.asserts)
        if doc.entry is not None:
            self.add_entry(doc.entry)

    def add_all_segments(self, segments: Sequence[Segment]) -> None:
        if self.settings.single_segment_mode:
            if len(segments) != 1:
                raise AssertionError(
                    f"single_segment_mode requires exactly one segment, got {len(segments)}"
                )
            self.add_single_segment(segments[0])
            return
        self.begin_sections()
        for segment in segments:
            self.add_segment(segment)
        self.end_sections()

    def add_entry(self, entry: str) -> None:
        if not self.buffer.is_empty():
            self.buffer.write_empty_line()
        self.buffer.writeln(f"ENTRY({entry});")

    def add_all_symbol_assignments(self, symbol_assignments: Sequence[SymbolAssignment]) -> None:
        if not symbol_assignments:
            return
        self._separate()
        for assignment in symbol_assignments:
            self.add_symbol_assignment(assignment)

    def add_all_required_symbols(self, required_symbols: Sequence[RequiredSymbol]) -> None:
        if not required_symbols:
            return
        self._separate()
        for required in required_symbols:
            self.add_required_symbol(required)

    def add_all_asserts(self, asserts: Sequence[AssertEntry]) -> None:
        if not asserts:
            return
        self._separate()
        for assert_entry in asserts:
            self.add_assert(assert_entry)

    def add_symbol_assignment(self, assignment: SymbolAssignment) -> None:
        if not self.runtime.should_emit(assignment.conditions):
            LOGGER.debug("skipping symbol assignment %s", assignment.name)
            return
        self.buffer.write_symbol_assignment(assignment.name, assignment.value, assignment.provide, assignment.hidden)

    def add_required_symbol(self, required: RequiredSymbol) -> None:
        if not self.runtime.should_emit(required.conditions):
            LOGGER.debug("skipping required symbol %s", required.name)
            return
        self.buffer.write_required_symbol(required.name)

    def add_assert(self, assert_entry: AssertEntry) -> None:
        if not self.runtime.should_emit(assert_entry.conditions):
            LOGGER.debug("skipping assert %s", assert_entry.check)
            return
        self.buffer.write_assert(assert_entry.check, assert_entry.error_message)

    # SECTIONS block

    def begin_sections(self) -> None:
        self._require_phase(Phase.IDLE, "begin_sections")
        self.phase = Phase.OPEN

        self.buffer.writeln("SECTIONS")
        self.buffer.begin_block()
        self.buffer.writeln("__romPos = 0x0;")
        if self.settings.hardcoded_gp_value is not None:
            self.buffer.writeln(f"_gp = 0x{self.settings.hardcoded_gp_value:08X};")
        self.buffer.write_empty_line()

    def end_sections(self) -> None:
        self._require_phase(Phase.OPEN, "end_sections")
        settings = self.settings
        style = self.style
        need_ln = False

        for name in self._vram_classes:
            if name not in self._emitted_classes:
                continue
            self.buffer.write_linker_symbol(
                style.vram_class_size(name),
                f"{style.vram_class_end(name)} - {style.vram_class_start(name)}",
            )
            need_ln = True

        for allowlist in (settings.sections_allowlist, settings.sections_allowlist_extra):
            if not allowlist:
                continue
            if need_ln:
                self.buffer.write_empty_line()
            for section in allowlist:
                self.buffer.write_single_entry_section(section, "0")
            need_ln = True

        if settings.discard_wildcard_section or settings.sections_denylist:
            if need_ln:
                self.buffer.write_empty_line()
            self.buffer.writeln("/DISCARD/ :")
            self.buffer.begin_block()
            for section in settings.sections_denylist:
                self.buffer.writeln(f"*({section});")
            if settings.discard_wildcard_section:
                self.buffer.writeln("*(*);")
            self.buffer.end_block()

        self.buffer.end_block()
        self.buffer.finish()
        self.phase = Phase.CLOSED

    def add_segment(self, segment: Segment) -> None:
        self._require_phase(Phase.OPEN, "add_segment")
        if self.single_segment:
            raise AssertionError("add_segment called on a single segment script")
        if not self.runtime.should_emit(segment.conditions):
            LOGGER.debug("segment %s excluded by its conditions", segment.name)
            return

        style = self.style
        buf = self.buffer

        rom_start = style.segment_rom_start(segment.name)
        rom_end = style.segment_rom_end(segment.name)
        rom_size = style.segment_rom_size(segment.name)
        vram_start = style.segment_vram_start(segment.name)
        vram_end = style.segment_vram_end(segment.name)
        vram_size = style.segment_vram_size(segment.name)

        if segment.vram_class is not None:
            self._emit_vram_class(segment)

        if segment.segment_start_align is not None:
            buf.align_symbol("__romPos", segment.segment_start_align)
            buf.align_symbol(".", segment.segment_start_align)

        buf.write_linker_symbol(rom_start, "__romPos")
        buf.write_linker_symbol(vram_start, f"ADDR(.{segment.name})")

        self._write_segment(segment, segment.alloc_sections, noload=False)
        buf.write_empty_line()
        self._write_segment(segment, segment.noload_sections, noload=True)
        buf.write_empty_line()

        buf.writeln(f"__romPos += SIZEOF(.{segment.name});")

        if segment.segment_end_align is not None:
            buf.align_symbol("__romPos", segment.segment_end_align)
            buf.align_symbol(".", segment.segment_end_align)

        self._write_sym_end_size(vram_start, vram_end, vram_size, ".")
        self._write_sym_end_size(rom_start, rom_end, rom_size, "__romPos")

        if segment.vram_class is not None:
            buf.write_empty_line()
            buf.write_symbol_max_self(style.vram_class_end(segment.vram_class), vram_end)

        buf.write_empty_line()

    def add_single_segment(self, segment: Segment) -> None:
        self._require_phase(Phase.IDLE, "add_single_segment")
        if self.single_segment:
            raise AssertionError("add_single_segment can only be called once")
        self.single_segment = True
        self.phase = Phase.OPEN

        buf = self.buffer
        buf.writeln("SECTIONS")
        buf.begin_block()
        if segment.fixed_vram is not None:
            buf.writeln(f". = 0x{segment.fixed_vram:08X};")
            buf.write_empty_line()

        self._write_single_segment(segment, segment.alloc_sections, noload=False)
        buf.write_empty_line()
        self._write_single_segment(segment, segment.noload_sections, noload=True)
        buf.write_empty_line()

        self.end_sections()

    # Exporters

    def export_linker_script(self, dst: TextIO) -> None:
        exporters.write_linker_script(dst, self.buffer.lines)

    def export_linker_script_to_string(self) -> str:
        return exporters.render(exporters.write_linker_script, self.buffer.lines)

    def export_linker_script_to_file(self, path: PathLike) -> None:
        exporters.save(path, exporters.write_linker_script, self.buffer.lines)

    def export_dependencies_file(self, dst: TextIO, target_path: str) -> None:
        exporters.write_dependencies(dst, target_path, self.files_paths)

    def export_dependencies_file_to_string(self, target_path: str) -> str:
        return exporters.render(exporters.write_dependencies, target_path, self.files_paths)

    def export_dependencies_file_to_file(self, path: PathLike, target_path: str) -> None:
        exporters.save(path, exporters.write_dependencies, target_path, self.files_paths)

    def export_symbol_header(self, dst: TextIO) -> None:
        exporters.write_symbol_header(dst, self.linker_symbols, self.settings)

    def export_symbol_header_to_string(self) -> str:
        return exporters.render(exporters.write_symbol_header, self.linker_symbols, self.settings)

    def export_symbol_header_to_file(self, path: PathLike) -> None:
        exporters.save(path, exporters.write_symbol_header, self.linker_symbols, self.settings)

    def save_other_files(self, script_path: Optional[PathLike] = None) -> None:
        """Write the dependency file and symbol header configured in the settings."""
        settings = self.settings
        expand = self.runtime.expand_path
        if settings.d_path is not None:
            target = settings.target_path if settings.target_path is not None else script_path
            if target is not None:
                self.export_dependencies_file_to_file(expand(settings.d_path), expand(str(target)))
        if settings.symbols_header_path is not None:
            self.export_symbol_header_to_file(expand(settings.symbols_header_path))

    # Internals

    def _require_phase(self, expected: Phase, operation: str) -> None:
        if self.phase is not expected:
            raise AssertionError(f"{operation} requires phase {expected.value}, writer is {self.phase.value}")

    def _separate(self) -> None:
        if not self.buffer.is_empty():
            self.buffer.write_empty_line()

    def _emit_vram_class(self, segment: Segment) -> None:
        name = segment.vram_class
        vram_class = self._vram_classes.get(name)
        if vram_class is None:
            raise MissingVramClassForSegmentError(segment.name, name)
        if name in self._emitted_classes:
            return

        style = self.style
        buf = self.buffer
        start_sym = style.vram_class_start(name)
        if vram_class.fixed_vram is not None:
            buf.write_linker_symbol(start_sym, f"0x{vram_class.fixed_vram:08X}")
        elif vram_class.fixed_symbol is not None:
            buf.write_linker_symbol(start_sym, vram_class.fixed_symbol)
        else:
            buf.write_linker_symbol(start_sym, "0x00000000")
            for other in vram_class.follows_classes:
                buf.write_symbol_max_self(start_sym, style.vram_class_end(other))
        buf.write_linker_symbol(style.vram_class_end(name), "0x00000000")
        buf.write_empty_line()

        self._emitted_classes[name] = None
        LOGGER.debug("vram class %s anchored by segment %s", name, segment.name)

    def _write_sym_end_size(self, start: str, end: str, size: str, value: str) -> None:
        self.buffer.write_linker_symbol(end, value)
        self.buffer.write_linker_symbol(size, f"ABSOLUTE({end} - {start})")

    def _sections_kind_name(self, segment: Segment, noload: bool) -> str:
        return f"{segment.name}_{'noload' if noload else 'alloc'}"

    def _write_sections_kind_start(self, segment: Segment, noload: bool) -> None:
        if not self.emit_sections_kind_symbols:
            return
        kind_name = self._sections_kind_name(segment, noload)
        self.buffer.write_linker_symbol(self.style.segment_vram_start(kind_name), ".")
        self.buffer.write_empty_line()

    def _write_sections_kind_end(self, segment: Segment, noload: bool) -> None:
        if not self.emit_sections_kind_symbols:
            return
        self.buffer.write_empty_line()
        kind_name = self._sections_kind_name(segment, noload)
        self._write_sym_end_size(
            self.style.segment_vram_start(kind_name),
            self.style.segment_vram_end(kind_name),
            self.style.segment_vram_size(kind_name),
            ".",
        )

    def _write_section_symbol_start(self, segment: Segment, section: str) -> None:
        if not self.emit_section_symbols:
            return
        buf = self.buffer
        if segment.section_start_align is not None:
            buf.align_symbol(".", segment.section_start_align)
        if section in segment.sections_start_alignment:
            buf.align_symbol(".", segment.sections_start_alignment[section])

        gp_info = segment.gp_info
        if gp_info is not None and gp_info.section == section and self.runtime.should_emit(gp_info.conditions):
            buf.write_symbol_assignment("_gp", f". + 0x{gp_info.offset:X}", gp_info.provide, gp_info.hidden)

        buf.write_linker_symbol(self.style.segment_section_start(segment.name, section), ".")

    def _write_section_symbol_end(self, segment: Segment, section: str) -> None:
        if not self.emit_section_symbols:
            return
        buf = self.buffer
        if segment.section_end_align is not None:
            buf.align_symbol(".", segment.section_end_align)
        if section in segment.sections_end_alignment:
            buf.align_symbol(".", segment.sections_end_alignment[section])

        style = self.style
        self._write_sym_end_size(
            style.segment_section_start(segment.name, section),
            style.segment_section_end(segment.name, section),
            style.segment_section_size(segment.name, section),
            ".",
        )

    def _segment_header(self, segment: Segment, noload: bool) -> str:
        style = self.style
        if noload:
            line = f".{segment.name}.noload (NOLOAD) :"
        else:
            line = f".{segment.name}"
            if segment.fixed_vram is not None:
                line += f" 0x{segment.fixed_vram:08X}"
            elif segment.fixed_symbol is not None:
                line += f" {segment.fixed_symbol}"
            elif segment.follows_segment is not None:
                line += f" {style.segment_vram_end(segment.follows_segment)}"
            elif segment.vram_class is not None:
                line += f" {style.vram_class_start(segment.vram_class)}"
            line += f" : AT({style.segment_rom_start(segment.name)})"
        if segment.subalign is not None:
            line += f" SUBALIGN({segment.subalign})"
        return line

    def _write_segment(self, segment: Segment, sections: Sequence[str], noload: bool) -> None:
        buf = self.buffer
        self._write_sections_kind_start(segment, noload)
        buf.writeln(self._segment_header(segment, noload))
        buf.begin_block()

        if segment.fill_value is not None:
            buf.writeln(f"FILL(0x{segment.fill_value:08X});")

        for index, section in enumerate(sections):
            self._write_section_symbol_start(segment, section)
            self._emit_section(segment, section, sections)
            self._write_section_symbol_end(segment, section)
            if index + 1 < len(sections):
                buf.write_empty_line()

        buf.end_block()
        self._write_sections_kind_end(segment, noload)

    def _write_single_segment(self, segment: Segment, sections: Sequence[str], noload: bool) -> None:
        buf = self.buffer
        self._write_sections_kind_start(segment, noload)

        for index, section in enumerate(sections):
            self._write_section_symbol_start(segment, section)

            line = f"{section}{' (NOLOAD)' if noload else ''} :"
            if segment.subalign is not None:
                line += f" SUBALIGN({segment.subalign})"
            buf.writeln(line)
            buf.begin_block()
            if segment.fill_value is not None:
                buf.writeln(f"FILL(0x{segment.fill_value:08X});")
            self._emit_section(segment, section, sections)
            buf.end_block()

            self._write_section_symbol_end(segment, section)
            if index + 1 < len(sections):
                buf.write_empty_line()

        self._write_sections_kind_end(segment, noload)

    def _emit_section(self, segment: Segment, section: str, sections: Sequence[str]) -> None:
        expand = self.runtime.expand_path
        base_path = expand(self.settings.base_path)
        if not self.reference_partial_objects:
            base_path = join_path(base_path, expand(segment.dir))

        for file in segment.files:
            self._emit_section_for_file(file, segment, section, sections, base_path, (section,))

    def _emit_section_for_file(
        self,
        file: FileInfo,
        segment: Segment,
        section: str,
        sections: Sequence[str],
        base_path: str,
        chain: Tuple[str, ...],
    ) -> None:
        section_order = getattr(file, "section_order", None)
        if section_order:
            # Keys are the file's own sections, values the section they are moved into.
            here = [] if section in section_order else [section]
            here.extend(source for source, target in section_order.items() if target == section)
            here.sort(key=lambda name: _canonical_position(name, sections))
        else:
            here = [section]

        for name in here:
            self._emit_file(file, segment, name, sections, base_path, chain)
            if self.reference_partial_objects:
                continue
            expanded = chain if name in chain else chain + (name,)
            for other in segment.sections_subgroups.get(name, ()):
                if other in expanded:
                    raise SubgroupCycleError(segment.name, other)
                self._emit_section_for_file(file, segment, other, sections, base_path, expanded + (other,))

    def _emit_file(
        self,
        file: FileInfo,
        segment: Segment,
        section: str,
        sections: Sequence[str],
        base_path: str,
        chain: Tuple[str, ...],
    ) -> None:
        if not self.runtime.should_emit(file.conditions):
            return

        buf = self.buffer
        wildcard = "*" if segment.wildcard_sections else ""
        left, right = ("KEEP(", ")") if file.keep_sections.keeps(section) else ("", "")

        if isinstance(file, ObjectFile):
            path = join_path(base_path, self.runtime.expand_path(file.path))
            buf.writeln(f"{left}{path}({section}{wildcard}){right};")
            self._files_paths.setdefault(path, None)
        elif isinstance(file, ArchiveFile):
            path = join_path(base_path, self.runtime.expand_path(file.path))
            buf.writeln(f"{left}{path}:{file.subfile}({section}{wildcard}){right};")
            self._files_paths.setdefault(path, None)
        elif isinstance(file, PadEntry):
            if file.section == section:
                buf.writeln(f". += 0x{file.pad_amount:X};")
        elif isinstance(file, LinkerOffsetEntry):
            if file.section == section:
                buf.write_linker_symbol(self.style.linker_offset(file.linker_offset_name), ".")
        elif isinstance(file, FileGroup):
            group_base = join_path(base_path, self.runtime.expand_path(file.dir))
            for member in file.files:
                self._emit_section_for_file(member, segment, section, sections, group_base, chain)


def _canonical_position(name: str, sections: Sequence[str]) -> Tuple[int, str]:
    try:
        return (sections.index(name), name)
    except ValueError:
        return (len(sections), name)
