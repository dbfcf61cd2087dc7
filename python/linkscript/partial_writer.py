"""Partial linking: one relocatable script per segment plus a main script.

Each segment is first linked on its own (``ld -r``) with a single segment
script; the main script then places the resulting ``<segment>.o`` objects
instead of the segment's own inputs.
"""

from __future__ import annotations

import dataclasses
import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

from . import exporters
from .document import Document
from .errors import MissingValueError
from .files import KeepSections, ObjectFile
from .runtime import Conditions, RuntimeSettings
from .segment import Segment
from .writer import LinkerWriter, join_path

LOGGER = logging.getLogger("linkscript.partial_writer")

PathLike = Union[str, Path]


class PartialLinkerWriter:
    def __init__(self, document: Document, runtime: Optional[RuntimeSettings] = None) -> None:
        self.document = document
        self.settings = document.settings
        self.runtime = runtime or RuntimeSettings()
        self.main_writer = LinkerWriter(document, self.runtime, reference_partial_objects=True)
        self.partial_writers: List[Tuple[LinkerWriter, str]] = []

    @property
    def linker_symbols(self) -> List[str]:
        symbols: Dict[str, None] = dict.fromkeys(self.main_writer.linker_symbols)
        for partial, _name in self.partial_writers:
            for sym in partial.linker_symbols:
                symbols.setdefault(sym, None)
        return list(symbols)

    def add_whole_document(self) -> None:
        doc = self.document
        self.add_all_segments(doc.segments)
        self.main_writer.add_all_symbol_assignments(doc.symbol_assignments)
        self.main_writer.add_all_required_symbols(doc.required_symbols)
        self.main_writer.add_all_asserts(doc.asserts)
        if doc.entry is not None:
            self.main_writer.add_entry(doc.entry)

    def add_all_segments(self, segments: Sequence[Segment]) -> None:
        self.main_writer.begin_sections()
        for segment in segments:
            self.add_segment(segment)
        self.main_writer.end_sections()

    def add_segment(self, segment: Segment) -> None:
        if not self.runtime.should_emit(segment.conditions):
            LOGGER.debug("segment %s excluded by its conditions", segment.name)
            return

        partial = LinkerWriter(self.document, self.runtime)
        partial.add_single_segment(segment)
        self.partial_writers.append((partial, segment.name))

        self.main_writer.add_segment(self._reference_segment(segment))

    def partial_object_path(self, name: str) -> str:
        folder = self.settings.partial_build_segments_folder
        if folder is None:
            raise MissingValueError("partial_build_segments_folder")
        return join_path(self.runtime.expand_path(folder), f"{name}.o")

    def _reference_segment(self, segment: Segment) -> Segment:
        prelinked = ObjectFile(
            conditions=Conditions(),
            keep_sections=KeepSections(),
            path=self.partial_object_path(segment.name),
        )
        return dataclasses.replace(segment, files=(prelinked,), dir="")

    # Exporters

    def export_linker_script_to_string(self) -> str:
        return self.main_writer.export_linker_script_to_string()

    def export_linker_script_to_file(self, path: PathLike) -> None:
        self.main_writer.export_linker_script_to_file(path)

    def export_symbol_header_to_string(self) -> str:
        return exporters.render(exporters.write_symbol_header, self.linker_symbols, self.settings)

    def export_symbol_header_to_file(self, path: PathLike) -> None:
        exporters.save(path, exporters.write_symbol_header, self.linker_symbols, self.settings)

    def save_other_files(self, script_path: Optional[PathLike] = None) -> None:
        settings = self.settings
        expand = self.runtime.expand_path

        if settings.d_path is not None:
            target = settings.target_path if settings.target_path is not None else script_path
            if target is not None:
                self.main_writer.export_dependencies_file_to_file(expand(settings.d_path), expand(str(target)))

        if self.partial_writers:
            if settings.partial_scripts_folder is None:
                raise MissingValueError("partial_scripts_folder")
            scripts_folder = Path(expand(settings.partial_scripts_folder))
            base_path = expand(settings.base_path)
            for partial, name in self.partial_writers:
                partial.export_linker_script_to_file(scripts_folder / f"{name}.ld")
                partial.export_dependencies_file_to_file(
                    scripts_folder / f"{name}.d",
                    join_path(base_path, self.partial_object_path(name)),
                )

        if settings.symbols_header_path is not None:
            self.export_symbol_header_to_file(expand(settings.symbols_header_path))
