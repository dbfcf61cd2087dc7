"""
linkscript - GNU ld script generator for byte exact ROM layouts.

A YAML document describes segments, the object files and archives that go
into them, padding, alignment and shared VRAM classes.  linkscript turns it
into a linker script, a make dependency file and a C header declaring every
generated address symbol.

    document.py       → YAML loading, top level model
    settings.py       → document wide settings and segment defaults
    segment.py        → segments and ``_gp`` placement
    files.py          → file descriptor variants and their validation
    vram_class.py     → shared VRAM anchors
    directives.py     → symbol assignments, EXTERN and ASSERT entries
    runtime.py        → tag conditions and path placeholders
    naming.py         → symbol naming styles
    script_buffer.py  → indented line buffer and symbol registry
    writer.py         → script generation
    partial_writer.py → per segment scripts for partial linking
    exporters.py      → script, dependency and header serialisers
"""

from .directives import AssertEntry, RequiredSymbol, SymbolAssignment  # noqa: F401
from .document import Document  # noqa: F401
from .errors import (  # noqa: F401
    DuplicateValueError,
    EmptyValueError,
    FailedFileOpenError,
    FailedStringConversionError,
    FailedWriteError,
    FailedYamlParsingError,
    InvalidFieldComboError,
    InvalidValueError,
    LinkScriptError,
    MissingCustomOptionError,
    MissingValueError,
    MissingVramClassForSegmentError,
    NullValueError,
    SubgroupCycleError,
    UnknownFieldError,
)
from .files import (  # noqa: F401
    ArchiveFile,
    FileGroup,
    FileInfo,
    FileKind,
    KeepSections,
    LinkerOffsetEntry,
    ObjectFile,
    PadEntry,
    parse_file_info,
)
from .naming import LinkerSymbolsStyle  # noqa: F401
from .partial_writer import PartialLinkerWriter  # noqa: F401
from .runtime import Conditions, RuntimeSettings  # noqa: F401
from .script_buffer import ScriptBuffer  # noqa: F401
from .segment import GpInfo, Segment  # noqa: F401
from .settings import Settings  # noqa: F401
from .vram_class import VramClass  # noqa: F401
from .writer import LinkerWriter  # noqa: F401

__all__ = [
    "AssertEntry",
    "RequiredSymbol",
    "SymbolAssignment",
    "Document",
    "LinkScriptError",
    "MissingValueError",
    "EmptyValueError",
    "NullValueError",
    "InvalidFieldComboError",
    "InvalidValueError",
    "UnknownFieldError",
    "DuplicateValueError",
    "MissingVramClassForSegmentError",
    "SubgroupCycleError",
    "MissingCustomOptionError",
    "FailedFileOpenError",
    "FailedYamlParsingError",
    "FailedWriteError",
    "FailedStringConversionError",
    "FileKind",
    "FileInfo",
    "KeepSections",
    "ObjectFile",
    "ArchiveFile",
    "PadEntry",
    "LinkerOffsetEntry",
    "FileGroup",
    "parse_file_info",
    "LinkerSymbolsStyle",
    "PartialLinkerWriter",
    "Conditions",
    "RuntimeSettings",
    "ScriptBuffer",
    "GpInfo",
    "Segment",
    "Settings",
    "VramClass",
    "LinkerWriter",
]

__version__ = "0.1.0"
