"""File descriptors of a segment.

Each kind of entry is its own frozen dataclass holding only the fields that
kind accepts, so a pad entry with a path (or an archive with a pad amount)
can not be represented.  :func:`parse_file_info` is the single place where a
raw record is checked and turned into one of the variants.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import PurePosixPath
from typing import Any, ClassVar, Dict, FrozenSet, Tuple, Union

from .errors import EmptyValueError, InvalidFieldComboError, InvalidValueError
from .fields import FieldReader, coerce_int, coerce_str, coerce_str_map
from .runtime import CONDITION_FIELDS, Conditions
from .settings import Settings

_FILE_FIELDS = (
    "path",
    "kind",
    "subfile",
    "pad_amount",
    "section",
    "linker_offset_name",
    "section_order",
    "dir",
    "files",
    "keep_sections",
) + CONDITION_FIELDS


class FileKind(Enum):
    OBJECT = "object"
    ARCHIVE = "archive"
    PAD = "pad"
    LINKER_OFFSET = "linker_offset"
    GROUP = "group"

    @classmethod
    def from_path(cls, path: str) -> "FileKind":
        return _SUFFIX_KINDS.get(PurePosixPath(path).suffix.lower(), cls.OBJECT)


_SUFFIX_KINDS = {
    ".o": FileKind.OBJECT,
    ".obj": FileKind.OBJECT,
    ".a": FileKind.ARCHIVE,
}


def _coerce_kind(value: Any, name: str) -> FileKind:
    try:
        return FileKind(str(value).lower())
    except ValueError as exc:
        raise InvalidValueError(name, value) from exc


@dataclass(frozen=True)
class KeepSections:
    """Which sections of a file get wrapped in ``KEEP(...)``."""

    all: bool = False
    which: FrozenSet[str] = frozenset()

    @classmethod
    def parse(cls, value: Any, name: str = "keep_sections") -> "KeepSections":
        if isinstance(value, bool):
            return cls(all=value)
        if isinstance(value, (list, tuple)):
            return cls(which=frozenset(coerce_str(item, name) for item in value))
        raise InvalidValueError(name, value)

    def keeps(self, section: str) -> bool:
        return self.all or section in self.which


@dataclass(frozen=True)
class FileEntry:
    conditions: Conditions
    keep_sections: KeepSections

    kind: ClassVar[FileKind]


@dataclass(frozen=True)
class ObjectFile(FileEntry):
    path: str
    section_order: Dict[str, str] = field(default_factory=dict)

    kind: ClassVar[FileKind] = FileKind.OBJECT


@dataclass(frozen=True)
class ArchiveFile(FileEntry):
    path: str
    subfile: str = "*"
    section_order: Dict[str, str] = field(default_factory=dict)

    kind: ClassVar[FileKind] = FileKind.ARCHIVE


@dataclass(frozen=True)
class PadEntry(FileEntry):
    pad_amount: int
    section: str

    kind: ClassVar[FileKind] = FileKind.PAD


@dataclass(frozen=True)
class LinkerOffsetEntry(FileEntry):
    section: str
    linker_offset_name: str

    kind: ClassVar[FileKind] = FileKind.LINKER_OFFSET


@dataclass(frozen=True)
class FileGroup(FileEntry):
    files: Tuple["FileInfo", ...]
    dir: str = ""

    kind: ClassVar[FileKind] = FileKind.GROUP


FileInfo = Union[ObjectFile, ArchiveFile, PadEntry, LinkerOffsetEntry, FileGroup]


def _forbid(reader: FieldReader, name: str, other: str) -> None:
    if reader.has_value(name):
        raise InvalidFieldComboError(name, other)


def _required_path(reader: FieldReader) -> str:
    path = reader.get("path", coerce_str)
    if path == "":
        raise EmptyValueError("path")
    return path


def parse_file_info(raw: Any, settings: Settings) -> FileInfo:
    """Validate one raw file record, failing on the first broken rule."""
    reader = FieldReader(raw, "file", _FILE_FIELDS)

    # A kind can be deduced from the path, so both are resolved together.
    kind = reader.get_non_null_no_default("kind", _coerce_kind)
    if kind is None:
        path = _required_path(reader)
        kind = FileKind.from_path(path)
    elif kind in (FileKind.OBJECT, FileKind.ARCHIVE):
        path = _required_path(reader)
    elif kind in (FileKind.PAD, FileKind.LINKER_OFFSET):
        if reader.has_value("path"):
            raise InvalidFieldComboError("kind: pad or kind: linker_offset", "path")
        path = ""
    else:
        if reader.has_value("path"):
            raise InvalidFieldComboError("kind: group", "path")
        path = ""

    if kind is FileKind.ARCHIVE:
        subfile = reader.get_non_null("subfile", lambda: "*", coerce_str)
    else:
        _forbid(reader, "subfile", "non `kind: archive`")
        subfile = "*"

    if kind is FileKind.PAD:
        pad_amount = reader.get("pad_amount", coerce_int)
    else:
        _forbid(reader, "pad_amount", "non `kind: pad`")
        pad_amount = 0

    if kind in (FileKind.PAD, FileKind.LINKER_OFFSET):
        section = reader.get("section", coerce_str)
    else:
        _forbid(reader, "section", "non `kind: pad or kind: linker_offset`")
        section = ""

    if kind is FileKind.LINKER_OFFSET:
        linker_offset_name = reader.get("linker_offset_name", coerce_str)
    else:
        _forbid(reader, "linker_offset_name", "non `kind: linker_offset`")
        linker_offset_name = ""

    if kind in (FileKind.OBJECT, FileKind.ARCHIVE):
        section_order = reader.get_non_null("section_order", dict, coerce_str_map)
    else:
        _forbid(reader, "section_order", "non `kind: object` or `kind: archive`")
        section_order = {}

    if kind is FileKind.GROUP:
        group_dir = reader.get_non_null("dir", lambda: "", coerce_str)
        raw_files = reader.get("files")
        if not isinstance(raw_files, (list, tuple)):
            raise InvalidValueError("files", raw_files)
        files = tuple(parse_file_info(item, settings) for item in raw_files)
    else:
        _forbid(reader, "dir", "non `kind: group`")
        _forbid(reader, "files", "non `kind: group`")
        group_dir = ""
        files = ()

    common = {
        "conditions": Conditions.from_reader(reader),
        "keep_sections": reader.get_non_null("keep_sections", KeepSections, KeepSections.parse),
    }
    if kind is FileKind.OBJECT:
        return ObjectFile(path=path, section_order=section_order, **common)
    if kind is FileKind.ARCHIVE:
        return ArchiveFile(path=path, subfile=subfile, section_order=section_order, **common)
    if kind is FileKind.PAD:
        return PadEntry(pad_amount=pad_amount, section=section, **common)
    if kind is FileKind.LINKER_OFFSET:
        return LinkerOffsetEntry(section=section, linker_offset_name=linker_offset_name, **common)
    return FileGroup(files=files, dir=group_dir, **common)
