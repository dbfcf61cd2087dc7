"""Exceptions raised while loading a layout document or generating scripts."""

from __future__ import annotations

from typing import Any


class LinkScriptError(Exception):
    """Base class for configuration and output failures."""


class MissingValueError(LinkScriptError):
    def __init__(self, name: str) -> None:
        super().__init__(f"missing required field '{name}'")
        self.name = name


class EmptyValueError(LinkScriptError):
    def __init__(self, name: str) -> None:
        super().__init__(f"field '{name}' must not be empty")
        self.name = name


class NullValueError(LinkScriptError):
    def __init__(self, name: str) -> None:
        super().__init__(f"field '{name}' must not be null")
        self.name = name


class InvalidFieldComboError(LinkScriptError):
    """Two fields that can not be used together were both given."""

    def __init__(self, field1: str, field2: str) -> None:
        super().__init__(f"fields '{field1}' and '{field2}' can not be used together")
        self.field1 = field1
        self.field2 = field2


class InvalidValueError(LinkScriptError):
    def __init__(self, name: str, value: Any) -> None:
        super().__init__(f"invalid value for '{name}': {value!r}")
        self.name = name
        self.value = value


class UnknownFieldError(LinkScriptError):
    def __init__(self, name: str, context: str) -> None:
        super().__init__(f"unknown field '{name}' in {context}")
        self.name = name
        self.context = context


class DuplicateValueError(LinkScriptError):
    def __init__(self, name: str, value: Any) -> None:
        super().__init__(f"duplicate {name}: {value!r}")
        self.name = name
        self.value = value


class MissingVramClassForSegmentError(LinkScriptError):
    def __init__(self, segment: str, vram_class: str) -> None:
        super().__init__(f"segment '{segment}' references unknown vram class '{vram_class}'")
        self.segment = segment
        self.vram_class = vram_class


class SubgroupCycleError(LinkScriptError):
    def __init__(self, segment: str, section: str) -> None:
        super().__init__(f"section '{section}' of segment '{segment}' is expanded inside itself")
        self.segment = segment
        self.section = section


class MissingCustomOptionError(LinkScriptError):
    def __init__(self, key: str) -> None:
        super().__init__(f"path references undefined custom option '{key}'")
        self.key = key


class FailedFileOpenError(LinkScriptError):
    def __init__(self, path: str, description: str) -> None:
        super().__init__(f"failed to open {path}: {description}")
        self.path = path
        self.description = description


class FailedYamlParsingError(LinkScriptError):
    def __init__(self, path: str, description: str) -> None:
        super().__init__(f"failed to parse {path}: {description}")
        self.path = path
        self.description = description


class FailedWriteError(LinkScriptError):
    """Writing to an output sink failed; ``contents`` is what was being written."""

    def __init__(self, description: str, contents: str) -> None:
        super().__init__(f"failed to write {contents!r}: {description}")
        self.description = description
        self.contents = contents


class FailedStringConversionError(LinkScriptError):
    def __init__(self, description: str) -> None:
        super().__init__(f"failed to convert output to text: {description}")
        self.description = description


__all__ = [
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
]
