"""Serialisers for the generated artifacts.

Every writer takes a text stream so the same code backs the ``*_to_string``
and ``*_to_file`` variants on :class:`~linkscript.writer.LinkerWriter`.
"""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Any, Callable, Iterable, Sequence, TextIO, Union

from .errors import FailedFileOpenError, FailedStringConversionError, FailedWriteError
from .settings import Settings

LOGGER = logging.getLogger("linkscript.exporters")

HEADER_GUARD = "HEADER_SYMBOLS_H"


def _write(dst: TextIO, text: str, contents: str) -> None:
    try:
        dst.write(text)
    except UnicodeError as exc:
        raise FailedStringConversionError(str(exc)) from exc
    except OSError as exc:
        raise FailedWriteError(str(exc), contents) from exc


def escape_make_path(path: str) -> str:
    return path.replace(" ", "\\ ")


def write_linker_script(dst: TextIO, lines: Iterable[str]) -> None:
    for line in lines:
        _write(dst, line + "\n", line)


def write_dependencies(dst: TextIO, target_path: str, files_paths: Sequence[str]) -> None:
    """Make rule for the target plus an empty rule per input file."""
    escaped = [escape_make_path(path) for path in files_paths]
    _write(dst, f"{escape_make_path(target_path)}:", target_path)
    for path in escaped:
        _write(dst, f" \\\n    {path}", path)
    _write(dst, "\n\n", "")
    for path in escaped:
        _write(dst, f"{path}:\n", path)


def write_symbol_header(dst: TextIO, symbols: Iterable[str], settings: Settings) -> None:
    _write(dst, f"#ifndef {HEADER_GUARD}\n#define {HEADER_GUARD}\n\n", HEADER_GUARD)
    suffix = "[]" if settings.symbols_header_as_array else ""
    for sym in symbols:
        _write(dst, f"extern {settings.symbols_header_type} {sym}{suffix};\n", sym)
    _write(dst, "\n#endif\n", "#endif")


def render(writer: Callable[..., None], *args: Any) -> str:
    stream = io.StringIO()
    writer(stream, *args)
    return stream.getvalue()


def save(path: Union[str, Path], writer: Callable[..., None], *args: Any) -> None:
    """Create ``path`` (and its parents) and fill it using ``writer``."""
    target = Path(path)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        handle = target.open("w", encoding="utf-8", newline="\n")
    except OSError as exc:
        raise FailedFileOpenError(str(target), str(exc)) from exc
    with handle:
        writer(handle, *args)
    LOGGER.info("wrote %s", target)
