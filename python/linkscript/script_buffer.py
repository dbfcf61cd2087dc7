"""Indentation aware line buffer for linker script text."""

from __future__ import annotations

from typing import Dict, List

INDENT = "    "


class ScriptBuffer:
    """Accumulates script lines and remembers every address symbol written.

    Symbols are recorded in the order they are first written; that order is
    what the symbol header lists.
    """

    def __init__(self) -> None:
        self._lines: List[str] = []
        self._indent = 0
        self._linker_symbols: Dict[str, None] = {}

    @property
    def lines(self) -> List[str]:
        return list(self._lines)

    @property
    def linker_symbols(self) -> List[str]:
        return list(self._linker_symbols)

    def is_empty(self) -> bool:
        return not self._lines

    def writeln(self, line: str) -> None:
        self._lines.append(INDENT * self._indent + line)

    def write_empty_line(self) -> None:
        self._lines.append("")

    def begin_block(self) -> None:
        self.writeln("{")
        self._indent += 1

    def end_block(self) -> None:
        if self._indent == 0:
            raise AssertionError("end_block without a matching begin_block")
        self._indent -= 1
        self.writeln("}")

    def finish(self) -> None:
        if self._indent != 0:
            raise AssertionError(f"script finished with {self._indent} unclosed block(s)")

    def register_symbol(self, name: str) -> None:
        self._linker_symbols.setdefault(name, None)

    def write_linker_symbol(self, name: str, value: str) -> None:
        self.writeln(f"{name} = {value};")
        self.register_symbol(name)

    def write_symbol_max_self(self, name: str, other: str) -> None:
        self.writeln(f"{name} = MAX({name}, {other});")

    def align_symbol(self, name: str, alignment: int) -> None:
        self.writeln(f"{name} = ALIGN({name}, 0x{alignment:X});")

    def write_single_entry_section(self, section: str, address: str) -> None:
        self.writeln(f"{section} {address} : {{ *({section}); }}")

    def write_symbol_assignment(self, name: str, value: str, provide: bool, hidden: bool) -> None:
        assignment = f"{name} = {value}"
        if provide and hidden:
            self.writeln(f"PROVIDE_HIDDEN({assignment});")
        elif provide:
            self.writeln(f"PROVIDE({assignment});")
        elif hidden:
            self.writeln(f"HIDDEN({assignment});")
        else:
            self.writeln(f"{assignment};")

    def write_required_symbol(self, name: str) -> None:
        self.writeln(f"EXTERN({name});")

    def write_assert(self, check: str, error_message: str) -> None:
        escaped = error_message.replace("\\", "\\\\").replace('"', '\\"')
        self.writeln(f'ASSERT({check}, "{escaped}");')
