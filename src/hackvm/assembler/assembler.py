"""
Hack Assembler
==============

Converts Hack assembly (as written by the VM translator) into 16-bit
machine words.

Pass 1 (Symbol Collection)
--------------------------
- Strip comments and whitespace
- Record each ``(LABEL)`` at the address of the next instruction
- Reject a label defined twice

Pass 2 (Code Generation)
------------------------
- Encode A-instructions, resolving symbols; an unknown symbol becomes a
  variable allocated from RAM[16] upward in order of first use
- Encode C-instructions from the tables in opcodes.py

Output Formats
--------------
- List of ints (``assemble``)
- ``.hack`` text: one 16-character binary string per line (``to_hack``)

Example
-------
>>> from hackvm.assembler import Assembler
>>> asm = Assembler()
>>> asm.assemble('''
... @2
... D=A
... @3
... D=D+A
... @0
... M=D
... ''')
[2, 60432, 3, 57488, 0, 58120]
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from hackvm.errors import AsmSyntaxError, InputReadError, SourceLocation
from hackvm.assembler.opcodes import (
    C_INSTRUCTION_PREFIX,
    JUMP_TABLE,
    MAX_ADDRESS,
    PREDEFINED_SYMBOLS,
    VARIABLE_BASE,
    encode_dest,
    lookup_comp,
)


logger = logging.getLogger(__name__)


_SYMBOL_RE = re.compile(r"^[A-Za-z_.$:][A-Za-z0-9_.$:]*$")


# =============================================================================
# Parsed Lines
# =============================================================================

@dataclass(frozen=True)
class AsmLine:
    """
    One instruction or label after comment and whitespace removal.

    Attributes:
        text: Instruction text with all whitespace removed
        location: Where the line appears in the source
        source_line: The raw source line, for error messages
    """
    text: str
    location: SourceLocation
    source_line: str

    @property
    def is_label(self) -> bool:
        return self.text.startswith("(")

    @property
    def is_a_instruction(self) -> bool:
        return self.text.startswith("@")


def clean_lines(source: str, filename: str = "<input>") -> list[AsmLine]:
    """Strip comments and whitespace, dropping empty lines."""
    lines = []
    for number, raw in enumerate(source.splitlines(), start=1):
        code = raw.split("//", 1)[0]
        text = "".join(code.split())
        if not text:
            continue
        column = len(code) - len(code.lstrip()) + 1
        lines.append(AsmLine(text, SourceLocation(filename, number, column), raw.rstrip()))
    return lines


# =============================================================================
# Assembler
# =============================================================================

class Assembler:
    """
    Two-pass Hack assembler.

    Attributes:
        symbols: Symbol table after the last assemble() call
    """

    def __init__(self) -> None:
        self.symbols: dict[str, int] = {}
        self._next_variable = VARIABLE_BASE
        self._code: list[int] = []

    def assemble(self, source: str, filename: str = "<input>") -> list[int]:
        """
        Assemble source text into machine words.

        Raises:
            AsmSyntaxError: On a malformed line or a duplicate label
        """
        lines = clean_lines(source, filename)

        self.symbols = dict(PREDEFINED_SYMBOLS)
        self._next_variable = VARIABLE_BASE

        self._collect_labels(lines)
        self._code = [self._encode(line) for line in lines if not line.is_label]

        logger.debug(
            f"Assembled {len(self._code)} instructions, "
            f"{len(self.symbols) - len(PREDEFINED_SYMBOLS)} user symbols"
        )
        return list(self._code)

    def assemble_file(self, path: str | Path) -> list[int]:
        path = Path(path)
        try:
            source = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise InputReadError.from_exception(str(path), e) from e
        return self.assemble(source, path.name)

    def get_code(self) -> list[int]:
        return list(self._code)

    def label_address(self, name: str) -> Optional[int]:
        return self.symbols.get(name)

    def to_hack(self) -> str:
        """The last assembled program in .hack text format."""
        return "".join(f"{word:016b}\n" for word in self._code)

    def write_hack(self, path: str | Path) -> None:
        Path(path).write_text(self.to_hack(), encoding="utf-8")

    # =========================================================================
    # Pass 1
    # =========================================================================

    def _collect_labels(self, lines: list[AsmLine]) -> None:
        address = 0
        for line in lines:
            if not line.is_label:
                address += 1
                continue

            if not line.text.endswith(")") or len(line.text) < 3:
                raise self._error("malformed label", line)
            name = line.text[1:-1]
            if not _SYMBOL_RE.match(name):
                raise self._error(f"invalid label name '{name}'", line)
            if name in self.symbols:
                raise self._error(
                    f"duplicate label '{name}'", line,
                    hint=f"'{name}' already refers to address {self.symbols[name]}",
                )
            self.symbols[name] = address

    # =========================================================================
    # Pass 2
    # =========================================================================

    def _encode(self, line: AsmLine) -> int:
        if line.is_a_instruction:
            return self._encode_a(line)
        return self._encode_c(line)

    def _encode_a(self, line: AsmLine) -> int:
        operand = line.text[1:]
        if operand.isdigit():
            value = int(operand)
            if value > MAX_ADDRESS:
                raise self._error(
                    f"constant {value} out of range",
                    line,
                    hint=f"A-instructions load 0..{MAX_ADDRESS}",
                )
            return value

        if not _SYMBOL_RE.match(operand):
            raise self._error(f"invalid symbol '{operand}'", line)

        if operand not in self.symbols:
            self.symbols[operand] = self._next_variable
            self._next_variable += 1
        return self.symbols[operand]

    def _encode_c(self, line: AsmLine) -> int:
        text = line.text
        dest, comp, jump = "", text, ""

        if "=" in comp:
            dest, comp = comp.split("=", 1)
        if ";" in comp:
            comp, jump = comp.split(";", 1)

        comp_bits = lookup_comp(comp)
        if comp_bits is None:
            raise self._error(f"unknown computation '{comp}'", line)

        dest_bits = encode_dest(dest)
        if dest_bits is None or ("=" in text and not dest):
            raise self._error(f"invalid destination '{dest}'", line)

        if jump not in JUMP_TABLE or (";" in text and not jump):
            raise self._error(f"unknown jump '{jump}'", line)

        return C_INSTRUCTION_PREFIX | (comp_bits << 6) | (dest_bits << 3) | JUMP_TABLE[jump]

    @staticmethod
    def _error(message: str, line: AsmLine, hint: Optional[str] = None) -> AsmSyntaxError:
        return AsmSyntaxError(
            message,
            location=line.location,
            hint=hint,
            source_line=line.source_line,
        )


# =============================================================================
# Convenience Functions
# =============================================================================

def assemble(source: str, filename: str = "<input>") -> list[int]:
    """Assemble Hack source text into machine words."""
    return Assembler().assemble(source, filename)
