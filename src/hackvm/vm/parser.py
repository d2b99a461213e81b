"""
VM Language Scanner
===================

This module turns VM source text into Command values.

The scanner follows the classic streaming contract used by the rest of
the toolchain:

    parser = VMParser(source, "Main.vm")
    while parser.has_more_commands():
        parser.advance()
        kind = parser.command_type()
        ...

and additionally offers ``parse()`` for callers that want the whole unit
as a list.

Syntax
------
- One command per line; blank lines are ignored
- ``//`` starts a comment that runs to end of line
- Tokens are separated by any amount of whitespace
- Integer arguments are non-negative decimal numbers

Segment names and operator keywords are not validated here beyond
recognising the command keyword; the code generator rejects bad segments,
indices and operators with the same located errors.
"""

import re
from pathlib import Path
from typing import Iterator, Optional

from hackvm.errors import (
    InputReadError,
    MissingArgumentError,
    SourceLocation,
    VMSyntaxError,
)
from hackvm.vm.commands import KEYWORDS, ArithmeticOp, Command, CommandKind


# =============================================================================
# Constants
# =============================================================================

COMMENT_MARKER = "//"

_TOKEN_RE = re.compile(r"\S+")

# Total token count (keyword included) for each kind
_EXPECTED_TOKENS = {
    CommandKind.ARITHMETIC: 1,
    CommandKind.RETURN: 1,
    CommandKind.LABEL: 2,
    CommandKind.GOTO: 2,
    CommandKind.IF: 2,
    CommandKind.PUSH: 3,
    CommandKind.POP: 3,
    CommandKind.FUNCTION: 3,
    CommandKind.CALL: 3,
}

_USAGE = {
    CommandKind.LABEL: "label NAME",
    CommandKind.GOTO: "goto NAME",
    CommandKind.IF: "if-goto NAME",
    CommandKind.PUSH: "push SEGMENT INDEX",
    CommandKind.POP: "pop SEGMENT INDEX",
    CommandKind.FUNCTION: "function NAME NLOCALS",
    CommandKind.CALL: "call NAME NARGS",
}

_ARITHMETIC_KEYWORDS = frozenset(op.value for op in ArithmeticOp)


def strip_comment(line: str) -> str:
    """Remove a trailing ``//`` comment and surrounding whitespace."""
    marker = line.find(COMMENT_MARKER)
    if marker != -1:
        line = line[:marker]
    return line.strip()


# =============================================================================
# Scanner
# =============================================================================

class VMParser:
    """
    Scans one VM source unit.

    Attributes:
        source: The VM source text
        filename: Name used in error locations
    """

    def __init__(self, source: str, filename: str = "<input>"):
        self.source = source
        self.filename = filename

        self._lines = source.splitlines()
        self._next_line = 0

        # Line index of the command found by has_more_commands()
        self._pending: Optional[int] = None
        self._current: Optional[Command] = None

    # =========================================================================
    # Streaming Interface
    # =========================================================================

    def has_more_commands(self) -> bool:
        """
        Check whether another command remains.

        Skips blank and comment-only lines. Calling this repeatedly
        without ``advance()`` does not skip commands.
        """
        if self._pending is not None:
            return True

        while self._next_line < len(self._lines):
            index = self._next_line
            self._next_line += 1
            if strip_comment(self._lines[index]):
                self._pending = index
                return True

        return False

    def advance(self) -> None:
        """
        Make the next command current.

        Raises:
            VMSyntaxError: If the next line is malformed, or there is none
        """
        if not self.has_more_commands():
            raise VMSyntaxError(
                "no more commands",
                location=SourceLocation(self.filename, len(self._lines), 0),
            )
        index = self._pending
        self._pending = None
        self._current = self._parse_line(self._lines[index], index + 1)

    def command_type(self) -> CommandKind:
        return self._require_current().kind

    def arg1(self) -> str:
        return self._require_current().arg1

    def arg2(self) -> int:
        return self._require_current().arg2

    @property
    def current(self) -> Command:
        """The most recently advanced command."""
        return self._require_current()

    # =========================================================================
    # Bulk Interface
    # =========================================================================

    def __iter__(self) -> Iterator[Command]:
        while self.has_more_commands():
            self.advance()
            yield self._current

    def parse(self) -> list[Command]:
        """Scan the remaining source and return every command."""
        return list(self)

    # =========================================================================
    # Line Parsing
    # =========================================================================

    def _require_current(self) -> Command:
        if self._current is None:
            raise MissingArgumentError(
                "no current command; call advance() first",
                location=SourceLocation(self.filename, 0, 0),
            )
        return self._current

    def _parse_line(self, raw: str, line_number: int) -> Command:
        text = strip_comment(raw)
        code = raw.split(COMMENT_MARKER, 1)[0]
        matches = list(_TOKEN_RE.finditer(code))
        tokens = [m.group() for m in matches]
        columns = [m.start() + 1 for m in matches]

        def location(position: int = 0) -> SourceLocation:
            return SourceLocation(self.filename, line_number, columns[position])

        keyword = tokens[0]
        if keyword in KEYWORDS:
            kind = KEYWORDS[keyword]
        elif keyword in _ARITHMETIC_KEYWORDS:
            kind = CommandKind.ARITHMETIC
        else:
            raise VMSyntaxError(
                f"unknown command '{keyword}'",
                location=location(),
                hint="expected an arithmetic operator or one of: " + ", ".join(KEYWORDS),
                source_line=text,
            )

        expected = _EXPECTED_TOKENS[kind]
        if len(tokens) != expected:
            if kind in _USAGE:
                hint = f"usage: {_USAGE[kind]}"
            else:
                hint = f"'{keyword}' takes no arguments"
            raise VMSyntaxError(
                f"'{keyword}' expects {expected - 1} argument(s), got {len(tokens) - 1}",
                location=location(),
                hint=hint,
                source_line=text,
            )

        name: Optional[str] = None
        index: Optional[int] = None

        if kind is CommandKind.ARITHMETIC:
            name = keyword
        elif kind is not CommandKind.RETURN:
            name = tokens[1]

        if kind.has_arg2:
            if not (tokens[2].isascii() and tokens[2].isdigit()):
                raise VMSyntaxError(
                    f"expected a non-negative integer, got '{tokens[2]}'",
                    location=location(2),
                    hint=f"usage: {_USAGE[kind]}",
                    source_line=text,
                )
            index = int(tokens[2])

        return Command(
            kind=kind,
            name=name,
            index=index,
            location=location(),
            text=text,
        )


# =============================================================================
# Convenience Functions
# =============================================================================

def parse_source(source: str, filename: str = "<input>") -> list[Command]:
    """Parse VM source text into a list of commands."""
    return VMParser(source, filename).parse()


def parse_file(path: str | Path) -> list[Command]:
    """Read and parse a .vm file."""
    path = Path(path)
    try:
        source = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise InputReadError.from_exception(str(path), e) from e
    return parse_source(source, path.name)
