"""
Hack VM SDK Error Hierarchy
===========================

This module defines the exception hierarchy for the entire Hack VM SDK.
All exceptions inherit from HackVMError, allowing callers to catch all
SDK-related errors with a single except clause if desired.

Exception Hierarchy
-------------------
HackVMError (base)
├── VMError (malformed VM programs)
│   ├── VMSyntaxError - unknown command, wrong arity, bad integer
│   ├── SegmentError - unknown segment or pop of constant
│   ├── IndexRangeError - index outside the segment's domain
│   ├── UnknownOperatorError - unknown arithmetic/logical operator
│   └── MissingArgumentError - argument requested where none exists
├── LinkError (cross-unit function resolution)
│   ├── DuplicateFunctionError - function defined in two places
│   └── UndefinedFunctionError - call to a function nobody defines
├── TranslationError (driver-level failures)
│   └── EmptyInputError - directory with no .vm files
├── InputReadError - input file unreadable or not UTF-8
├── AssemblerError (Hack assembler)
│   └── AsmSyntaxError - malformed assembly line
└── EmulatorError (Hack CPU emulator)
    └── ExecutionLimitError - cycle budget exhausted

Error messages follow this format:
    filename:line:column: error: description
        source_line_text
        ^
    hint: suggestion for fixing (when available)
"""

from dataclasses import dataclass
from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class HackVMError(Exception):
    """
    Base exception for all Hack VM SDK errors.

    All exceptions in the SDK inherit from this class, allowing callers
    to catch all SDK-related errors with a single except clause:

        try:
            translator.translate_path("ProgramFlow/FibonacciSeries")
        except HackVMError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    Represents a location in source code for error reporting.

    Attributes:
        filename: Name of the source file (or "<input>" for string input)
        line: Line number (1-indexed)
        column: Column number (1-indexed)
    """
    filename: str
    line: int
    column: int

    def __str__(self) -> str:
        """Format as 'filename:line:column' for error messages."""
        return f"{self.filename}:{self.line}:{self.column}"


class _LocatedError(HackVMError):
    """
    Shared formatting for errors that point into a source file.

    Attributes:
        message: The error description
        location: Where in the source the error occurred (optional)
        hint: A suggestion for fixing the error (optional)
        source_line: The actual source text at the error location (optional)
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        self.source_line = source_line
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """
        Format the error message with location, source context, and hint.

        Example output:
            Main.vm:7:6: error: unknown segment 'locl'
                push locl 0
                     ^
            hint: valid segments are argument, local, static, ...
        """
        parts = []

        if self.location:
            parts.append(f"{self.location}: error: {self.message}")
        else:
            parts.append(f"error: {self.message}")

        if self.source_line is not None and self.location is not None:
            parts.append(f"    {self.source_line}")
            if self.location.column > 0:
                padding = " " * (4 + self.location.column - 1)
                parts.append(f"{padding}^")

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)


# =============================================================================
# VM Program Exceptions
# =============================================================================

class VMError(_LocatedError):
    """
    Base exception for malformed or unsupported VM programs.

    These errors are fatal: translation stops at the first one because
    the emitted assembly would be meaningless past that point.
    """
    pass


class VMSyntaxError(VMError):
    """
    Syntax error in VM source.

    Examples:
        - Unknown command keyword (``psh constant 1``)
        - Wrong number of arguments (``push constant``)
        - Non-integer or negative index (``push local x``)
    """
    pass


class SegmentError(VMError):
    """
    Invalid memory segment for the command.

    Raised for an unknown segment name and for ``pop constant``, since
    constants are not addressable storage.
    """

    def __init__(
        self,
        segment: str,
        reason: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.segment = segment
        self.reason = reason
        super().__init__(
            f"{reason} '{segment}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class IndexRangeError(VMError):
    """
    Segment index outside the segment's valid domain.

    Valid domains:
        constant: 0..32767
        pointer:  0..1
        temp:     0..7
        others:   any non-negative index
    """

    def __init__(
        self,
        segment: str,
        index: int,
        low: int,
        high: Optional[int] = None,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.segment = segment
        self.index = index
        self.low = low
        self.high = high

        if high is None:
            hint = f"{segment} indices must be >= {low}"
        else:
            hint = f"{segment} indices must be in {low}..{high}"

        super().__init__(
            f"invalid {segment} index {index}",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class UnknownOperatorError(VMError):
    """Unknown arithmetic or logical operator."""

    def __init__(
        self,
        operator: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.operator = operator
        super().__init__(
            f"invalid arithmetic command '{operator}'",
            location=location,
            hint="valid operators are add, sub, neg, eq, gt, lt, and, or, not",
            source_line=source_line,
        )


class MissingArgumentError(VMError):
    """
    An argument was requested from a command that does not carry it.

    ``arg2`` only exists for push, pop, function and call; ``return``
    has neither ``arg1`` nor ``arg2``.
    """
    pass


# =============================================================================
# Cross-Unit Link Exceptions
# =============================================================================

class LinkError(HackVMError):
    """Base exception for function resolution across source units."""
    pass


class DuplicateFunctionError(LinkError):
    """
    Function defined more than once in a single translation run.

    Both definitions would emit the same assembly label, so the later
    one would silently shadow the earlier one at assembly time.
    """

    def __init__(self, name: str, first_unit: str, second_unit: str):
        self.name = name
        self.first_unit = first_unit
        self.second_unit = second_unit
        if first_unit == second_unit:
            where = f"twice in '{first_unit}'"
        else:
            where = f"in both '{first_unit}' and '{second_unit}'"
        super().__init__(f"function '{name}' is defined {where}")


class UndefinedFunctionError(LinkError):
    """Call to a function that no unit in the run defines."""

    def __init__(self, name: str, location: Optional[SourceLocation] = None):
        self.name = name
        self.location = location
        prefix = f"{location}: " if location else ""
        super().__init__(f"{prefix}call to undefined function '{name}'")


# =============================================================================
# Driver Exceptions
# =============================================================================

class TranslationError(HackVMError):
    """Base exception for translation driver failures."""
    pass


class EmptyInputError(TranslationError):
    """Input directory contains no .vm files."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"no .vm files found in directory: {path}")


class InputReadError(HackVMError):
    """
    An input file exists but cannot be read as UTF-8 text.

    Attributes:
        path: The file that failed to read
        reason: Short description of the failure
    """

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"cannot read input '{path}': {reason}")

    @classmethod
    def from_exception(cls, path: str, error: Exception) -> "InputReadError":
        if isinstance(error, UnicodeDecodeError):
            bad = error.object[error.start]
            reason = f"not UTF-8 text (byte 0x{bad:02x} at offset {error.start})"
        elif isinstance(error, OSError) and error.strerror:
            reason = error.strerror.lower()
        else:
            reason = str(error)
        return cls(path, reason)


# =============================================================================
# Assembler and Emulator Exceptions
# =============================================================================

class AssemblerError(_LocatedError):
    """Base exception for Hack assembler errors."""
    pass


class AsmSyntaxError(AssemblerError):
    """
    Malformed Hack assembly line.

    Examples:
        - Unknown computation (``D=M*D``)
        - Unknown jump mnemonic (``0;JUMP``)
        - A-instruction constant above 32767
    """
    pass


class EmulatorError(HackVMError):
    """Base exception for Hack CPU emulator errors."""
    pass


class ExecutionLimitError(EmulatorError):
    """The program did not reach its stop condition within the cycle budget."""

    def __init__(self, cycles: int, pc: int):
        self.cycles = cycles
        self.pc = pc
        super().__init__(f"execution limit of {cycles} cycles reached at PC={pc}")
