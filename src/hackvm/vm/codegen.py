"""
Hack Code Generator for VM Commands
===================================

This module emits Hack assembly for VM commands, one fixed template per
command kind. It is the core of the translator.

Memory Layout
-------------
| Address     | Name       | Usage                                   |
|-------------|------------|-----------------------------------------|
| RAM[0]      | SP         | Address of the next free stack slot     |
| RAM[1]      | LCL        | Base of the current function's locals   |
| RAM[2]      | ARG        | Base of the current function's args     |
| RAM[3]      | THIS       | Base of the this segment (heap)         |
| RAM[4]      | THAT       | Base of the that segment (heap)         |
| RAM[5-12]   | temp       | The temp segment                        |
| RAM[13-15]  | R13-R15    | Scratch registers used by the templates |
| RAM[16-255] |            | Static variables (``<unit>.<index>``)   |
| RAM[256-]   |            | Stack, growing upward                   |

Scratch Register Usage
----------------------
| Register | Usage                                                  |
|----------|--------------------------------------------------------|
| R13      | Pop destination address; frame pointer during return   |
| R14      | Return address during return                           |

Stack Frame Layout
------------------
``call f n`` leaves this frame behind, after which f's prologue pushes
its locals at LCL:

    +-------------------+ <- ARG (caller's pushed arguments)
    | argument 0..n-1   |
    +-------------------+
    | return address    |  frame - 5
    | saved LCL         |  frame - 4
    | saved ARG         |  frame - 3
    | saved THIS        |  frame - 2
    | saved THAT        |  frame - 1
    +-------------------+ <- LCL (frame)
    | local 0..k-1      |
    +-------------------+ <- SP

Booleans
--------
Comparisons produce -1 (0xFFFF, all ones) for true and 0 for false.

Manufactured Labels
-------------------
Comparison operators use ``<OP>_TRUE_<n>`` / ``<OP>_END_<n>`` and call
sites use ``RETURN_ADDRESS_<n>``, where n is the writer's label counter.
The counter starts at 1, is bumped once per comparison and once per call
site, and is never reset, so every manufactured label in one output is
unique however many units are written. Commands that manufacture no
labels (add, push, label, ...) leave the counter alone, so the numbers
in one output may differ from translators that bump it after every
arithmetic command; only uniqueness matters to the assembler.

Usage
-----
>>> import io
>>> out = io.StringIO()
>>> writer = CodeWriter(out)
>>> writer.set_file_name("Main")
>>> writer.write_push_pop(CommandKind.PUSH, "constant", 7)
>>> writer.write_arithmetic("neg")
>>> print(out.getvalue())
"""

import logging
from typing import Optional, TextIO

from hackvm.errors import (
    IndexRangeError,
    SegmentError,
    SourceLocation,
    TranslationError,
)
from hackvm.vm.commands import (
    TEMP_BASE,
    ArithmeticOp,
    Command,
    CommandKind,
    Segment,
)


logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

DEFAULT_STACK_BASE = 256
DEFAULT_ENTRY_FUNCTION = "Sys.init"

# Saved return address + LCL, ARG, THIS, THAT
FRAME_SIZE = 5

# Registers saved by call, in push order; return restores them reversed
SAVED_REGISTERS = ("LCL", "ARG", "THIS", "THAT")

_BINARY_COMPUTATIONS = {
    ArithmeticOp.ADD: "M=M+D",
    ArithmeticOp.SUB: "M=M-D",
    ArithmeticOp.AND: "M=D&M",
    ArithmeticOp.OR: "M=D|M",
}

_UNARY_COMPUTATIONS = {
    ArithmeticOp.NEG: "M=-M",
    ArithmeticOp.NOT: "M=!M",
}

_COMPARISON_JUMPS = {
    ArithmeticOp.EQ: "JEQ",
    ArithmeticOp.GT: "JGT",
    ArithmeticOp.LT: "JLT",
}

_POINTER_REGISTERS = ("THIS", "THAT")


def check_push_pop(
    kind: CommandKind,
    segment: str | Segment,
    index: int,
    location: Optional[SourceLocation] = None,
    source_line: Optional[str] = None,
) -> Segment:
    """
    Validate the operands of a push or pop and return the segment.

    Raises:
        SegmentError: Unknown segment, or pop to constant
        IndexRangeError: Index outside the segment's domain
    """
    if kind not in (CommandKind.PUSH, CommandKind.POP):
        raise ValueError(f"expected PUSH or POP, got {kind}")

    if not isinstance(segment, Segment):
        segment = Segment.parse(segment, location, source_line)

    if kind is CommandKind.POP and segment is Segment.CONSTANT:
        raise SegmentError(
            segment.value,
            "cannot pop to segment",
            location=location,
            hint="constants are not addressable storage",
            source_line=source_line,
        )

    low, high = segment.index_range()
    if index < low or (high is not None and index > high):
        raise IndexRangeError(
            segment.value, index, low, high,
            location=location,
            source_line=source_line,
        )
    return segment


# =============================================================================
# Code Writer
# =============================================================================

class CodeWriter:
    """
    Emits Hack assembly for VM commands into a text stream.

    The writer owns exactly two pieces of mutable state besides the
    stream: the label counter and the name of the unit being translated
    (used to qualify static variables).

    It is a context manager; leaving the ``with`` block closes the
    stream exactly once, on normal exit and on error:

        with CodeWriter.open("Main.asm") as writer:
            writer.set_file_name("Main")
            ...

    Attributes:
        emit_comments: Write a ``// command`` line before each template
        stack_base: Initial SP value used by the bootstrap code
    """

    def __init__(
        self,
        output: TextIO,
        emit_comments: bool = True,
        stack_base: int = DEFAULT_STACK_BASE,
    ):
        """
        Initialize the code writer.

        Args:
            output: Writable text stream; the writer takes ownership of it
            emit_comments: Emit a comment naming each translated command
            stack_base: First stack address, loaded into SP by write_init()
        """
        self._output = output
        self.emit_comments = emit_comments
        self.stack_base = stack_base

        self._file_name: Optional[str] = None
        self._label_counter: int = 1
        self._lines_written: int = 0
        self._closed = False

    @classmethod
    def open(cls, path, **kwargs) -> "CodeWriter":
        """Open ``path`` for writing and return a writer that owns it."""
        output = open(path, "w", encoding="utf-8", newline="\n")
        logger.debug(f"Opened output file: {path}")
        return cls(output, **kwargs)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def set_file_name(self, file_name: str) -> None:
        """Start translating a new unit; qualifies its static variables."""
        self._file_name = file_name
        logger.debug(f"Translating unit: {file_name}")

    @property
    def file_name(self) -> Optional[str]:
        return self._file_name

    @property
    def label_counter(self) -> int:
        """Number that the next manufactured label will use."""
        return self._label_counter

    @property
    def lines_written(self) -> int:
        return self._lines_written

    def close(self) -> None:
        """Close the output stream. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._output.close()
        logger.debug("Closed output stream")

    def __enter__(self) -> "CodeWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # =========================================================================
    # Assembly Output Methods
    # =========================================================================

    def _emit(self, *lines: str) -> None:
        """Emit lines of assembly."""
        for line in lines:
            self._output.write(line)
            self._output.write("\n")
        self._lines_written += len(lines)

    def _emit_comment(self, comment: str) -> None:
        if self.emit_comments:
            self._emit(f"// {comment}")

    def _next_label_number(self) -> int:
        number = self._label_counter
        self._label_counter += 1
        return number

    def _emit_push_d(self) -> None:
        """*SP = D; SP++"""
        self._emit(
            "@SP",
            "A=M",
            "M=D",
            "@SP",
            "M=M+1",
        )

    def _emit_pop_d(self) -> None:
        """SP--; D = *SP"""
        self._emit(
            "@SP",
            "AM=M-1",
            "D=M",
        )

    # =========================================================================
    # Dispatch
    # =========================================================================

    def write_command(self, command: Command) -> None:
        """Translate one parsed command."""
        kind = command.kind

        if kind is CommandKind.ARITHMETIC:
            self.write_arithmetic(command.operator)
        elif kind is CommandKind.PUSH or kind is CommandKind.POP:
            self.write_push_pop(
                kind,
                command.segment,
                command.arg2,
                location=command.location,
                source_line=command.text,
            )
        elif kind is CommandKind.LABEL:
            self.write_label(command.arg1)
        elif kind is CommandKind.GOTO:
            self.write_goto(command.arg1)
        elif kind is CommandKind.IF:
            self.write_if(command.arg1)
        elif kind is CommandKind.FUNCTION:
            self.write_function(command.arg1, command.arg2)
        elif kind is CommandKind.CALL:
            self.write_call(command.arg1, command.arg2)
        elif kind is CommandKind.RETURN:
            self.write_return()
        else:
            raise ValueError(f"unsupported command kind: {kind}")

    # =========================================================================
    # Arithmetic and Logical Commands
    # =========================================================================

    def write_arithmetic(self, operator: str | ArithmeticOp) -> None:
        """
        Write one of the nine arithmetic/logical stack commands.

        Binary operators leave their result in the slot of the deeper
        operand (net depth -1). Unary operators rewrite the top slot in
        place (net depth 0).

        Raises:
            UnknownOperatorError: If ``operator`` is not a known keyword
        """
        if not isinstance(operator, ArithmeticOp):
            operator = ArithmeticOp.parse(operator)

        self._emit_comment(operator.value)

        if operator.is_comparison:
            self._write_comparison(operator)
        elif operator.is_unary:
            self._emit(
                "@SP",
                "A=M-1",
                _UNARY_COMPUTATIONS[operator],
            )
        else:
            self._emit(
                "@SP",
                "AM=M-1",
                "D=M",          # D = y
                "A=A-1",        # A -> x
                _BINARY_COMPUTATIONS[operator],
            )

        logger.debug(f"Wrote arithmetic command: {operator.value}")

    def _write_comparison(self, operator: ArithmeticOp) -> None:
        number = self._next_label_number()
        prefix = operator.name
        true_label = f"{prefix}_TRUE_{number}"
        end_label = f"{prefix}_END_{number}"

        self._emit(
            "@SP",
            "AM=M-1",
            "D=M",
            "A=A-1",
            "D=M-D",            # D = x - y
            f"@{true_label}",
            f"D;{_COMPARISON_JUMPS[operator]}",
            "@SP",
            "A=M-1",
            "M=0",
            f"@{end_label}",
            "0;JMP",
            f"({true_label})",
            "@SP",
            "A=M-1",
            "M=-1",
            f"({end_label})",
        )

    # =========================================================================
    # Memory Access Commands
    # =========================================================================

    def write_push_pop(
        self,
        kind: CommandKind,
        segment: str | Segment,
        index: int,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ) -> None:
        """
        Write a push or pop command.

        Args:
            kind: CommandKind.PUSH or CommandKind.POP
            segment: Segment (or its keyword)
            index: Segment index
            location: Source location for error messages
            source_line: Source text for error messages

        Raises:
            SegmentError: Unknown segment, or pop to constant
            IndexRangeError: Index outside the segment's domain
        """
        segment = check_push_pop(kind, segment, index, location, source_line)
        verb = "push" if kind is CommandKind.PUSH else "pop"

        self._emit_comment(f"{verb} {segment.value} {index}")

        if kind is CommandKind.PUSH:
            self._write_push(segment, index)
        else:
            self._write_pop(segment, index)

        logger.debug(f"Wrote {verb} command: {segment.value} {index}")

    def _write_push(self, segment: Segment, index: int) -> None:
        if segment is Segment.CONSTANT:
            self._emit(
                f"@{index}",
                "D=A",
            )
        elif segment.base_register:
            self._emit(
                f"@{index}",
                "D=A",
                f"@{segment.base_register}",
                "A=M+D",
                "D=M",
            )
        else:
            self._emit(
                f"@{self._direct_address(segment, index)}",
                "D=M",
            )
        self._emit_push_d()

    def _write_pop(self, segment: Segment, index: int) -> None:
        if segment.base_register:
            # The destination needs A to compute, and so does the stack
            # read, so park the destination in R13 first.
            self._emit(
                f"@{index}",
                "D=A",
                f"@{segment.base_register}",
                "D=M+D",
                "@R13",
                "M=D",
            )
            self._emit_pop_d()
            self._emit(
                "@R13",
                "A=M",
                "M=D",
            )
        else:
            self._emit_pop_d()
            self._emit(
                f"@{self._direct_address(segment, index)}",
                "M=D",
            )

    def _direct_address(self, segment: Segment, index: int) -> str:
        """Symbol or address for segments that need no base register."""
        if segment is Segment.STATIC:
            if self._file_name is None:
                raise TranslationError(
                    "static segment used before set_file_name() was called"
                )
            return f"{self._file_name}.{index}"
        if segment is Segment.TEMP:
            return str(TEMP_BASE + index)
        if segment is Segment.POINTER:
            return _POINTER_REGISTERS[index]
        raise ValueError(f"segment {segment.value} has no direct address")

    # =========================================================================
    # Program Flow Commands
    # =========================================================================

    def write_label(self, label: str) -> None:
        self._emit_comment(f"label {label}")
        self._emit(f"({label})")

    def write_goto(self, label: str) -> None:
        self._emit_comment(f"goto {label}")
        self._emit(
            f"@{label}",
            "0;JMP",
        )

    def write_if(self, label: str) -> None:
        """Pop the top of stack and jump to ``label`` if it is non-zero."""
        self._emit_comment(f"if-goto {label}")
        self._emit_pop_d()
        self._emit(
            f"@{label}",
            "D;JNE",
        )

    # =========================================================================
    # Function Commands
    # =========================================================================

    def write_function(self, name: str, n_locals: int) -> None:
        """Emit the function's entry label and zero its locals."""
        self._emit_comment(f"function {name} {n_locals}")
        self._emit(f"({name})")
        for _ in range(n_locals):
            self._emit(
                "@SP",
                "A=M",
                "M=0",
                "@SP",
                "M=M+1",
            )
        logger.debug(f"Wrote function {name} with {n_locals} locals")

    def write_call(self, name: str, n_args: int) -> None:
        """
        Emit a call site.

        Order: push return address, push LCL/ARG/THIS/THAT,
        ARG = SP - n - 5, LCL = SP, jump, return label.
        """
        return_label = f"RETURN_ADDRESS_{self._next_label_number()}"

        self._emit_comment(f"call {name} {n_args}")

        self._emit(
            f"@{return_label}",
            "D=A",
        )
        self._emit_push_d()

        for register in SAVED_REGISTERS:
            self._emit(
                f"@{register}",
                "D=M",
            )
            self._emit_push_d()

        self._emit(
            "@SP",
            "D=M",
            f"@{n_args + FRAME_SIZE}",
            "D=D-A",
            "@ARG",
            "M=D",          # ARG = SP - n - 5
            "@SP",
            "D=M",
            "@LCL",
            "M=D",          # LCL = SP
            f"@{name}",
            "0;JMP",
            f"({return_label})",
        )
        logger.debug(f"Wrote call {name} {n_args} ({return_label})")

    def write_return(self) -> None:
        """
        Emit a return.

        The frame pointer and return address are copied to R13/R14 before
        anything is restored: the return value overwrites *ARG, which is
        the return address slot when the callee took no arguments, and
        LCL is itself one of the restored registers.
        """
        self._emit_comment("return")
        self._emit(
            "@LCL",
            "D=M",
            "@R13",
            "M=D",          # frame = LCL
            f"@{FRAME_SIZE}",
            "A=D-A",
            "D=M",
            "@R14",
            "M=D",          # return address = *(frame - 5)
        )
        self._emit_pop_d()
        self._emit(
            "@ARG",
            "A=M",
            "M=D",          # *ARG = pop()
            "@ARG",
            "D=M+1",
            "@SP",
            "M=D",          # SP = ARG + 1
        )
        for register in reversed(SAVED_REGISTERS):
            self._emit(
                "@R13",
                "AM=M-1",
                "D=M",
                f"@{register}",
                "M=D",
            )
        self._emit(
            "@R14",
            "A=M",
            "0;JMP",
        )
        logger.debug("Wrote return")

    # =========================================================================
    # Bootstrap
    # =========================================================================

    def write_init(self, entry: str = DEFAULT_ENTRY_FUNCTION) -> None:
        """
        Emit the bootstrap code: SP = stack base, then ``call entry 0``.

        The driver emits this at most once per output file.
        """
        self._emit_comment("bootstrap")
        self._emit(
            f"@{self.stack_base}",
            "D=A",
            "@SP",
            "M=D",
        )
        self.write_call(entry, 0)
        logger.debug(f"Wrote bootstrap (SP={self.stack_base}, entry={entry})")
