"""
VM Command Model
================

The closed set of VM command kinds, memory segments and arithmetic
operators, plus the immutable Command value produced by the scanner and
consumed by the code generator.

Command Arity
-------------
| Kind       | arg1                 | arg2                |
|------------|----------------------|---------------------|
| ARITHMETIC | operator name        | -                   |
| PUSH / POP | segment name         | index               |
| LABEL      | label name           | -                   |
| GOTO       | label name           | -                   |
| IF         | label name           | -                   |
| FUNCTION   | function name        | number of locals    |
| CALL       | function name        | number of arguments |
| RETURN     | -                    | -                   |
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional

from hackvm.errors import (
    MissingArgumentError,
    SegmentError,
    SourceLocation,
    UnknownOperatorError,
)


# =============================================================================
# Command Kinds
# =============================================================================

class CommandKind(Enum):
    """The nine VM command kinds."""

    ARITHMETIC = auto()
    PUSH = auto()
    POP = auto()
    LABEL = auto()
    GOTO = auto()
    IF = auto()
    FUNCTION = auto()
    RETURN = auto()
    CALL = auto()

    @property
    def has_arg1(self) -> bool:
        return self is not CommandKind.RETURN

    @property
    def has_arg2(self) -> bool:
        return self in ARG2_KINDS


ARG2_KINDS = frozenset({
    CommandKind.PUSH,
    CommandKind.POP,
    CommandKind.FUNCTION,
    CommandKind.CALL,
})

# Keyword -> kind for every non-arithmetic command
KEYWORDS = {
    "push": CommandKind.PUSH,
    "pop": CommandKind.POP,
    "label": CommandKind.LABEL,
    "goto": CommandKind.GOTO,
    "if-goto": CommandKind.IF,
    "function": CommandKind.FUNCTION,
    "call": CommandKind.CALL,
    "return": CommandKind.RETURN,
}


# =============================================================================
# Memory Segments
# =============================================================================

class Segment(Enum):
    """
    The eight VM memory segments.

    The value is the keyword used in VM source text.
    """

    ARGUMENT = "argument"
    LOCAL = "local"
    STATIC = "static"
    THIS = "this"
    THAT = "that"
    POINTER = "pointer"
    TEMP = "temp"
    CONSTANT = "constant"

    @classmethod
    def parse(
        cls,
        text: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ) -> "Segment":
        """
        Convert a segment keyword to a Segment.

        Raises:
            SegmentError: If the keyword names no segment
        """
        try:
            return cls(text)
        except ValueError:
            raise SegmentError(
                text,
                "unknown segment",
                location=location,
                hint="valid segments are " + ", ".join(s.value for s in cls),
                source_line=source_line,
            ) from None

    @property
    def base_register(self) -> Optional[str]:
        """Base-pointer register for based segments, None otherwise."""
        return SEGMENT_BASE_REGISTERS.get(self)

    def index_range(self) -> tuple[int, Optional[int]]:
        """Inclusive (low, high) index domain; high is None when unbounded."""
        return SEGMENT_INDEX_RANGES.get(self, (0, None))


SEGMENT_BASE_REGISTERS = {
    Segment.ARGUMENT: "ARG",
    Segment.LOCAL: "LCL",
    Segment.THIS: "THIS",
    Segment.THAT: "THAT",
}

# Physical RAM address of temp 0
TEMP_BASE = 5

# Largest value an A-instruction can load
MAX_CONSTANT = 32767

SEGMENT_INDEX_RANGES = {
    Segment.CONSTANT: (0, MAX_CONSTANT),
    Segment.POINTER: (0, 1),
    Segment.TEMP: (0, 7),
}


# =============================================================================
# Arithmetic / Logical Operators
# =============================================================================

class ArithmeticOp(Enum):
    """
    The nine arithmetic/logical stack operators.

    The value is the keyword used in VM source text.
    """

    ADD = "add"
    SUB = "sub"
    NEG = "neg"
    EQ = "eq"
    GT = "gt"
    LT = "lt"
    AND = "and"
    OR = "or"
    NOT = "not"

    @classmethod
    def parse(
        cls,
        text: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ) -> "ArithmeticOp":
        """
        Convert an operator keyword to an ArithmeticOp.

        Raises:
            UnknownOperatorError: If the keyword names no operator
        """
        try:
            return cls(text)
        except ValueError:
            raise UnknownOperatorError(
                text, location=location, source_line=source_line
            ) from None

    @property
    def is_unary(self) -> bool:
        return self in (ArithmeticOp.NEG, ArithmeticOp.NOT)

    @property
    def is_comparison(self) -> bool:
        return self in (ArithmeticOp.EQ, ArithmeticOp.GT, ArithmeticOp.LT)


# =============================================================================
# Command Value
# =============================================================================

@dataclass(frozen=True)
class Command:
    """
    A single parsed VM command.

    Use the ``arg1`` / ``arg2`` properties rather than the raw fields: they
    enforce the arity table above and raise MissingArgumentError when an
    argument is requested from a kind that does not carry it.

    Attributes:
        kind: The command kind
        name: arg1 text (operator, segment, label or function name)
        index: arg2 value (index, local count or argument count)
        location: Where the command appears in its source unit
        text: The comment-stripped source line
    """
    kind: CommandKind
    name: Optional[str] = None
    index: Optional[int] = None
    location: Optional[SourceLocation] = None
    text: Optional[str] = None

    @property
    def arg1(self) -> str:
        if not self.kind.has_arg1 or self.name is None:
            raise MissingArgumentError(
                f"'{self._keyword}' command has no first argument",
                location=self.location,
                source_line=self.text,
            )
        return self.name

    @property
    def arg2(self) -> int:
        if not self.kind.has_arg2 or self.index is None:
            raise MissingArgumentError(
                f"'{self._keyword}' command has no second argument",
                location=self.location,
                source_line=self.text,
            )
        return self.index

    @property
    def segment(self) -> Segment:
        """arg1 as a Segment (push/pop only)."""
        return Segment.parse(self.arg1, self.location, self.text)

    @property
    def operator(self) -> ArithmeticOp:
        """arg1 as an ArithmeticOp (arithmetic only)."""
        return ArithmeticOp.parse(self.arg1, self.location, self.text)

    @property
    def _keyword(self) -> str:
        if self.kind is CommandKind.ARITHMETIC:
            return self.name or "arithmetic"
        for keyword, kind in KEYWORDS.items():
            if kind is self.kind:
                return keyword
        return self.kind.name.lower()

    def __str__(self) -> str:
        if self.kind is CommandKind.ARITHMETIC or self.kind is CommandKind.RETURN:
            return self._keyword
        if self.kind.has_arg2:
            return f"{self._keyword} {self.name} {self.index}"
        return f"{self._keyword} {self.name}"


# =============================================================================
# Convenience Constructors
# =============================================================================

def arithmetic(op: str | ArithmeticOp) -> Command:
    name = op.value if isinstance(op, ArithmeticOp) else op
    return Command(CommandKind.ARITHMETIC, name)


def push(segment: str | Segment, index: int) -> Command:
    name = segment.value if isinstance(segment, Segment) else segment
    return Command(CommandKind.PUSH, name, index)


def pop(segment: str | Segment, index: int) -> Command:
    name = segment.value if isinstance(segment, Segment) else segment
    return Command(CommandKind.POP, name, index)
