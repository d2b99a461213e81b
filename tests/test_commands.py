"""
Tests for the VM Command Model
==============================

Command kinds, segments, operators and the Command value's argument
accessors.
"""

import pytest

from hackvm.errors import MissingArgumentError, SegmentError, UnknownOperatorError
from hackvm.vm.commands import (
    ArithmeticOp,
    Command,
    CommandKind,
    Segment,
    arithmetic,
    pop,
    push,
)


# =============================================================================
# Command Kinds
# =============================================================================

class TestCommandKind:
    """Arity of each command kind."""

    @pytest.mark.parametrize("kind", [
        CommandKind.PUSH, CommandKind.POP, CommandKind.FUNCTION, CommandKind.CALL,
    ])
    def test_two_argument_kinds(self, kind):
        assert kind.has_arg1
        assert kind.has_arg2

    @pytest.mark.parametrize("kind", [
        CommandKind.ARITHMETIC, CommandKind.LABEL, CommandKind.GOTO, CommandKind.IF,
    ])
    def test_one_argument_kinds(self, kind):
        assert kind.has_arg1
        assert not kind.has_arg2

    def test_return_has_no_arguments(self):
        assert not CommandKind.RETURN.has_arg1
        assert not CommandKind.RETURN.has_arg2


# =============================================================================
# Segments
# =============================================================================

class TestSegment:
    """Segment keywords, base registers and index domains."""

    def test_parse_all_keywords(self):
        for keyword in ("argument", "local", "static", "this", "that",
                        "pointer", "temp", "constant"):
            assert Segment.parse(keyword).value == keyword

    def test_parse_unknown(self):
        with pytest.raises(SegmentError) as excinfo:
            Segment.parse("locl")
        assert excinfo.value.segment == "locl"
        assert "unknown segment 'locl'" in str(excinfo.value)
        assert "valid segments are" in str(excinfo.value)

    def test_keywords_are_case_sensitive(self):
        with pytest.raises(SegmentError):
            Segment.parse("Local")

    @pytest.mark.parametrize("segment, register", [
        (Segment.ARGUMENT, "ARG"),
        (Segment.LOCAL, "LCL"),
        (Segment.THIS, "THIS"),
        (Segment.THAT, "THAT"),
        (Segment.STATIC, None),
        (Segment.TEMP, None),
        (Segment.POINTER, None),
        (Segment.CONSTANT, None),
    ])
    def test_base_register(self, segment, register):
        assert segment.base_register == register

    def test_index_ranges(self):
        assert Segment.CONSTANT.index_range() == (0, 32767)
        assert Segment.POINTER.index_range() == (0, 1)
        assert Segment.TEMP.index_range() == (0, 7)
        assert Segment.LOCAL.index_range() == (0, None)


# =============================================================================
# Operators
# =============================================================================

class TestArithmeticOp:
    """Operator keywords and classification."""

    def test_nine_operators(self):
        assert len(ArithmeticOp) == 9

    def test_unary(self):
        assert {op for op in ArithmeticOp if op.is_unary} == {ArithmeticOp.NEG, ArithmeticOp.NOT}

    def test_comparisons(self):
        assert {op for op in ArithmeticOp if op.is_comparison} == {
            ArithmeticOp.EQ, ArithmeticOp.GT, ArithmeticOp.LT,
        }

    def test_parse_unknown(self):
        with pytest.raises(UnknownOperatorError, match="invalid arithmetic command 'mul'"):
            ArithmeticOp.parse("mul")


# =============================================================================
# Command Value
# =============================================================================

class TestCommand:
    """arg1 / arg2 accessors enforce the arity table."""

    def test_push_arguments(self):
        command = push("local", 3)
        assert command.arg1 == "local"
        assert command.arg2 == 3
        assert command.segment is Segment.LOCAL

    def test_arithmetic_arg1_is_operator(self):
        command = arithmetic(ArithmeticOp.ADD)
        assert command.arg1 == "add"
        assert command.operator is ArithmeticOp.ADD

    def test_arg2_missing_for_label(self):
        command = Command(CommandKind.LABEL, "LOOP")
        with pytest.raises(MissingArgumentError, match="'label' command has no second argument"):
            command.arg2

    def test_arg2_missing_for_arithmetic(self):
        with pytest.raises(MissingArgumentError):
            arithmetic("add").arg2

    def test_return_has_neither_argument(self):
        command = Command(CommandKind.RETURN)
        with pytest.raises(MissingArgumentError):
            command.arg1
        with pytest.raises(MissingArgumentError):
            command.arg2

    def test_commands_are_immutable(self):
        command = pop(Segment.TEMP, 2)
        with pytest.raises(AttributeError):
            command.index = 3

    @pytest.mark.parametrize("command, text", [
        (push("constant", 7), "push constant 7"),
        (pop(Segment.THAT, 1), "pop that 1"),
        (arithmetic("neg"), "neg"),
        (Command(CommandKind.IF, "END"), "if-goto END"),
        (Command(CommandKind.CALL, "Math.max", 2), "call Math.max 2"),
        (Command(CommandKind.RETURN), "return"),
    ])
    def test_str(self, command, text):
        assert str(command) == text
