# =============================================================================
# test_cross_file_checker.py - Cross-Unit Call and Label Checking Tests
# =============================================================================
# Tests for the cross-unit call validation feature.
#
# The Hack assembler resolves every symbol, so a call to a function that no
# unit defines still assembles: the name silently becomes a RAM variable and
# the jump goes nowhere useful. The checker uses the function table from the
# first pass to report such calls before any code is written.
#
# Key Feature Behavior:
# ---------------------
# 1. collect_calls(): Gathers every call site with its unit and location
#
# 2. validate_calls(): Reports calls to functions absent from the table,
#    once per function, as warnings or (strict) as UndefinedFunctionError
#
# 3. validate_labels(): Warns about goto/if-goto targets with no matching
#    label in the same unit
# =============================================================================

import pytest

from hackvm.errors import UndefinedFunctionError
from hackvm.vm.cross_file_checker import (
    CallSite,
    collect_calls,
    validate_calls,
    validate_labels,
)
from hackvm.vm.commands import CommandKind
from hackvm.vm.function_table import FunctionTable
from hackvm.vm.parser import parse_source


# =============================================================================
# Helper Functions
# =============================================================================

def parse_units(**sources: str) -> list[tuple[str, list]]:
    """Parse each unit and return (unit name, commands) tuples."""
    return [(name, parse_source(source, f"{name}.vm")) for name, source in sources.items()]


def table_for(units) -> FunctionTable:
    table = FunctionTable()
    for name, commands in units:
        for command in commands:
            if command.kind is CommandKind.FUNCTION:
                table.add(command.arg1, name)
    return table.freeze()


# =============================================================================
# Call Collection
# =============================================================================

class TestCollectCalls:

    def test_collects_in_order(self):
        units = parse_units(
            Main="function Main.main 0\ncall Math.abs 1\ncall Output.print 2",
            Sys="function Sys.init 0\ncall Main.main 0",
        )
        calls = collect_calls(units)
        assert [(c.name, c.n_args, c.unit) for c in calls] == [
            ("Math.abs", 1, "Main"),
            ("Output.print", 2, "Main"),
            ("Main.main", 0, "Sys"),
        ]
        assert str(calls[0].location) == "Main.vm:2:1"

    def test_no_calls(self):
        units = parse_units(Main="push constant 1\nadd")
        assert collect_calls(units) == []

    def test_call_site_dataclass(self):
        site = CallSite("Foo.bar", 0, "Foo")
        assert site.location is None


# =============================================================================
# Call Validation
# =============================================================================

class TestValidateCalls:

    def test_all_defined(self):
        units = parse_units(
            Main="function Main.main 0\ncall Main.helper 0\nreturn\n"
                 "function Main.helper 0\npush constant 0\nreturn",
            Sys="function Sys.init 0\ncall Main.main 0",
        )
        errors, warnings = validate_calls(units, table_for(units))
        assert errors == []
        assert warnings == []

    def test_forward_reference_across_units(self):
        # Sys calls a function defined in a unit that comes later
        units = parse_units(
            Sys="function Sys.init 0\ncall Zed.go 0",
            Zed="function Zed.go 0\npush constant 0\nreturn",
        )
        errors, warnings = validate_calls(units, table_for(units))
        assert errors == warnings == []

    def test_undefined_is_warning(self):
        units = parse_units(Sys="function Sys.init 0\ncall Keyboard.read 0")
        errors, warnings = validate_calls(units, table_for(units))
        assert errors == []
        assert warnings == [
            "Sys.vm:2:1: warning: call to undefined function 'Keyboard.read'"
        ]

    def test_undefined_is_error_when_strict(self):
        units = parse_units(Sys="function Sys.init 0\ncall Keyboard.read 0")
        errors, warnings = validate_calls(units, table_for(units), strict=True)
        assert warnings == []
        assert len(errors) == 1
        assert isinstance(errors[0], UndefinedFunctionError)
        assert errors[0].name == "Keyboard.read"
        assert str(errors[0]).startswith("Sys.vm:2:1:")

    def test_each_function_reported_once(self):
        units = parse_units(
            A="function A.f 0\ncall Gone.g 0\ncall Gone.g 0",
            B="function B.f 0\ncall Gone.g 1",
        )
        _, warnings = validate_calls(units, table_for(units))
        assert len(warnings) == 1
        assert warnings[0].startswith("A.vm:2:1")

    def test_case_sensitive_names(self):
        units = parse_units(
            Main="function Main.main 0\nreturn",
            Sys="function Sys.init 0\ncall main.main 0",
        )
        _, warnings = validate_calls(units, table_for(units))
        assert len(warnings) == 1
        assert "'main.main'" in warnings[0]


# =============================================================================
# Label Validation
# =============================================================================

class TestValidateLabels:

    def test_defined_labels(self):
        commands = parse_source("label LOOP\ngoto LOOP\nif-goto END\nlabel END")
        assert validate_labels("Main", commands) == []

    @pytest.mark.parametrize("jump", ["goto", "if-goto"])
    def test_undefined_label(self, jump):
        commands = parse_source(f"{jump} MISSING", "Main.vm")
        warnings = validate_labels("Main", commands)
        assert warnings == ["Main.vm:1:1: warning: jump to undefined label 'MISSING'"]

    def test_labels_are_per_unit(self):
        units = parse_units(A="label SHARED", B="goto SHARED")
        assert validate_labels(*units[0]) == []
        assert len(validate_labels(*units[1])) == 1
