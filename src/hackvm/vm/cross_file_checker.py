"""
Cross-Unit Call Checker
=======================

This module validates function calls and jump targets across the units
of a multi-unit translation.

The Hack assembler resolves every label symbolically, so a call to a
function that no unit defines still assembles: the misspelt name just
becomes a variable address and the program jumps into the weeds at run
time. This checker uses the function table built in the first pass to
catch that before any code is written.

Usage
-----
>>> from hackvm.vm.cross_file_checker import validate_calls
>>> errors, warnings = validate_calls(units, table)
>>> for warning in warnings:
...     print(warning)

The ``units`` parameter is a list of (unit name, commands) tuples.
"""

from dataclasses import dataclass
from typing import Optional

from hackvm.errors import SourceLocation, UndefinedFunctionError
from hackvm.vm.commands import Command, CommandKind
from hackvm.vm.function_table import FunctionTable


# =============================================================================
# Collected Call Sites
# =============================================================================

@dataclass
class CallSite:
    """
    One ``call`` command.

    Attributes:
        name: Called function
        n_args: Number of arguments passed
        unit: Unit containing the call
        location: Source location of the call
    """
    name: str
    n_args: int
    unit: str
    location: Optional[SourceLocation] = None


def collect_calls(units: list[tuple[str, list[Command]]]) -> list[CallSite]:
    """Collect every call site, in unit and source order."""
    calls = []
    for unit, commands in units:
        for command in commands:
            if command.kind is CommandKind.CALL:
                calls.append(CallSite(
                    name=command.arg1,
                    n_args=command.arg2,
                    unit=unit,
                    location=command.location,
                ))
    return calls


# =============================================================================
# Validation
# =============================================================================

def validate_calls(
    units: list[tuple[str, list[Command]]],
    table: FunctionTable,
    strict: bool = False,
) -> tuple[list[UndefinedFunctionError], list[str]]:
    """
    Check that every called function is defined by some unit.

    Args:
        units: List of (unit name, commands) tuples
        table: Function table built from the same units
        strict: Report undefined calls as errors instead of warnings

    Returns:
        Tuple of (errors, warnings). Each undefined function is reported
        once, at its first call site.
    """
    errors: list[UndefinedFunctionError] = []
    warnings: list[str] = []
    reported: set[str] = set()

    for call in collect_calls(units):
        if table.contains(call.name) or call.name in reported:
            continue
        reported.add(call.name)

        if strict:
            errors.append(UndefinedFunctionError(call.name, call.location))
        else:
            where = f"{call.location}: " if call.location else f"{call.unit}: "
            warnings.append(
                f"{where}warning: call to undefined function '{call.name}'"
            )

    return errors, warnings


def validate_labels(unit: str, commands: list[Command]) -> list[str]:
    """
    Warn about ``goto`` / ``if-goto`` targets that no ``label`` in the
    same unit defines.
    """
    defined = {
        command.arg1 for command in commands if command.kind is CommandKind.LABEL
    }

    warnings = []
    for command in commands:
        if command.kind in (CommandKind.GOTO, CommandKind.IF):
            if command.arg1 not in defined:
                where = f"{command.location}: " if command.location else f"{unit}: "
                warnings.append(
                    f"{where}warning: jump to undefined label '{command.arg1}'"
                )
    return warnings
