"""
VM Translator Main Module
=========================

This module drives the translation of one or more VM units into a single
Hack assembly file:

    .vm units → Pass 1 (function table) → Bootstrap → Pass 2 (code) → .asm

Usage
-----
Command line:
    $ hackvm Prog.vm              # writes Prog.asm, no bootstrap
    $ hackvm FibonacciElement/    # writes FibonacciElement/FibonacciElement.asm

Programmatic:
    >>> from hackvm.vm import translate_vm
    >>> asm = translate_vm('push constant 7\\npush constant 8\\nadd')

Two-Pass Protocol
-----------------
For a multi-unit run every unit is scanned once to record each
``function`` command in the function table. Only then is the bootstrap
emitted (once), and every unit is scanned again from the beginning to
emit code. The first pass lets calls to functions defined in a later
unit be checked before any code is written; the assembler resolves the
actual addresses.

A single-unit run skips both the first pass and the bootstrap, because a
lone unit is assumed to be part of a larger, externally bootstrapped
program.
"""

import io
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from hackvm.errors import (
    DuplicateFunctionError,
    EmptyInputError,
    InputReadError,
    TranslationError,
    UndefinedFunctionError,
)
from hackvm.vm.codegen import (
    DEFAULT_ENTRY_FUNCTION,
    DEFAULT_STACK_BASE,
    CodeWriter,
    check_push_pop,
)
from hackvm.vm.commands import Command, CommandKind
from hackvm.vm.cross_file_checker import validate_calls, validate_labels
from hackvm.vm.function_table import FunctionTable
from hackvm.vm.parser import VMParser


logger = logging.getLogger(__name__)


VM_EXTENSION = ".vm"
ASM_EXTENSION = ".asm"

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})


# =============================================================================
# Options
# =============================================================================

@dataclass
class TranslatorOptions:
    """
    Translator configuration options.

    Attributes:
        bootstrap: Emit the bootstrap code. None means automatic: on for
                   multi-unit runs, off for single-unit runs.
        emit_comments: Emit a ``// command`` comment before each template
        strict_calls: Treat calls to undefined functions as errors
        stack_base: Initial SP loaded by the bootstrap
        entry_function: Function the bootstrap calls
        check_labels: Warn about jumps to labels not defined in the unit
    """
    bootstrap: Optional[bool] = None
    emit_comments: bool = True
    strict_calls: bool = False
    stack_base: int = DEFAULT_STACK_BASE
    entry_function: str = DEFAULT_ENTRY_FUNCTION
    check_labels: bool = True

    @classmethod
    def from_env(cls) -> "TranslatorOptions":
        """
        Create TranslatorOptions from environment variables.

        Environment variables (all optional):
            HACKVM_COMMENTS: "0"/"false" to suppress command comments
            HACKVM_STRICT: "1"/"true" to make undefined calls errors
            HACKVM_STACK_BASE: Initial stack pointer (integer)
            HACKVM_ENTRY: Function called by the bootstrap

        Returns:
            TranslatorOptions with values from environment variables
        """
        options = cls()

        if comments := os.environ.get("HACKVM_COMMENTS"):
            options.emit_comments = comments.strip().lower() in _TRUE_VALUES

        if strict := os.environ.get("HACKVM_STRICT"):
            options.strict_calls = strict.strip().lower() in _TRUE_VALUES

        if stack_base := os.environ.get("HACKVM_STACK_BASE"):
            try:
                options.stack_base = int(stack_base)
            except ValueError:
                logger.warning(f"Ignoring invalid HACKVM_STACK_BASE: {stack_base!r}")

        if entry := os.environ.get("HACKVM_ENTRY"):
            options.entry_function = entry

        return options


# =============================================================================
# Source Units and Results
# =============================================================================

@dataclass
class SourceUnit:
    """
    One VM input unit.

    Attributes:
        name: Unit name (file stem); prefixes the unit's static variables
        source: VM source text
        path: File the source was read from, if any
    """
    name: str
    source: str
    path: Optional[Path] = None

    @classmethod
    def from_file(cls, path: str | Path) -> "SourceUnit":
        """
        Read a unit from disk.

        Raises:
            InputReadError: If the file cannot be read or is not UTF-8
        """
        path = Path(path)
        try:
            source = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise InputReadError.from_exception(str(path), e) from e
        return cls(name=path.stem, source=source, path=path)

    @property
    def filename(self) -> str:
        return self.path.name if self.path else f"{self.name}{VM_EXTENSION}"

    def scanner(self) -> VMParser:
        """A fresh scanner positioned at the start of the unit."""
        return VMParser(self.source, self.filename)


@dataclass
class TranslationResult:
    """
    Result of a translation run.

    Attributes:
        units: Unit names in translation order
        function_table: Functions found in pass 1 (empty for single units)
        bootstrap_emitted: Whether the bootstrap code was written
        warnings: Diagnostics that did not stop translation
        command_count: Number of VM commands translated
        output_path: File written, when translating to a file
        assembly: Assembly text, when translating to a string
    """
    units: list[str] = field(default_factory=list)
    function_table: FunctionTable = field(default_factory=FunctionTable)
    bootstrap_emitted: bool = False
    warnings: list[str] = field(default_factory=list)
    command_count: int = 0
    output_path: Optional[Path] = None
    assembly: Optional[str] = None


# =============================================================================
# Input Discovery
# =============================================================================

def find_vm_files(directory: str | Path) -> list[Path]:
    """
    List the .vm files in a directory, sorted by name.

    Raises:
        EmptyInputError: If the directory holds no .vm files
    """
    directory = Path(directory)
    files = sorted(
        p for p in directory.iterdir()
        if p.is_file() and p.suffix.lower() == VM_EXTENSION
    )
    if not files:
        raise EmptyInputError(str(directory))
    return files


def resolve_output_path(input_path: str | Path) -> Path:
    """
    Output file for an input file or directory.

    Examples:
        Prog.vm          → Prog.asm
        StaticsTest/     → StaticsTest/StaticsTest.asm
    """
    input_path = Path(input_path)
    if input_path.is_dir():
        name = input_path.resolve().name
        return input_path / f"{name}{ASM_EXTENSION}"
    return input_path.with_suffix(ASM_EXTENSION)


def load_units(input_path: str | Path) -> list[SourceUnit]:
    """
    Load the units named by a file or directory path.

    Raises:
        FileNotFoundError: If the path does not exist
        TranslationError: If a file argument is not a .vm file
        EmptyInputError: If a directory holds no .vm files
    """
    input_path = Path(input_path)
    if not input_path.exists():
        raise FileNotFoundError(f"No such file or directory: '{input_path}'")

    if input_path.is_dir():
        logger.info(f"Processing directory: {input_path}")
        return [SourceUnit.from_file(p) for p in find_vm_files(input_path)]

    if input_path.suffix.lower() != VM_EXTENSION:
        raise TranslationError(
            f"input file must have a {VM_EXTENSION} extension: {input_path}"
        )
    return [SourceUnit.from_file(input_path)]


def check_memory_access(commands: list[Command]) -> None:
    """
    Validate the segment and index of every push and pop.

    Raises:
        SegmentError: Unknown segment, or pop to constant
        IndexRangeError: Index outside the segment's domain
    """
    for command in commands:
        if command.kind in (CommandKind.PUSH, CommandKind.POP):
            check_push_pop(
                command.kind,
                command.arg1,
                command.arg2,
                location=command.location,
                source_line=command.text,
            )


# =============================================================================
# Translator
# =============================================================================

class VMTranslator:
    """
    Translates VM units to Hack assembly.

    Example:
        translator = VMTranslator()
        result = translator.translate_path("FunctionCalls/StaticsTest")
        print(result.output_path)

    Attributes:
        options: Translator configuration options
    """

    def __init__(self, options: Optional[TranslatorOptions] = None):
        self.options = options or TranslatorOptions()

    # =========================================================================
    # Public Interface
    # =========================================================================

    def translate_path(
        self,
        input_path: str | Path,
        output_path: Optional[str | Path] = None,
    ) -> TranslationResult:
        """
        Translate a .vm file or a directory of .vm files to one .asm file.

        Args:
            input_path: A .vm file or a directory
            output_path: Output file (default: see resolve_output_path)

        Returns:
            TranslationResult describing the run
        """
        units = load_units(input_path)
        if output_path is None:
            output_path = resolve_output_path(input_path)
        output_path = Path(output_path)

        result = self._prepare(units)
        with CodeWriter.open(
            output_path,
            emit_comments=self.options.emit_comments,
            stack_base=self.options.stack_base,
        ) as writer:
            self._emit(units, writer, result)

        result.output_path = output_path
        logger.info(f"Wrote {output_path}")
        return result

    def translate_units(self, units: list[SourceUnit]) -> TranslationResult:
        """Translate in-memory units; the assembly is returned in the result."""
        result = self._prepare(units)
        output = io.StringIO()
        writer = CodeWriter(
            output,
            emit_comments=self.options.emit_comments,
            stack_base=self.options.stack_base,
        )
        try:
            self._emit(units, writer, result)
            result.assembly = output.getvalue()
        finally:
            writer.close()
        return result

    def collect_functions(self, units: list[SourceUnit]) -> FunctionTable:
        """
        Pass 1: record every ``function`` command of every unit.

        Returns:
            The frozen function table

        Raises:
            DuplicateFunctionError: If a function is defined twice
        """
        table = FunctionTable()
        for unit in units:
            logger.info(f"First pass looking for functions in: {unit.filename}")
            scanner = unit.scanner()
            while scanner.has_more_commands():
                scanner.advance()
                if scanner.command_type() is CommandKind.FUNCTION:
                    name = scanner.arg1()
                    if table.contains(name):
                        raise DuplicateFunctionError(name, table.lookup(name), unit.name)
                    table.add(name, unit.name)

        logger.debug(f"Function table:\n{table.dump()}")
        return table.freeze()

    # =========================================================================
    # Translation Steps
    # =========================================================================

    def _should_bootstrap(self, units: list[SourceUnit]) -> bool:
        if self.options.bootstrap is not None:
            return self.options.bootstrap
        return len(units) > 1

    def _prepare(self, units: list[SourceUnit]) -> TranslationResult:
        """
        Validate the unit list and run pass 1 and the call checks.

        Runs before the output is opened, so a malformed program (bad
        syntax, unknown segment or out-of-range index) or a duplicate
        function leaves no output file behind.
        """
        if not units:
            raise TranslationError("nothing to translate")

        seen: set[str] = set()
        for unit in units:
            if unit.name in seen:
                raise TranslationError(f"unit name '{unit.name}' used twice")
            seen.add(unit.name)

        result = TranslationResult(units=[unit.name for unit in units])
        result.bootstrap_emitted = self._should_bootstrap(units)

        if len(units) == 1:
            # Still scan once so syntax errors surface before output is opened
            commands = units[0].scanner().parse()
            check_memory_access(commands)
            if self.options.check_labels:
                result.warnings.extend(validate_labels(units[0].name, commands))
            result.function_table.freeze()
        else:
            result.function_table = self.collect_functions(units)
            parsed = [(unit.name, unit.scanner().parse()) for unit in units]
            for _, commands in parsed:
                check_memory_access(commands)

            errors, warnings = validate_calls(
                parsed, result.function_table, strict=self.options.strict_calls
            )
            if errors:
                raise errors[0]
            result.warnings.extend(warnings)

            if result.bootstrap_emitted:
                result.warnings.extend(self._check_entry(result.function_table))

            if self.options.check_labels:
                for name, commands in parsed:
                    result.warnings.extend(validate_labels(name, commands))

        for warning in result.warnings:
            logger.warning(warning)
        return result

    def _check_entry(self, table: FunctionTable) -> list[str]:
        entry = self.options.entry_function
        if table.contains(entry):
            return []
        if self.options.strict_calls:
            raise UndefinedFunctionError(entry)
        return [f"warning: bootstrap calls undefined function '{entry}'"]

    def _emit(
        self,
        units: list[SourceUnit],
        writer: CodeWriter,
        result: TranslationResult,
    ) -> None:
        """Bootstrap (if enabled), then pass 2 over every unit."""
        if result.bootstrap_emitted:
            writer.write_init(self.options.entry_function)
        else:
            logger.debug("Skipping bootstrap code")

        for unit in units:
            logger.info(f"Processing file: {unit.filename}")
            writer.set_file_name(unit.name)
            for command in unit.scanner():
                writer.write_command(command)
                result.command_count += 1


# =============================================================================
# Convenience Functions
# =============================================================================

def translate_vm(
    source: str,
    unit_name: str = "Main",
    options: Optional[TranslatorOptions] = None,
) -> str:
    """
    Translate a single VM unit given as text.

    Args:
        source: VM source code
        unit_name: Unit name used for static variables
        options: Translator options (bootstrap is off by default)

    Returns:
        Hack assembly text
    """
    result = VMTranslator(options).translate_units([SourceUnit(unit_name, source)])
    return result.assembly


def translate_commands(
    commands: list[Command],
    unit_name: str = "Main",
    emit_comments: bool = True,
) -> str:
    """Translate already-parsed commands without any driver checks."""
    output = io.StringIO()
    writer = CodeWriter(output, emit_comments=emit_comments)
    writer.set_file_name(unit_name)
    for command in commands:
        writer.write_command(command)
    return output.getvalue()
