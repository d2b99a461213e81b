"""
Hack VM Translator
==================

This package translates the stack-based VM language into Hack assembly.

It provides:

- A scanner turning VM text into Command values
- A function table built in a first pass over all units
- A code writer emitting one fixed Hack template per command
- A two-pass driver combining many units into one .asm file
- A cross-unit checker reporting calls to undefined functions

Pipeline
--------
    .vm files → Scanner → Pass 1 (FunctionTable) → Bootstrap → Pass 2 (CodeWriter) → .asm

Usage
-----
>>> from hackvm.vm import translate_vm
>>> asm = translate_vm('''
... push constant 7
... push constant 8
... add
... ''')
>>> print(asm)  # Hack assembly
"""

from hackvm.vm.commands import (
    ArithmeticOp,
    Command,
    CommandKind,
    Segment,
)
from hackvm.vm.parser import VMParser, parse_file, parse_source
from hackvm.vm.function_table import FunctionTable
from hackvm.vm.codegen import CodeWriter
from hackvm.vm.cross_file_checker import (
    CallSite,
    collect_calls,
    validate_calls,
    validate_labels,
)
from hackvm.vm.translator import (
    SourceUnit,
    TranslationResult,
    TranslatorOptions,
    VMTranslator,
    find_vm_files,
    load_units,
    resolve_output_path,
    translate_commands,
    translate_vm,
)

__all__ = [
    # Command model
    "ArithmeticOp",
    "Command",
    "CommandKind",
    "Segment",
    # Scanner
    "VMParser",
    "parse_file",
    "parse_source",
    # Function table
    "FunctionTable",
    # Code generation
    "CodeWriter",
    # Cross-unit checks
    "CallSite",
    "collect_calls",
    "validate_calls",
    "validate_labels",
    # Driver
    "SourceUnit",
    "TranslationResult",
    "TranslatorOptions",
    "VMTranslator",
    "find_vm_files",
    "load_units",
    "resolve_output_path",
    "translate_commands",
    "translate_vm",
]
