"""
Hack VM SDK - Translator Toolchain for the Hack Computer
========================================================

This package translates programs written for the stack-based Hack
virtual machine into Hack assembly, and provides the tools needed to
assemble and run the result.

Main Components
---------------
- **vm**: VM translator (hackvm)
    Converts one .vm file, or a directory of them, to a single .asm file

- **assembler**: Hack assembler (hackasm)
    Converts Hack assembly to 16-bit machine words and .hack text

- **emulator**: Hack CPU emulator
    Runs assembled programs for testing and inspection

Quick Start
-----------
Translate a directory:
    >>> from hackvm.vm import VMTranslator
    >>> result = VMTranslator().translate_path("FunctionCalls/StaticsTest")
    >>> print(result.output_path)

Translate, assemble and run a snippet:
    >>> from hackvm import translate_vm, assemble, HackCPU
    >>> cpu = HackCPU(assemble(translate_vm("push constant 7\\npush constant 8\\nadd")))
    >>> cpu.write(0, 256)
    >>> cpu.run()
    >>> cpu.stack()
    [15]

Or use the command-line tools:
    $ hackvm StaticsTest/
    $ hackasm StaticsTest/StaticsTest.asm

Version History
---------------
1.0.0 - Initial release with translator, assembler and CPU emulator
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from hackvm.errors import (
    HackVMError,
    SourceLocation,
    VMError,
    VMSyntaxError,
    SegmentError,
    IndexRangeError,
    UnknownOperatorError,
    MissingArgumentError,
    LinkError,
    DuplicateFunctionError,
    UndefinedFunctionError,
    TranslationError,
    EmptyInputError,
    InputReadError,
    AssemblerError,
    AsmSyntaxError,
    EmulatorError,
    ExecutionLimitError,
)
from hackvm.vm import (
    CodeWriter,
    FunctionTable,
    TranslatorOptions,
    VMParser,
    VMTranslator,
    translate_vm,
)
from hackvm.assembler import Assembler, assemble
from hackvm.emulator import HackCPU

__all__ = [
    "__version__",
    # Errors
    "HackVMError",
    "SourceLocation",
    "VMError",
    "VMSyntaxError",
    "SegmentError",
    "IndexRangeError",
    "UnknownOperatorError",
    "MissingArgumentError",
    "LinkError",
    "DuplicateFunctionError",
    "UndefinedFunctionError",
    "TranslationError",
    "EmptyInputError",
    "InputReadError",
    "AssemblerError",
    "AsmSyntaxError",
    "EmulatorError",
    "ExecutionLimitError",
    # Translator
    "CodeWriter",
    "FunctionTable",
    "TranslatorOptions",
    "VMParser",
    "VMTranslator",
    "translate_vm",
    # Assembler and emulator
    "Assembler",
    "assemble",
    "HackCPU",
]
