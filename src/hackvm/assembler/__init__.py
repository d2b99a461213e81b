"""
Hack Assembler
==============

A two-pass assembler for the Hack machine language. It turns the
assembly written by the VM translator into the 16-bit words the Hack
CPU executes, so translated programs can be checked end to end.

Usage
-----
>>> from hackvm.assembler import assemble
>>> words = assemble("@7\\nD=A")
>>> words
[7, 60432]
"""

from hackvm.assembler.assembler import AsmLine, Assembler, assemble, clean_lines
from hackvm.assembler.opcodes import (
    COMP_TABLE,
    JUMP_TABLE,
    PREDEFINED_SYMBOLS,
    VARIABLE_BASE,
    encode_dest,
    lookup_comp,
)

__all__ = [
    "AsmLine",
    "Assembler",
    "assemble",
    "clean_lines",
    "COMP_TABLE",
    "JUMP_TABLE",
    "PREDEFINED_SYMBOLS",
    "VARIABLE_BASE",
    "encode_dest",
    "lookup_comp",
]
