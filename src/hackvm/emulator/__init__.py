"""
Hack CPU Emulator
=================

Runs assembled Hack programs so translated VM code can be checked by
its effect on RAM rather than by its text.

Usage
-----
>>> from hackvm.assembler import assemble
>>> from hackvm.emulator import HackCPU
>>> cpu = HackCPU(assemble("@7\\nD=A\\n@0\\nM=D"))
>>> cpu.run()
4
>>> cpu.read(0)
7
"""

from hackvm.emulator.cpu import (
    DEFAULT_MAX_CYCLES,
    RAM_SIZE,
    ROM_SIZE,
    CPUState,
    HackCPU,
    to_signed,
)

__all__ = [
    "DEFAULT_MAX_CYCLES",
    "RAM_SIZE",
    "ROM_SIZE",
    "CPUState",
    "HackCPU",
    "to_signed",
]
