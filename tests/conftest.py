"""
Shared Test Fixtures
====================

Helpers that translate VM code, assemble it and run it on the Hack CPU
emulator, so tests can assert on RAM rather than on assembly text.

Single units run without bootstrap code, with the segment pointers set
the way the course test scripts set them:

    SP=256  LCL=300  ARG=400  THIS=3000  THAT=3010
"""

from dataclasses import dataclass

import pytest

from hackvm.assembler import Assembler
from hackvm.emulator import HackCPU
from hackvm.vm.translator import SourceUnit, TranslatorOptions, VMTranslator


# =============================================================================
# Machine Setup
# =============================================================================

STACK_BASE = 256
LCL_BASE = 300
ARG_BASE = 400
THIS_BASE = 3000
THAT_BASE = 3010

MAX_CYCLES = 200_000


@dataclass
class VMRun:
    """A finished run: the CPU, the assembler (for symbols) and the assembly."""
    cpu: HackCPU
    assembler: Assembler
    assembly: str

    @property
    def sp(self) -> int:
        return self.cpu.read(0)

    @property
    def stack(self) -> list[int]:
        return self.cpu.stack(STACK_BASE)

    def static(self, unit: str, index: int) -> int:
        """Signed value of static variable ``<unit>.<index>``."""
        return self.cpu.read_signed(self.assembler.symbols[f"{unit}.{index}"])


def run_unit(source: str, unit: str = "Main", max_cycles: int = MAX_CYCLES) -> VMRun:
    """Translate, assemble and run one unit without bootstrap code."""
    options = TranslatorOptions(emit_comments=False)
    result = VMTranslator(options).translate_units([SourceUnit(unit, source)])

    assembler = Assembler()
    cpu = HackCPU(assembler.assemble(result.assembly))
    cpu.write(0, STACK_BASE)
    cpu.write(1, LCL_BASE)
    cpu.write(2, ARG_BASE)
    cpu.write(3, THIS_BASE)
    cpu.write(4, THAT_BASE)
    cpu.run(max_cycles=max_cycles)
    return VMRun(cpu, assembler, result.assembly)


def run_program(units: dict[str, str], max_cycles: int = MAX_CYCLES) -> VMRun:
    """Translate several units with bootstrap code and run until halted."""
    options = TranslatorOptions(emit_comments=False, bootstrap=True)
    sources = [SourceUnit(name, source) for name, source in units.items()]
    result = VMTranslator(options).translate_units(sources)

    assembler = Assembler()
    cpu = HackCPU(assembler.assemble(result.assembly))
    cpu.run(max_cycles=max_cycles)
    return VMRun(cpu, assembler, result.assembly)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def vm():
    """The run_unit() helper, for tests that execute a single unit."""
    return run_unit


@pytest.fixture
def vm_program():
    """The run_program() helper, for bootstrapped multi-unit runs."""
    return run_program


@pytest.fixture
def vm_dir(tmp_path):
    """
    Factory writing .vm files into a fresh directory.

    Usage:
        path = vm_dir("Prog", Main="...", Sys="...")
    """
    def make(name: str, **units: str):
        directory = tmp_path / name
        directory.mkdir()
        for unit, source in units.items():
            (directory / f"{unit}.vm").write_text(source, encoding="utf-8")
        return directory
    return make


SYS_CALLS_MAIN = """\
// Sys.init calls Main.add(3, 4) and stores the result in Sys.0
function Sys.init 0
push constant 3
push constant 4
call Main.add 2
pop static 0
label SYS_HALT
goto SYS_HALT
"""

MAIN_ADD = """\
function Main.add 0
push argument 0
push argument 1
add
return
"""


@pytest.fixture
def two_unit_program() -> dict[str, str]:
    return {"Main": MAIN_ADD, "Sys": SYS_CALLS_MAIN}
