"""
Hack CPU Emulator
=================

Instruction-level emulator for the 16-bit Hack computer, used to run
translated programs and inspect the resulting stack and segments.

The Hack CPU has:
- 16-bit registers: A (address/data), D (data), PC (program counter)
- 32K words of instruction ROM
- 32K words of data RAM (M is RAM[A])

Every instruction takes one cycle. C-instructions drive the real ALU
control bits (zx nx zy ny f no), so an assembled program behaves exactly
as on the reference hardware simulator.

Halting
-------
Hack has no halt instruction. Programs end in a tight loop:

    (END)
    @END
    0;JMP

``run()`` treats reaching such a loop, or running past the last loaded
instruction, as a clean stop.
"""

from dataclasses import dataclass
from typing import Callable, Optional

from hackvm.errors import EmulatorError, ExecutionLimitError


# =============================================================================
# Machine Constants
# =============================================================================

ROM_SIZE = 32768
RAM_SIZE = 32768
WORD_MASK = 0xFFFF

DEFAULT_MAX_CYCLES = 1_000_000

_C_INSTRUCTION = 0x8000
_A_BIT = 0x1000
_DEST_A = 0b100
_DEST_D = 0b010
_DEST_M = 0b001


def to_signed(value: int) -> int:
    """Interpret a 16-bit word as two's complement."""
    value &= WORD_MASK
    return value - 0x10000 if value & 0x8000 else value


# =============================================================================
# CPU State
# =============================================================================

@dataclass
class CPUState:
    """
    CPU register snapshot.

    All values are stored as unsigned 16-bit ints; use to_signed() to
    read them as two's complement.
    """
    a: int = 0
    d: int = 0
    pc: int = 0
    cycles: int = 0


class HackCPU:
    """
    Hack CPU with ROM and RAM.

    Example:
        >>> cpu = HackCPU()
        >>> cpu.load(assemble(asm_text))
        >>> cpu.run(max_cycles=100_000)
        >>> print(cpu.read_signed(256))
    """

    def __init__(self, program: Optional[list[int]] = None):
        self.rom = [0] * ROM_SIZE
        self.ram = [0] * RAM_SIZE
        self.state = CPUState()
        self.program_size = 0

        # on_instruction(pc, instruction) -> bool: return False to stop execution
        self.on_instruction: Optional[Callable[[int, int], bool]] = None

        if program is not None:
            self.load(program)

    # ========================================
    # Register Properties
    # ========================================

    @property
    def a(self) -> int:
        return self.state.a

    @a.setter
    def a(self, value: int) -> None:
        self.state.a = value & WORD_MASK

    @property
    def d(self) -> int:
        return self.state.d

    @d.setter
    def d(self, value: int) -> None:
        self.state.d = value & WORD_MASK

    @property
    def pc(self) -> int:
        return self.state.pc

    @pc.setter
    def pc(self, value: int) -> None:
        self.state.pc = value & WORD_MASK

    @property
    def cycles(self) -> int:
        return self.state.cycles

    # ========================================
    # Loading and Reset
    # ========================================

    def load(self, program: list[int]) -> None:
        """Load machine words into ROM starting at address 0."""
        if len(program) > ROM_SIZE:
            raise EmulatorError(
                f"program of {len(program)} words does not fit in {ROM_SIZE}-word ROM"
            )
        self.rom = [0] * ROM_SIZE
        self.rom[:len(program)] = [word & WORD_MASK for word in program]
        self.program_size = len(program)
        self.reset()

    def reset(self, clear_memory: bool = False) -> None:
        """Reset the registers; RAM is kept unless clear_memory is set."""
        self.state = CPUState()
        if clear_memory:
            self.ram = [0] * RAM_SIZE

    def snapshot(self) -> CPUState:
        return CPUState(self.a, self.d, self.pc, self.cycles)

    # ========================================
    # Memory Access
    # ========================================

    def read(self, address: int) -> int:
        return self.ram[self._check_address(address)]

    def read_signed(self, address: int) -> int:
        return to_signed(self.read(address))

    def write(self, address: int, value: int) -> None:
        self.ram[self._check_address(address)] = value & WORD_MASK

    def stack(self, base: int = 256) -> list[int]:
        """Signed values from the stack base up to (excluding) SP."""
        return [to_signed(v) for v in self.ram[base:self.ram[0]]]

    def _check_address(self, address: int) -> int:
        if not 0 <= address < RAM_SIZE:
            raise EmulatorError(f"RAM address {address} out of range (PC={self.pc})")
        return address

    # ========================================
    # Execution
    # ========================================

    @property
    def halted(self) -> bool:
        """True at the end of the program or on a ``@X / X: 0;JMP`` self-loop."""
        pc = self.pc
        if pc >= self.program_size:
            return True

        word = self.rom[pc]
        if word & _C_INSTRUCTION:
            # Sitting on the jump with A already pointing at the preceding @X
            return pc > 0 and self._is_self_loop(pc - 1) and self.a == pc - 1
        return self._is_self_loop(pc)

    def _is_self_loop(self, address: int) -> bool:
        if address + 1 >= self.program_size:
            return False
        load, jump = self.rom[address], self.rom[address + 1]
        return bool(
            load == address
            and jump & _C_INSTRUCTION
            and jump & 0b111 == 0b111
            and (jump >> 3) & 0b111 == 0
        )

    def step(self) -> None:
        """Execute one instruction."""
        instruction = self.rom[self.pc]

        if not instruction & _C_INSTRUCTION:
            self.a = instruction
            self.pc += 1
            self.state.cycles += 1
            return

        dest = (instruction >> 3) & 0b111
        jump = instruction & 0b111
        address = self.a

        if instruction & _A_BIT:
            y = self.read(address)
        else:
            y = address

        out = self._alu(self.d, y, (instruction >> 6) & 0b111111)

        # M is addressed by A before this instruction updates it
        if dest & _DEST_M:
            self.write(address, out)
        if dest & _DEST_A:
            self.a = out
        if dest & _DEST_D:
            self.d = out

        value = to_signed(out)
        taken = (
            (jump & 0b100 and value < 0)
            or (jump & 0b010 and value == 0)
            or (jump & 0b001 and value > 0)
        )
        self.pc = address if taken else self.pc + 1
        self.state.cycles += 1

    @staticmethod
    def _alu(x: int, y: int, control: int) -> int:
        zx, nx, zy, ny, f, no = ((control >> shift) & 1 for shift in range(5, -1, -1))
        if zx:
            x = 0
        if nx:
            x = ~x & WORD_MASK
        if zy:
            y = 0
        if ny:
            y = ~y & WORD_MASK
        out = (x + y) & WORD_MASK if f else x & y
        if no:
            out = ~out & WORD_MASK
        return out

    def run(
        self,
        max_cycles: int = DEFAULT_MAX_CYCLES,
        until: Optional[Callable[["HackCPU"], bool]] = None,
    ) -> int:
        """
        Run until halted, ``until(cpu)`` is true or a hook stops execution.

        Args:
            max_cycles: Cycle budget for this call
            until: Optional stop predicate checked before each instruction

        Returns:
            Number of cycles executed

        Raises:
            ExecutionLimitError: If the budget runs out first
        """
        executed = 0
        while not self.halted:
            if until is not None and until(self):
                break
            if self.on_instruction is not None:
                if self.on_instruction(self.pc, self.rom[self.pc]) is False:
                    break
            if executed >= max_cycles:
                raise ExecutionLimitError(max_cycles, self.pc)
            self.step()
            executed += 1
        return executed
