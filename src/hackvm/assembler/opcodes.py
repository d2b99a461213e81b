"""
Hack Instruction Set Definition
===============================

Encoding tables for the 16-bit Hack instruction set.

Instruction Formats
-------------------
A-instruction (load constant or address into A):

    0vvv vvvv vvvv vvvv      @value, value in 0..32767

C-instruction (compute, store, jump):

    111a cccc ccdd djjj      dest=comp;jump

    a     selects A (0) or M (1) as the ALU's second operand
    cccccc  the six ALU control bits zx nx zy ny f no
    ddd   destinations A, D, M
    jjj   jump if out < 0, out == 0, out > 0

Predefined Symbols
------------------
| Symbol   | Value  |
|----------|--------|
| SP       | 0      |
| LCL      | 1      |
| ARG      | 2      |
| THIS     | 3      |
| THAT     | 4      |
| R0-R15   | 0-15   |
| SCREEN   | 16384  |
| KBD      | 24576  |
"""


# =============================================================================
# Limits
# =============================================================================

MAX_ADDRESS = 32767
C_INSTRUCTION_PREFIX = 0b111 << 13

# First RAM address handed out to assembler variables
VARIABLE_BASE = 16


# =============================================================================
# Computation Table (a + zx nx zy ny f no)
# =============================================================================

COMP_TABLE = {
    "0":   0b0101010,
    "1":   0b0111111,
    "-1":  0b0111010,
    "D":   0b0001100,
    "A":   0b0110000,
    "!D":  0b0001101,
    "!A":  0b0110001,
    "-D":  0b0001111,
    "-A":  0b0110011,
    "D+1": 0b0011111,
    "A+1": 0b0110111,
    "D-1": 0b0001110,
    "A-1": 0b0110010,
    "D+A": 0b0000010,
    "D-A": 0b0010011,
    "A-D": 0b0000111,
    "D&A": 0b0000000,
    "D|A": 0b0010101,
    "M":   0b1110000,
    "!M":  0b1110001,
    "-M":  0b1110011,
    "M+1": 0b1110111,
    "M-1": 0b1110010,
    "D+M": 0b1000010,
    "D-M": 0b1010011,
    "M-D": 0b1000111,
    "D&M": 0b1000000,
    "D|M": 0b1010101,
}

# Operand-swapped spellings of the commutative computations
COMP_ALIASES = {
    "A+D": "D+A",
    "M+D": "D+M",
    "A&D": "D&A",
    "M&D": "D&M",
    "A|D": "D|A",
    "M|D": "D|M",
    "1+D": "D+1",
    "1+A": "A+1",
    "1+M": "M+1",
}


# =============================================================================
# Destination and Jump Tables
# =============================================================================

DEST_BITS = {
    "A": 0b100,
    "D": 0b010,
    "M": 0b001,
}

JUMP_TABLE = {
    "":    0b000,
    "JGT": 0b001,
    "JEQ": 0b010,
    "JGE": 0b011,
    "JLT": 0b100,
    "JNE": 0b101,
    "JLE": 0b110,
    "JMP": 0b111,
}


# =============================================================================
# Predefined Symbols
# =============================================================================

PREDEFINED_SYMBOLS = {
    "SP": 0,
    "LCL": 1,
    "ARG": 2,
    "THIS": 3,
    "THAT": 4,
    **{f"R{i}": i for i in range(16)},
    "SCREEN": 16384,
    "KBD": 24576,
}


def lookup_comp(comp: str) -> int | None:
    """Seven-bit a+c field for a computation, or None if unknown."""
    comp = COMP_ALIASES.get(comp, comp)
    return COMP_TABLE.get(comp)


def encode_dest(dest: str) -> int | None:
    """Three-bit destination field, or None if ``dest`` is malformed."""
    bits = 0
    for register in dest:
        bit = DEST_BITS.get(register)
        if bit is None or bits & bit:
            return None
        bits |= bit
    return bits
