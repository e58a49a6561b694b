"""CHIP-8 instruction decoding."""

from chex import dataclass

SYSTEM_OPERATIONS = frozenset({0x00E0, 0x00EE})
ALU_OPERATIONS = frozenset({0x0, 0x1, 0x2, 0x3, 0x4, 0x5, 0x6, 0x7, 0xE})
KEY_OPERATIONS = frozenset({0x9E, 0xA1})
MISC_OPERATIONS = frozenset({0x07, 0x0A, 0x15, 0x18, 0x1E, 0x29, 0x33, 0x55, 0x65})


@dataclass(frozen=True)
class DecodedInstruction:
    """Decoded CHIP-8 instruction with extracted operands."""
    raw: int
    opcode: int  # First nibble
    x: int       # Second nibble (VX register)
    y: int       # Third nibble (VY register)
    n: int       # Fourth nibble (4-bit immediate)
    nn: int      # Last byte (8-bit immediate)
    nnn: int     # Last 12 bits (12-bit address)


def decode(instruction: int) -> DecodedInstruction:
    """Decode 16-bit instruction into components."""
    return DecodedInstruction(
        raw=instruction,
        opcode=(instruction & 0xF000) >> 12,
        x=(instruction & 0x0F00) >> 8,
        y=(instruction & 0x00F0) >> 4,
        n=instruction & 0x000F,
        nn=instruction & 0x00FF,
        nnn=instruction & 0x0FFF
    )


def is_known(instruction: int) -> bool:
    """Whether a concrete 16-bit instruction maps to a CHIP-8 operation.

    Families 0, 8, E and F select their operation from the low bits; every
    other family is fully determined by its first nibble.
    """
    family = (instruction & 0xF000) >> 12
    if family == 0x0:
        return instruction in SYSTEM_OPERATIONS
    if family == 0x8:
        return (instruction & 0x000F) in ALU_OPERATIONS
    if family == 0xE:
        return (instruction & 0x00FF) in KEY_OPERATIONS
    if family == 0xF:
        return (instruction & 0x00FF) in MISC_OPERATIONS
    return True
