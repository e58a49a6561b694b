"""Errors raised by the CHIP-8 interpreter and its host.

Every error is terminal for the run: the interpreter never skips over a
faulting instruction, and the host reports the error and exits.
"""


class Chip8Error(Exception):
    """Base class for all emulator errors."""


class CapacityExceeded(Chip8Error):
    """Program image does not fit in the program region of memory."""

    def __init__(self, size: int, capacity: int):
        self.size = size
        self.capacity = capacity
        super().__init__(f"ROM is {size} bytes, program memory holds at most {capacity}")


class UnknownOpcode(Chip8Error):
    """Fetched instruction does not decode to any known operation."""

    def __init__(self, opcode: int, pc: int):
        self.opcode = opcode
        self.pc = pc
        super().__init__(f"Unknown opcode 0x{opcode:04X} at 0x{pc:03X}")


class StackOverflow(Chip8Error):
    """Subroutine call with all stack entries in use."""

    def __init__(self, pc: int):
        self.pc = pc
        super().__init__(f"Stack overflow on call at 0x{pc:03X}")


class StackUnderflow(Chip8Error):
    """Return from subroutine with an empty stack."""

    def __init__(self, pc: int):
        self.pc = pc
        super().__init__(f"Stack underflow on return at 0x{pc:03X}")


class AddressError(Chip8Error):
    """Program counter points past the last complete instruction in memory."""

    def __init__(self, pc: int):
        self.pc = pc
        super().__init__(f"Instruction fetch out of memory at 0x{pc:03X}")


class ConfigError(Chip8Error):
    """Invalid emulator configuration."""
