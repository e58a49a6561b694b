"""CHIP-8 emulator package."""

from chip8vm.state import EmulatorState, StackState, create_state
from chip8vm.emulator import (
    execute, fetch, peek, step, tick_timers, run_cycles,
    load_program, load_rom, set_key, take_frame,
)
from chip8vm.decode import DecodedInstruction, decode, is_known
from chip8vm.constants import *
from chip8vm.errors import (
    Chip8Error, CapacityExceeded, UnknownOpcode, StackOverflow,
    StackUnderflow, AddressError, ConfigError,
)
from chip8vm.rendering import chip8_display_to_rgb, create_color_scheme

__all__ = [
    "EmulatorState",
    "StackState",
    "create_state",
    "execute",
    "fetch",
    "peek",
    "step",
    "tick_timers",
    "run_cycles",
    "load_program",
    "load_rom",
    "set_key",
    "take_frame",
    "DecodedInstruction",
    "decode",
    "is_known",
    "PROGRAM_START",
    "MAX_PROGRAM_SIZE",
    "FONT_START",
    "SCREEN_WIDTH",
    "SCREEN_HEIGHT",
    "Chip8Error",
    "CapacityExceeded",
    "UnknownOpcode",
    "StackOverflow",
    "StackUnderflow",
    "AddressError",
    "ConfigError",
    "chip8_display_to_rgb",
    "create_color_scheme",
]
