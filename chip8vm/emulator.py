"""Main CHIP-8 emulator execution engine."""

import jax
import jax.lax
import jax.numpy as jnp
import numpy as np
from tqdm import tqdm

from chip8vm.state import EmulatorState
from chip8vm.decode import decode, is_known
from chip8vm.constants import PROGRAM_START, MAX_PROGRAM_SIZE, MEMORY_SIZE, NUM_KEYS, STACK_SIZE
from chip8vm.errors import AddressError, CapacityExceeded, StackOverflow, StackUnderflow, UnknownOpcode
from chip8vm.instructions.system import execute_system_instruction
from chip8vm.instructions.control_flow import (
    execute_jump, execute_call, execute_skip_if_equal_immediate,
    execute_skip_if_not_equal_immediate, execute_skip_if_equal_register,
    execute_skip_if_not_equal_register, execute_jump_with_offset, execute_skip_if_key
)
from chip8vm.instructions.alu import execute_alu_operation
from chip8vm.instructions.memory import execute_set, execute_add, execute_set_index, execute_random
from chip8vm.instructions.display import execute_display
from chip8vm.instructions.misc import execute_misc_instruction


@jax.jit
def execute(state: EmulatorState, instruction: int) -> EmulatorState:
    """Execute single CHIP-8 instruction.

    PC is expected to already point past the instruction (see ``fetch``).
    No validation happens here; ``step`` is the checked entry point.
    """
    decoded_instruction = decode(instruction)

    return jax.lax.switch(
        decoded_instruction.opcode,
        [
            execute_system_instruction,
            execute_jump,
            execute_call,
            execute_skip_if_equal_immediate,
            execute_skip_if_not_equal_immediate,
            execute_skip_if_equal_register,
            execute_set,
            execute_add,
            execute_alu_operation,
            execute_skip_if_not_equal_register,
            execute_set_index,
            execute_jump_with_offset,
            execute_random,
            execute_display,
            execute_skip_if_key,
            execute_misc_instruction,
        ],
        state, decoded_instruction
    )


def _pack_u16(high: jnp.uint8, low: jnp.uint8) -> jnp.uint16:
    """Pack two bytes into uint16."""
    return (high.astype(jnp.uint16) << 8) | low.astype(jnp.uint16)


def peek(state: EmulatorState) -> jnp.uint16:
    """Read the instruction at PC without advancing."""
    return _pack_u16(state.memory[state.pc], state.memory[state.pc + 1])


def fetch(state: EmulatorState) -> tuple[EmulatorState, jnp.uint16]:
    """Fetch next instruction from memory."""
    return state.replace(pc=state.pc + 2), peek(state)


@jax.jit
def tick_timers(state: EmulatorState) -> EmulatorState:
    """Count delay and sound timers down by one, stopping at zero."""
    return state.replace(
        delay_timer=jnp.where(state.delay_timer > 0, state.delay_timer - 1, state.delay_timer),
        sound_timer=jnp.where(state.sound_timer > 0, state.sound_timer - 1, state.sound_timer),
    )


def check_instruction(state: EmulatorState, instruction: int) -> None:
    """Raise if ``instruction`` cannot run against ``state``."""
    pc = int(state.pc)
    if not is_known(instruction):
        raise UnknownOpcode(instruction, pc)
    if instruction == 0x00EE and int(state.stack.pointer) == 0:
        raise StackUnderflow(pc)
    if instruction & 0xF000 == 0x2000 and int(state.stack.pointer) >= STACK_SIZE:
        raise StackOverflow(pc)


def is_waiting_for_key(state: EmulatorState, instruction: int) -> bool:
    """FX0A with no key held: the instruction cannot complete yet."""
    return instruction & 0xF0FF == 0xF00A and not bool(jnp.any(state.keypad))


def step(state: EmulatorState, decay_timers: bool = True) -> tuple[EmulatorState, bool]:
    """Run one fetch-decode-execute cycle.

    Returns the new state and whether the instruction completed. A blocked
    FX0A returns the state unchanged with ``False``; the host should update
    the keypad and call ``step`` again. Errors are raised before any state
    change, so PC still points at the faulting instruction.
    """
    pc = int(state.pc)
    if pc + 1 >= MEMORY_SIZE:
        raise AddressError(pc)

    instruction = int(peek(state))
    check_instruction(state, instruction)
    if is_waiting_for_key(state, instruction):
        return state, False

    state, _ = fetch(state)
    state = execute(state, instruction)
    if decay_timers:
        state = tick_timers(state)
    return state, True


def run_cycles(
    state: EmulatorState,
    cycles: int,
    timer_mode: str = "cycle",
    cycles_per_frame: int = 10,
    show_progress: bool = False,
    logger=None,
) -> tuple[EmulatorState, int]:
    """Call ``step`` ``cycles`` times without a display, counting completed instructions.

    With ``timer_mode="frame"`` the timers tick once at the start of every
    ``cycles_per_frame`` cycles instead of after each instruction. Blocked
    cycles still count towards ``cycles`` so a program waiting on a key that
    never arrives terminates.
    """
    decay_per_cycle = timer_mode == "cycle"
    completed_count = 0
    for cycle in tqdm(range(cycles), desc="Emulating", unit="cycle", disable=not show_progress):
        if not decay_per_cycle and cycle % cycles_per_frame == 0:
            state = tick_timers(state)
        if logger is not None:
            logger.log_instruction(state)
        state, completed = step(state, decay_timers=decay_per_cycle)
        completed_count += int(completed)
    return state, completed_count


def load_program(state: EmulatorState, data: bytes) -> EmulatorState:
    """Copy a program image into memory starting at 0x200."""
    if len(data) > MAX_PROGRAM_SIZE:
        raise CapacityExceeded(len(data), MAX_PROGRAM_SIZE)
    rom_array = jnp.array(list(data), dtype=jnp.uint8)
    new_memory = state.memory.at[PROGRAM_START:PROGRAM_START + len(data)].set(rom_array)
    return state.replace(memory=new_memory)


def load_rom(state: EmulatorState, filename: str) -> EmulatorState:
    """Load ROM data into CHIP-8 memory starting at 0x200."""
    with open(filename, 'rb') as f:
        rom_data = f.read()
    return load_program(state, rom_data)


def set_key(state: EmulatorState, key: int, pressed: bool) -> EmulatorState:
    """Mark keypad ``key`` (0x0-0xF) as held or released."""
    if not 0 <= key < NUM_KEYS:
        raise ValueError(f"Keypad has keys 0x0-0xF, got {key}")
    return state.replace(keypad=state.keypad.at[key].set(pressed))


def take_frame(state: EmulatorState) -> tuple[EmulatorState, np.ndarray | None]:
    """Hand a dirty framebuffer to the host and clear the dirty flag.

    Returns ``None`` for the frame when nothing changed since the last call.
    The frame is a read-only copy of the 2048-byte display.
    """
    if not bool(state.dirty):
        return state, None
    frame = np.array(state.display, dtype=np.uint8)
    frame.setflags(write=False)
    return state.replace(dirty=jnp.asarray(False)), frame
