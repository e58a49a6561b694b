"""Tests for the interpreter: init, load, step, timers and host helpers."""

import jax.numpy as jnp
import numpy as np
import pytest
from chip8vm import (
    create_state, load_program, load_rom, fetch, peek, step, tick_timers,
    run_cycles, set_key, take_frame,
    CapacityExceeded, UnknownOpcode, StackOverflow, StackUnderflow, AddressError,
    PROGRAM_START, MAX_PROGRAM_SIZE,
)
from conftest import program, set_registers, pixel


class TestInit:
    """create_state."""

    def test_initial_registers(self, fresh_state):
        assert fresh_state.pc == 0x200
        assert fresh_state.I == 0
        assert fresh_state.stack.pointer == 0
        assert int(fresh_state.V.sum()) == 0
        assert fresh_state.delay_timer == 0
        assert fresh_state.sound_timer == 0
        assert not bool(fresh_state.keypad.any())
        assert not bool(fresh_state.dirty)

    def test_initial_memory(self, fresh_state):
        assert fresh_state.memory.shape == (4096,)
        assert int(fresh_state.memory[PROGRAM_START:].sum()) == 0
        assert fresh_state.display.shape == (2048,)
        assert int(fresh_state.display.sum()) == 0

    def test_states_are_independent(self):
        first = create_state()
        second = create_state()
        first, _ = step(program(first, 0x6042))
        assert second.V[0] == 0
        assert second.pc == 0x200


class TestLoad:
    """load_program / load_rom."""

    def test_load_copies_bytes(self, fresh_state):
        state = load_program(fresh_state, b"\x12\x34\x56")
        assert state.memory[0x200:0x203].tolist() == [0x12, 0x34, 0x56]
        assert state.pc == 0x200
        assert state.memory[0:5].tolist() == fresh_state.memory[0:5].tolist()

    def test_load_exact_capacity(self, fresh_state):
        data = bytes(range(256)) * 14
        assert len(data) == MAX_PROGRAM_SIZE == 3584

        state = load_program(fresh_state, data)

        assert state.memory[0xFFF] == 255
        assert state.memory[0x200] == 0

    def test_load_too_large(self, fresh_state):
        with pytest.raises(CapacityExceeded) as excinfo:
            load_program(fresh_state, bytes(3585))
        assert excinfo.value.size == 3585
        assert excinfo.value.capacity == 3584

    def test_load_empty(self, fresh_state):
        state = load_program(fresh_state, b"")
        assert int(state.memory[PROGRAM_START:].sum()) == 0

    def test_load_rom_from_file(self, fresh_state, tmp_path):
        rom = tmp_path / "test.ch8"
        rom.write_bytes(b"\x00\xE0\x12\x00")

        state = load_rom(fresh_state, str(rom))

        assert state.memory[0x200:0x204].tolist() == [0x00, 0xE0, 0x12, 0x00]

    def test_load_rom_too_large(self, fresh_state, tmp_path):
        rom = tmp_path / "big.ch8"
        rom.write_bytes(bytes(4000))
        with pytest.raises(CapacityExceeded):
            load_rom(fresh_state, str(rom))


class TestFetch:

    def test_fetch_is_big_endian(self, fresh_state):
        state = load_program(fresh_state, b"\xAB\xCD")
        state, instruction = fetch(state)
        assert instruction == 0xABCD
        assert state.pc == 0x202

    def test_peek_does_not_advance(self, fresh_state):
        state = load_program(fresh_state, b"\x60\x01")
        assert peek(state) == 0x6001
        assert state.pc == 0x200


class TestStep:
    """One full cycle."""

    def test_clear_screen_scenario(self, fresh_state):
        """00E0 clears a dirty display, sets dirty and advances PC."""
        state = fresh_state.replace(
            display=jnp.ones_like(fresh_state.display), dirty=jnp.asarray(True)
        )
        state = program(state, 0x00E0)

        state, completed = step(state)

        assert completed
        assert int(state.display.sum()) == 0
        assert bool(state.dirty)
        assert state.pc == 0x202

    def test_add_wraparound_scenario(self, fresh_state):
        """60 0A then 70 FF leaves V0 = 9."""
        state = program(fresh_state, 0x600A, 0x70FF)

        state, _ = step(state)
        state, _ = step(state)

        assert state.V[0] == 9
        assert state.V[15] == 0
        assert state.pc == 0x204

    def test_draw_font_glyph_scenario(self, fresh_state):
        """A000 / D005 draws font glyph 0 at the origin."""
        state = program(fresh_state, 0xA000, 0xD005)

        state, _ = step(state)
        state, _ = step(state)

        assert state.I == 0
        assert [pixel(state, x, 0) for x in range(5)] == [1, 1, 1, 1, 0]
        assert [pixel(state, x, 1) for x in range(5)] == [1, 0, 0, 1, 0]
        assert state.V[15] == 0
        assert bool(state.dirty)

    def test_skip_advances_four(self, fresh_state):
        state = program(fresh_state, 0x3000)  # V0 == 0
        state, _ = step(state)
        assert state.pc == 0x204

    def test_skip_not_taken_advances_two(self, fresh_state):
        state = program(fresh_state, 0x3001)
        state, _ = step(state)
        assert state.pc == 0x202

    def test_jump_sets_pc(self, fresh_state):
        state = program(fresh_state, 0x1234)
        state, _ = step(state)
        assert state.pc == 0x234

    def test_call_and_return(self, fresh_state):
        """Return resumes after the call instruction."""
        state = load_program(fresh_state, bytes.fromhex("2206" "6101" "0000" "6005" "00EE"))

        state, _ = step(state)  # call 0x206
        assert state.pc == 0x206
        state, _ = step(state)  # V0 = 5
        state, _ = step(state)  # return
        assert state.pc == 0x202
        state, _ = step(state)  # V1 = 1

        assert state.V[0] == 5
        assert state.V[1] == 1
        assert state.stack.pointer == 0

    def test_jump_with_offset(self, fresh_state):
        state = program(fresh_state, 0x6004, 0xB300)
        state, _ = step(state)
        state, _ = step(state)
        assert state.pc == 0x304


class TestStepErrors:
    """Faults raise before any state change."""

    @pytest.mark.parametrize("instruction", [0x0000, 0x0123, 0x00E1, 0x8008, 0x800F, 0xE000, 0xE19F, 0xF000, 0xF0FF])
    def test_unknown_opcode(self, fresh_state, instruction):
        state = program(fresh_state, instruction)

        with pytest.raises(UnknownOpcode) as excinfo:
            step(state)

        assert excinfo.value.opcode == instruction
        assert excinfo.value.pc == 0x200

    def test_unknown_opcode_leaves_pc(self, fresh_state):
        state = program(fresh_state, 0x6001, 0xFFFF)
        state, _ = step(state)
        with pytest.raises(UnknownOpcode):
            step(state)
        assert state.pc == 0x202

    def test_stack_underflow(self, fresh_state):
        state = program(fresh_state, 0x00EE)
        with pytest.raises(StackUnderflow) as excinfo:
            step(state)
        assert excinfo.value.pc == 0x200

    def test_stack_overflow(self, fresh_state):
        """Sixteen nested calls fit, the seventeenth raises."""
        state = program(fresh_state, 0x2200)  # calls itself forever
        for _ in range(16):
            state, _ = step(state)
        assert state.stack.pointer == 16

        with pytest.raises(StackOverflow):
            step(state)
        assert state.stack.pointer == 16

    def test_fetch_past_memory(self, fresh_state):
        state = fresh_state.replace(pc=jnp.asarray(0xFFF, dtype=jnp.uint16))
        with pytest.raises(AddressError):
            step(state)

    def test_last_instruction_slot_is_fetchable(self, fresh_state):
        state = fresh_state.replace(
            pc=jnp.asarray(0xFFE, dtype=jnp.uint16),
            memory=fresh_state.memory.at[0xFFE].set(0x60).at[0xFFF].set(0x07),
        )
        state, completed = step(state)
        assert completed
        assert state.V[0] == 7


class TestWaitForKey:
    """FX0A blocks cooperatively."""

    def test_blocks_without_key(self, fresh_state):
        state = program(fresh_state, 0xF30A)
        state = state.replace(delay_timer=jnp.asarray(5, dtype=jnp.uint8))

        new_state, completed = step(state)

        assert not completed
        assert new_state.pc == 0x200
        assert new_state.delay_timer == 5

    def test_resumes_with_lowest_key(self, fresh_state):
        state = program(fresh_state, 0xF30A)
        state, completed = step(state)
        assert not completed

        state = set_key(state, 0xB, True)
        state = set_key(state, 0x4, True)
        state, completed = step(state)

        assert completed
        assert state.V[3] == 4
        assert state.pc == 0x202


class TestTimers:
    """Timer decay."""

    def test_step_decrements_timers(self, fresh_state):
        state = program(fresh_state, 0x6003, 0xF015, 0xF018, 0x1206)
        state, _ = step(state)  # V0 = 3
        state, _ = step(state)  # delay = 3, then decays to 2
        assert state.delay_timer == 2
        state, _ = step(state)  # sound = 3 -> 2, delay -> 1
        assert state.delay_timer == 1
        assert state.sound_timer == 2

    def test_timers_floor_at_zero(self, fresh_state):
        state = tick_timers(fresh_state)
        assert state.delay_timer == 0
        assert state.sound_timer == 0

    def test_tick_timers_independent(self, fresh_state):
        state = fresh_state.replace(
            delay_timer=jnp.asarray(1, dtype=jnp.uint8),
            sound_timer=jnp.asarray(3, dtype=jnp.uint8),
        )
        state = tick_timers(state)
        assert state.delay_timer == 0
        assert state.sound_timer == 2
        state = tick_timers(state)
        assert state.delay_timer == 0
        assert state.sound_timer == 1

    def test_step_without_decay(self, fresh_state):
        state = program(fresh_state, 0x1200)
        state = state.replace(delay_timer=jnp.asarray(9, dtype=jnp.uint8))
        state, _ = step(state, decay_timers=False)
        assert state.delay_timer == 9


class TestHostHelpers:
    """set_key, take_frame, run_cycles."""

    def test_set_key(self, fresh_state):
        state = set_key(fresh_state, 0xF, True)
        assert bool(state.keypad[0xF])
        state = set_key(state, 0xF, False)
        assert not bool(state.keypad.any())

    def test_set_key_out_of_range(self, fresh_state):
        with pytest.raises(ValueError):
            set_key(fresh_state, 16, True)

    def test_take_frame_clean(self, fresh_state):
        state, frame = take_frame(fresh_state)
        assert frame is None

    def test_take_frame_clears_dirty(self, fresh_state):
        state, _ = step(program(fresh_state, 0xA000, 0xD005))
        state, _ = step(state)

        state, frame = take_frame(state)

        assert not bool(state.dirty)
        assert isinstance(frame, np.ndarray)
        assert frame.shape == (2048,)
        assert not frame.flags.writeable
        assert frame[0] == 1
        state, frame = take_frame(state)
        assert frame is None

    def test_run_cycles(self, fresh_state):
        state = program(fresh_state, 0x7001, 0x1200)  # V0 += 1 forever
        state, completed = run_cycles(state, 10)
        assert completed == 10
        assert state.V[0] == 5

    def test_run_cycles_counts_blocked(self, fresh_state):
        state = program(fresh_state, 0xF00A)
        state, completed = run_cycles(state, 4)
        assert completed == 0
        assert state.pc == 0x200

    def test_run_cycles_frame_timers(self, fresh_state):
        state = program(fresh_state, 0x1200)
        state = state.replace(delay_timer=jnp.asarray(10, dtype=jnp.uint8))

        state, _ = run_cycles(state, 12, timer_mode="frame", cycles_per_frame=4)

        assert state.delay_timer == 7

    def test_run_cycles_propagates_errors(self, fresh_state):
        state = program(fresh_state, 0x6001, 0x0000)
        with pytest.raises(UnknownOpcode):
            run_cycles(state, 5)
