"""CHIP-8 display operations."""

import jax.numpy as jnp
from chip8vm.state import EmulatorState
from chip8vm.decode import DecodedInstruction
from chip8vm.constants import SCREEN_WIDTH, SCREEN_SIZE, SPRITE_WIDTH, FLAG_REGISTER

# Pre-computed coordinates of every cell of the row-major framebuffer
pixel_index = jnp.arange(SCREEN_SIZE)
xx = pixel_index % SCREEN_WIDTH
yy = pixel_index // SCREEN_WIDTH


def execute_display(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """DXYN - Draw sprite at (VX, VY) with height N.

    Coordinates are not wrapped: sprite pixels falling past the right or
    bottom edge of the screen are clipped.
    """
    sprite_x = jnp.astype(state.V[instruction.x], jnp.int32)
    sprite_y = jnp.astype(state.V[instruction.y], jnp.int32)

    col_offset = xx - sprite_x
    row_offset = yy - sprite_y
    in_sprite = (col_offset >= 0) & (col_offset < SPRITE_WIDTH) & (row_offset >= 0) & (row_offset < instruction.n)

    row_address = jnp.astype(state.I, jnp.int32) + jnp.clip(row_offset, 0, 15)
    sprite_bytes = jnp.astype(state.memory[row_address], jnp.int32)
    sprite_bits = (sprite_bytes >> jnp.clip(7 - col_offset, 0, 7)) & 1
    sprite = jnp.astype(jnp.where(in_sprite, sprite_bits, 0), jnp.uint8)

    collision = jnp.any((state.display & sprite) == 1)
    return state.replace(
        display=state.display ^ sprite,
        V=state.V.at[FLAG_REGISTER].set(jnp.astype(collision, jnp.uint8)),
        dirty=jnp.asarray(True),
    )
