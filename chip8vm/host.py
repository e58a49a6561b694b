"""Interactive pygame front end for the CHIP-8 emulator."""

import pygame

from chip8vm.config import EmulatorConfig
from chip8vm.constants import SCREEN_WIDTH, SCREEN_HEIGHT
from chip8vm.emulator import step, set_key, take_frame, tick_timers
from chip8vm.logging import EmulatorLogger
from chip8vm.rendering import chip8_display_to_rgb, create_color_scheme
from chip8vm.state import EmulatorState

# Keypad 0x0-0xF laid out over the left side of the keyboard, row by row
KEY_MAP = {
    pygame.K_1: 0x0, pygame.K_2: 0x1, pygame.K_3: 0x2, pygame.K_4: 0x3,
    pygame.K_q: 0x4, pygame.K_w: 0x5, pygame.K_e: 0x6, pygame.K_r: 0x7,
    pygame.K_a: 0x8, pygame.K_s: 0x9, pygame.K_d: 0xA, pygame.K_f: 0xB,
    pygame.K_z: 0xC, pygame.K_x: 0xD, pygame.K_c: 0xE, pygame.K_v: 0xF,
}


def run_emulator(state: EmulatorState, config: EmulatorConfig, logger: EmulatorLogger) -> tuple[EmulatorState, int]:
    """Main emulator loop.

    Runs until the window is closed, ESC is pressed or ``config.max_cycles``
    instructions have been stepped. Interpreter errors propagate to the
    caller after the window is torn down.
    """
    pygame.init()
    try:
        screen = pygame.display.set_mode((SCREEN_WIDTH * config.scale, SCREEN_HEIGHT * config.scale))
        pygame.display.set_caption("CHIP-8")
        clock = pygame.time.Clock()
        on_color, off_color = create_color_scheme(config.color_scheme)
        decay_per_cycle = config.timer_mode == "cycle"

        cycles = 0
        running = True
        while running:
            clock.tick(config.fps)

            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                elif event.type == pygame.KEYDOWN:
                    if event.key == pygame.K_ESCAPE:
                        running = False
                    elif event.key in KEY_MAP:
                        state = set_key(state, KEY_MAP[event.key], True)
                elif event.type == pygame.KEYUP:
                    if event.key in KEY_MAP:
                        state = set_key(state, KEY_MAP[event.key], False)

            if not running:
                break

            if not decay_per_cycle:
                state = tick_timers(state)

            for _ in range(config.cycles_per_frame):
                if config.trace:
                    logger.log_instruction(state)
                state, completed = step(state, decay_timers=decay_per_cycle)
                cycles += 1
                if config.max_cycles and cycles >= config.max_cycles:
                    running = False
                    break
                if not completed:
                    # Waiting on FX0A, poll input again before retrying
                    break

            state, frame = take_frame(state)
            if frame is not None:
                rgb = chip8_display_to_rgb(frame, config.scale, on_color, off_color)
                surface = pygame.surfarray.make_surface(rgb.swapaxes(0, 1))
                screen.blit(surface, (0, 0))
                pygame.display.flip()
    finally:
        pygame.quit()

    return state, cycles
