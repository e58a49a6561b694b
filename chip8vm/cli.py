"""Command-line entry point: ``chip8vm ROM [key=value ...]``."""

import os
import sys
from dataclasses import asdict
from typing import Optional, Sequence

import jax

from chip8vm.config import load_config
from chip8vm.emulator import load_rom, run_cycles
from chip8vm.errors import Chip8Error, ConfigError
from chip8vm.logging import EmulatorLogger
from chip8vm.state import create_state

USAGE = "Usage: chip8vm ROM [key=value ...]"

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    positional = [arg for arg in args if "=" not in arg]
    overrides = [arg for arg in args if "=" in arg]

    logger = EmulatorLogger()
    if len(positional) != 1:
        logger.error(USAGE)
        return EXIT_USAGE
    rom_path = positional[0]

    try:
        config = load_config(overrides)
    except ConfigError as e:
        logger.error(f"Invalid configuration: {e}")
        return EXIT_USAGE

    logger = EmulatorLogger(log_level="DEBUG" if config.trace else config.log_level)
    logger.log_config(asdict(config))

    state = create_state(jax.random.PRNGKey(config.seed))
    try:
        state = load_rom(state, rom_path)
    except OSError as e:
        logger.error(f"Cannot read ROM {rom_path}: {e}")
        return EXIT_FAILURE
    except Chip8Error as e:
        logger.error(f"Cannot load ROM {rom_path}: {e}")
        return EXIT_FAILURE
    logger.log_rom_loaded(rom_path, os.path.getsize(rom_path))

    trace_logger = logger if config.trace else None
    try:
        if config.headless:
            state, cycles = run_cycles(
                state,
                config.max_cycles,
                timer_mode=config.timer_mode,
                cycles_per_frame=config.cycles_per_frame,
                show_progress=True,
                logger=trace_logger,
            )
        else:
            from chip8vm.host import run_emulator
            state, cycles = run_emulator(state, config, logger)
    except Chip8Error as e:
        logger.log_halt(e)
        return EXIT_FAILURE

    logger.log_run_end(cycles)
    return EXIT_OK
