"""Emulator configuration."""

from dataclasses import dataclass
from typing import Sequence

from omegaconf import OmegaConf
from omegaconf.errors import OmegaConfBaseException

from chip8vm.errors import ConfigError
from chip8vm.logging import LEVELS
from chip8vm.rendering import COLOR_SCHEMES

TIMER_MODES = ("cycle", "frame")


@dataclass
class EmulatorConfig:
    """Settings for a single emulation run.

    ``timer_mode`` selects when the delay and sound timers count down:
    ``"cycle"`` once per executed instruction, ``"frame"`` once per host
    frame (60 times a second at the default ``fps``), which matches the
    original hardware.
    """
    scale: int = 8
    cycles_per_frame: int = 10
    fps: int = 60
    timer_mode: str = "cycle"
    color_scheme: str = "white"
    seed: int = 0
    log_level: str = "INFO"
    trace: bool = False
    headless: bool = False
    max_cycles: int = 0


def load_config(overrides: Sequence[str] = ()) -> EmulatorConfig:
    """Build an ``EmulatorConfig`` from ``key=value`` overrides."""
    try:
        cfg = OmegaConf.merge(
            OmegaConf.structured(EmulatorConfig),
            OmegaConf.from_dotlist(list(overrides)),
        )
        config = OmegaConf.to_object(cfg)
    except OmegaConfBaseException as e:
        raise ConfigError(str(e)) from e

    validate_config(config)
    return config


def validate_config(config: EmulatorConfig) -> None:
    for key in ("scale", "cycles_per_frame", "fps"):
        if getattr(config, key) < 1:
            raise ConfigError(f"{key} must be at least 1, got {getattr(config, key)}")
    if config.max_cycles < 0:
        raise ConfigError(f"max_cycles must be non-negative, got {config.max_cycles}")
    if config.timer_mode not in TIMER_MODES:
        raise ConfigError(f"timer_mode must be one of {TIMER_MODES}, got '{config.timer_mode}'")
    if config.color_scheme not in COLOR_SCHEMES:
        raise ConfigError(
            f"Unknown color scheme '{config.color_scheme}'. Available: {list(COLOR_SCHEMES)}"
        )
    if config.log_level.upper() not in LEVELS:
        raise ConfigError(f"log_level must be one of {LEVELS}, got '{config.log_level}'")
    if config.headless and config.max_cycles == 0:
        raise ConfigError("headless runs need max_cycles > 0")
