"""Console logging utilities for the CHIP-8 emulator.

A small levelled logger with optional colors and timestamps, plus an
emulator-specific subclass that formats ROM loading, per-instruction traces
and halts.
"""

import time
import sys
from typing import Any, Dict

from chip8vm.state import EmulatorState

LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConsoleLogger:
    """Flexible console logger with level filtering and formatters."""

    def __init__(
        self,
        name: str = "chip8vm",
        log_level: str = "INFO",
        use_colors: bool = True,
        show_timestamps: bool = True,
    ):
        self.name = name
        self.log_level = log_level.upper()
        self.use_colors = (
            use_colors and hasattr(sys.stdout, "isatty") and sys.stdout.isatty()
        )
        self.show_timestamps = show_timestamps
        self.start_time = time.time()

        self.colors = (
            {
                "DEBUG": "\033[36m",
                "INFO": "\033[32m",
                "WARNING": "\033[33m",
                "ERROR": "\033[31m",
                "CRITICAL": "\033[35m",
                "RESET": "\033[0m"
            }
            if self.use_colors
            else {k: "" for k in LEVELS + ("RESET",)}
        )

        self.level_order = {level: index for index, level in enumerate(LEVELS)}

    def _should_log(self, level: str) -> bool:
        """Check if message should be logged based on current log level."""
        return self.level_order.get(level.upper(), 1) >= self.level_order.get(
            self.log_level, 1
        )

    def _format_message(self, level: str, message: str) -> str:
        """Format log message with timestamp, level, and colors."""
        timestamp = (
            f"[{time.time() - self.start_time:8.2f}s]" if self.show_timestamps else ""
        )
        level_str = f"[{level:>8s}]"
        name_str = f"[{self.name}]"

        if self.use_colors:
            color = self.colors.get(level.upper(), "")
            reset = self.colors["RESET"]
            level_str = f"{color}{level_str}{reset}"

        return f"{timestamp}{level_str}{name_str} {message}"

    def log(self, level: str, message: str):
        """Log a message at the specified level."""
        if self._should_log(level):
            formatted = self._format_message(level, message)
            print(formatted, flush=True)

    def debug(self, message: str):
        """Log debug message."""
        self.log("DEBUG", message)

    def info(self, message: str):
        """Log info message."""
        self.log("INFO", message)

    def warning(self, message: str):
        """Log warning message."""
        self.log("WARNING", message)

    def error(self, message: str):
        """Log error message."""
        self.log("ERROR", message)

    def critical(self, message: str):
        """Log critical message."""
        self.log("CRITICAL", message)


class EmulatorLogger(ConsoleLogger):
    """Logger for an emulation run."""

    def __init__(self, name: str = "chip8vm", **kwargs):
        super().__init__(name, **kwargs)

    def log_config(self, config: Dict[str, Any]):
        """Log the effective configuration at debug level."""
        self.debug("Configuration:")
        for key, value in config.items():
            self.debug(f"  {key}: {value}")

    def log_rom_loaded(self, filename: str, size: int):
        self.info(f"Loaded {filename} ({size} bytes)")

    def log_instruction(self, state: EmulatorState):
        """Trace the instruction about to run together with PC, I and SP."""
        pc = int(state.pc)
        opcode = int(state.memory[pc]) << 8 | int(state.memory[(pc + 1) % len(state.memory)])
        self.debug(
            f"opcode: {opcode:04X}  pc: {pc:03X}  I: {int(state.I):03X}  sp: {int(state.stack.pointer):X}"
        )

    def log_halt(self, error: Exception):
        self.error(f"Emulation halted: {error}")

    def log_run_end(self, cycles: int):
        elapsed = time.time() - self.start_time
        rate = cycles / elapsed if elapsed > 0 else 0
        self.info(f"Stopped after {cycles} instructions ({rate:.0f} Hz)")
