"""Runtime settings for the time tracker CLI."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_OUTPUT = Path(".timebox")
TRACKER_FILE_NAME = "timeboxes.json"
LOG_FILE_NAME = "timebox.log"

# Environment variables
ENV_OUTPUT = "TIMEBOX_DIR"
ENV_LOG_LEVEL = "TIMEBOX_LOG"

LOG_LEVELS = ("debug", "info", "warning", "error", "critical")


def resolve_log_level(level: str) -> int:
    """Log level from $TIMEBOX_LOG if set, otherwise from ``level``."""
    name = os.environ.get(ENV_LOG_LEVEL) or level
    resolved = logging.getLevelName(name.strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {name}")
    return resolved


@dataclass(frozen=True)
class Settings:
    """Paths and options for one invocation."""

    output: Path = DEFAULT_OUTPUT
    pretty_json: bool = True
    log_level: int = logging.INFO
    log_to_file: bool = False

    @property
    def tracker_file(self) -> Path:
        return self.output / TRACKER_FILE_NAME

    @property
    def log_file(self) -> Path | None:
        return self.output / LOG_FILE_NAME if self.log_to_file else None

    @staticmethod
    def build(output: Path | str | None = None, json_format: str = "pretty",
              log_level: str = "info", log_to_file: bool = False) -> "Settings":
        return Settings(
            output=Path(output).expanduser() if output else DEFAULT_OUTPUT,
            pretty_json=json_format != "compact",
            log_level=resolve_log_level(log_level),
            log_to_file=log_to_file,
        )
