"""Logging setup for the time tracker CLI.

Log records go to stderr, so stdout only carries command output such as
tables and exports.
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

import click

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s:%(filename)s:%(lineno)d] %(message)s"
CONSOLE_FORMAT = "%(levelname)s %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LEVEL_COLORS = {
    logging.DEBUG: "blue",
    logging.WARNING: "yellow",
    logging.ERROR: "red",
    logging.CRITICAL: "red",
}


class ClickEchoHandler(logging.Handler):
    """Writes records to the current stderr through click.echo."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = self.format(record)
            color = LEVEL_COLORS.get(record.levelno)
            if color:
                message = click.style(message, fg=color)
            click.echo(message, err=True)
        except Exception:
            self.handleError(record)


def get_logger(
        name: str = "timeboxcli",
        level: int = logging.INFO,
        log_file: Path | None = None,
        max_bytes: int = 1024 * 1024,
        backup_count: int = 3,
        console: bool = True,
) -> logging.Logger:
    logger = logging.getLogger(name)
    logger.propagate = False
    logger.setLevel(level)

    # Setup console handler
    console_handler_name = f"{name}:console"
    if console:
        existing = [h for h in logger.handlers if h.get_name() == console_handler_name]
        if existing:
            existing[0].setLevel(level)
        else:
            console_handler = ClickEchoHandler()
            console_handler.setLevel(level)
            console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
            console_handler.set_name(console_handler_name)
            logger.addHandler(console_handler)

    # Setup persistent handler, only when a file is given. A handler for a
    # different file is replaced.
    persistent_handler_name = f"{name}:persistent"
    for handler in [h for h in logger.handlers if h.get_name() == persistent_handler_name]:
        if log_file is None or Path(handler.baseFilename) != log_file.absolute():
            logger.removeHandler(handler)
            handler.close()
    if log_file is not None and not any(h.get_name() == persistent_handler_name for h in logger.handlers):
        log_file.parent.mkdir(parents=True, exist_ok=True)
        persistent_handler = RotatingFileHandler(
            filename=log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
            delay=True,
        )
        persistent_handler.setLevel(logging.DEBUG)
        persistent_handler.setFormatter(logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT))
        persistent_handler.set_name(persistent_handler_name)
        logger.addHandler(persistent_handler)

    # The file gets everything, the console only what was asked for
    if any(h.get_name() == persistent_handler_name for h in logger.handlers):
        logger.setLevel(logging.DEBUG)

    return logger
