"""A small logger configured through option functions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

LoggerOption = Callable[["Logger"], "Logger"]


@dataclass
class Logger:
    """Logger settings: level, output target and format."""

    level: int = 0
    output: str = ""
    format: str = ""


def with_level(level: int) -> LoggerOption:
    """Option that sets the logging level."""

    def apply(logger: Logger) -> Logger:
        logger.level = level
        return logger

    return apply


def with_output(output: str) -> LoggerOption:
    """Option that sets the output target."""

    def apply(logger: Logger) -> Logger:
        logger.output = output
        return logger

    return apply


def with_format(fmt: str) -> LoggerOption:
    """Option that sets the log format."""

    def apply(logger: Logger) -> Logger:
        logger.format = fmt
        return logger

    return apply


def new_logger(*args: LoggerOption) -> Logger:
    """Create a logger and apply the given options in order."""
    logger = Logger()
    for option in args:
        option(logger)
    return logger