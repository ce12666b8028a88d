"""
Logging utilities for the AST generator.

This module provides logging functions that respect the GenerationContext
flags (log level and rich format). All output goes to stderr; stdout is
reserved for command output.
"""

#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2026 gwz

import sys
import time
from typing import Optional

from astgen_context import GenerationContext, LogLevel
from astgen_errors import GeneratorError

_LEVEL_TAGS = {
    LogLevel.ERROR: "ERROR",
    LogLevel.WARNING: "WARNING",
    LogLevel.INFO: "INFO",
    LogLevel.DEBUG: "DEBUG",
}


def _prefix(context: GenerationContext, log_level: LogLevel) -> str:
    if not context.log_rich_format or log_level not in _LEVEL_TAGS:
        return ""
    timestamp = time.strftime("%Y-%m-%d %H:%M:%S", time.localtime())
    return f"{timestamp} [{_LEVEL_TAGS[log_level]}] "


def log(context: Optional[GenerationContext], log_level: LogLevel, message: str) -> None:
    """
    Log a message to stderr if the context's level admits it.

    Multi-line messages (schema error lists, formatter diagnostics) get the
    rich prefix on their first line only.

    Args:
        context:    The generation context containing the logging level.
        log_level:  The level of the message to log.
        message:    The message to log.
    """
    if context is None:
        print("No context provided for logging.", file=sys.stderr)
        print(f"{message}", file=sys.stderr)
        return
    if context.log_level >= log_level:
        print(f"{_prefix(context, log_level)}{message}", file=sys.stderr)


def log_error(context: Optional[GenerationContext], message: str) -> None:
    """Log an error-level message if logging level is ERROR or higher."""
    log(context, LogLevel.ERROR, message)


def log_warning(context: Optional[GenerationContext], message: str) -> None:
    """Log a warning-level message if logging level is WARNING or higher."""
    log(context, LogLevel.WARNING, message)


def log_info(context: Optional[GenerationContext], message: str) -> None:
    log(context, LogLevel.INFO, message)


def log_debug(context: Optional[GenerationContext], message: str) -> None:
    log(context, LogLevel.DEBUG, message)


def log_stage(context: Optional[GenerationContext], stage: str, subject: Optional[str] = None) -> None:
    """
    Log the start of a generation stage.

    Args:
        context: The generation context containing logging flags.
        stage:   The name of the stage (e.g., "Validating schema", "Emitting category").
        subject: Optional name of the category or file being processed.
    """
    if subject:
        log(context, LogLevel.INFO, f"{stage} '{subject}'")
    else:
        log(context, LogLevel.INFO, f"{stage}...")


def log_generator_error(context: Optional[GenerationContext], error: GeneratorError) -> None:
    """
    Report a failed run: the formatted error at ERROR level, then, at DEBUG
    level, the OS or subprocess error that caused it.
    """
    log_error(context, error.format())
    cause = error.__cause__
    if cause is not None:
        log_debug(context, f"caused by {type(cause).__name__}: {cause}")
