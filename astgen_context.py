"""
Generation context for cross-cutting generator options.

This module defines the GenerationContext dataclass which holds options that
affect multiple stages of a generation run (logging, post-processing), and
TargetPaths, which names the collaborator types the generated Rust code uses.
"""

#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2026 gwz

from dataclasses import dataclass, field
from enum import IntEnum
from typing import List


class LogLevel(IntEnum):
    """Hierarchical logging levels for the AST generator."""
    SILENT = 0      # No logging
    ERROR = 3       # Error messages only
    WARNING = 6     # Warning messages (default)
    INFO = 10       # General progress messages (-v)
    DEBUG = 30      # Per-kind emission details (-vvv)


@dataclass
class GenerationContext:
    """
    Holds cross-cutting options that affect multiple generation stages.

    Attributes:
        log_rich_format:    If True, emit logs in rich format: timestamps and log level.
        log_level:          Current logging level.
        run_formatter:      If True, run the external formatter on every output unit.
        formatter:          Formatter command; the unit's path is appended as last argument.
        formatter_timeout:  Seconds to wait for one formatter invocation.
    """
    log_rich_format: bool = False
    log_level: LogLevel = LogLevel.WARNING
    run_formatter: bool = True
    formatter: List[str] = field(default_factory=lambda: ["rustfmt"])
    formatter_timeout: float = 60.0

    @staticmethod
    def default() -> 'GenerationContext':
        """Create a GenerationContext with default settings."""
        return GenerationContext(log_level=LogLevel.WARNING)


@dataclass(frozen=True)
class TargetPaths:
    """
    Rust paths of the collaborator types the generated code depends on.

    - token:     token type exposing a `lexeme` field
    - atom:      interned string type
    - arena:     arena type with `alloc_with`
    - sequence:  arena-backed sequence container, generic over the lifetime
    """
    token: str = "crate::compiler::lexical_analysis::Token"
    atom: str = "crate::compiler::string_handling::StringAtom"
    arena: str = "bumpalo::Bump"
    sequence: str = "bumpalo::collections::Vec"

    @property
    def token_name(self) -> str:
        return self.token.rsplit("::", 1)[-1]

    @property
    def atom_name(self) -> str:
        return self.atom.rsplit("::", 1)[-1]

    @property
    def sequence_name(self) -> str:
        return self.sequence.rsplit("::", 1)[-1]
