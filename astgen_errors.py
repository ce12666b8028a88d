#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2026 gwz

# astgen_errors.py
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence


@dataclass(frozen=True)
class SchemaLocation:
    category: Optional[str] = None
    kind: Optional[str] = None
    field: Optional[str] = None

    def format(self) -> str:
        parts = [p for p in (self.category, self.kind, self.field) if p]
        return ".".join(parts)


class GeneratorError(Exception):
    """
    Base class for every failure that ends a generation run.

    Messages carry a bracketed code (e.g. "[SCH-0010]"); `format` prefixes the
    default code of the subclass when the message has none.
    """

    default_code = "GEN-9999"
    label = "error"

    def __init__(self, message: str, loc: SchemaLocation | None = None):
        super().__init__(message)
        self.message = message
        self.loc = loc

    @property
    def code(self) -> str:
        if self.message.startswith("[") and "]" in self.message:
            return self.message[1:self.message.index("]")]
        return self.default_code

    def format(self) -> str:
        message = self.message
        if not message.startswith("["):
            message = f"[{self.default_code}] {message}"
        where = self.loc.format() if self.loc else ""
        if where:
            return f"{where}: {self.label}: {message}"
        return f"{self.label}: {message}"


class SchemaError(GeneratorError):
    """
    Malformed schema. Raised by validation before any output is produced.

    `errors` holds every problem found in the same validation pass; the first
    one is also the exception's own message.
    """

    default_code = "SCH-9999"
    label = "schema error"

    def __init__(self, message: str, loc: SchemaLocation | None = None,
                 errors: Sequence['SchemaError'] = ()):
        super().__init__(message, loc)
        self.errors: List[SchemaError] = list(errors) or [self]

    def format(self) -> str:
        if len(self.errors) <= 1:
            return super().format()
        head = f"{len(self.errors)} schema errors:"
        return "\n".join([head] + ["  " + GeneratorError.format(e) for e in self.errors])


class EmissionError(GeneratorError):
    """
    Generator bug / violated emission invariant.
    Not for schema mistakes (those are SchemaErrors).
    """

    default_code = "ICE-9999"
    label = "internal generator error"


class SinkError(GeneratorError):
    """Persisting a generated output unit failed."""

    default_code = "SNK-9999"
    label = "output error"


class PostProcessError(GeneratorError):
    """The external formatter failed, timed out or could not be started."""

    default_code = "FMT-9999"
    label = "formatter error"

    def __init__(self, message: str, diagnostic: str = "", loc: SchemaLocation | None = None):
        super().__init__(message, loc)
        self.diagnostic = diagnostic

    def format(self) -> str:
        head = super().format()
        if self.diagnostic:
            return f"{head}\n{self.diagnostic.rstrip()}"
        return head


class RenderSinkError(Exception):
    """Writing to a rendering sink failed; rendering stops at the first one."""
    pass
