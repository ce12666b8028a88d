#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2026 gwz

from dataclasses import dataclass
from typing import ClassVar, Optional

# ==========================================
# Field types of generated AST node records.
# ==========================================

# Value types a PrimitiveRef may name; the string atom is the interner's handle.
PRIMITIVE_TYPES = ("bool", "char", "f32", "f64", "i32", "i64", "u8", "u32", "u64", "usize", "StringAtom")


class FieldType:
    """
    Base class for all field types.

    `ownership_carrying` is declared per variant: a field of that type is tied
    to the arena's lifetime, so any record holding it carries the lifetime too.
    """
    ownership_carrying: ClassVar[bool] = False


@dataclass(frozen=True)
class TokenRef(FieldType):
    ownership_carrying: ClassVar[bool] = False


@dataclass(frozen=True)
class OptionalTokenRef(FieldType):
    ownership_carrying: ClassVar[bool] = False


@dataclass(frozen=True)
class PrimitiveRef(FieldType):
    name: str  # "f64", "bool", "StringAtom", ...
    ownership_carrying: ClassVar[bool] = False


@dataclass(frozen=True)
class NodeRef(FieldType):
    target: str  # union name ("Expr") or record name ("BlockStmt")
    ownership_carrying: ClassVar[bool] = True


@dataclass(frozen=True)
class OptionalNodeRef(FieldType):
    target: str
    ownership_carrying: ClassVar[bool] = True


@dataclass(frozen=True)
class SequenceOfNodeRef(FieldType):
    target: str
    ownership_carrying: ClassVar[bool] = True


@dataclass(frozen=True)
class SequenceOfTokenRef(FieldType):
    # The container itself lives in the arena.
    ownership_carrying: ClassVar[bool] = True


def node_target(t: FieldType) -> Optional[str]:
    """Return the referenced union/record name of a node-referencing type, else None."""
    if isinstance(t, (NodeRef, OptionalNodeRef, SequenceOfNodeRef)):
        return t.target
    return None


def is_optional(t: FieldType) -> bool:
    return isinstance(t, (OptionalTokenRef, OptionalNodeRef))


def is_sequence(t: FieldType) -> bool:
    return isinstance(t, (SequenceOfNodeRef, SequenceOfTokenRef))


def is_token(t: FieldType) -> bool:
    return isinstance(t, (TokenRef, OptionalTokenRef, SequenceOfTokenRef))


# --- compact notation used by JSON schemas and debug output ---

def format_field_type(t: Optional[FieldType]) -> str:
    if t is None:
        return "<none>"
    elif isinstance(t, TokenRef):
        return "token"
    elif isinstance(t, OptionalTokenRef):
        return "token?"
    elif isinstance(t, SequenceOfTokenRef):
        return "[token]"
    elif isinstance(t, PrimitiveRef):
        return t.name
    elif isinstance(t, NodeRef):
        return t.target
    elif isinstance(t, OptionalNodeRef):
        return f"{t.target}?"
    elif isinstance(t, SequenceOfNodeRef):
        return f"[{t.target}]"
    else:
        # Fallback (should not happen)
        return repr(t)


def parse_field_type(text: str) -> FieldType:
    """
    Parse the compact notation produced by `format_field_type`.

        token | token? | [token] | <primitive> | Name | Name? | [Name]

    Raises ValueError on anything else; nested or optional sequences are not
    representable.
    """
    s = text.strip()
    if not s:
        raise ValueError("empty field type")
    if s.startswith("[") and s.endswith("]"):
        inner = s[1:-1].strip()
        if inner == "token":
            return SequenceOfTokenRef()
        if _is_type_name(inner) and inner not in PRIMITIVE_TYPES:
            return SequenceOfNodeRef(inner)
        raise ValueError(f"unsupported sequence element type '{inner}'")
    if s.endswith("?"):
        inner = s[:-1].strip()
        if inner == "token":
            return OptionalTokenRef()
        if _is_type_name(inner) and inner not in PRIMITIVE_TYPES:
            return OptionalNodeRef(inner)
        raise ValueError(f"unsupported optional type '{inner}'")
    if s == "token":
        return TokenRef()
    if s in PRIMITIVE_TYPES:
        return PrimitiveRef(s)
    if _is_type_name(s):
        return NodeRef(s)
    raise ValueError(f"malformed field type '{text}'")


def _is_type_name(s: str) -> bool:
    return s.isidentifier() and s[0].isupper()
