"""
Schema model for generated AST node kinds.

A Schema is an ordered set of Categories (e.g. Expression, Statement); each
Category owns one tagged union and an ordered set of NodeKindSpecs. Every
kind is immutable configuration, built and validated once per generation pass.
"""

#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2026 gwz

from __future__ import annotations

import keyword
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

from astgen_errors import SchemaError, SchemaLocation
from astgen_types import (
    PRIMITIVE_TYPES, FieldType, NodeRef, OptionalNodeRef, OptionalTokenRef, PrimitiveRef,
    SequenceOfNodeRef, SequenceOfTokenRef, TokenRef, is_optional, is_sequence, node_target,
)


# ==========================
# Render programs
# ==========================


class RenderOp:
    """Base class of the small rendering language used by custom renderers."""
    pass


@dataclass(frozen=True)
class Literal(RenderOp):
    text: str


@dataclass(frozen=True)
class FieldRef(RenderOp):
    name: str


@dataclass(frozen=True)
class Item(RenderOp):
    """The current sequence element, or the present value of an optional field."""
    pass


@dataclass(frozen=True)
class ForEach(RenderOp):
    field: str
    body: Tuple[RenderOp, ...] = (Item(),)
    separator: str = ""  # written after every element


@dataclass(frozen=True)
class Join(RenderOp):
    field: str
    separator: str = ", "  # written between elements


@dataclass(frozen=True)
class IfPresent(RenderOp):
    field: str
    body: Tuple[RenderOp, ...] = (Item(),)


@dataclass(frozen=True)
class Template:
    """Positional rendering: `{}` placeholders filled from `args`, in order."""
    fmt: str
    args: Tuple[str, ...] = ()


@dataclass(frozen=True)
class CustomRender:
    program: Tuple[RenderOp, ...]


Rendering = Union[Template, CustomRender]


def split_template(fmt: str) -> List[Optional[str]]:
    """
    Split a template into literal segments and placeholders (None).

    `{{` and `}}` stand for literal braces. Raises ValueError on a stray brace
    or on a placeholder with content (only positional `{}` is supported).
    """
    parts: List[Optional[str]] = []
    buf: List[str] = []
    i = 0
    while i < len(fmt):
        ch = fmt[i]
        if ch == "{":
            if fmt.startswith("{{", i):
                buf.append("{")
                i += 2
                continue
            if fmt.startswith("{}", i):
                if buf:
                    parts.append("".join(buf))
                    buf = []
                parts.append(None)
                i += 2
                continue
            raise ValueError(f"unsupported placeholder at offset {i} in {fmt!r}")
        if ch == "}":
            if fmt.startswith("}}", i):
                buf.append("}")
                i += 2
                continue
            raise ValueError(f"unmatched '}}' at offset {i} in {fmt!r}")
        buf.append(ch)
        i += 1
    if buf:
        parts.append("".join(buf))
    return parts


# ==========================
# Schema definitions
# ==========================


@dataclass(frozen=True)
class NodeKindSpec:
    name: str                                   # record name, e.g. "InfixExpr"
    variant: str                                # union variant tag, e.g. "Infix"
    fields: Tuple[Tuple[str, FieldType], ...]   # declaration order = constructor order
    rendering: Rendering

    @property
    def field_names(self) -> Tuple[str, ...]:
        return tuple(name for name, _ in self.fields)

    def field_type(self, name: str) -> Optional[FieldType]:
        for fname, ftype in self.fields:
            if fname == name:
                return ftype
        return None


def node_kind(
        name: str,
        variant: str,
        fields: Mapping[str, FieldType],
        *,
        fmt: Optional[str] = None,
        args: Sequence[str] = (),
        render: Optional[Sequence[RenderOp]] = None,
) -> NodeKindSpec:
    """
    Convenience constructor: ordered mapping of fields plus either a template
    (`fmt` + `args`) or a custom program (`render`).
    """
    if (fmt is None) == (render is None):
        raise SchemaError(
            "[SCH-0020] exactly one of a format template or a custom render program is required",
            SchemaLocation(kind=name),
        )
    rendering: Rendering
    if fmt is not None:
        rendering = Template(fmt, tuple(args))
    else:
        rendering = CustomRender(tuple(render))
    return NodeKindSpec(name=name, variant=variant, fields=tuple(fields.items()), rendering=rendering)


@dataclass(frozen=True)
class Category:
    name: str       # "Expression"
    union: str      # "Expr"
    module: str     # "expr" -> expr.rs
    kinds: Tuple[NodeKindSpec, ...] = ()

    def kind_by_variant(self, variant: str) -> Optional[NodeKindSpec]:
        for k in self.kinds:
            if k.variant == variant:
                return k
        return None

    def kind_by_name(self, name: str) -> Optional[NodeKindSpec]:
        for k in self.kinds:
            if k.name == name:
                return k
        return None


@dataclass(frozen=True)
class Schema:
    categories: Tuple[Category, ...] = field(default_factory=tuple)

    def category(self, name: str) -> Optional[Category]:
        """Look a category up by its name, union name or module name."""
        for cat in self.categories:
            if name in (cat.name, cat.union, cat.module):
                return cat
        return None

    def find_kind(self, record_name: str) -> Optional[Tuple[Category, NodeKindSpec]]:
        for cat in self.categories:
            k = cat.kind_by_name(record_name)
            if k is not None:
                return cat, k
        return None

    def category_of_target(self, target: str) -> Optional[Category]:
        """The category that declares `target`, either as its union or as one of its records."""
        for cat in self.categories:
            if cat.union == target or cat.kind_by_name(target) is not None:
                return cat
        return None

    def iter_kinds(self) -> Iterator[Tuple[Category, NodeKindSpec]]:
        for cat in self.categories:
            for k in cat.kinds:
                yield cat, k


# ==========================
# Validation
# ==========================

RUST_KEYWORDS = frozenset({
    "as", "break", "const", "continue", "crate", "else", "enum", "extern", "false", "fn",
    "for", "if", "impl", "in", "let", "loop", "match", "mod", "move", "mut", "pub", "ref",
    "return", "self", "Self", "static", "struct", "super", "trait", "true", "type", "unsafe",
    "use", "where", "while", "async", "await", "dyn", "abstract", "become", "box", "do",
    "final", "macro", "override", "priv", "typeof", "unsized", "virtual", "yield", "try",
})

# Names the generated constructor and renderer use for their own parameters.
RESERVED_FIELD_NAMES = frozenset({"arena", "f"})


def _is_identifier(name: str) -> bool:
    return isinstance(name, str) and name.isidentifier() and not keyword.iskeyword(name) \
        and name not in RUST_KEYWORDS


class SchemaValidator:
    """
    Collects every problem of a schema in one pass.

    Codes:
      SCH-0010  empty schema / category without kinds
      SCH-0011  duplicate category, union or module name
      SCH-0012  duplicate record name
      SCH-0013  duplicate variant tag within a category
      SCH-0020  malformed rendering
      SCH-0030  invalid identifier
      SCH-0031  kind without fields / duplicate or reserved field name
      SCH-0040  unknown node reference target
      SCH-0041  node reference to a record that carries no lifetime
      SCH-0050  template placeholder / argument mismatch
      SCH-0051  template argument is not a field or cannot be rendered positionally
      SCH-0060  custom render op refers to unknown or unsuitable field
      SCH-0061  `Item` used outside of a ForEach / IfPresent body
    """

    def __init__(self, schema: Schema):
        self.schema = schema
        self.errors: List[SchemaError] = []

    def error(self, message: str, category: Optional[str] = None,
              kind: Optional[str] = None, field_name: Optional[str] = None) -> None:
        self.errors.append(SchemaError(message, SchemaLocation(category, kind, field_name)))

    def validate(self) -> List[SchemaError]:
        if not self.schema.categories:
            self.error("[SCH-0010] schema declares no categories")
            return self.errors

        seen_names: Dict[str, str] = {}
        record_names: Dict[str, str] = {}
        for cat in self.schema.categories:
            for label, value in (("category", cat.name), ("union", cat.union), ("module", cat.module)):
                key = f"{label}:{value}"
                if key in seen_names:
                    self.error(f"[SCH-0011] duplicate {label} name '{value}'", cat.name)
                seen_names[key] = cat.name
            if not _is_identifier(cat.union) or not cat.union[:1].isupper():
                self.error(f"[SCH-0030] union name '{cat.union}' is not a type identifier", cat.name)
            if not _is_identifier(cat.module) or not cat.module.islower():
                self.error(f"[SCH-0030] module name '{cat.module}' is not a lowercase identifier", cat.name)
            if not cat.kinds:
                self.error("[SCH-0010] category declares no node kinds", cat.name)
            for k in cat.kinds:
                if k.name in record_names:
                    self.error(
                        f"[SCH-0012] record '{k.name}' already declared in category '{record_names[k.name]}'",
                        cat.name, k.name,
                    )
                record_names[k.name] = cat.name

        unions = {cat.union for cat in self.schema.categories}
        for name in record_names:
            if name in unions:
                self.error(f"[SCH-0012] record '{name}' collides with a union name", record_names[name], name)

        for cat in self.schema.categories:
            variants: Dict[str, str] = {}
            for k in cat.kinds:
                if k.variant in variants:
                    self.error(
                        f"[SCH-0013] duplicate variant tag '{k.variant}' (also used by '{variants[k.variant]}')",
                        cat.name, k.name,
                    )
                variants[k.variant] = k.name
                self._validate_kind(cat, k)
        return self.errors

    def _validate_kind(self, cat: Category, k: NodeKindSpec) -> None:
        if not _is_identifier(k.name) or not k.name[:1].isupper():
            self.error(f"[SCH-0030] record name '{k.name}' is not a type identifier", cat.name, k.name)
        if not _is_identifier(k.variant) or not k.variant[:1].isupper():
            self.error(f"[SCH-0030] variant tag '{k.variant}' is not a type identifier", cat.name, k.name)
        if not k.fields:
            self.error("[SCH-0031] node kind declares no fields", cat.name, k.name)

        seen = set()
        for fname, ftype in k.fields:
            if fname in seen:
                self.error(f"[SCH-0031] duplicate field '{fname}'", cat.name, k.name, fname)
            seen.add(fname)
            if not _is_identifier(fname):
                self.error(f"[SCH-0030] field name '{fname}' is not an identifier", cat.name, k.name, fname)
            elif fname in RESERVED_FIELD_NAMES:
                self.error(f"[SCH-0031] field name '{fname}' is reserved", cat.name, k.name, fname)
            self._validate_field_type(cat, k, fname, ftype)

        if isinstance(k.rendering, Template):
            self._validate_template(cat, k, k.rendering)
        elif isinstance(k.rendering, CustomRender):
            if not k.rendering.program:
                self.error("[SCH-0020] custom render program is empty", cat.name, k.name)
            self._validate_ops(cat, k, k.rendering.program, item_type=None)
        else:
            self.error("[SCH-0020] node kind has no rendering", cat.name, k.name)

    def _validate_field_type(self, cat: Category, k: NodeKindSpec, fname: str, ftype: FieldType) -> None:
        if not isinstance(ftype, FieldType):
            self.error(f"[SCH-0031] field type {ftype!r} is not a FieldType", cat.name, k.name, fname)
            return
        if isinstance(ftype, PrimitiveRef) and ftype.name not in PRIMITIVE_TYPES:
            self.error(f"[SCH-0031] unknown primitive type '{ftype.name}'", cat.name, k.name, fname)
            return
        target = node_target(ftype)
        if target is None:
            return
        owner = self.schema.category_of_target(target)
        if owner is None:
            self.error(f"[SCH-0040] unknown node type '{target}'", cat.name, k.name, fname)
            return
        if owner.union != target:
            # Reference to a concrete record by value: it must carry the lifetime itself.
            found = self.schema.find_kind(target)
            carries = found is not None and any(
                isinstance(t, FieldType) and t.ownership_carrying for _, t in found[1].fields
            )
            if found is not None and not carries:
                self.error(
                    f"[SCH-0041] record '{target}' carries no arena lifetime; reference '{owner.union}' instead",
                    cat.name, k.name, fname,
                )

    def _validate_template(self, cat: Category, k: NodeKindSpec, t: Template) -> None:
        try:
            parts = split_template(t.fmt)
        except ValueError as e:
            self.error(f"[SCH-0020] malformed template: {e}", cat.name, k.name)
            return
        placeholders = sum(1 for p in parts if p is None)
        if placeholders != len(t.args):
            self.error(
                f"[SCH-0050] template has {placeholders} placeholder(s) but {len(t.args)} argument(s)",
                cat.name, k.name,
            )
        for arg in t.args:
            ftype = k.field_type(arg)
            if ftype is None:
                self.error(f"[SCH-0051] template argument '{arg}' is not a field", cat.name, k.name, arg)
            elif not isinstance(ftype, (TokenRef, PrimitiveRef, NodeRef)):
                self.error(
                    f"[SCH-0051] field '{arg}' is optional or a sequence; use a custom render program",
                    cat.name, k.name, arg,
                )

    def _validate_ops(self, cat: Category, k: NodeKindSpec, ops: Sequence[RenderOp],
                      item_type: Optional[FieldType]) -> None:
        for op in ops:
            if isinstance(op, Literal):
                continue
            if isinstance(op, Item):
                if item_type is None:
                    self.error("[SCH-0061] Item used outside of ForEach/IfPresent", cat.name, k.name)
                continue
            if isinstance(op, FieldRef):
                ftype = k.field_type(op.name)
                if ftype is None:
                    self.error(f"[SCH-0060] unknown field '{op.name}'", cat.name, k.name, op.name)
                elif is_optional(ftype) or is_sequence(ftype):
                    self.error(
                        f"[SCH-0060] field '{op.name}' must be rendered with IfPresent/ForEach/Join",
                        cat.name, k.name, op.name,
                    )
                continue
            if isinstance(op, (ForEach, Join)):
                ftype = k.field_type(op.field)
                if ftype is None:
                    self.error(f"[SCH-0060] unknown field '{op.field}'", cat.name, k.name, op.field)
                elif not is_sequence(ftype):
                    self.error(f"[SCH-0060] field '{op.field}' is not a sequence", cat.name, k.name, op.field)
                elif isinstance(op, ForEach):
                    self._validate_ops(cat, k, op.body, item_type=element_type(ftype))
                continue
            if isinstance(op, IfPresent):
                ftype = k.field_type(op.field)
                if ftype is None:
                    self.error(f"[SCH-0060] unknown field '{op.field}'", cat.name, k.name, op.field)
                elif not is_optional(ftype):
                    self.error(f"[SCH-0060] field '{op.field}' is not optional", cat.name, k.name, op.field)
                else:
                    self._validate_ops(cat, k, op.body, item_type=element_type(ftype))
                continue
            self.error(f"[SCH-0020] unknown render op {op!r}", cat.name, k.name)


def element_type(ftype: FieldType) -> FieldType:
    """The type `Item` stands for inside a body over `ftype`."""
    if isinstance(ftype, (SequenceOfTokenRef, OptionalTokenRef)):
        return TokenRef()
    if isinstance(ftype, (SequenceOfNodeRef, OptionalNodeRef)):
        return NodeRef(ftype.target)
    return ftype


def validate_schema(schema: Schema) -> None:
    """Raise one SchemaError carrying every problem found, or return None."""
    errors = SchemaValidator(schema).validate()
    if errors:
        first = errors[0]
        raise SchemaError(first.message, first.loc, errors=errors)
