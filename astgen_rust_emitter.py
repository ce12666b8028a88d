"""
Rust Code Emitter

Handles Rust-specific code emission. Knows how to emit Rust syntax, but not why or when.
All orchestration (what to emit, in which order, with which imports) lives in the Backend.
"""

#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2026 gwz

from dataclasses import dataclass, field
from typing import List, NoReturn, Optional, Sequence

from astgen_classify import plan_for, record_needs_ownership
from astgen_context import TargetPaths
from astgen_errors import EmissionError, SchemaLocation
from astgen_schema import (
    Category, CustomRender, FieldRef, ForEach, IfPresent, Item, Join, Literal, NodeKindSpec,
    RenderOp, Schema, Template, element_type,
)
from astgen_types import (
    FieldType, NodeRef, OptionalNodeRef, OptionalTokenRef, PrimitiveRef, SequenceOfNodeRef,
    SequenceOfTokenRef, TokenRef, is_token,
)

LIFETIME = "'a"


@dataclass
class RustCodeBuilder:
    """
    Helper for building Rust code with indentation tracking.
    """
    lines: List[str] = field(default_factory=list)
    indent_level: int = 0
    indent_str: str = "    "  # 4 spaces, rustfmt default

    def indent(self) -> None:
        self.indent_level += 1

    def dedent(self) -> None:
        assert self.indent_level > 0, "dedent below zero"
        self.indent_level -= 1

    def emit(self, line: str = "") -> None:
        """Emit a line with current indentation."""
        if line:
            self.lines.append(self.indent_str * self.indent_level + line)
        else:
            self.lines.append("")

    def open(self, line: str) -> None:
        """Emit `line {` and indent."""
        self.emit(f"{line} {{")
        self.indent()

    def close(self, suffix: str = "") -> None:
        """Dedent and emit `}`."""
        self.dedent()
        self.emit("}" + suffix)

    def to_string(self) -> str:
        return "\n".join(self.lines) + "\n"


def rust_string_literal(text: str) -> str:
    """Quote `text` as a Rust string literal."""
    out = []
    for ch in text:
        if ch == "\\":
            out.append("\\\\")
        elif ch == '"':
            out.append('\\"')
        elif ch == "\n":
            out.append("\\n")
        elif ch == "\t":
            out.append("\\t")
        elif ch == "\r":
            out.append("\\r")
        elif ord(ch) < 0x20:
            out.append(f"\\u{{{ord(ch):x}}}")
        else:
            out.append(ch)
    return '"' + "".join(out) + '"'


@dataclass
class RustEmitter:
    """
    Rust-specific code emitter.

    Responsibilities:
    - Spell field types as Rust types (lifetimes, Option, arena Vec)
    - Emit records, constructors, unions, dispatchers and Display impls
    - Compile render programs to `fmt::Formatter` calls

    Does NOT:
    - Decide emission order or imports
    - Validate the schema (it trusts validated input and reports violations as ICEs)
    """

    paths: TargetPaths = field(default_factory=TargetPaths)

    # Schema (set by Backend after construction)
    schema: Optional[Schema] = None
    current_category: Optional[str] = None
    current_kind: Optional[str] = None

    out: RustCodeBuilder = field(default_factory=RustCodeBuilder)

    def set_schema(self, schema: Schema) -> None:
        self.schema = schema

    def reset(self) -> None:
        self.out = RustCodeBuilder()

    def get_output(self) -> str:
        """Returns the generated Rust code of the current unit."""
        return self.out.to_string()

    def ice(self, message: str) -> NoReturn:
        """Raise an internal generator error with schema context."""
        raise EmissionError(message, SchemaLocation(self.current_category, self.current_kind))

    # ============================================================================
    # Type spelling
    # ============================================================================

    def is_generic_type(self, target: str) -> bool:
        """Unions always carry the lifetime; records only when their fields need it."""
        if self.schema is None:
            self.ice("[ICE-1010] emitter used before set_schema")
        for cat in self.schema.categories:
            if cat.union == target:
                return True
            kind = cat.kind_by_name(target)
            if kind is not None:
                return record_needs_ownership(kind)
        self.ice(f"[ICE-1020] unknown node type '{target}'")

    def node_type_text(self, target: str) -> str:
        if self.is_generic_type(target):
            return f"{target}<{LIFETIME}>"
        return target

    def field_type_text(self, ftype: FieldType) -> str:
        token = self.paths.token_name
        seq = self.paths.sequence_name
        if isinstance(ftype, TokenRef):
            return token
        if isinstance(ftype, OptionalTokenRef):
            return f"Option<{token}>"
        if isinstance(ftype, SequenceOfTokenRef):
            return f"{seq}<{LIFETIME}, {token}>"
        if isinstance(ftype, PrimitiveRef):
            if ftype.name == "StringAtom":
                return self.paths.atom_name
            return ftype.name
        if isinstance(ftype, NodeRef):
            return self.node_type_text(ftype.target)
        if isinstance(ftype, OptionalNodeRef):
            return f"Option<{self.node_type_text(ftype.target)}>"
        if isinstance(ftype, SequenceOfNodeRef):
            return f"{seq}<{LIFETIME}, {self.node_type_text(ftype.target)}>"
        self.ice(f"[ICE-1030] unsupported field type {ftype!r}")

    def record_type_text(self, kind: NodeKindSpec) -> str:
        if record_needs_ownership(kind):
            return f"{kind.name}<{LIFETIME}>"
        return kind.name

    # ============================================================================
    # Union and dispatcher
    # ============================================================================

    def emit_union(self, category: Category) -> None:
        self.out.emit("#[derive(Debug, Clone)]")
        self.out.open(f"pub enum {category.union}<{LIFETIME}>")
        for kind in category.kinds:
            self.out.emit(f"{kind.variant}(&{LIFETIME} {self.record_type_text(kind)}),")
        self.out.close()

    def emit_dispatcher(self, category: Category) -> None:
        self.out.open(f"impl<{LIFETIME}> fmt::Display for {category.union}<{LIFETIME}>")
        self.out.open("fn fmt(&self, f: &mut fmt::Formatter<'_>) -> fmt::Result")
        self.out.open("match self")
        for kind in category.kinds:
            self.out.emit(f"{category.union}::{kind.variant}(node) => fmt::Display::fmt(node, f),")
        self.out.close()
        self.out.close()
        self.out.close()

    # ============================================================================
    # Records and constructors
    # ============================================================================

    def emit_record(self, kind: NodeKindSpec) -> None:
        self.out.emit("#[derive(Debug, Clone)]")
        self.out.open(f"pub struct {self.record_type_text(kind)}")
        for fname, ftype in kind.fields:
            self.out.emit(f"pub {fname}: {self.field_type_text(ftype)},")
        self.out.close()

    def emit_constructor(self, category: Category, kind: NodeKindSpec) -> None:
        plan = plan_for(kind)
        impl_generics = f"<{LIFETIME}>" if plan.record else ""
        fn_generics = f"<{LIFETIME}>" if plan.constructor else ""
        params = [f"arena: &{LIFETIME} {self.paths.arena}"]
        params.extend(f"{fname}: {self.field_type_text(ftype)}" for fname, ftype in kind.fields)
        inits = ", ".join(kind.field_names)

        self.out.open(f"impl{impl_generics} {self.record_type_text(kind)}")
        self.out.open(
            f"pub fn new{fn_generics}({', '.join(params)}) -> {category.union}<{LIFETIME}>"
        )
        self.out.emit(
            f"{category.union}::{kind.variant}(arena.alloc_with(|| {kind.name} {{ {inits} }}))"
        )
        self.out.close()
        self.out.close()

    # ============================================================================
    # Renderers
    # ============================================================================

    def emit_renderer(self, kind: NodeKindSpec) -> None:
        generics = f"<{LIFETIME}>" if record_needs_ownership(kind) else ""
        self.out.open(f"impl{generics} fmt::Display for {self.record_type_text(kind)}")
        self.out.open("fn fmt(&self, f: &mut fmt::Formatter<'_>) -> fmt::Result")
        rendering = kind.rendering
        if isinstance(rendering, Template):
            self.emit_template(kind, rendering)
        elif isinstance(rendering, CustomRender):
            self.emit_ops(kind, rendering.program, item=None, depth=0)
            self.out.emit("Ok(())")
        else:
            self.ice(f"[ICE-1040] unsupported rendering {rendering!r}")
        self.out.close()
        self.out.close()

    def emit_template(self, kind: NodeKindSpec, template: Template) -> None:
        args = [self.field_value_expr(kind, name) for name in template.args]
        fmt_lit = rust_string_literal(template.fmt)
        if args:
            self.out.emit(f"f.write_fmt(format_args!({fmt_lit}, {', '.join(args)}))")
        else:
            self.out.emit(f"f.write_fmt(format_args!({fmt_lit}))")

    def field_value_expr(self, kind: NodeKindSpec, name: str) -> str:
        """A Display-able expression for a positional field."""
        ftype = kind.field_type(name)
        if ftype is None:
            self.ice(f"[ICE-1050] template argument '{name}' is not a field")
        if isinstance(ftype, TokenRef):
            return f"self.{name}.lexeme"
        return f"self.{name}"

    def _display(self, expr: str, ftype: FieldType) -> str:
        if is_token(ftype):
            return f"fmt::Display::fmt(&{expr}.lexeme, f)?;"
        return f"fmt::Display::fmt(&{expr}, f)?;"

    def emit_ops(self, kind: NodeKindSpec, ops: Sequence[RenderOp],
                 item: Optional[FieldType], depth: int) -> None:
        """
        Compile render ops. Every write is followed by `?`, so the first sink
        failure returns immediately.
        """
        item_var = "item" if depth <= 1 else f"item_{depth - 1}"
        for op in ops:
            if isinstance(op, Literal):
                if op.text:
                    self.out.emit(f"f.write_str({rust_string_literal(op.text)})?;")
            elif isinstance(op, FieldRef):
                ftype = kind.field_type(op.name)
                if ftype is None:
                    self.ice(f"[ICE-1060] unknown field '{op.name}'")
                self.out.emit(self._display(f"self.{op.name}", ftype))
            elif isinstance(op, Item):
                if item is None:
                    self.ice("[ICE-1070] Item outside of a body")
                if is_token(item):
                    self.out.emit(f"fmt::Display::fmt(&{item_var}.lexeme, f)?;")
                else:
                    self.out.emit(f"fmt::Display::fmt({item_var}, f)?;")
            elif isinstance(op, ForEach):
                ftype = kind.field_type(op.field)
                inner = "item" if depth == 0 else f"item_{depth}"
                self.out.open(f"for {inner} in self.{op.field}.iter()")
                self.emit_ops(kind, op.body, element_type(ftype), depth + 1)
                if op.separator:
                    self.out.emit(f"f.write_str({rust_string_literal(op.separator)})?;")
                self.out.close()
            elif isinstance(op, Join):
                ftype = kind.field_type(op.field)
                inner = "item" if depth == 0 else f"item_{depth}"
                self.out.open(f"for (i, {inner}) in self.{op.field}.iter().enumerate()")
                if op.separator:
                    self.out.open("if i > 0")
                    self.out.emit(f"f.write_str({rust_string_literal(op.separator)})?;")
                    self.out.close()
                if is_token(ftype):
                    self.out.emit(f"fmt::Display::fmt(&{inner}.lexeme, f)?;")
                else:
                    self.out.emit(f"fmt::Display::fmt({inner}, f)?;")
                self.out.close()
            elif isinstance(op, IfPresent):
                ftype = kind.field_type(op.field)
                inner = "item" if depth == 0 else f"item_{depth}"
                self.out.open(f"if let Some({inner}) = &self.{op.field}")
                self.emit_ops(kind, op.body, element_type(ftype), depth + 1)
                self.out.close()
            else:
                self.ice(f"[ICE-1080] unsupported render op {op!r}")

    # ============================================================================
    # File-level pieces
    # ============================================================================

    def emit_banner(self, category: Category) -> None:
        self.out.emit(f"// @generated by astgen from the {category.name} schema. Do not edit by hand.")
        self.out.emit()

    def emit_use(self, path: str) -> None:
        self.out.emit(f"use {path};")
