"""
Reference renderer.

Evaluates the rendering of schema node kinds directly in Python, over
in-memory node values, with the same semantics the generated `fmt::Display`
impls have:

  - templates substitute `{}` placeholders in argument order
  - ForEach writes each element followed by the separator; Join writes the
    separator between elements
  - IfPresent writes its body only when the optional field holds a value
  - the first failing sink write stops rendering and propagates; output
    written before the failure stays written

It is used to check rendering programs as data (golden s-expressions)
without compiling the generated Rust.
"""

#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2026 gwz

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from astgen_errors import RenderSinkError
from astgen_schema import (
    CustomRender, FieldRef, ForEach, IfPresent, Item, Join, Literal, NodeKindSpec, RenderOp, Schema,
    Template, element_type, split_template,
)
from astgen_types import FieldType, PrimitiveRef, is_token


@dataclass(frozen=True)
class Tok:
    lexeme: str


@dataclass
class Node:
    kind: str                           # record name
    values: Dict[str, Any] = field(default_factory=dict)


# --- sinks ---

class Sink:
    def write(self, text: str) -> None:
        raise NotImplementedError


@dataclass
class StringSink(Sink):
    parts: List[str] = field(default_factory=list)

    def write(self, text: str) -> None:
        self.parts.append(text)

    def getvalue(self) -> str:
        return "".join(self.parts)


@dataclass
class LimitedSink(Sink):
    """Accepts writes until `limit` characters are exceeded, then fails every write."""
    limit: int
    parts: List[str] = field(default_factory=list)
    attempts: int = 0
    failures: int = 0

    def write(self, text: str) -> None:
        self.attempts += 1
        if self.failures or len(self.getvalue()) + len(text) > self.limit:
            self.failures += 1
            raise RenderSinkError(f"sink full after {self.limit} characters")
        self.parts.append(text)

    def getvalue(self) -> str:
        return "".join(self.parts)


# --- evaluation ---

def format_primitive(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        # Rust keeps the sign of negative zero.
        if value == 0 and math.copysign(1.0, value) < 0:
            return "-0"
        return str(int(value))
    return str(value)


class Renderer:
    def __init__(self, schema: Schema):
        self.schema = schema

    def make(self, record_name: str, *args: Any) -> Node:
        """Build a node from positional values in declared field order."""
        kind = self._kind(record_name)
        if len(args) != len(kind.fields):
            raise TypeError(
                f"{record_name} expects {len(kind.fields)} value(s), got {len(args)}"
            )
        return Node(record_name, dict(zip(kind.field_names, args)))

    def render_to_string(self, node: Node) -> str:
        sink = StringSink()
        self.render(node, sink)
        return sink.getvalue()

    def render(self, node: Node, sink: Sink) -> None:
        """Dispatch on the node's kind; propagates RenderSinkError unmodified."""
        kind = self._kind(node.kind)
        rendering = kind.rendering
        if isinstance(rendering, Template):
            self._render_template(kind, rendering, node, sink)
        elif isinstance(rendering, CustomRender):
            self._render_ops(kind, rendering.program, node, sink, item=None, item_type=None)
        else:
            raise TypeError(f"unsupported rendering {rendering!r}")

    def _kind(self, record_name: str) -> NodeKindSpec:
        found = self.schema.find_kind(record_name)
        if found is None:
            raise KeyError(f"unknown node kind '{record_name}'")
        return found[1]

    def _value(self, kind: NodeKindSpec, node: Node, name: str) -> Any:
        if name not in node.values:
            raise ValueError(f"{kind.name} value has no field '{name}'")
        return node.values[name]

    def _render_value(self, value: Any, ftype: FieldType, sink: Sink) -> None:
        if is_token(ftype):
            sink.write(value.lexeme)
        elif isinstance(ftype, PrimitiveRef):
            sink.write(format_primitive(value))
        else:
            self.render(value, sink)

    def _render_template(self, kind: NodeKindSpec, template: Template, node: Node, sink: Sink) -> None:
        args = iter(template.args)
        for part in split_template(template.fmt):
            if part is None:
                name = next(args)
                self._render_value(self._value(kind, node, name), kind.field_type(name), sink)
            else:
                sink.write(part)

    def _render_ops(self, kind: NodeKindSpec, ops: Sequence[RenderOp], node: Node, sink: Sink,
                    item: Any, item_type: Optional[FieldType]) -> None:
        for op in ops:
            if isinstance(op, Literal):
                if op.text:
                    sink.write(op.text)
            elif isinstance(op, FieldRef):
                self._render_value(self._value(kind, node, op.name), kind.field_type(op.name), sink)
            elif isinstance(op, Item):
                self._render_value(item, item_type, sink)
            elif isinstance(op, ForEach):
                elem_type = element_type(kind.field_type(op.field))
                for elem in self._value(kind, node, op.field):
                    self._render_ops(kind, op.body, node, sink, elem, elem_type)
                    if op.separator:
                        sink.write(op.separator)
            elif isinstance(op, Join):
                elem_type = element_type(kind.field_type(op.field))
                for i, elem in enumerate(self._value(kind, node, op.field)):
                    if i > 0 and op.separator:
                        sink.write(op.separator)
                    self._render_value(elem, elem_type, sink)
            elif isinstance(op, IfPresent):
                value = self._value(kind, node, op.field)
                if value is not None:
                    self._render_ops(kind, op.body, node, sink, value,
                                     element_type(kind.field_type(op.field)))
            else:
                raise TypeError(f"unsupported render op {op!r}")
