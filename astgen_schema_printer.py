#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2026 gwz

from typing import List

from astgen_classify import plan_for
from astgen_schema import (
    Category, CustomRender, FieldRef, ForEach, IfPresent, Item, Join, Literal, NodeKindSpec,
    RenderOp, Schema, Template,
)
from astgen_types import format_field_type


def _format_ops(ops) -> str:
    return " ".join(_format_op(op) for op in ops)


def _format_op(op: RenderOp) -> str:
    if isinstance(op, Literal):
        return repr(op.text)
    if isinstance(op, FieldRef):
        return op.name
    if isinstance(op, Item):
        return "<item>"
    if isinstance(op, ForEach):
        return f"each({op.field}: {_format_ops(op.body)}; sep={op.separator!r})"
    if isinstance(op, Join):
        return f"join({op.field}, {op.separator!r})"
    if isinstance(op, IfPresent):
        return f"if({op.field}: {_format_ops(op.body)})"
    return repr(op)


def format_rendering(kind: NodeKindSpec) -> str:
    r = kind.rendering
    if isinstance(r, Template):
        return f"format {r.fmt!r} <- {', '.join(r.args)}"
    if isinstance(r, CustomRender):
        return f"custom {_format_ops(r.program)}"
    return repr(r)


def format_kind(kind: NodeKindSpec, indent: int = 0) -> List[str]:
    """
    One header line plus one line per field:

        Infix -> InfixExpr<'a> [lifetime on record]
          left: Expr
          ...
          render: format '({} {} {})' <- operator, left, right
    """
    ind = "  " * indent
    plan = plan_for(kind)
    where = "record" if plan.record else "constructor"
    lifetime = "<'a>" if plan.record else ""
    lines = [f"{ind}{kind.variant} -> {kind.name}{lifetime} [lifetime on {where}]"]
    for fname, ftype in kind.fields:
        lines.append(f"{ind}  {fname}: {format_field_type(ftype)}")
    lines.append(f"{ind}  render: {format_rendering(kind)}")
    return lines


def format_category(category: Category) -> List[str]:
    lines = [f"=== {category.name}: enum {category.union}<'a> ({category.module}.rs) ==="]
    for kind in category.kinds:
        lines.extend(format_kind(kind, indent=1))
    return lines


def format_schema(schema: Schema) -> str:
    lines: List[str] = []
    for i, cat in enumerate(schema.categories):
        if i:
            lines.append("")
        lines.extend(format_category(cat))
    return "\n".join(lines)
