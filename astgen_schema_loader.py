#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2026 gwz

"""
JSON schema files.

    {
      "categories": [
        {
          "name": "Expression", "union": "Expr", "module": "expr",
          "kinds": [
            {"name": "InfixExpr", "variant": "Infix",
             "fields": {"left": "Expr", "operator": "token", "right": "Expr"},
             "format": "({} {} {})", "args": ["operator", "left", "right"]},
            {"name": "ListExpr", "variant": "List",
             "fields": {"open": "token", "elements": "[Expr]", "close": "token"},
             "render": ["(list ", {"for_each": "elements", "separator": ", "}, ")"]}
          ]
        }
      ]
    }

Field order is the order of the JSON object. Field types use the compact
notation of `astgen_types.parse_field_type`. Render ops are a bare string
(literal text) or one of `{"literal"}`, `{"field"}`, `{"item"}`,
`{"for_each", "separator", "body"}`, `{"join", "separator"}`,
`{"if_present", "body"}`.
"""

import json
from pathlib import Path
from typing import Any, List, Optional, Tuple

from astgen_errors import SchemaError, SchemaLocation
from astgen_schema import (
    Category, CustomRender, FieldRef, ForEach, IfPresent, Item, Join, Literal, NodeKindSpec,
    RenderOp, Schema, Template,
)
from astgen_types import parse_field_type


def load_schema(path: str | Path) -> Schema:
    """Read and convert a JSON schema file. Does not validate semantics."""
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except OSError as e:
        raise SchemaError(f"[SCH-0001] cannot read schema file {p}: {e}") from e
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise SchemaError(f"[SCH-0001] {p}:{e.lineno}:{e.colno}: invalid JSON: {e.msg}") from e
    return schema_from_dict(data)


def schema_from_dict(data: Any) -> Schema:
    if not isinstance(data, dict) or not isinstance(data.get("categories"), list):
        raise SchemaError("[SCH-0002] schema must be an object with a 'categories' list")
    return Schema(categories=tuple(_category(c) for c in data["categories"]))


def _require(obj: Any, key: str, kind: type, loc: SchemaLocation) -> Any:
    if not isinstance(obj, dict) or key not in obj:
        raise SchemaError(f"[SCH-0002] missing required key '{key}'", loc)
    value = obj[key]
    if not isinstance(value, kind):
        raise SchemaError(f"[SCH-0002] key '{key}' must be of type {kind.__name__}", loc)
    return value


def _category(obj: Any) -> Category:
    loc = SchemaLocation(category=obj.get("name") if isinstance(obj, dict) else None)
    name = _require(obj, "name", str, loc)
    union = _require(obj, "union", str, loc)
    module = _require(obj, "module", str, loc)
    kinds = _require(obj, "kinds", list, loc)
    return Category(
        name=name, union=union, module=module,
        kinds=tuple(_kind(k, name) for k in kinds),
    )


def _kind(obj: Any, category: str) -> NodeKindSpec:
    loc = SchemaLocation(category=category, kind=obj.get("name") if isinstance(obj, dict) else None)
    name = _require(obj, "name", str, loc)
    variant = _require(obj, "variant", str, loc)
    raw_fields = _require(obj, "fields", dict, loc)

    fields = []
    for fname, ftext in raw_fields.items():
        floc = SchemaLocation(category, name, fname)
        if not isinstance(ftext, str):
            raise SchemaError("[SCH-0002] field type must be a string", floc)
        try:
            fields.append((fname, parse_field_type(ftext)))
        except ValueError as e:
            raise SchemaError(f"[SCH-0002] {e}", floc) from e

    has_format = "format" in obj
    has_render = "render" in obj
    if has_format == has_render:
        raise SchemaError(
            "[SCH-0020] exactly one of 'format' or 'render' is required", loc,
        )
    if has_format:
        fmt = _require(obj, "format", str, loc)
        args = obj.get("args", [])
        if not isinstance(args, list) or not all(isinstance(a, str) for a in args):
            raise SchemaError("[SCH-0002] 'args' must be a list of field names", loc)
        rendering = Template(fmt, tuple(args))
    else:
        program = _require(obj, "render", list, loc)
        rendering = CustomRender(_ops(program, loc))
    return NodeKindSpec(name=name, variant=variant, fields=tuple(fields), rendering=rendering)


def _ops(items: List[Any], loc: SchemaLocation) -> Tuple[RenderOp, ...]:
    return tuple(_op(item, loc) for item in items)


def _body(obj: dict, loc: SchemaLocation) -> Optional[Tuple[RenderOp, ...]]:
    if "body" not in obj:
        return None
    return _ops(_require(obj, "body", list, loc), loc)


def _op(item: Any, loc: SchemaLocation) -> RenderOp:
    if isinstance(item, str):
        return Literal(item)
    if not isinstance(item, dict):
        raise SchemaError(f"[SCH-0002] render op must be a string or an object, got {item!r}", loc)
    if "literal" in item:
        return Literal(_require(item, "literal", str, loc))
    if "field" in item:
        return FieldRef(_require(item, "field", str, loc))
    if "item" in item:
        return Item()
    if "for_each" in item:
        body = _body(item, loc)
        separator = item.get("separator", "")
        if not isinstance(separator, str):
            raise SchemaError("[SCH-0002] 'separator' must be a string", loc)
        if body is None:
            return ForEach(_require(item, "for_each", str, loc), separator=separator)
        return ForEach(_require(item, "for_each", str, loc), body, separator)
    if "join" in item:
        separator = item.get("separator", ", ")
        if not isinstance(separator, str):
            raise SchemaError("[SCH-0002] 'separator' must be a string", loc)
        return Join(_require(item, "join", str, loc), separator)
    if "if_present" in item:
        body = _body(item, loc)
        if body is None:
            return IfPresent(_require(item, "if_present", str, loc))
        return IfPresent(_require(item, "if_present", str, loc), body)
    raise SchemaError(f"[SCH-0002] unknown render op {item!r}", loc)
