#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2026 gwz

import pytest

from conftest import has_error_code

from astgen_errors import SchemaError
from astgen_schema import (
    Category, CustomRender, FieldRef, ForEach, IfPresent, Item, Join, Literal, NodeKindSpec, Schema,
    SchemaValidator, Template, node_kind, split_template, validate_schema,
)
from astgen_types import NodeRef, OptionalNodeRef, PrimitiveRef, SequenceOfNodeRef, SequenceOfTokenRef, TokenRef

TOKEN = TokenRef()


def _schema(*kinds, union="Expr", module="expr"):
    return Schema(categories=(Category("Expression", union, module, tuple(kinds)),))


def _errors(schema):
    return SchemaValidator(schema).validate()


def test_default_schema_is_valid(schema):
    validate_schema(schema)


def test_node_kind_keeps_field_order():
    k = node_kind("InfixExpr", "Infix", {"left": NodeRef("Expr"), "operator": TOKEN, "right": NodeRef("Expr")},
                  fmt="({} {} {})", args=["operator", "left", "right"])

    assert k.field_names == ("left", "operator", "right")
    assert k.field_type("operator") == TOKEN
    assert k.field_type("missing") is None
    assert k.rendering == Template("({} {} {})", ("operator", "left", "right"))


def test_node_kind_requires_exactly_one_rendering():
    with pytest.raises(SchemaError) as exc:
        node_kind("VarExpr", "Var", {"identifier": TOKEN})
    assert exc.value.code == "SCH-0020"

    with pytest.raises(SchemaError):
        node_kind("VarExpr", "Var", {"identifier": TOKEN}, fmt="{}", args=["identifier"],
                  render=[FieldRef("identifier")])


def test_duplicate_variant_tag_is_rejected():
    schema = _schema(
        node_kind("VarExpr", "Var", {"identifier": TOKEN}, fmt="{}", args=["identifier"]),
        node_kind("OtherVarExpr", "Var", {"identifier": TOKEN}, fmt="{}", args=["identifier"]),
    )

    errors = _errors(schema)

    assert has_error_code(errors, "SCH-0013")
    assert errors[0].loc.kind == "OtherVarExpr"


def test_same_variant_tag_in_different_categories_is_allowed():
    schema = Schema(categories=(
        Category("Expression", "Expr", "expr", (
            node_kind("ExprStmtLike", "Print", {"t": TOKEN}, fmt="{}", args=["t"]),
        )),
        Category("Statement", "Stmt", "stmt", (
            node_kind("PrintStmt", "Print", {"inner": NodeRef("Expr")}, fmt="(print {})", args=["inner"]),
        )),
    ))

    assert _errors(schema) == []


def test_duplicate_record_and_category_names():
    k = node_kind("VarExpr", "Var", {"identifier": TOKEN}, fmt="{}", args=["identifier"])
    schema = Schema(categories=(
        Category("Expression", "Expr", "expr", (k,)),
        Category("Expression", "Expr2", "expr2", (k,)),
    ))

    errors = _errors(schema)

    assert has_error_code(errors, "SCH-0011")
    assert has_error_code(errors, "SCH-0012")


def test_empty_schema_and_empty_category():
    assert has_error_code(_errors(Schema()), "SCH-0010")
    assert has_error_code(_errors(_schema()), "SCH-0010")


def test_kind_without_fields_and_duplicate_or_reserved_fields():
    no_fields = NodeKindSpec("EmptyExpr", "Empty", (), CustomRender((Literal("()"),)))
    dup = NodeKindSpec("DupExpr", "Dup", (("a", TOKEN), ("a", TOKEN)), Template("{}", ("a",)))
    reserved = node_kind("ArenaExpr", "Arena", {"arena": TOKEN}, fmt="{}", args=["arena"])

    errors = _errors(_schema(no_fields, dup, reserved))

    messages = [e.message for e in errors]
    assert any("declares no fields" in m for m in messages)
    assert any("duplicate field 'a'" in m for m in messages)
    assert any("'arena' is reserved" in m for m in messages)


def test_rust_keyword_field_name_is_rejected():
    k = node_kind("FnExpr", "Fn", {"fn": TOKEN}, fmt="{}", args=["fn"])

    assert has_error_code(_errors(_schema(k)), "SCH-0030")


def test_unknown_node_target():
    k = node_kind("GroupExpr", "Group", {"inner": NodeRef("Expression")}, fmt="({})", args=["inner"])

    errors = _errors(_schema(k))

    assert has_error_code(errors, "SCH-0040")
    assert errors[0].loc.field == "inner"


def test_reference_to_record_without_lifetime_is_rejected():
    schema = _schema(
        node_kind("VarExpr", "Var", {"identifier": TOKEN}, fmt="{}", args=["identifier"]),
        node_kind("WrapExpr", "Wrap", {"var": NodeRef("VarExpr")}, fmt="{}", args=["var"]),
    )

    assert has_error_code(_errors(schema), "SCH-0041")


def test_reference_to_record_with_lifetime_is_allowed(schema):
    # IfStmt.then_clause references BlockStmt by value.
    found = schema.find_kind("IfStmt")
    assert found is not None
    assert found[1].field_type("then_clause") == NodeRef("BlockStmt")
    assert _errors(schema) == []


def test_template_placeholder_count_must_match_arguments():
    k = node_kind("InfixExpr", "Infix", {"left": NodeRef("Expr"), "operator": TOKEN, "right": NodeRef("Expr")},
                  fmt="({} {})", args=["operator", "left", "right"])

    errors = _errors(_schema(k))

    assert has_error_code(errors, "SCH-0050")
    assert "2 placeholder(s) but 3 argument(s)" in errors[0].message


def test_template_argument_must_be_a_positional_field():
    unknown = node_kind("VarExpr", "Var", {"identifier": TOKEN}, fmt="{}", args=["name"])
    seq = node_kind("ListExpr", "List", {"elements": SequenceOfNodeRef("Expr")}, fmt="(list {})",
                    args=["elements"])

    errors = _errors(_schema(unknown, seq))

    assert [e.code for e in errors] == ["SCH-0051", "SCH-0051"]


def test_malformed_template_braces():
    k = node_kind("VarExpr", "Var", {"identifier": TOKEN}, fmt="{0}", args=["identifier"])

    assert has_error_code(_errors(_schema(k)), "SCH-0020")


def test_custom_ops_must_fit_field_shapes():
    k = node_kind(
        "IfExpr", "If",
        {"cond": NodeRef("Expr"), "items": SequenceOfNodeRef("Expr"), "other": OptionalNodeRef("Expr")},
        render=[
            FieldRef("items"),            # sequence needs ForEach
            ForEach("cond"),              # not a sequence
            IfPresent("items"),           # not optional
            Join("nope"),                 # unknown
            Item(),                       # outside any body
        ],
    )

    errors = _errors(_schema(k))

    assert [e.code for e in errors] == ["SCH-0060", "SCH-0060", "SCH-0060", "SCH-0060", "SCH-0061"]


def test_item_inside_bodies_is_allowed():
    k = node_kind(
        "FnExpr", "Fn",
        {"params": SequenceOfTokenRef(), "body": OptionalNodeRef("Expr")},
        render=[ForEach("params", (Literal("<"), Item(), Literal(">"))),
                IfPresent("body", (Literal(" = "), Item()))],
    )

    assert _errors(_schema(k)) == []


def test_validate_schema_raises_one_error_with_all_problems():
    schema = _schema(
        node_kind("VarExpr", "Var", {"identifier": TOKEN}, fmt="{} {}", args=["identifier"]),
        node_kind("OtherExpr", "Var", {"x": NodeRef("Nope")}, fmt="{}", args=["x"]),
    )

    with pytest.raises(SchemaError) as exc:
        validate_schema(schema)

    err = exc.value
    assert len(err.errors) == 3
    assert err.code == "SCH-0050"
    assert err.format().startswith("3 schema errors:")


def test_split_template():
    assert split_template("({} {} {})") == ["(", None, " ", None, " ", None, ")"]
    assert split_template("{}") == [None]
    assert split_template("{{set {}}}") == ["{set ", None, "}"]
    assert split_template("") == []
    with pytest.raises(ValueError):
        split_template("{")
    with pytest.raises(ValueError):
        split_template("}")


def test_schema_lookups(schema):
    assert schema.category("Expr").name == "Expression"
    assert schema.category("stmt").union == "Stmt"
    assert schema.category("Nope") is None
    assert schema.category_of_target("Expr").module == "expr"
    assert schema.category_of_target("BlockStmt").module == "stmt"
    assert schema.category("Statement").kind_by_variant("If").name == "IfStmt"
    assert [k.name for _, k in schema.iter_kinds()][:2] == ["NumberExpr", "StringExpr"]


def test_malformed_field_type_of_referenced_record_is_reported():
    bare = NodeKindSpec("LeafExpr", "Leaf", (("x", "Token"),), Template("{}", ("x",)))
    wrap = node_kind("UseExpr", "Use", {"leaf": NodeRef("LeafExpr")}, fmt="{}", args=["leaf"])
    schema = _schema(bare, wrap)

    with pytest.raises(SchemaError) as exc:
        validate_schema(schema)

    assert has_error_code(exc.value.errors, "SCH-0031")
    assert exc.value.errors[0].loc.field == "x"


def test_unknown_primitive_type_is_rejected():
    k = node_kind("BytesExpr", "Bytes", {"token": TOKEN, "raw": PrimitiveRef("Vec<'a, u8>")},
                  fmt="{}", args=["token"])

    errors = _errors(_schema(k))

    assert has_error_code(errors, "SCH-0031")
    assert errors[0].loc.field == "raw"


def test_known_primitive_types_are_accepted():
    k = node_kind("NameExpr", "Name", {"token": TOKEN, "atom": PrimitiveRef("StringAtom"),
                                       "index": PrimitiveRef("usize")},
                  fmt="{}", args=["token"])

    assert _errors(_schema(k)) == []
