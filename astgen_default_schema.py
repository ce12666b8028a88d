#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2026 gwz

"""
Built-in schema of the host language front end.

Statements reference expressions; expressions never reference statements.
"""

from astgen_schema import (
    Category, FieldRef, ForEach, IfPresent, Item, Join, Literal, Schema, node_kind,
)
from astgen_types import (
    NodeRef, OptionalNodeRef, OptionalTokenRef, PrimitiveRef, SequenceOfNodeRef, SequenceOfTokenRef,
    TokenRef,
)

TOKEN = TokenRef()


def expression_category() -> Category:
    expr = NodeRef("Expr")
    return Category(name="Expression", union="Expr", module="expr", kinds=(
        node_kind("NumberExpr", "Number",
                  {"token": TOKEN, "number": PrimitiveRef("f64")},
                  fmt="{}", args=["token"]),
        node_kind("StringExpr", "String",
                  {"token": TOKEN, "string": PrimitiveRef("StringAtom")},
                  fmt="{}", args=["token"]),
        node_kind("VarExpr", "Var",
                  {"identifier": TOKEN},
                  fmt="{}", args=["identifier"]),
        node_kind("BoolExpr", "Bool",
                  {"token": TOKEN, "value": PrimitiveRef("bool")},
                  fmt="{}", args=["token"]),
        node_kind("GroupExpr", "Group",
                  {"paren_open": TOKEN, "inner": expr, "paren_close": TOKEN},
                  fmt="({})", args=["inner"]),
        node_kind("PrefixExpr", "Prefix",
                  {"operator": TOKEN, "inner": expr},
                  fmt="({} {})", args=["operator", "inner"]),
        node_kind("InfixExpr", "Infix",
                  {"left": expr, "operator": TOKEN, "right": expr},
                  fmt="({} {} {})", args=["operator", "left", "right"]),
        node_kind("ListExpr", "List",
                  {"bracket_open": TOKEN, "elements": SequenceOfNodeRef("Expr"), "bracket_close": TOKEN},
                  render=[Literal("(list "), ForEach("elements", separator=", "), Literal(")")]),
        node_kind("SubscriptExpr", "Subscript",
                  {"subscriptee": expr, "bracket_open": TOKEN, "index": expr, "bracket_close": TOKEN},
                  fmt="([] {} {})", args=["subscriptee", "index"]),
        node_kind("CallExpr", "Call",
                  {"callee": expr, "paren_open": TOKEN, "args": SequenceOfNodeRef("Expr"),
                   "paren_close": TOKEN},
                  render=[Literal("(call "), FieldRef("callee"), Literal(" "),
                          ForEach("args", separator=", "), Literal(")")]),
    ))


def statement_category() -> Category:
    expr = NodeRef("Expr")
    block = NodeRef("BlockStmt")
    return Category(name="Statement", union="Stmt", module="stmt", kinds=(
        node_kind("PrintStmt", "Print",
                  {"print_token": TOKEN, "inner": expr},
                  fmt="(print {})", args=["inner"]),
        node_kind("VarDeclStmt", "VarDecl",
                  {"var_token": TOKEN, "identifier": TOKEN, "init_expr": expr},
                  fmt="({} {} {})", args=["var_token", "identifier", "init_expr"]),
        node_kind("BlockStmt", "Block",
                  {"brace_open": TOKEN, "statements": NodeRef("StmtList"), "brace_close": TOKEN},
                  fmt="(block {})", args=["statements"]),
        node_kind("StmtList", "StmtList",
                  {"stmts": SequenceOfNodeRef("Stmt")},
                  render=[ForEach("stmts", separator="\n")]),
        node_kind("ProgramStmt", "Program",
                  {"statements": NodeRef("StmtList"), "eof_token": TOKEN},
                  fmt="(program {})", args=["statements"]),
        node_kind("IfStmt", "If",
                  {"if_token": TOKEN, "condition": expr, "then_clause": block,
                   "else_token": OptionalTokenRef(), "else_clause": OptionalNodeRef("BlockStmt")},
                  render=[Literal("(if "), FieldRef("condition"), Literal(" then "), FieldRef("then_clause"),
                          IfPresent("else_clause", (Literal(" else "), Item())), Literal(")")]),
        node_kind("WhileStmt", "While",
                  {"while_token": TOKEN, "condition": expr, "block": block},
                  fmt="(while {} {})", args=["condition", "block"]),
        node_kind("ExprStmt", "ExprStmt",
                  {"expr": expr},
                  fmt="{}", args=["expr"]),
        node_kind("FnDeclStmt", "FnDecl",
                  {"fn_token": TOKEN, "name": TOKEN, "parameters": SequenceOfTokenRef(), "body": block},
                  render=[Literal("(fn "), FieldRef("name"), Literal(" ("), Join("parameters", ", "),
                          Literal(") "), FieldRef("body"), Literal(")")]),
    ))


def default_schema() -> Schema:
    return Schema(categories=(expression_category(), statement_category()))
