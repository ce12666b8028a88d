"""
Golden output of the backend for a small two-category schema.
"""

#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2026 gwz

from textwrap import dedent

import pytest

from astgen_backend import Backend
from astgen_context import TargetPaths
from astgen_errors import EmissionError
from astgen_schema import Category, Schema, node_kind
from astgen_types import NodeRef, PrimitiveRef, TokenRef


@pytest.fixture
def mini_schema() -> Schema:
    expr = NodeRef("Expr")
    return Schema(categories=(
        Category("Expression", "Expr", "expr", (
            node_kind("NumberExpr", "Number", {"token": TokenRef(), "number": PrimitiveRef("f64")},
                      fmt="{}", args=["token"]),
            node_kind("InfixExpr", "Infix", {"left": expr, "operator": TokenRef(), "right": expr},
                      fmt="({} {} {})", args=["operator", "left", "right"]),
        )),
        Category("Statement", "Stmt", "stmt", (
            node_kind("PrintStmt", "Print", {"print_token": TokenRef(), "inner": expr},
                      fmt="(print {})", args=["inner"]),
        )),
    ))


EXPECTED_EXPR = dedent('''\
    // @generated by astgen from the Expression schema. Do not edit by hand.

    use std::fmt;
    use crate::compiler::lexical_analysis::Token;

    #[derive(Debug, Clone)]
    pub enum Expr<'a> {
        Number(&'a NumberExpr),
        Infix(&'a InfixExpr<'a>),
    }

    impl<'a> fmt::Display for Expr<'a> {
        fn fmt(&self, f: &mut fmt::Formatter<'_>) -> fmt::Result {
            match self {
                Expr::Number(node) => fmt::Display::fmt(node, f),
                Expr::Infix(node) => fmt::Display::fmt(node, f),
            }
        }
    }

    #[derive(Debug, Clone)]
    pub struct NumberExpr {
        pub token: Token,
        pub number: f64,
    }

    impl NumberExpr {
        pub fn new<'a>(arena: &'a bumpalo::Bump, token: Token, number: f64) -> Expr<'a> {
            Expr::Number(arena.alloc_with(|| NumberExpr { token, number }))
        }
    }

    impl fmt::Display for NumberExpr {
        fn fmt(&self, f: &mut fmt::Formatter<'_>) -> fmt::Result {
            f.write_fmt(format_args!("{}", self.token.lexeme))
        }
    }

    #[derive(Debug, Clone)]
    pub struct InfixExpr<'a> {
        pub left: Expr<'a>,
        pub operator: Token,
        pub right: Expr<'a>,
    }

    impl<'a> InfixExpr<'a> {
        pub fn new(arena: &'a bumpalo::Bump, left: Expr<'a>, operator: Token, right: Expr<'a>) -> Expr<'a> {
            Expr::Infix(arena.alloc_with(|| InfixExpr { left, operator, right }))
        }
    }

    impl<'a> fmt::Display for InfixExpr<'a> {
        fn fmt(&self, f: &mut fmt::Formatter<'_>) -> fmt::Result {
            f.write_fmt(format_args!("({} {} {})", self.operator.lexeme, self.left, self.right))
        }
    }
''')


EXPECTED_STMT = dedent('''\
    // @generated by astgen from the Statement schema. Do not edit by hand.

    use std::fmt;
    use crate::compiler::lexical_analysis::Token;
    use super::expr::Expr;

    #[derive(Debug, Clone)]
    pub enum Stmt<'a> {
        Print(&'a PrintStmt<'a>),
    }

    impl<'a> fmt::Display for Stmt<'a> {
        fn fmt(&self, f: &mut fmt::Formatter<'_>) -> fmt::Result {
            match self {
                Stmt::Print(node) => fmt::Display::fmt(node, f),
            }
        }
    }

    #[derive(Debug, Clone)]
    pub struct PrintStmt<'a> {
        pub print_token: Token,
        pub inner: Expr<'a>,
    }

    impl<'a> PrintStmt<'a> {
        pub fn new(arena: &'a bumpalo::Bump, print_token: Token, inner: Expr<'a>) -> Stmt<'a> {
            Stmt::Print(arena.alloc_with(|| PrintStmt { print_token, inner }))
        }
    }

    impl<'a> fmt::Display for PrintStmt<'a> {
        fn fmt(&self, f: &mut fmt::Formatter<'_>) -> fmt::Result {
            f.write_fmt(format_args!("(print {})", self.inner))
        }
    }
''')


def test_expression_unit_golden(mini_schema):
    assert Backend(schema=mini_schema).generate_category("Expression") == EXPECTED_EXPR


def test_statement_unit_golden(mini_schema):
    assert Backend(schema=mini_schema).generate_category("Statement") == EXPECTED_STMT


def test_generate_all_is_keyed_by_module_in_declaration_order(mini_schema):
    units = Backend(schema=mini_schema).generate_all()

    assert list(units) == ["expr", "stmt"]
    assert units["expr"] == EXPECTED_EXPR
    assert units["stmt"] == EXPECTED_STMT


def test_target_paths_are_configurable(mini_schema):
    paths = TargetPaths(token="crate::lex::Tok", arena="typed_arena::Bump")

    text = Backend(schema=mini_schema, paths=paths).generate_category("Expr")

    assert "use crate::lex::Tok;" in text
    assert "pub token: Tok," in text
    assert "arena: &'a typed_arena::Bump" in text


def test_unknown_category_is_an_internal_error(mini_schema):
    with pytest.raises(EmissionError) as exc:
        Backend(schema=mini_schema).generate_category("Pattern")

    assert exc.value.code == "ICE-2010"
    assert exc.value.format() == "internal generator error: [ICE-2010] no category named 'Pattern'"
