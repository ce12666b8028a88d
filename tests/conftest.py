#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2026 gwz

from __future__ import annotations

import sys
from pathlib import Path
from textwrap import dedent

import pytest

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from astgen_backend import Backend
from astgen_context import GenerationContext, LogLevel, TargetPaths
from astgen_default_schema import default_schema
from astgen_render import Renderer, Tok


@pytest.fixture
def repo_root() -> Path:
    return PROJECT_ROOT


@pytest.fixture
def schema():
    return default_schema()


@pytest.fixture
def backend(schema):
    return Backend(schema=schema, paths=TargetPaths())


@pytest.fixture
def expr_source(backend) -> str:
    return backend.generate_category("Expression")


@pytest.fixture
def stmt_source(backend) -> str:
    return backend.generate_category("Statement")


@pytest.fixture
def renderer(schema) -> Renderer:
    return Renderer(schema)


@pytest.fixture
def num(renderer):
    """Build a NumberExpr from its lexeme."""

    def _num(text: str):
        return renderer.make("NumberExpr", Tok(text), float(text))

    return _num


@pytest.fixture
def quiet_context() -> GenerationContext:
    return GenerationContext(log_level=LogLevel.SILENT)


@pytest.fixture
def write_formatter(tmp_path: Path):
    """Write a Python script usable as formatter and return its command.

    Usage:
        def test_something(write_formatter):
            cmd = write_formatter('''
                import sys
                sys.exit(0)
            ''')
    """

    def _write(body: str, name: str = "fake_fmt.py") -> list[str]:
        script = tmp_path / "tools" / name
        script.parent.mkdir(parents=True, exist_ok=True)
        script.write_text(dedent(body))
        return [sys.executable, str(script)]

    return _write


def has_error_code(errors, code: str) -> bool:
    """Check if any error in `errors` carries the given code ("SCH-0013" or "[SCH-0013]")."""
    code = code.strip("[]")
    return any(e.code == code for e in errors)
