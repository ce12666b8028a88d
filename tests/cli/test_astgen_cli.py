#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2026 gwz

import json
import shlex

import pytest

import astgen
from astgen_context import LogLevel


def _patch_handlers(monkeypatch):
    calls = []

    def _mk_handler(name):
        def _handler(args):
            calls.append((name, args))
            return 0

        return _handler

    monkeypatch.setattr(astgen, "cmd_gen", _mk_handler("gen"))
    monkeypatch.setattr(astgen, "cmd_print", _mk_handler("print"))
    monkeypatch.setattr(astgen, "cmd_schema", _mk_handler("schema"))
    monkeypatch.setattr(astgen, "cmd_check", _mk_handler("check"))
    return calls


def _run_main(argv):
    with pytest.raises(SystemExit) as exc:
        astgen.main(argv)
    return exc.value.code


def test_gen_defaults(monkeypatch):
    calls = _patch_handlers(monkeypatch)

    rc = _run_main(["gen"])

    assert rc == 0
    name, args = calls[0]
    assert name == "gen"
    assert args.out_dir == "src/compiler/ast"
    assert args.no_format is False
    assert args.schema is None


def test_generate_alias_and_options(monkeypatch):
    calls = _patch_handlers(monkeypatch)

    rc = _run_main(["-vvv", "-s", "lang.json", "generate", "-o", "out", "--no-format"])

    assert rc == 0
    name, args = calls[0]
    assert name == "gen"
    assert args.out_dir == "out"
    assert args.no_format is True
    assert args.schema == "lang.json"
    assert args.verbosity == 3


def test_print_requires_category(monkeypatch):
    calls = _patch_handlers(monkeypatch)

    rc = _run_main(["print"])

    assert rc == 2
    assert calls == []


def test_missing_command_is_usage_error(monkeypatch):
    calls = _patch_handlers(monkeypatch)

    assert _run_main([]) == 2
    assert calls == []


@pytest.mark.parametrize(
    "argv, level, formatter, run_formatter",
    [
        (["gen"], LogLevel.ERROR, ["rustfmt"], True),
        (["-v", "gen", "--no-format"], LogLevel.INFO, ["rustfmt"], False),
        (["-vvv", "gen", "--formatter", "rustfmt --edition 2021"], LogLevel.DEBUG,
         ["rustfmt", "--edition", "2021"], True),
    ],
)
def test_build_generation_context(monkeypatch, argv, level, formatter, run_formatter):
    calls = _patch_handlers(monkeypatch)
    _run_main(argv)

    context = astgen.build_generation_context(calls[0][1])

    assert context.log_level == level
    assert context.formatter == formatter
    assert context.run_formatter is run_formatter


def test_print_category(capsys):
    rc = _run_main(["print", "Expr"])

    out = capsys.readouterr().out
    assert rc == 0
    assert out.startswith("// @generated by astgen")
    assert "pub enum Expr<'a> {" in out


def test_print_unknown_category(capsys):
    rc = _run_main(["print", "Pattern"])

    captured = capsys.readouterr()
    assert rc == 1
    assert captured.out == ""
    assert "[CLI-0010]" in captured.err


def test_schema_dump(capsys):
    rc = _run_main(["schema"])

    out = capsys.readouterr().out
    assert rc == 0
    assert "=== Expression: enum Expr<'a> (expr.rs) ===" in out
    assert "=== Statement: enum Stmt<'a> (stmt.rs) ===" in out


def test_check_builtin_schema(capsys):
    assert _run_main(["check"]) == 0


def test_check_reports_every_error(tmp_path, capsys):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"categories": [{
        "name": "Expression", "union": "Expr", "module": "expr",
        "kinds": [
            {"name": "AExpr", "variant": "A", "fields": {"x": "Missing"}, "format": "{}", "args": ["x"]},
            {"name": "BExpr", "variant": "A", "fields": {"t": "token"}, "format": "{} {}", "args": ["t"]},
        ],
    }]}))

    rc = _run_main(["-s", str(path), "check"])

    err = capsys.readouterr().err
    assert rc == 1
    assert "3 schema errors:" in err
    assert "[SCH-0040]" in err
    assert "[SCH-0013]" in err
    assert "[SCH-0050]" in err


def test_unreadable_schema_file(tmp_path, capsys):
    rc = _run_main(["-s", str(tmp_path / "nope.json"), "gen", "--no-format", "-o", str(tmp_path / "out")])

    assert rc == 1
    assert "[SCH-0001]" in capsys.readouterr().err
    assert not (tmp_path / "out").exists()


def test_gen_no_format_writes_files(tmp_path, capsys):
    out = tmp_path / "ast"

    rc = _run_main(["gen", "--no-format", "-o", str(out)])

    printed = capsys.readouterr().out.splitlines()
    assert rc == 0
    assert printed == [str(out / "expr.rs"), str(out / "stmt.rs")]
    assert (out / "expr.rs").read_text().startswith("// @generated by astgen")


def test_gen_reports_formatter_failure(tmp_path, capsys, write_formatter):
    cmd = write_formatter("""
        import sys
        sys.stderr.write("rustfmt: boom\\n")
        sys.exit(3)
    """)
    out = tmp_path / "ast"

    rc = _run_main(["gen", "-o", str(out), "--formatter", shlex.join(cmd)])

    err = capsys.readouterr().err
    assert rc == 1
    assert "[FMT-0020]" in err
    assert "rustfmt: boom" in err
    assert list(out.iterdir()) == []
