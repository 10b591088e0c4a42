import io
import sys

import pytest

from conftest import FAILING, NOOP
from srcfmt.cli import build_parser, main


def write_config(root, command):
    quoted = ", ".join("'{}'".format(part.replace("'", "''")) for part in command)
    (root / "srcfmt.yml").write_text(
        "version: 1\n"
        "required_files: []\n"
        "formatters:\n"
        f"  - extension: c\n    command: [{quoted}]\n",
        encoding="utf-8",
    )


def test_parser_requires_command():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_format_uses_root_config(source_tree, tmp_path, capsys):
    write_config(source_tree, NOOP)
    code = main(["-q", "format", "--root", str(source_tree), "--out", str(tmp_path / "reports")])
    out = capsys.readouterr().out
    assert code == 0
    assert "1 changed, 1 unchanged, 0 skipped, 0 failed" in out
    assert list((tmp_path / "reports").iterdir())


def test_format_reports_file_errors(source_tree, capsys):
    write_config(source_tree, FAILING)
    code = main(["-q", "format", "--root", str(source_tree)])
    out = capsys.readouterr().out
    assert code == 1
    assert "src/main.c: bad input" in out


def test_format_config_error(source_tree, capsys):
    code = main(["-q", "format", "--root", str(source_tree)])
    assert code == 2
    assert "Config error: .clang-format file not found" in capsys.readouterr().out


def test_format_explicit_config(source_tree, tmp_path, capsys):
    config = tmp_path / "other.yml"
    config.write_text("version: 3\n", encoding="utf-8")
    code = main(["-q", "format", "--root", str(source_tree), "--config", str(config)])
    assert code == 2
    assert "unsupported version" in capsys.readouterr().out


def test_comments_filter_files(source_tree, capsysbinary):
    code = main(["comments", str(source_tree / "build" / "gen.c")])
    assert code == 0
    assert capsysbinary.readouterr().out == b"int gen; /* generated */\n"


def test_comments_filter_stdin(monkeypatch, capsysbinary):
    stdin = io.TextIOWrapper(io.BytesIO(b'puts("http://x"); // hi\n'))
    monkeypatch.setattr(sys, "stdin", stdin)
    assert main(["comments"]) == 0
    assert capsysbinary.readouterr().out == b'puts("http://x"); /* hi */\n'


def test_comments_missing_file(tmp_path, capsysbinary):
    assert main(["comments", str(tmp_path / "missing.c")]) == 1
    assert b"Read error" in capsysbinary.readouterr().err


def test_check_tools(source_tree, capsys):
    write_config(source_tree, NOOP)
    assert main(["check-tools", "--root", str(source_tree)]) == 0
    assert "All formatters available." in capsys.readouterr().out


def test_check_tools_missing(source_tree, capsys):
    write_config(source_tree, ["definitely-not-a-formatter-xyz"])
    assert main(["check-tools", "--root", str(source_tree)]) == 1
    assert "definitely-not-a-formatter-xyz is not installed." in capsys.readouterr().out


@pytest.mark.parametrize("position", ["before", "after"])
def test_quiet_accepted_on_either_side_of_command(source_tree, capsys, position):
    write_config(source_tree, NOOP)
    args = ["format", "--root", str(source_tree)]
    args = ["--quiet", *args] if position == "before" else [*args, "--quiet"]
    assert main(args) == 0
    assert "1 changed" in capsys.readouterr().out


def test_quiet_parsed_per_position():
    parser = build_parser()
    assert parser.parse_args(["-q", "comments"]).quiet is True
    assert parser.parse_args(["comments", "-q"]).quiet is True
    assert parser.parse_args(["comments"]).quiet is False
