import pytest

from conftest import FAILING, NOOP, UPPERCASE, make_config
from srcfmt.config import FormatterSpec
from srcfmt.tools import FormatterError, missing_tools, run_formatter


def test_missing_tools_lists_each_once():
    config = make_config(
        FormatterSpec(extension="c", command=["definitely-not-a-formatter-xyz", "-i"]),
        FormatterSpec(extension="h", command=["definitely-not-a-formatter-xyz", "-i"]),
        FormatterSpec(extension="s", command=list(NOOP)),
    )
    assert missing_tools(config) == ["definitely-not-a-formatter-xyz"]


def test_run_formatter_passes_path(tmp_path):
    target = tmp_path / "a.c"
    target.write_bytes(b"int a;\n")
    run_formatter(FormatterSpec(extension="c", command=list(UPPERCASE)), target)
    assert target.read_bytes() == b"INT A;\n"


def test_run_formatter_failure_carries_stderr(tmp_path):
    target = tmp_path / "a.c"
    target.write_bytes(b"int a;\n")
    with pytest.raises(FormatterError, match="bad input"):
        run_formatter(FormatterSpec(extension="c", command=list(FAILING)), target)


def test_run_formatter_missing_executable(tmp_path):
    target = tmp_path / "a.c"
    target.write_bytes(b"int a;\n")
    with pytest.raises(FormatterError, match="is not installed"):
        run_formatter(FormatterSpec(extension="c", command=["definitely-not-a-formatter-xyz"]), target)
