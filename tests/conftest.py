import sys
from pathlib import Path

import pytest

from srcfmt.config import FormatConfig, FormatterSpec

# Stand-ins for clang-format/asmfmt so the suite does not need them installed.
NOOP = [sys.executable, "-c", "pass"]
UPPERCASE = [
    sys.executable,
    "-c",
    "import pathlib, sys; p = pathlib.Path(sys.argv[1]); p.write_bytes(p.read_bytes().upper())",
]
FAILING = [sys.executable, "-c", "import sys; sys.stderr.write('bad input'); sys.exit(3)"]


def make_config(*formatters: FormatterSpec, **overrides) -> FormatConfig:
    overrides.setdefault("required_files", [])
    return FormatConfig(formatters=list(formatters), **overrides)


@pytest.fixture
def source_tree(tmp_path: Path) -> Path:
    root = tmp_path / "project"
    (root / "src").mkdir(parents=True)
    (root / "build").mkdir()
    (root / "src" / "main.c").write_bytes(b"int main(void) { return 0; } // entry\r\n")
    (root / "src" / "clean.c").write_bytes(b"int clean; /* done */\n")
    (root / "src" / "util.h").write_bytes(b"#define X 1\n")
    (root / "build" / "gen.c").write_bytes(b"int gen; // generated\n")
    (root / "notes.txt").write_bytes(b"// not source\n")
    return root
