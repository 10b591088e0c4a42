from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path
from typing import List

from .config import FormatConfig, FormatterSpec

logger = logging.getLogger(__name__)


class FormatterError(RuntimeError):
    pass


def missing_tools(config: FormatConfig) -> List[str]:
    missing: List[str] = []
    for formatter in config.formatters:
        tool = formatter.executable
        if tool not in missing and shutil.which(tool) is None:
            missing.append(tool)
    return missing


def run_formatter(formatter: FormatterSpec, path: Path) -> None:
    args = [*formatter.command, str(path)]
    logger.debug("Running %s", " ".join(args))
    try:
        result = subprocess.run(
            args,
            capture_output=True,
            text=True,
            check=False,
        )
    except FileNotFoundError as exc:
        raise FormatterError(f"{formatter.executable} is not installed") from exc
    if result.returncode != 0:
        raise FormatterError(
            result.stderr.strip()
            or result.stdout.strip()
            or f"{formatter.executable} exited with status {result.returncode}"
        )
