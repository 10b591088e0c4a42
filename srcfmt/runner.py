from __future__ import annotations

import fnmatch
import json
import logging
import os
import shutil
import tempfile
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

from .backup import BackupRecord, BackupSession
from .comments import normalize_text
from .config import ConfigError, FormatConfig, FormatterSpec
from .line_endings import dos_to_unix, is_binary
from .tools import FormatterError, missing_tools, run_formatter

logger = logging.getLogger(__name__)

STATUS_CHANGED = "CHANGED"
STATUS_UNCHANGED = "UNCHANGED"
STATUS_SKIPPED = "SKIPPED"
STATUS_ERROR = "ERROR"
STATUSES = (STATUS_CHANGED, STATUS_UNCHANGED, STATUS_SKIPPED, STATUS_ERROR)

TEXT_ENCODING = "utf-8"
# keeps undecodable bytes intact through the text round-trip
TEXT_ERRORS = "surrogateescape"


@dataclass
class FileResult:
    path: str
    extension: str
    status: str
    message: Optional[str] = None
    backup: Optional[str] = None


@dataclass
class RunReport:
    run_id: str
    generated_at: str
    root: str
    backup_dir: str
    files: List[FileResult] = field(default_factory=list)

    @property
    def summary(self) -> Dict[str, int]:
        counts = {status: 0 for status in STATUSES}
        for result in self.files:
            counts[result.status] += 1
        return counts

    @property
    def failed(self) -> bool:
        return self.summary[STATUS_ERROR] > 0

    def to_dict(self) -> Dict[str, object]:
        data = asdict(self)
        data["summary"] = self.summary
        return data


def _is_excluded(name: str, patterns: List[str]) -> bool:
    return any(fnmatch.fnmatch(name, pattern) for pattern in patterns)


def discover_files(root: Path, config: FormatConfig, extension: str) -> List[Path]:
    backup_dir = root / config.backup_root
    suffix = f".{extension}"
    matched: List[Path] = []
    for dirpath, dirnames, filenames in os.walk(root):
        current = Path(dirpath)
        dirnames[:] = [
            name
            for name in dirnames
            if not _is_excluded(name, config.exclude) and current / name != backup_dir
        ]
        for filename in filenames:
            path = current / filename
            if filename.endswith(suffix) and path.is_file() and not path.is_symlink():
                matched.append(path)
    return sorted(matched)


def _write_atomic(path: Path, data: bytes) -> None:
    fd, tmp_name = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp")
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
        shutil.copymode(path, tmp_path)
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


def _rewrite(path: Path, old: bytes, new: bytes) -> bytes:
    if new != old:
        _write_atomic(path, new)
    return new


def convert_comments_bytes(data: bytes) -> bytes:
    text = data.decode(TEXT_ENCODING, errors=TEXT_ERRORS)
    return normalize_text(text).encode(TEXT_ENCODING, errors=TEXT_ERRORS)


def _transform(path: Path, formatter: FormatterSpec, config: FormatConfig) -> bool:
    data = path.read_bytes()
    if is_binary(data):
        logger.warning("Skipping binary file %s", path)
        return False
    if config.convert_line_endings:
        logger.info("Converting DOS to Unix line endings in %s", path)
        data = _rewrite(path, data, dos_to_unix(data))
    if formatter.convert_comments:
        logger.info("Converting comments in %s", path)
        data = _rewrite(path, data, convert_comments_bytes(data))
    logger.info("Formatting %s", path)
    run_formatter(formatter, path)
    return True


def process_file(
    path: Path,
    formatter: FormatterSpec,
    config: FormatConfig,
    session: BackupSession,
) -> FileResult:
    result = FileResult(
        path=path.relative_to(session.root).as_posix(),
        extension=formatter.extension,
        status=STATUS_UNCHANGED,
    )
    record: Optional[BackupRecord] = None
    try:
        with session.guard(path) as record:
            processed = _transform(path, formatter, config)
    except (FormatterError, OSError) as exc:
        logger.error("Failed to format %s: %s", path, exc)
        result.status = STATUS_ERROR
        result.message = str(exc)
    else:
        if not processed:
            result.status = STATUS_SKIPPED
            result.message = "binary file"
        elif record.changed:
            result.status = STATUS_CHANGED
    if record is not None and record.backup_path is not None:
        result.backup = record.backup_path.relative_to(session.root).as_posix()
    return result


def write_report(report: RunReport, out_dir: Path) -> Path:
    run_dir = out_dir / report.run_id
    run_dir.mkdir(parents=True, exist_ok=True)
    manifest = {
        "run_id": report.run_id,
        "generated_at": report.generated_at,
        "root": report.root,
        "reports": {"report": "report.json"},
        "summary": report.summary,
    }
    (run_dir / "report.json").write_text(
        json.dumps(report.to_dict(), ensure_ascii=False, sort_keys=True, indent=2),
        encoding="utf-8",
    )
    (run_dir / "run_manifest.json").write_text(
        json.dumps(manifest, ensure_ascii=False, sort_keys=True, indent=2),
        encoding="utf-8",
    )
    return run_dir


class Formatter:
    def __init__(self, config: FormatConfig, root: Path, run_id: Optional[str] = None) -> None:
        self.config = config
        self.root = root
        self.run_id = run_id

    def check_required_files(self) -> None:
        for name in self.config.required_files:
            if not (self.root / name).is_file():
                raise ConfigError(f"{name} file not found in the base directory.")

    def run(self, out_dir: Optional[Path] = None) -> RunReport:
        if not self.root.is_dir():
            raise ConfigError(f"Root directory not found: {self.root}")
        self.check_required_files()
        missing = missing_tools(self.config)
        for tool in missing:
            logger.error("%s is not installed.", tool)

        session = BackupSession(
            self.root,
            backup_root=self.config.backup_root,
            prefix=self.config.backup_prefix,
            run_id=self.run_id,
        )
        report = RunReport(
            run_id=session.run_id,
            generated_at=datetime.now(timezone.utc).isoformat(),
            root=str(self.root),
            backup_dir=session.directory.relative_to(self.root).as_posix(),
        )
        try:
            for formatter in self.config.formatters:
                paths = discover_files(self.root, self.config, formatter.extension)
                if formatter.executable in missing:
                    report.files.extend(
                        FileResult(
                            path=path.relative_to(self.root).as_posix(),
                            extension=formatter.extension,
                            status=STATUS_ERROR,
                            message=f"{formatter.executable} is not installed",
                        )
                        for path in paths
                    )
                    continue
                for path in paths:
                    report.files.append(process_file(path, formatter, self.config, session))
        finally:
            session.finish()

        if out_dir is not None:
            write_report(report, out_dir)
        logger.info("Formatting complete.")
        return report
