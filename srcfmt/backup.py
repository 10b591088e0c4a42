from __future__ import annotations

import filecmp
import logging
import shutil
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional

logger = logging.getLogger(__name__)

RUN_ID_FORMAT = "%Y%m%d%H%M%S"


@dataclass
class BackupRecord:
    source: Path
    backup_path: Optional[Path]
    changed: bool = False


def new_run_id() -> str:
    return datetime.now().strftime(RUN_ID_FORMAT)


def _remove_empty_dirs(start: Path, stop: Path) -> None:
    current = start
    while current != stop and stop in current.parents:
        if any(current.iterdir()):
            return
        current.rmdir()
        current = current.parent


class BackupSession:
    def __init__(
        self,
        root: Path,
        backup_root: str = "backup",
        prefix: str = "backup_",
        run_id: Optional[str] = None,
    ) -> None:
        self.root = root
        self.backup_root = root / backup_root
        base_id = run_id or new_run_id()
        self.run_id = base_id
        suffix = 0
        # never reuse a directory left by an earlier run in the same second
        while (self.backup_root / f"{prefix}{self.run_id}").exists():
            suffix += 1
            self.run_id = f"{base_id}_{suffix}"
        self.directory = self.backup_root / f"{prefix}{self.run_id}"

    def backup_path_for(self, path: Path) -> Path:
        return self.directory / path.relative_to(self.root)

    @contextmanager
    def guard(self, path: Path) -> Iterator[BackupRecord]:
        backup_path = self.backup_path_for(path)
        backup_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(path, backup_path)
        record = BackupRecord(source=path, backup_path=backup_path)
        try:
            yield record
        finally:
            if path.exists() and filecmp.cmp(path, backup_path, shallow=False):
                logger.info("No changes detected for %s. Removing backup.", path)
                backup_path.unlink()
                _remove_empty_dirs(backup_path.parent, self.directory)
                record.backup_path = None
                record.changed = False
            else:
                logger.info("Backup differs for %s. Keeping backup.", path)
                record.changed = True

    def has_backups(self) -> bool:
        return self.directory.exists() and any(self.directory.iterdir())

    def finish(self) -> None:
        if self.has_backups():
            logger.info("Backups kept in %s", self.directory)
            return
        if self.directory.exists():
            self.directory.rmdir()
        if self.backup_root.exists() and not any(self.backup_root.iterdir()):
            self.backup_root.rmdir()
