from __future__ import annotations

import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class FormatterSpec:
    extension: str
    command: List[str]
    convert_comments: bool = True

    @property
    def executable(self) -> str:
        return self.command[0]


DEFAULT_FORMATTERS = [
    FormatterSpec(extension="h", command=["clang-format", "-i"]),
    FormatterSpec(extension="c", command=["clang-format", "-i"]),
    FormatterSpec(extension="cc", command=["clang-format", "-i"]),
    FormatterSpec(extension="cpp", command=["clang-format", "-i"]),
    FormatterSpec(extension="s", command=["asmfmt", "-w"]),
]


@dataclass(frozen=True)
class FormatConfig:
    formatters: List[FormatterSpec] = field(default_factory=lambda: list(DEFAULT_FORMATTERS))
    backup_root: str = "backup"
    backup_prefix: str = "backup_"
    exclude: List[str] = field(default_factory=lambda: ["build", "backup_*"])
    required_files: List[str] = field(default_factory=lambda: [".clang-format"])
    convert_line_endings: bool = True


CONFIG_FILENAME = "srcfmt.yml"


def _read_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"Missing config file: {path}")
    with path.open("r", encoding="utf-8") as handle:
        try:
            data = yaml.safe_load(handle)
        except yaml.YAMLError as exc:
            raise ConfigError(f"{path.name}: invalid YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid YAML structure in {path.name}")
    version = data.get("version")
    if version != 1:
        raise ConfigError(f"{path.name}: unsupported version {version}")
    return data


def _parse_command(raw: Any) -> List[str]:
    if isinstance(raw, str):
        command = shlex.split(raw)
    elif isinstance(raw, list):
        command = [str(part) for part in raw]
    else:
        raise ConfigError("formatter command must be a string or a list")
    if not command:
        raise ConfigError("formatter command must not be empty")
    return command


def _parse_formatters(items: Any) -> List[FormatterSpec]:
    if not isinstance(items, list):
        raise ConfigError("formatters must be a list")
    formatters: List[FormatterSpec] = []
    seen: set[str] = set()
    for item in items:
        if not isinstance(item, dict):
            raise ConfigError("formatter must be a mapping")
        extension = str(item.get("extension") or "").lstrip(".")
        if not extension:
            raise ConfigError("formatter requires extension")
        if extension in seen:
            raise ConfigError(f"duplicate formatter for extension: {extension}")
        seen.add(extension)
        formatters.append(
            FormatterSpec(
                extension=extension,
                command=_parse_command(item.get("command")),
                convert_comments=bool(item.get("convert_comments", True)),
            )
        )
    return formatters


def _parse_str_list(data: Dict[str, Any], key: str, default: List[str]) -> List[str]:
    value = data.get(key, default)
    if not isinstance(value, list):
        raise ConfigError(f"{key} must be a list")
    return [str(item) for item in value]


def parse_config(data: Dict[str, Any]) -> FormatConfig:
    defaults = FormatConfig()
    formatters = defaults.formatters
    if "formatters" in data:
        formatters = _parse_formatters(data["formatters"])
    backup_root = str(data.get("backup_root", defaults.backup_root))
    if not backup_root or Path(backup_root).is_absolute():
        raise ConfigError("backup_root must be a relative path")
    return FormatConfig(
        formatters=formatters,
        backup_root=backup_root,
        backup_prefix=str(data.get("backup_prefix", defaults.backup_prefix)),
        exclude=_parse_str_list(data, "exclude", defaults.exclude),
        required_files=_parse_str_list(data, "required_files", defaults.required_files),
        convert_line_endings=bool(data.get("convert_line_endings", defaults.convert_line_endings)),
    )


def find_config(root: Path) -> Optional[Path]:
    candidate = root / CONFIG_FILENAME
    return candidate if candidate.is_file() else None


def load_config(path: Optional[Path] = None) -> FormatConfig:
    if path is None:
        return FormatConfig()
    return parse_config(_read_yaml(path))
