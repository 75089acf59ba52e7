"""Configuration loading for reqmd (.reqmd.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

CONFIG_FILENAME = ".reqmd.yml"

DEFAULT_EXTENSIONS: Sequence[str] = (
    ".go",
    ".js",
    ".ts",
    ".jsx",
    ".tsx",
    ".java",
    ".cs",
    ".cpp",
    ".c",
    ".h",
    ".hpp",
    ".py",
    ".rb",
    ".php",
    ".rs",
    ".kt",
    ".scala",
    ".m",
    ".swift",
    ".fs",
    ".sql",
    ".vsql",
    ".md",
)

DEFAULT_MAX_FILE_SIZE = 128 * 1024
DEFAULT_WORKERS = 8


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class ReqmdConfig:
    """Settings for one trace run, from .reqmd.yml and command-line flags."""

    root: Path
    extensions: List[str] = field(default_factory=lambda: list(DEFAULT_EXTENSIONS))
    exclude_paths: List[str] = field(default_factory=list)
    max_file_size: int = DEFAULT_MAX_FILE_SIZE
    workers: int = DEFAULT_WORKERS
    branch: Optional[str] = None

    def with_overrides(
        self, *, extensions: Optional[str] = None, branch: Optional[str] = None
    ) -> "ReqmdConfig":
        """Return a copy with command-line values taking precedence."""
        updated = self
        if extensions:
            updated = replace(updated, extensions=parse_extensions(extensions))
        if branch:
            updated = replace(updated, branch=branch)
        return updated


def load_config(config_path: Path) -> ReqmdConfig:
    """Load configuration from ``config_path`` (a directory or the file itself)."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return ReqmdConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    config = ReqmdConfig(root=root)

    raw_extensions = data.get("extensions")
    if isinstance(raw_extensions, str):
        config.extensions = parse_extensions(raw_extensions)
    elif raw_extensions is not None:
        extensions = _as_str_list(raw_extensions)
        if not extensions:
            raise ConfigError("extensions must list at least one file extension")
        config.extensions = parse_extensions(",".join(extensions))

    config.exclude_paths = _as_str_list(data.get("exclude_paths"))

    max_file_size = data.get("max_file_size")
    if max_file_size is not None:
        config.max_file_size = _as_positive_int("max_file_size", max_file_size)

    workers = data.get("workers")
    if workers is not None:
        config.workers = _as_positive_int("workers", workers)

    config.branch = _as_str(data.get("branch"))
    return config


def parse_extensions(value: str) -> List[str]:
    """Parse ``".go, ts,.py"`` into normalised, de-duplicated extensions."""
    result: List[str] = []
    for item in value.split(","):
        ext = item.strip().lower()
        if not ext:
            continue
        if not ext.startswith("."):
            ext = f".{ext}"
        if ext not in result:
            result.append(ext)
    if not result:
        raise ConfigError(f"no file extensions found in {value!r}")
    return result


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_positive_int(name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"{name} must be a positive integer")
    if isinstance(value, str):
        try:
            value = int(value)
        except ValueError:
            raise ConfigError(f"{name} must be a positive integer") from None
    if not isinstance(value, int) or value < 1:
        raise ConfigError(f"{name} must be a positive integer")
    return value


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "DEFAULT_EXTENSIONS",
    "ReqmdConfig",
    "load_config",
    "parse_extensions",
]
