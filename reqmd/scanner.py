"""Concurrent discovery and parsing of markdown and source trees."""

from __future__ import annotations

import os
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional, Sequence

from .config import DEFAULT_EXTENSIONS, DEFAULT_MAX_FILE_SIZE, DEFAULT_WORKERS
from .errors import ProcessingError, err_manifest, sort_errors
from .git.location import file_url
from .git.provider import VersionControl, open_git
from .logging import byte_count, format_fields, get_logger
from .manifest import MANIFEST_FILENAME, ManifestError, load_manifest
from .models import FileKind, FileRecord, ScanResult
from .parsers import MarkdownParser, SourceParser

MARKDOWN_EXTENSION = ".md"

_EXCLUDED_DIRS = {
    "node_modules",
    "__pycache__",
    "venv",
    "vendor",
}


@dataclass
class IgnoreRule:
    """A glob from ``exclude_paths``, matched against root-relative paths."""

    pattern: str
    directory_only: bool
    anchored: bool
    has_slash: bool

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if self.directory_only and not is_dir:
            return False
        if self.anchored or self.has_slash:
            if fnmatchcase(rel_path, self.pattern):
                return True
            return self.directory_only and rel_path.startswith(f"{self.pattern}/")
        return any(fnmatchcase(part, self.pattern) for part in rel_path.split("/"))


def build_ignore_rule(pattern: str) -> IgnoreRule | None:
    pattern = pattern.strip()
    if not pattern or pattern == "/":
        return None
    directory_only = pattern.endswith("/")
    if directory_only:
        pattern = pattern[:-1]
    anchored = pattern.startswith("/")
    if anchored:
        pattern = pattern[1:]
    return IgnoreRule(
        pattern=pattern,
        directory_only=directory_only,
        anchored=anchored,
        has_slash="/" in pattern,
    )


@dataclass
class _FolderUnit:
    """All files of one directory; processed by a single worker."""

    directory: Path
    files: List[Path]
    vcs: VersionControl


@dataclass
class _FolderOutcome:
    records: List[FileRecord] = field(default_factory=list)
    errors: List[ProcessingError] = field(default_factory=list)
    manifest: Optional[Dict[str, str]] = None
    processed_files: int = 0
    processed_bytes: int = 0
    skipped_files: int = 0
    skipped_bytes: int = 0


class Scanner:
    """Walks roots, parses every eligible file and merges the results.

    Every directory becomes one unit of work for a fixed-size thread pool.
    Workers share nothing; outcomes are merged after the pool has drained.
    """

    def __init__(
        self,
        extensions: Sequence[str] | None = None,
        *,
        max_file_size: int = DEFAULT_MAX_FILE_SIZE,
        workers: int = DEFAULT_WORKERS,
        exclude_paths: Sequence[str] = (),
        vcs_factory: Callable[[Path], VersionControl] = open_git,
    ) -> None:
        if workers < 1:
            raise ValueError("number of workers must be positive")
        self.extensions = {ext.lower() for ext in (extensions or DEFAULT_EXTENSIONS)}
        self.extensions.add(MARKDOWN_EXTENSION)
        self.max_file_size = max_file_size
        self.workers = workers
        self.vcs_factory = vcs_factory
        self.rules = [rule for rule in map(build_ignore_rule, exclude_paths) if rule is not None]
        self.logger = get_logger("scanner")

    def scan(self, roots: Sequence[str | Path]) -> ScanResult:
        """Scan ``roots`` and return all FileRecords and syntax errors.

        Raises VersionControlError when a root is not inside a usable
        repository; that is fatal before any file is read.
        """
        started = time.monotonic()
        units: List[_FolderUnit] = []
        seen: set[Path] = set()
        for root in roots:
            root_path = Path(root).expanduser().resolve()
            if not root_path.exists():
                raise FileNotFoundError(f"Path not found: {root}")
            if not root_path.is_dir():
                raise NotADirectoryError(f"Path is not a directory: {root}")
            vcs = self.vcs_factory(root_path)
            for unit in self._collect_units(root_path, vcs):
                if unit.directory in seen:
                    continue
                seen.add(unit.directory)
                units.append(unit)

        self.logger.debug("Scanning %d folders with %d workers", len(units), self.workers)
        with ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="reqmd-scan") as pool:
            outcomes = list(pool.map(self._scan_folder, units))

        result = ScanResult()
        processed_files = processed_bytes = skipped_files = skipped_bytes = 0
        for unit, outcome in zip(units, outcomes):
            result.files.extend(outcome.records)
            result.errors.extend(outcome.errors)
            if outcome.manifest is not None:
                result.manifests[unit.directory.as_posix()] = outcome.manifest
            processed_files += outcome.processed_files
            processed_bytes += outcome.processed_bytes
            skipped_files += outcome.skipped_files
            skipped_bytes += outcome.skipped_bytes

        result.files.sort(key=lambda record: record.path)
        result.errors = sort_errors(result.errors)

        self.logger.debug(
            format_fields(
                "Scan complete",
                processed_files=processed_files,
                processed_size=byte_count(processed_bytes),
                skipped_files=skipped_files,
                skipped_size=byte_count(skipped_bytes),
                duration=f"{time.monotonic() - started:.3f}s",
            )
        )
        return result

    # ------------------------------------------------------------------
    # Internals

    def _collect_units(self, root: Path, vcs: VersionControl) -> Iterator[_FolderUnit]:
        for dirpath, dirnames, filenames in os.walk(root):
            current = Path(dirpath)
            rel_dir = current.relative_to(root).as_posix() if current != root else ""

            kept = []
            for name in sorted(dirnames):
                if name.startswith(".") or name in _EXCLUDED_DIRS:
                    continue
                rel_path = f"{rel_dir}/{name}" if rel_dir else name
                if self._should_ignore(rel_path, True):
                    self.logger.debug("Skipping excluded folder %s", rel_path)
                    continue
                kept.append(name)
            dirnames[:] = kept

            files = []
            for name in sorted(filenames):
                rel_path = f"{rel_dir}/{name}" if rel_dir else name
                if self._should_ignore(rel_path, False):
                    continue
                files.append(current / name)
            if files:
                yield _FolderUnit(directory=current, files=files, vcs=vcs)

    def _should_ignore(self, rel_path: str, is_dir: bool) -> bool:
        return any(rule.matches(rel_path, is_dir) for rule in self.rules)

    def _scan_folder(self, unit: _FolderUnit) -> _FolderOutcome:
        outcome = _FolderOutcome()
        markdown_parser = MarkdownParser()
        source_parser = SourceParser()

        for path in unit.files:
            if path.name == MANIFEST_FILENAME:
                self._load_manifest(unit.directory, outcome)
                continue

            ext = path.suffix.lower()
            if ext not in self.extensions:
                continue
            try:
                if not path.is_file():
                    continue
                size = path.stat().st_size
            except OSError as exc:
                self.logger.warning("Skipping unreadable file %s: %s", path, exc)
                continue
            if size > self.max_file_size:
                outcome.skipped_files += 1
                outcome.skipped_bytes += size
                self.logger.debug(format_fields("Skipping large file", path=path, size=byte_count(size)))
                continue

            is_markdown = ext == MARKDOWN_EXTENSION
            content_hash = unit.vcs.file_hash(path)
            if content_hash is None and not is_markdown:
                outcome.skipped_files += 1
                outcome.skipped_bytes += size
                self.logger.debug("Skipping untracked file %s", path)
                continue

            try:
                text = path.read_bytes().decode("utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                outcome.skipped_files += 1
                outcome.skipped_bytes += size
                self.logger.warning("Skipping unreadable file %s: %s", path, exc)
                continue

            outcome.processed_files += 1
            outcome.processed_bytes += size
            record_path = path.as_posix()
            relative = unit.vcs.relative_path(path)
            record = FileRecord(
                path=record_path,
                kind=FileKind.MARKDOWN if is_markdown else FileKind.SOURCE,
                hash=content_hash,
                file_url=file_url(unit.vcs.repo_root_url(), relative),
                relative_path=relative,
            )
            if is_markdown:
                document = markdown_parser.parse(text, record_path)
                record.package_id = document.package_id
                record.sites = document.sites
                record.footnotes = document.footnotes
            else:
                document = source_parser.parse(text, record_path)
                record.tags = document.tags
            outcome.errors.extend(document.errors)
            outcome.records.append(record)

        return outcome

    def _load_manifest(self, directory: Path, outcome: _FolderOutcome) -> None:
        try:
            outcome.manifest = load_manifest(directory)
        except ManifestError as exc:
            path = (directory / MANIFEST_FILENAME).as_posix()
            outcome.errors.append(err_manifest(path, exc.line, str(exc)))
        except (OSError, UnicodeDecodeError) as exc:
            path = (directory / MANIFEST_FILENAME).as_posix()
            outcome.errors.append(err_manifest(path, 1, str(exc)))


__all__ = ["IgnoreRule", "Scanner", "build_ignore_rule"]
