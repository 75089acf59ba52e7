"""Version-control provider backed by the git command line."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Callable, Dict, Iterable, Optional, Protocol, Sequence

from ..errors import VersionControlError
from ..logging import get_logger
from .location import LocationResolver


class VersionControl(Protocol):
    """What Scan needs from the repository holding a root."""

    def relative_path(self, path: Path) -> str:
        """Return ``path`` relative to the repository root, slash separated."""

    def file_hash(self, path: Path) -> Optional[str]:
        """Return the committed content hash of ``path``, or None if untracked."""

    def repo_root_url(self) -> str:
        """Return the web URL of the repository root."""


class GitProvider:
    """Answers hash and URL queries for one git working tree.

    Blob hashes are read once from ``HEAD`` so that per-file queries made by
    scan workers are plain lookups.
    """

    _DEFAULT_BRANCHES: Sequence[str] = ("main", "master")

    def __init__(
        self,
        path: Path,
        *,
        branch: str | None = None,
        remote: str = "origin",
        runner: Callable[..., str] | None = None,
    ) -> None:
        self._runner = runner or self._default_runner
        self.logger = get_logger("git")
        start = Path(path).expanduser().resolve()
        if start.is_file():
            start = start.parent

        self.root = Path(self._git(["rev-parse", "--show-toplevel"], cwd=start).strip()).resolve()
        remote_url = self._git(["remote", "get-url", remote], cwd=self.root).strip()
        ref = branch or self._detect_branch()
        self._resolver = LocationResolver(remote_url, ref)
        self._hashes = self._load_hashes()
        self.logger.debug(
            "Opened git repository %s (remote=%s, ref=%s, tracked=%d)",
            self.root,
            remote_url,
            ref,
            len(self._hashes),
        )

    def relative_path(self, path: Path) -> str:
        resolved = Path(path).resolve()
        try:
            return resolved.relative_to(self.root).as_posix()
        except ValueError:
            raise VersionControlError(f"{path} is outside repository {self.root}") from None

    def file_hash(self, path: Path) -> Optional[str]:
        try:
            relative = self.relative_path(path)
        except VersionControlError:
            return None
        return self._hashes.get(relative)

    def repo_root_url(self) -> str:
        return self._resolver.root_url

    # ------------------------------------------------------------------
    # Internals

    def _detect_branch(self) -> str:
        for candidate in self._DEFAULT_BRANCHES:
            try:
                self._git(["rev-parse", "--verify", "--quiet", f"refs/heads/{candidate}"], cwd=self.root)
            except VersionControlError:
                continue
            return candidate
        current = self._git(["rev-parse", "--abbrev-ref", "HEAD"], cwd=self.root).strip()
        if not current or current == "HEAD":
            raise VersionControlError(f"cannot determine a branch for {self.root}")
        return current

    def _load_hashes(self) -> Dict[str, str]:
        output = self._git(["ls-tree", "-r", "-z", "--full-tree", "HEAD"], cwd=self.root)
        hashes: Dict[str, str] = {}
        for entry in output.split("\0"):
            if not entry:
                continue
            meta, _, relative = entry.partition("\t")
            parts = meta.split()
            if len(parts) != 3 or parts[1] != "blob":
                continue
            hashes[relative] = parts[2]
        return hashes

    def _git(self, args: Iterable[str], *, cwd: Path) -> str:
        command = ["git", *args]
        try:
            return self._runner(command, cwd=cwd, capture_output=True)
        except subprocess.CalledProcessError as exc:
            detail = (exc.stderr or "").strip() or f"exit status {exc.returncode}"
            raise VersionControlError(f"{' '.join(command)} failed in {cwd}: {detail}") from exc
        except OSError as exc:
            raise VersionControlError(f"cannot run git in {cwd}: {exc}") from exc

    @staticmethod
    def _default_runner(
        args: Iterable[str],
        *,
        cwd: Path,
        capture_output: bool = False,
    ) -> str:
        completed = subprocess.run(
            list(args),
            cwd=str(cwd),
            check=True,
            text=True,
            capture_output=capture_output,
        )
        return completed.stdout if capture_output else ""


def open_git(path: Path, *, branch: str | None = None) -> GitProvider:
    """Factory used by the scanner to open one provider per root."""
    return GitProvider(path, branch=branch)


__all__ = ["GitProvider", "VersionControl", "open_git"]
