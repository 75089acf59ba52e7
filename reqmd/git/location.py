"""Turns remote URLs, refs and relative paths into stable file URLs."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Sequence
from urllib.parse import urlparse

from ..errors import VersionControlError

_SCP_LIKE = re.compile(r"^(?:(?P<user>[^@/]+)@)?(?P<host>[^:/]+):(?P<path>[^/].*)$")


@dataclass(frozen=True)
class HostingRule:
    """Path shape used by one hosting-provider family."""

    family: str
    host_marker: str
    render: Callable[[str, str], str]

    def matches(self, host: str) -> bool:
        return self.host_marker in host


_HOSTING_RULES: Sequence[HostingRule] = (
    HostingRule("github", "github", lambda base, ref: f"{base}/blob/{ref}"),
    HostingRule("gitlab", "gitlab", lambda base, ref: f"{base}/-/blob/{ref}"),
    HostingRule("bitbucket", "bitbucket", lambda base, ref: f"{base}/src/{ref}"),
)


def normalize_remote(remote_url: str) -> tuple[str, str]:
    """Return ``(host, https_base)`` for an https, ssh or scp-like remote."""
    remote = remote_url.strip()
    if not remote:
        raise VersionControlError("remote URL is empty")

    if "://" in remote:
        parsed = urlparse(remote)
        host = parsed.hostname or ""
        path = parsed.path
    else:
        match = _SCP_LIKE.match(remote)
        if match is None:
            raise VersionControlError(f"unrecognised remote URL: {remote_url}")
        host = match.group("host")
        path = match.group("path")

    path = path.strip("/")
    if path.endswith(".git"):
        path = path[: -len(".git")]
    if not host or not path:
        raise VersionControlError(f"unrecognised remote URL: {remote_url}")
    return host.lower(), f"https://{host.lower()}/{path}"


def repo_root_url(remote_url: str, ref: str) -> str:
    """Return the web URL of the repository root at ``ref``.

    Raises VersionControlError for hosts outside the known provider families.
    """
    if not ref:
        raise VersionControlError("cannot build file URLs without a branch or commit")
    host, base = normalize_remote(remote_url)
    for rule in _HOSTING_RULES:
        if rule.matches(host):
            return rule.render(base, ref)
    raise VersionControlError(f"unsupported git provider: {remote_url}")


def file_url(root_url: str, relative_path: str) -> str:
    return f"{root_url.rstrip('/')}/{relative_path.lstrip('/')}"


class LocationResolver:
    """Resolves repository-relative paths into FileURLs for one repository."""

    def __init__(self, remote_url: str, ref: str) -> None:
        self.root_url = repo_root_url(remote_url, ref)

    def file_url(self, relative_path: str) -> str:
        return file_url(self.root_url, relative_path)


__all__ = [
    "LocationResolver",
    "file_url",
    "normalize_remote",
    "repo_root_url",
]
