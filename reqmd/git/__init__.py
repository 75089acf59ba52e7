"""Version-control collaborators: git access and file URL resolution."""

from .location import LocationResolver, repo_root_url
from .provider import GitProvider, VersionControl, open_git

__all__ = [
    "GitProvider",
    "LocationResolver",
    "VersionControl",
    "open_git",
    "repo_root_url",
]
