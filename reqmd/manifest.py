"""Per-directory ``reqmd.json`` manifests mapping FileURLs to content hashes."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, Mapping

MANIFEST_FILENAME = "reqmd.json"


class ManifestError(ValueError):
    """Raised when a manifest exists but is not a FileURL -> hash object."""

    def __init__(self, message: str, line: int = 1) -> None:
        super().__init__(message)
        self.line = line


def manifest_path(directory: Path | str) -> Path:
    return Path(directory) / MANIFEST_FILENAME


def parse_manifest(text: str) -> Dict[str, str]:
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ManifestError(exc.msg, exc.lineno) from exc
    if not isinstance(payload, dict):
        raise ManifestError("expected a JSON object at the root")
    entries: Dict[str, str] = {}
    for key, value in payload.items():
        if not isinstance(value, str):
            raise ManifestError(f"hash for {key} must be a string")
        entries[key] = value
    return entries


def load_manifest(directory: Path | str) -> Dict[str, str] | None:
    """Return the manifest stored in ``directory``, or None when absent."""
    path = manifest_path(directory)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    return parse_manifest(text)


def serialize_manifest(entries: Mapping[str, str]) -> str:
    """Render entries as indented JSON with lexically sorted keys."""
    return json.dumps(dict(entries), indent=2, sort_keys=True, ensure_ascii=False) + "\n"


__all__ = [
    "MANIFEST_FILENAME",
    "ManifestError",
    "load_manifest",
    "manifest_path",
    "parse_manifest",
    "serialize_manifest",
]
