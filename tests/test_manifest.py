"""Tests for per-directory reqmd.json manifests."""

from __future__ import annotations

from pathlib import Path

import pytest

from reqmd.manifest import ManifestError, load_manifest, parse_manifest, serialize_manifest


def test_serialize_manifest_sorts_keys_and_ends_with_newline() -> None:
    text = serialize_manifest(
        {
            "https://github.com/acme/repo/blob/main/src/b.go": "bbb",
            "https://github.com/acme/repo/blob/main/src/a.go": "aaa",
        }
    )

    assert text == (
        "{\n"
        '  "https://github.com/acme/repo/blob/main/src/a.go": "aaa",\n'
        '  "https://github.com/acme/repo/blob/main/src/b.go": "bbb"\n'
        "}\n"
    )


def test_load_manifest_returns_none_when_absent(tmp_path: Path) -> None:
    assert load_manifest(tmp_path) is None


def test_load_manifest_reads_entries(tmp_path: Path) -> None:
    (tmp_path / "reqmd.json").write_text('{"https://x/y.go": "abc"}\n', encoding="utf-8")

    assert load_manifest(tmp_path) == {"https://x/y.go": "abc"}


def test_parse_manifest_reports_line_of_syntax_error() -> None:
    with pytest.raises(ManifestError) as excinfo:
        parse_manifest('{\n  "a": "b",\n  oops\n}\n')

    assert excinfo.value.line == 3


@pytest.mark.parametrize("payload", ["[]", '{"a": 1}'])
def test_parse_manifest_rejects_unexpected_shapes(payload: str) -> None:
    with pytest.raises(ManifestError):
        parse_manifest(payload)
