"""Tests for concurrent scanning of markdown and source trees."""

from __future__ import annotations

from pathlib import Path

import pytest

from reqmd.models import FileKind
from reqmd.scanner import Scanner, build_ignore_rule
from tests._fixtures.repo_builder import ROOT_URL, RepoBuilder

REQUIREMENTS = """
---
reqmd.package: billing
---
`~Invoice~` issue invoices.
"""


def _paths(result, root: Path) -> list[str]:  # type: ignore[no-untyped-def]
    return [Path(record.path).relative_to(root).as_posix() for record in result.files]


def test_scanner_builds_records_for_documents_and_sources(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "docs/req.md": REQUIREMENTS,
            "src/invoice.go": "// [~billing/Invoice~impl]\nfunc Invoice() {}\n",
            "src/notes.txt": "[~billing/Invoice~impl]\n",
        }
    )

    result = repo_builder.scanner().scan([repo_builder.path("docs"), repo_builder.path("src")])

    assert result.errors == []
    assert _paths(result, repo_builder.root) == ["docs/req.md", "src/invoice.go"]
    document, source = result.files
    assert document.kind is FileKind.MARKDOWN
    assert document.package_id == "billing"
    assert [site.name for site in document.sites] == ["Invoice"]
    assert source.kind is FileKind.SOURCE
    assert source.relative_path == "src/invoice.go"
    assert source.file_url == f"{ROOT_URL}/src/invoice.go"
    assert source.hash == repo_builder.hashes["src/invoice.go"]
    assert [(tag.requirement_id, tag.line) for tag in source.tags] == [("billing/Invoice", 1)]


def test_scanner_skips_untracked_large_and_excluded_files(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "src/tracked.go": "// [~billing/Invoice~impl]\n",
            "src/big.go": "// [~billing/Invoice~impl]\n" + "x" * 200,
            "src/testdata/fixture.go": "// [~billing/Invoice~impl]\n",
            "src/node_modules/dep.js": "// [~billing/Invoice~impl]\n",
            "src/.cache/hidden.go": "// [~billing/Invoice~impl]\n",
        }
    )
    repo_builder.write({"src/untracked.go": "// [~billing/Invoice~impl]\n"}, tracked=False)

    scanner = repo_builder.scanner(max_file_size=100, exclude_paths=["testdata/"])
    result = scanner.scan([repo_builder.path("src")])

    assert _paths(result, repo_builder.root) == ["src/tracked.go"]


def test_scanner_includes_untracked_markdown(repo_builder: RepoBuilder) -> None:
    repo_builder.write({"docs/req.md": REQUIREMENTS}, tracked=False)

    result = repo_builder.scanner().scan([repo_builder.path("docs")])

    assert _paths(result, repo_builder.root) == ["docs/req.md"]
    assert result.files[0].hash is None


def test_scanner_honours_extension_filter(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "src/a.go": "// [~billing/Invoice~impl]\n",
            "src/b.py": "# [~billing/Invoice~test]\n",
        }
    )

    result = repo_builder.scanner(extensions=[".py"]).scan([repo_builder.path("src")])

    assert _paths(result, repo_builder.root) == ["src/b.py"]


def test_scanner_collects_syntax_errors_from_all_files(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "docs/a.md": "`~Bad Name~`\n",
            "docs/b.md": "```\nunterminated\n",
            "src/c.go": "// [~9pkg/Name~impl]\n",
        }
    )

    result = repo_builder.scanner().scan([repo_builder.path("docs"), repo_builder.path("src")])

    assert [(Path(error.path).name, error.code) for error in result.errors] == [
        ("a.md", "reqident"),
        ("b.md", "unmatchedfence"),
        ("c.go", "tagident"),
    ]


def test_scanner_loads_manifests_per_directory(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "docs/req.md": REQUIREMENTS,
            "docs/reqmd.json": '{"https://github.com/acme/repo/blob/main/src/a.go": "aaa"}\n',
            "docs/broken/reqmd.json": "{oops}\n",
        }
    )

    result = repo_builder.scanner().scan([repo_builder.path("docs")])

    docs = repo_builder.path("docs").as_posix()
    assert result.manifests == {docs: {"https://github.com/acme/repo/blob/main/src/a.go": "aaa"}}
    assert [(error.code, error.line) for error in result.errors] == [("manifest", 1)]
    assert result.errors[0].path.endswith("docs/broken/reqmd.json")


def test_scanner_skips_files_that_are_not_utf8(repo_builder: RepoBuilder) -> None:
    repo_builder.write({"src/ok.go": "// [~billing/Invoice~impl]\n"})
    (repo_builder.path("src") / "latin1.go").write_bytes(b"// caf\xe9 [~billing/Invoice~impl]\n")
    repo_builder.hashes["src/latin1.go"] = "ddd"

    result = repo_builder.scanner().scan([repo_builder.path("src")])

    assert _paths(result, repo_builder.root) == ["src/ok.go"]
    assert result.errors == []


def test_scanner_scans_overlapping_roots_once(repo_builder: RepoBuilder) -> None:
    repo_builder.write({"src/a.go": "// [~billing/Invoice~impl]\n"})

    result = repo_builder.scanner().scan([repo_builder.path(), repo_builder.path("src")])

    assert _paths(result, repo_builder.root) == ["src/a.go"]


def test_scanner_rejects_missing_roots(tmp_path: Path) -> None:
    scanner = Scanner(vcs_factory=lambda root: None)  # type: ignore[arg-type,return-value]

    with pytest.raises(FileNotFoundError):
        scanner.scan([tmp_path / "missing"])


def test_scanner_requires_positive_workers() -> None:
    with pytest.raises(ValueError):
        Scanner(workers=0)


def test_ignore_rules_match_directories_and_globs() -> None:
    directory = build_ignore_rule("testdata/")
    glob = build_ignore_rule("*.gen.go")
    anchored = build_ignore_rule("/docs/drafts")

    assert directory is not None and glob is not None and anchored is not None
    assert directory.matches("pkg/testdata", True)
    assert not directory.matches("pkg/testdata", False)
    assert glob.matches("pkg/model.gen.go", False)
    assert anchored.matches("docs/drafts", True)
    assert not anchored.matches("other/docs/drafts", True)
    assert build_ignore_rule("  ") is None
