"""CLI parser and command behaviour tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from reqmd import __version__
from reqmd import cli
from reqmd.cli import _build_parser, main
from tests._fixtures.repo_builder import FakeVCS, RepoBuilder


def _patch_vcs(monkeypatch: pytest.MonkeyPatch, repo_builder: RepoBuilder) -> list:  # type: ignore[type-arg]
    branches: list = []  # type: ignore[type-arg]

    def fake_open_git(path: Path, *, branch: str | None = None) -> FakeVCS:
        branches.append(branch)
        return repo_builder.vcs(path)

    monkeypatch.setattr(cli, "open_git", fake_open_git)
    return branches


def test_cli_accepts_verbose_before_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["--verbose", "trace", "docs"])
    assert args.verbose is True
    assert args.command == "trace"


def test_cli_accepts_verbose_after_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["trace", "-v", "docs", "src"])
    assert args.verbose is True
    assert args.paths == ["docs", "src"]


def test_cli_accepts_trace_flags() -> None:
    parser = _build_parser()
    args = parser.parse_args(["trace", "-n", "-e", ".go,.py", "docs"])
    assert args.dry_run is True
    assert args.extensions == ".go,.py"
    assert args.branch is None


def test_cli_requires_a_root() -> None:
    parser = _build_parser()
    with pytest.raises(SystemExit):
        parser.parse_args(["trace"])


def test_cli_prints_version(capsys: pytest.CaptureFixture[str]) -> None:
    main(["version"])
    assert capsys.readouterr().out.strip() == f"reqmd {__version__}"


def test_cli_trace_updates_documents(
    repo_builder: RepoBuilder, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    repo_builder.write(
        {
            "docs/req.md": "---\nreqmd.package: app\n---\n`~Start~` starts.\n",
            "src/main.go": "// [~app/Start~impl]\n",
        }
    )
    branches = _patch_vcs(monkeypatch, repo_builder)

    main(["trace", "--branch", "release", str(repo_builder.path("docs")), str(repo_builder.path("src"))])

    out = capsys.readouterr().out
    assert "req.md" in out
    assert "reqmd.json" in out
    assert branches == ["release", "release"]
    assert "`~Start~`covered[^~Start~]✅" in repo_builder.read("docs/req.md")


def test_cli_dry_run_prints_actions(
    repo_builder: RepoBuilder, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    original = "---\nreqmd.package: app\n---\n`~Start~` starts.\n"
    repo_builder.write({"docs/req.md": original, "src/main.go": "// [~app/Start~impl]\n"})
    _patch_vcs(monkeypatch, repo_builder)

    main(["trace", "--dry-run", str(repo_builder.path("docs")), str(repo_builder.path("src"))])

    out = capsys.readouterr().out
    assert "UpsertSite app/Start" in out
    assert "UpsertManifestEntry" in out
    assert repo_builder.read("docs/req.md") == original


def test_cli_reports_errors_with_locations(
    repo_builder: RepoBuilder, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    repo_builder.write({"docs/req.md": "`~Start~` starts.\n"})
    _patch_vcs(monkeypatch, repo_builder)

    with pytest.raises(SystemExit) as excinfo:
        main(["trace", str(repo_builder.path("docs"))])

    assert excinfo.value.code == 1
    err = capsys.readouterr().err
    assert f"{repo_builder.path('docs/req.md').as_posix()}:1: missing package declaration" in err


def test_cli_reports_invalid_configuration(
    repo_builder: RepoBuilder, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    repo_builder.write({"docs/.reqmd.yml": "workers: -1\n"})
    _patch_vcs(monkeypatch, repo_builder)

    with pytest.raises(SystemExit) as excinfo:
        main(["trace", str(repo_builder.path("docs"))])

    assert excinfo.value.code == 1
    assert "workers must be a positive integer" in capsys.readouterr().err


def test_cli_reports_missing_root(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["trace", str(tmp_path / "missing")])

    assert excinfo.value.code == 1
    assert "Path not found" in capsys.readouterr().err
