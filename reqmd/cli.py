"""CLI entrypoints for reqmd commands."""

from __future__ import annotations

import argparse
import functools
import sys
from pathlib import Path

from . import __version__
from .config import ConfigError, load_config
from .errors import TraceError, VersionControlError
from .git.provider import open_git
from .logging import configure_logging
from .scanner import Scanner
from .tracer import Tracer


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Log every skipped file and planned action.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="reqmd",
        description="Keep requirement markdown documents in sync with source coverage tags.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    trace_parser = subparsers.add_parser(
        "trace",
        help="Update coverage annotations, footnotes and manifests.",
    )
    _add_verbose_option(trace_parser, suppress_default=True)
    trace_parser.add_argument(
        "-e",
        "--extensions",
        default=None,
        help="Comma-separated source file extensions to scan (e.g. '.go,.py').",
    )
    trace_parser.add_argument(
        "-n",
        "--dry-run",
        action="store_true",
        help="Print planned actions without modifying any file.",
    )
    trace_parser.add_argument(
        "--branch",
        default=None,
        help="Branch used in generated file URLs (defaults to main, then master).",
    )
    trace_parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write DEBUG logs to this file.",
    )
    trace_parser.add_argument(
        "paths",
        nargs="+",
        metavar="path",
        help="Markdown root followed by zero or more source roots.",
    )

    version_parser = subparsers.add_parser("version", help="Print the reqmd version.")
    _add_verbose_option(version_parser, suppress_default=True)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for reqmd commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command == "version":
        print(f"reqmd {__version__}")
        return

    configure_logging(
        verbose=bool(args.verbose),
        log_file=getattr(args, "log_file", None),
    )

    if args.command == "trace":
        _run_trace(parser, args)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _run_trace(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    dry_run = bool(getattr(args, "dry_run", False))
    try:
        config = load_config(Path(args.paths[0])).with_overrides(
            extensions=args.extensions, branch=args.branch
        )
        scanner = Scanner(
            config.extensions,
            max_file_size=config.max_file_size,
            workers=config.workers,
            exclude_paths=config.exclude_paths,
            vcs_factory=functools.partial(open_git, branch=config.branch),
        )
        outcome = Tracer(scanner=scanner).trace(args.paths, dry_run=dry_run)
    except TraceError as exc:
        parser.exit(1, f"{exc}\n")
    except (ConfigError, VersionControlError) as exc:
        parser.exit(1, f"reqmd trace failed: {exc}\n")
    except (FileNotFoundError, NotADirectoryError) as exc:
        parser.exit(1, f"{exc}\n")

    if dry_run:
        if not outcome.actions:
            print("Documents already up to date (dry-run)")
            return
        print(f"Planned actions (dry-run, {outcome.files} files scanned):")
        for action in outcome.actions:
            print(action.describe())
        return

    if not outcome.written:
        print("Documents already up to date")
        return
    for path in outcome.written:
        print(f"Updated {_relativize(Path(path))}")


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
