"""Processing errors raised or accumulated by the trace pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Sequence


@dataclass(frozen=True)
class ProcessingError:
    """A single problem bound to a file location."""

    code: str
    path: str
    line: int
    message: str

    def __str__(self) -> str:
        return f"{self.path}:{self.line}: {self.message}"


def sort_errors(errors: Iterable[ProcessingError]) -> List[ProcessingError]:
    return sorted(errors, key=lambda err: (err.path, err.line, err.code))


class TraceError(RuntimeError):
    """Raised when a pipeline phase ends with one or more processing errors."""

    def __init__(self, message: str, errors: Sequence[ProcessingError]) -> None:
        super().__init__(message)
        self.errors = list(errors)

    def __str__(self) -> str:
        if not self.errors:
            return super().__str__()
        return "\n".join(str(err) for err in self.errors)


class SyntaxErrors(TraceError):
    """Scan found malformed grammar constructs."""


class SemanticErrors(TraceError):
    """Analyze found constructs that violate a global invariant."""


class VersionControlError(RuntimeError):
    """Raised when a root cannot be mapped to a hosted repository."""


class ApplyError(TraceError):
    """Apply found a target that no longer matches what Scan saw."""

    def __init__(self, error: ProcessingError) -> None:
        super().__init__(error.message, [error])
        self.error = error


# Syntax errors


def err_package_ident(path: str, line: int, package_id: str) -> ProcessingError:
    return ProcessingError("pkgident", path, line, f"PackageID shall be an identifier: {package_id}")


def err_requirement_ident(path: str, line: int, name: str) -> ProcessingError:
    return ProcessingError("reqident", path, line, f"RequirementName shall be an identifier: {name}")


def err_status_word(path: str, line: int, word: str) -> ProcessingError:
    return ProcessingError(
        "covstatus", path, line, f"CoverageStatusWord shall be 'covered' or 'uncvrd': {word!r}"
    )


def err_status_glyph(path: str, line: int, word: str, glyph: str) -> ProcessingError:
    return ProcessingError(
        "covglyph",
        path,
        line,
        f"CoverageStatusEmoji {glyph or '(missing)'!s} does not match CoverageStatusWord {word!r}",
    )


def err_footnote_ref(path: str, line: int, name: str, reference: str) -> ProcessingError:
    return ProcessingError(
        "footnoteref",
        path,
        line,
        f"CoverageFootnoteReference shall match the RequirementName: {reference} != {name}",
    )


def err_multiple_sites(path: str, line: int, first: str, second: str) -> ProcessingError:
    return ProcessingError(
        "multisites", path, line, f"only one RequirementSite is allowed per line: {first}, {second}"
    )


def err_unmatched_fence(path: str, line: int) -> ProcessingError:
    return ProcessingError(
        "unmatchedfence",
        path,
        line,
        f"opening code block fence at line {line} has no matching closing fence",
    )


def err_tag_ident(path: str, line: int, tag: str) -> ProcessingError:
    return ProcessingError(
        "tagident", path, line, f"CoverageTag shall reference PackageID/RequirementName identifiers: {tag}"
    )


def err_manifest(path: str, line: int, detail: str) -> ProcessingError:
    return ProcessingError("manifest", path, line, f"manifest cannot be read: {detail}")


# Semantic errors


def err_duplicate_requirement(
    path: str, line: int, other_path: str, other_line: int, requirement_id: str
) -> ProcessingError:
    return ProcessingError(
        "dupreqid",
        path,
        line,
        f"duplicate requirement {requirement_id}, also defined at {other_path}:{other_line}",
    )


def err_missing_package(path: str, line: int) -> ProcessingError:
    return ProcessingError(
        "nopkgidreqs",
        path,
        line,
        "missing package declaration: markdown file with RequirementSites shall define reqmd.package",
    )


# Apply errors


def err_line_drift(path: str, line: int, expected: str, detail: str) -> ProcessingError:
    return ProcessingError("linedrift", path, line, f"cannot update {expected}: {detail}")


def err_apply_io(path: str, detail: str) -> ProcessingError:
    return ProcessingError("applyio", path, 0, f"cannot rewrite file: {detail}")


__all__ = [
    "ApplyError",
    "ProcessingError",
    "SemanticErrors",
    "SyntaxErrors",
    "TraceError",
    "VersionControlError",
    "sort_errors",
]
