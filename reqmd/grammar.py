"""Identifier and token vocabulary shared by the markdown and source parsers.

Both grammars, and the Apply-time re-validation, use the patterns defined
here so that a line accepted during Scan is recognised the same way when it
is patched.
"""

from __future__ import annotations

import re
from typing import Iterable, Optional

from .models import Coverer, SiteKind

IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9_]*(?:\.[A-Za-z][A-Za-z0-9_]*)*$")

HEADER_FENCE = "---"
HEADER_PATTERN = re.compile(r"^reqmd\.package:\s*(?P<package>.+?)\s*$")
CODE_FENCE_PATTERN = re.compile(r"^\s*```")

STATUS_COVERED = "covered"
STATUS_UNCOVERED = "uncvrd"
GLYPH_COVERED = "✅"
GLYPH_UNCOVERED = "❓"

STATUS_GLYPHS = {
    STATUS_COVERED: GLYPH_COVERED,
    STATUS_UNCOVERED: GLYPH_UNCOVERED,
}

SITE_PATTERN = re.compile(
    r"`~(?P<name>[^~`]+)~`"
    r"(?:"
    r"[ \t]*(?P<word>[A-Za-z]+)?"
    r"[ \t]*\[\^~(?P<ref>[^~\]]*)~\]"
    r"[ \t]*(?P<glyph>✅|❓)?"
    r")?"
)

FOOTNOTE_PATTERN = re.compile(
    r"^(?P<indent>\s*)(?P<body>\[\^~(?P<name>[^~\]]+)~\]:(?P<rest>.*?))\s*$"
)
HINT_PATTERN = re.compile(
    r"^\s*(?P<hint>`\[~(?P<package>[^~/`]+)/(?P<name>[^~`]+)~(?P<type>[^\]`]*)\]`)"
)
COVERER_PATTERN = re.compile(r"\[(?P<label>[^\]]+)\]\((?P<url>[^)]+)\)")
ANY_FOOTNOTE_PATTERN = re.compile(r"^\s*\[\^[^\]]+\]:")

# Tags inside backticks are quoted documentation, not coverage evidence.
TAG_PATTERN = re.compile(
    r"(?<!`)\[~(?P<package>[^/~\]\s`]+)/(?P<name>[^~\]\s`]+)~(?P<type>[^\]\s`]+)\]"
)

LINE_BREAK_PATTERN = re.compile(r"\r?\n")

DEFAULT_HINT_TYPE = "impl"


def detect_line_ending(text: str) -> str:
    """Return the dominant terminator of ``text``; ties and empty text give ``\\n``."""
    crlf = text.count("\r\n")
    return "\r\n" if crlf * 2 > text.count("\n") else "\n"


def split_lines(text: str) -> tuple[list[str], list[str]]:
    """Split ``text`` into lines and the terminator that ended each one.

    Mixed ``\\n`` and ``\\r\\n`` files keep every line's own terminator. The
    last element has an empty terminator, so a trailing line break yields a
    final empty line and :func:`join_lines` reproduces ``text`` exactly.
    """
    lines: list[str] = []
    endings: list[str] = []
    start = 0
    for match in LINE_BREAK_PATTERN.finditer(text):
        lines.append(text[start:match.start()])
        endings.append(match.group(0))
        start = match.end()
    lines.append(text[start:])
    endings.append("")
    return lines, endings


def join_lines(lines: Iterable[str], endings: Iterable[str]) -> str:
    return "".join(f"{line}{ending}" for line, ending in zip(lines, endings))


def is_identifier(value: str) -> bool:
    return bool(IDENTIFIER_PATTERN.match(value))


def requirement_id(package_id: str, name: str) -> str:
    return f"{package_id}/{name}"


def split_requirement_id(value: str) -> tuple[str, str]:
    package_id, _, name = value.partition("/")
    return package_id, name


def site_kind(word: Optional[str], reference: Optional[str]) -> SiteKind:
    if reference is None:
        return SiteKind.BARE
    if word == STATUS_COVERED:
        return SiteKind.COVERED
    return SiteKind.UNCOVERED


def format_site(name: str, kind: SiteKind) -> str:
    """Render the canonical text of a site in the requested state."""
    label = f"`~{name}~`"
    if kind is SiteKind.BARE:
        return label
    word = STATUS_COVERED if kind is SiteKind.COVERED else STATUS_UNCOVERED
    return f"{label}{word}[^~{name}~]{STATUS_GLYPHS[word]}"


def format_hint(package_id: str, name: str) -> str:
    return f"`[~{package_id}/{name}~{DEFAULT_HINT_TYPE}]`"


def format_footnote(package_id: str, name: str, coverers: Iterable[Coverer]) -> str:
    """Render a CoverageFootnote line, without line terminator."""
    text = f"[^~{name}~]: {format_hint(package_id, name)}"
    rendered = ", ".join(coverer.render() for coverer in coverers)
    if rendered:
        text = f"{text} {rendered}"
    return text


def coverage_label(relative_path: str, line: int, coverage_type: str) -> str:
    return f"{relative_path}:{line}:{coverage_type}"


def coverage_url(file_url: str, line: int) -> str:
    return f"{file_url}#L{line}"


def is_footnote_line(line: str) -> bool:
    """True for any markdown footnote definition, coverage or not."""
    return ANY_FOOTNOTE_PATTERN.match(line) is not None


__all__ = [
    "COVERER_PATTERN",
    "FOOTNOTE_PATTERN",
    "SITE_PATTERN",
    "TAG_PATTERN",
    "coverage_label",
    "coverage_url",
    "format_footnote",
    "format_hint",
    "format_site",
    "is_footnote_line",
    "is_identifier",
    "requirement_id",
    "site_kind",
]
