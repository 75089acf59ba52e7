"""Parser for requirement documents."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from .. import grammar
from ..errors import (
    ProcessingError,
    err_footnote_ref,
    err_multiple_sites,
    err_package_ident,
    err_requirement_ident,
    err_status_glyph,
    err_status_word,
    err_unmatched_fence,
)
from ..models import CoverageFootnote, Coverer, RequirementSite


@dataclass
class MarkdownDocument:
    """Result of parsing one markdown file."""

    package_id: Optional[str] = None
    sites: List[RequirementSite] = field(default_factory=list)
    footnotes: List[CoverageFootnote] = field(default_factory=list)
    errors: List[ProcessingError] = field(default_factory=list)


class MarkdownParser:
    """Extracts the package header, requirement sites and coverage footnotes.

    Errors never stop the parse: every malformed line is reported and the
    remaining lines are still examined.
    """

    def parse(self, text: str, path: str) -> MarkdownDocument:
        document = MarkdownDocument()
        lines, _ = grammar.split_lines(text)

        in_header = False
        fence_line = 0
        for number, line in enumerate(lines, start=1):
            if number == 1 and line.rstrip() == grammar.HEADER_FENCE:
                in_header = True
                continue
            if in_header:
                if line.rstrip() == grammar.HEADER_FENCE:
                    in_header = False
                    continue
                self._parse_header_line(line, number, path, document)
                continue

            if grammar.CODE_FENCE_PATTERN.match(line):
                fence_line = 0 if fence_line else number
                continue
            if fence_line:
                continue

            site = parse_site(line, number, path, document.errors)
            if site is not None:
                document.sites.append(site)
                continue

            footnote = parse_footnote(line, number, path)
            if footnote is not None:
                document.footnotes.append(footnote)

        if fence_line:
            document.errors.append(err_unmatched_fence(path, fence_line))
        return document

    @staticmethod
    def _parse_header_line(
        line: str, number: int, path: str, document: MarkdownDocument
    ) -> None:
        match = grammar.HEADER_PATTERN.match(line)
        if match is None:
            return
        package_id = match.group("package")
        if not grammar.is_identifier(package_id):
            document.errors.append(err_package_ident(path, number, package_id))
            return
        document.package_id = package_id


def parse_site(
    line: str, number: int, path: str, errors: List[ProcessingError]
) -> Optional[RequirementSite]:
    """Return the RequirementSite on ``line``, recording syntax errors.

    Returns None when the line holds no site or when the site is malformed.
    """
    matches = list(grammar.SITE_PATTERN.finditer(line))
    if not matches:
        return None
    if len(matches) > 1:
        errors.append(err_multiple_sites(path, number, matches[0].group(0), matches[1].group(0)))
        return None

    match = matches[0]
    name = match.group("name")
    word = match.group("word") or ""
    reference = match.group("ref")
    glyph = match.group("glyph") or ""

    failed = False
    if not grammar.is_identifier(name):
        errors.append(err_requirement_ident(path, number, name))
        failed = True
    if reference is not None:
        if word not in grammar.STATUS_GLYPHS:
            errors.append(err_status_word(path, number, word))
            failed = True
        elif glyph != grammar.STATUS_GLYPHS[word]:
            errors.append(err_status_glyph(path, number, word, glyph))
            failed = True
        if reference != name:
            errors.append(err_footnote_ref(path, number, name, reference))
            failed = True
    if failed:
        return None

    return RequirementSite(
        name=name,
        path=path,
        line=number,
        kind=grammar.site_kind(word, reference),
        status_word=word,
        status_glyph=glyph,
        footnote_ref=reference or "",
    )


def parse_footnote(line: str, number: int, path: str) -> Optional[CoverageFootnote]:
    """Return the CoverageFootnote defined on ``line``, if any.

    Coverers are captured verbatim; their URLs are not validated.
    """
    match = grammar.FOOTNOTE_PATTERN.match(line)
    if match is None:
        return None

    rest = match.group("rest")
    hint = ""
    hint_match = grammar.HINT_PATTERN.match(rest)
    if hint_match is not None:
        hint = hint_match.group("hint")
        rest = rest[hint_match.end():]

    coverers = [
        Coverer(label=found.group("label"), url=found.group("url"))
        for found in grammar.COVERER_PATTERN.finditer(rest)
    ]
    return CoverageFootnote(
        name=match.group("name"),
        path=path,
        line=number,
        hint=hint,
        coverers=coverers,
        text=match.group("body"),
    )


__all__ = ["MarkdownDocument", "MarkdownParser", "parse_footnote", "parse_site"]
