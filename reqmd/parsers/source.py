"""Parser for coverage tags embedded in source files."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from .. import grammar
from ..errors import ProcessingError, err_tag_ident
from ..models import CoverageTag


@dataclass
class SourceDocument:
    tags: List[CoverageTag] = field(default_factory=list)
    errors: List[ProcessingError] = field(default_factory=list)


class SourceParser:
    """Finds ``[~PackageID/RequirementName~CoverageType]`` tags.

    Anything that does not close into a complete tag is plain text.
    """

    def parse(self, text: str, path: str) -> SourceDocument:
        document = SourceDocument()
        if "[~" not in text:
            return document
        lines, _ = grammar.split_lines(text)
        for number, line in enumerate(lines, start=1):
            if "[~" not in line:
                continue
            for match in grammar.TAG_PATTERN.finditer(line):
                package_id = match.group("package")
                name = match.group("name")
                if not (grammar.is_identifier(package_id) and grammar.is_identifier(name)):
                    document.errors.append(err_tag_ident(path, number, match.group(0)))
                    continue
                document.tags.append(
                    CoverageTag(
                        requirement_id=grammar.requirement_id(package_id, name),
                        coverage_type=match.group("type"),
                        path=path,
                        line=number,
                    )
                )
        return document


__all__ = ["SourceDocument", "SourceParser"]
