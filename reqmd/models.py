"""Core data models shared across reqmd components."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from .errors import ProcessingError


class FileKind(str, Enum):
    MARKDOWN = "markdown"
    SOURCE = "source"


class SiteKind(str, Enum):
    """Annotation state of a RequirementSite."""

    BARE = "bare"
    COVERED = "covered"
    UNCOVERED = "uncovered"


class ActionKind(str, Enum):
    UPSERT_SITE = "UpsertSite"
    UPSERT_FOOTNOTE = "UpsertFootnote"
    UPSERT_MANIFEST_ENTRY = "UpsertManifestEntry"
    DELETE_MANIFEST_ENTRY = "DeleteManifestEntry"


@dataclass
class RequirementSite:
    """A `~Name~` marker found in a markdown document."""

    name: str
    path: str
    line: int
    kind: SiteKind = SiteKind.BARE
    status_word: str = ""
    status_glyph: str = ""
    footnote_ref: str = ""


@dataclass
class Coverer:
    """One piece of coverage evidence rendered as ``[label](url)``."""

    label: str
    url: str

    def render(self) -> str:
        return f"[{self.label}]({self.url})"


@dataclass
class CoverageFootnote:
    """A ``[^~Name~]:`` block listing the coverers of one requirement."""

    name: str
    path: str
    line: int
    hint: str = ""
    coverers: List[Coverer] = field(default_factory=list)
    text: str = ""


@dataclass
class CoverageTag:
    """A ``[~pkg/Name~type]`` marker found in a source file."""

    requirement_id: str
    coverage_type: str
    path: str
    line: int


@dataclass
class FileRecord:
    """Everything Scan learned about one discovered file."""

    path: str
    kind: FileKind
    package_id: Optional[str] = None
    sites: List[RequirementSite] = field(default_factory=list)
    footnotes: List[CoverageFootnote] = field(default_factory=list)
    tags: List[CoverageTag] = field(default_factory=list)
    hash: Optional[str] = None
    file_url: str = ""
    relative_path: str = ""


@dataclass
class Action:
    """One edit planned by Analyze and executed by Apply.

    ``line`` is the 1-based physical line to patch, or 0 to append.
    """

    kind: ActionKind
    path: str
    line: int
    payload: str
    requirement_id: str = ""

    def describe(self) -> str:
        location = f"{self.path}:{self.line}" if self.line else f"{self.path}:append"
        subject = f" {self.requirement_id}" if self.requirement_id else ""
        return f"{self.kind.value}{subject} at {location}\n\t{self.payload.rstrip()}"


@dataclass
class ScanResult:
    files: List[FileRecord] = field(default_factory=list)
    errors: List[ProcessingError] = field(default_factory=list)
    # Directory -> previously persisted FileURL -> hash map.
    manifests: Dict[str, Dict[str, str]] = field(default_factory=dict)


@dataclass
class AnalysisResult:
    actions: List[Action] = field(default_factory=list)
    errors: List[ProcessingError] = field(default_factory=list)
