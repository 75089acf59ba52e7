"""Semantic validation and edit planning.

The analyzer joins requirement sites from documents with coverage tags from
sources, compares the result with what is already written (site annotations,
footnotes and per-directory manifests) and emits the smallest ordered list of
actions that brings the documents up to date. It never touches disk.
"""

from __future__ import annotations

import posixpath
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from . import grammar
from .errors import ProcessingError, err_duplicate_requirement, err_missing_package
from .logging import get_logger
from .manifest import MANIFEST_FILENAME, serialize_manifest
from .models import (
    Action,
    ActionKind,
    AnalysisResult,
    CoverageFootnote,
    CoverageTag,
    Coverer,
    FileKind,
    FileRecord,
    RequirementSite,
    SiteKind,
)


@dataclass
class _IndexedSite:
    requirement_id: str
    site: RequirementSite
    record: FileRecord

    @property
    def package_id(self) -> str:
        return self.record.package_id or ""


class Analyzer:
    """Builds the requirement/coverage graph and plans edits."""

    def __init__(self) -> None:
        self.logger = get_logger("analyzer")

    def analyze(
        self,
        files: Sequence[FileRecord],
        manifests: Optional[Mapping[str, Mapping[str, str]]] = None,
    ) -> AnalysisResult:
        """Return planned actions, or semantic errors and no actions."""
        result = AnalysisResult()
        documents = sorted(
            (record for record in files if record.kind is FileKind.MARKDOWN),
            key=lambda record: record.path,
        )
        sources = sorted(
            (record for record in files if record.kind is FileKind.SOURCE),
            key=lambda record: record.path,
        )

        index = self._build_requirement_index(documents, result.errors)
        if result.errors:
            return result

        coverage = self._build_coverage_index(sources, index)
        desired_manifests: Dict[str, Dict[str, str]] = defaultdict(dict)

        ordered = sorted(index.values(), key=lambda entry: (entry.record.path, entry.site.line))
        for entry in ordered:
            footnote = _find_footnote(entry.record, entry.site.name)
            tags = coverage.get(entry.requirement_id, [])
            if tags:
                self._plan_covered(entry, footnote, tags, result.actions)
                folder = posixpath.dirname(entry.record.path)
                for tag_record, _ in tags:
                    desired_manifests[folder][tag_record.file_url] = tag_record.hash or ""
            elif entry.site.kind is SiteKind.COVERED:
                self._plan_regression(entry, footnote, result.actions)

        folders = sorted({posixpath.dirname(record.path) for record in documents})
        for folder in folders:
            previous = (manifests or {}).get(folder)
            action = self._plan_manifest(folder, desired_manifests.get(folder, {}), previous)
            if action is not None:
                result.actions.append(action)

        for action in result.actions:
            self.logger.debug("Planned %s", action.describe())
        self.logger.info(
            "Analyzed %d requirements, %d covered, %d actions planned",
            len(index),
            sum(1 for entry in index.values() if entry.requirement_id in coverage),
            len(result.actions),
        )
        return result

    # ------------------------------------------------------------------
    # Index construction

    def _build_requirement_index(
        self, documents: Sequence[FileRecord], errors: List[ProcessingError]
    ) -> Dict[str, _IndexedSite]:
        index: Dict[str, _IndexedSite] = {}
        for record in documents:
            if not record.sites:
                continue
            if not record.package_id:
                errors.append(err_missing_package(record.path, record.sites[0].line))
                continue
            for site in record.sites:
                requirement_id = grammar.requirement_id(record.package_id, site.name)
                existing = index.get(requirement_id)
                if existing is not None:
                    errors.append(
                        err_duplicate_requirement(
                            record.path,
                            site.line,
                            existing.record.path,
                            existing.site.line,
                            requirement_id,
                        )
                    )
                    continue
                index[requirement_id] = _IndexedSite(requirement_id, site, record)
        return index

    @staticmethod
    def _build_coverage_index(
        sources: Sequence[FileRecord], index: Mapping[str, _IndexedSite]
    ) -> Dict[str, List[Tuple[FileRecord, CoverageTag]]]:
        coverage: Dict[str, List[Tuple[FileRecord, CoverageTag]]] = defaultdict(list)
        for record in sources:
            for tag in sorted(record.tags, key=lambda tag: tag.line):
                # Tags for requirements defined under other roots are not errors.
                if tag.requirement_id in index:
                    coverage[tag.requirement_id].append((record, tag))
        return coverage

    # ------------------------------------------------------------------
    # Planning

    def _plan_covered(
        self,
        entry: _IndexedSite,
        footnote: Optional[CoverageFootnote],
        tags: Sequence[Tuple[FileRecord, CoverageTag]],
        actions: List[Action],
    ) -> None:
        coverers = [
            Coverer(
                label=grammar.coverage_label(record.relative_path, tag.line, tag.coverage_type),
                url=grammar.coverage_url(record.file_url, tag.line),
            )
            for record, tag in tags
        ]
        desired = grammar.format_footnote(entry.package_id, entry.site.name, coverers)

        if entry.site.kind is not SiteKind.COVERED:
            actions.append(self._site_action(entry, SiteKind.COVERED))
        if footnote is None:
            actions.append(self._footnote_action(entry, 0, desired))
        elif footnote.text != desired:
            actions.append(self._footnote_action(entry, footnote.line, desired))

    def _plan_regression(
        self,
        entry: _IndexedSite,
        footnote: Optional[CoverageFootnote],
        actions: List[Action],
    ) -> None:
        actions.append(self._site_action(entry, SiteKind.UNCOVERED))
        if footnote is not None and footnote.coverers:
            bare = grammar.format_footnote(entry.package_id, entry.site.name, ())
            actions.append(self._footnote_action(entry, footnote.line, bare))

    @staticmethod
    def _plan_manifest(
        folder: str, desired: Mapping[str, str], previous: Optional[Mapping[str, str]]
    ) -> Optional[Action]:
        path = posixpath.join(folder, MANIFEST_FILENAME)
        if not desired:
            if previous is None:
                return None
            return Action(kind=ActionKind.DELETE_MANIFEST_ENTRY, path=path, line=0, payload="")
        if previous is not None and dict(previous) == dict(desired):
            return None
        return Action(
            kind=ActionKind.UPSERT_MANIFEST_ENTRY,
            path=path,
            line=0,
            payload=serialize_manifest(desired),
        )

    @staticmethod
    def _site_action(entry: _IndexedSite, kind: SiteKind) -> Action:
        return Action(
            kind=ActionKind.UPSERT_SITE,
            path=entry.record.path,
            line=entry.site.line,
            payload=grammar.format_site(entry.site.name, kind),
            requirement_id=entry.requirement_id,
        )

    @staticmethod
    def _footnote_action(entry: _IndexedSite, line: int, text: str) -> Action:
        return Action(
            kind=ActionKind.UPSERT_FOOTNOTE,
            path=entry.record.path,
            line=line,
            payload=text,
            requirement_id=entry.requirement_id,
        )


def _find_footnote(record: FileRecord, name: str) -> Optional[CoverageFootnote]:
    for footnote in record.footnotes:
        if footnote.name == name:
            return footnote
    return None


__all__ = ["Analyzer"]
