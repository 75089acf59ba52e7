"""Execution of planned actions against documents and manifests."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from . import grammar
from .errors import ApplyError, err_apply_io, err_line_drift
from .logging import get_logger
from .models import Action, ActionKind


@dataclass
class _OpenDocument:
    """A markdown file held as lines while its actions run."""

    path: str
    lines: List[str]
    endings: List[str]
    # Terminator used for appended lines.
    ending: str
    changed: bool = False

    @classmethod
    def load(cls, path: str) -> "_OpenDocument":
        try:
            text = Path(path).read_bytes().decode("utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise ApplyError(err_apply_io(path, str(exc))) from exc
        lines, endings = grammar.split_lines(text)
        return cls(path=path, lines=lines, endings=endings, ending=grammar.detect_line_ending(text))

    def save(self) -> None:
        try:
            Path(self.path).write_bytes(grammar.join_lines(self.lines, self.endings).encode("utf-8"))
        except OSError as exc:
            raise ApplyError(err_apply_io(self.path, str(exc))) from exc


class Applier:
    """Runs actions strictly in order and stops at the first failure.

    Each document is loaded once and written once, after its last action.
    A failure leaves files written so far in place; the document being
    edited when the failure happens is not written.
    """

    def __init__(self) -> None:
        self.logger = get_logger("applier")

    def apply(self, actions: Sequence[Action]) -> List[str]:
        """Apply ``actions`` and return the paths that were written or deleted."""
        touched: List[str] = []
        current: Optional[_OpenDocument] = None

        for action in actions:
            if action.kind in (ActionKind.UPSERT_MANIFEST_ENTRY, ActionKind.DELETE_MANIFEST_ENTRY):
                self._flush(current, touched)
                current = None
                if self._apply_manifest(action):
                    touched.append(action.path)
                continue

            if current is None or current.path != action.path:
                self._flush(current, touched)
                current = _OpenDocument.load(action.path)

            if action.line == 0:
                self._append_footnote(current, action)
            else:
                self._replace_line(current, action)
            current.changed = True

        self._flush(current, touched)
        return touched

    # ------------------------------------------------------------------
    # Internals

    def _flush(self, document: Optional[_OpenDocument], touched: List[str]) -> None:
        if document is None or not document.changed:
            return
        document.save()
        touched.append(document.path)
        self.logger.info("Updated %s", document.path)

    def _replace_line(self, document: _OpenDocument, action: Action) -> None:
        _, name = grammar.split_requirement_id(action.requirement_id)
        index = action.line - 1
        if index < 0 or index >= len(document.lines):
            raise ApplyError(
                err_line_drift(
                    action.path,
                    action.line,
                    action.requirement_id,
                    f"file has only {len(document.lines)} lines",
                )
            )
        line = document.lines[index]

        if action.kind is ActionKind.UPSERT_SITE:
            for match in grammar.SITE_PATTERN.finditer(line):
                if match.group("name") == name:
                    start, end = match.span()
                    break
            else:
                raise ApplyError(
                    err_line_drift(action.path, action.line, action.requirement_id, "RequirementSite not found")
                )
        else:
            match = grammar.FOOTNOTE_PATTERN.match(line)
            if match is None or match.group("name") != name:
                raise ApplyError(
                    err_line_drift(action.path, action.line, action.requirement_id, "CoverageFootnote not found")
                )
            start, end = match.span("body")

        document.lines[index] = f"{line[:start]}{action.payload}{line[end:]}"
        self.logger.debug("%s:%d: %s", action.path, action.line, action.kind.value)

    def _append_footnote(self, document: _OpenDocument, action: Action) -> None:
        if action.kind is not ActionKind.UPSERT_FOOTNOTE:
            raise ApplyError(
                err_line_drift(action.path, 0, action.requirement_id, f"{action.kind.value} needs a line number")
            )
        lines, endings = document.lines, document.endings
        while lines and not lines[-1].strip():
            lines.pop()
            endings.pop()
        if lines:
            endings[-1] = endings[-1] or document.ending
            if not grammar.is_footnote_line(lines[-1]):
                lines.append("")
                endings.append(document.ending)
        lines.append(action.payload)
        endings.append(document.ending)
        lines.append("")
        endings.append("")
        self.logger.debug("%s: appended footnote for %s", action.path, action.requirement_id)

    def _apply_manifest(self, action: Action) -> bool:
        path = Path(action.path)
        if action.kind is ActionKind.DELETE_MANIFEST_ENTRY:
            if not path.exists():
                return False
            try:
                path.unlink()
            except OSError as exc:
                raise ApplyError(err_apply_io(action.path, str(exc))) from exc
            self.logger.info("Deleted %s", action.path)
            return True
        try:
            path.write_bytes(action.payload.encode("utf-8"))
        except OSError as exc:
            raise ApplyError(err_apply_io(action.path, str(exc))) from exc
        self.logger.info("Wrote %s", action.path)
        return True


__all__ = ["Applier"]
