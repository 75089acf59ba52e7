"""Trace pipeline: Scan, Analyze, then Apply."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Sequence

from .analyzer import Analyzer
from .applier import Applier
from .errors import ApplyError, SemanticErrors, SyntaxErrors
from .logging import get_logger
from .models import Action
from .scanner import Scanner


class TraceState(str, Enum):
    IDLE = "idle"
    SCANNED = "scanned"
    ANALYZED = "analyzed"
    APPLIED = "applied"
    FAILED = "failed"


@dataclass
class TraceOutcome:
    """Result of a trace run."""

    state: TraceState
    actions: List[Action] = field(default_factory=list)
    files: int = 0
    written: List[str] = field(default_factory=list)


class Tracer:
    """Sequences the three phases and tracks where a run stopped.

    A tracer instance handles one run at a time; ``state`` reflects the last
    phase reached by the most recent call to :meth:`trace`.
    """

    def __init__(
        self,
        scanner: Scanner | None = None,
        analyzer: Analyzer | None = None,
        applier: Applier | None = None,
    ) -> None:
        self.scanner = scanner or Scanner()
        self.analyzer = analyzer or Analyzer()
        self.applier = applier or Applier()
        self.state = TraceState.IDLE
        self.logger = get_logger("tracer")

    def trace(self, roots: Sequence[str | Path], *, dry_run: bool = False) -> TraceOutcome:
        """Run the pipeline over ``roots``.

        Raises SyntaxErrors or SemanticErrors without touching any file, and
        ApplyError when a planned edit no longer matches the file on disk.
        """
        self.state = TraceState.IDLE
        self.logger.info("Tracing %s", ", ".join(str(root) for root in roots))

        try:
            scanned = self.scanner.scan(roots)
        except Exception:
            self.state = TraceState.FAILED
            raise
        if scanned.errors:
            self.state = TraceState.FAILED
            raise SyntaxErrors(f"{len(scanned.errors)} syntax error(s)", scanned.errors)
        self.state = TraceState.SCANNED
        self.logger.debug("Scanned %d files", len(scanned.files))

        analysis = self.analyzer.analyze(scanned.files, scanned.manifests)
        if analysis.errors:
            self.state = TraceState.FAILED
            raise SemanticErrors(f"{len(analysis.errors)} semantic error(s)", analysis.errors)
        self.state = TraceState.ANALYZED

        outcome = TraceOutcome(state=self.state, actions=analysis.actions, files=len(scanned.files))
        if dry_run:
            self.logger.info("Dry run: %d actions planned, nothing written", len(analysis.actions))
            return outcome

        try:
            outcome.written = self.applier.apply(analysis.actions)
        except ApplyError as exc:
            self.state = TraceState.FAILED
            self.logger.error("Apply stopped at %s", exc.error)
            raise
        self.state = TraceState.APPLIED
        outcome.state = self.state
        self.logger.info(
            "Applied %d actions, %d files written", len(analysis.actions), len(outcome.written)
        )
        return outcome


__all__ = ["TraceOutcome", "TraceState", "Tracer"]
