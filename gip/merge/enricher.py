"""Enrichment of every conflicted file after a failed merge or rebase."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

from ..errors import GipError, ManifestNotFoundError
from ..git.adapter import GitAdapter
from ..git.conflicts import ConflictScanner
from ..logging import get_logger
from ..models import Manifest
from ..stores.manifest_store import ManifestStore
from .markers import MarkerRewriter


@dataclass
class EnrichmentReport:
    """Outcome of one enrichment pass."""

    conflicted: List[str] = field(default_factory=list)
    enriched: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: List[Tuple[str, str]] = field(default_factory=list)
    ours_available: bool = False
    theirs_available: bool = False

    @property
    def count(self) -> int:
        return len(self.enriched)


class ConflictEnricher:
    """Rewrites conflicted files with context from both sides' manifests."""

    def __init__(
        self,
        git: GitAdapter,
        store: ManifestStore,
        *,
        scanner: ConflictScanner | None = None,
        rewriter: MarkerRewriter | None = None,
        root: Path | None = None,
    ) -> None:
        self._git = git
        self._store = store
        self.scanner = scanner or ConflictScanner(git)
        self.rewriter = rewriter or MarkerRewriter()
        self.root = root if root is not None else git.cwd
        self.logger = get_logger("merge.enricher")

    def enrich_all(self, ours_ref: str, theirs_ref: str) -> EnrichmentReport:
        """Enrich every conflicted file and report what happened.

        A failure on one file is recorded and the remaining files are still
        processed. Conflict state is queried from git on every call.
        """
        report = EnrichmentReport()
        report.conflicted = self.scanner.list_conflicted_files()
        if not report.conflicted:
            self.logger.info("No conflicted files found")
            return report

        ours = self.load_manifest(ours_ref)
        theirs = self.load_manifest(theirs_ref)
        report.ours_available = ours is not None
        report.theirs_available = theirs is not None
        if ours is None and theirs is None:
            self.logger.info("No manifests recorded for %s or %s", ours_ref, theirs_ref)
            report.skipped.extend(report.conflicted)
            return report

        for relative in report.conflicted:
            try:
                modified = self.enrich_file(relative, ours, theirs)
            except (OSError, UnicodeDecodeError) as exc:
                self.logger.warning("Could not enrich %s: %s", relative, exc)
                report.failed.append((relative, str(exc)))
                continue
            if modified:
                report.enriched.append(relative)
            else:
                report.skipped.append(relative)

        self.logger.debug(
            "Enriched %d of %d conflicted files", report.count, len(report.conflicted)
        )
        return report

    def enrich_file(
        self,
        relative_path: str,
        ours: Optional[Manifest],
        theirs: Optional[Manifest],
    ) -> bool:
        """Rewrite one file in place; return whether it changed."""
        path = self.root / relative_path
        if not path.is_file():
            self.logger.debug("Skipping %s: not present in the working tree", relative_path)
            return False
        # newline="" keeps CRLF endings intact through the round trip.
        with path.open("r", encoding="utf-8", newline="") as handle:
            content = handle.read()
        rewritten = self.rewriter.rewrite(content, relative_path, ours, theirs)
        if rewritten is None:
            return False
        with path.open("w", encoding="utf-8", newline="") as handle:
            handle.write(rewritten)
        self.logger.debug("Enriched conflict markers in %s", relative_path)
        return True

    def load_manifest(self, commit: str) -> Optional[Manifest]:
        """Load a manifest, treating any failure as missing context."""
        try:
            return self._store.load(commit)
        except ManifestNotFoundError:
            self.logger.debug("No manifest stored for %s", commit)
        except GipError as exc:
            self.logger.warning("Ignoring manifest for %s: %s", commit, exc)
        return None


__all__ = ["ConflictEnricher", "EnrichmentReport"]
