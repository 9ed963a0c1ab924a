"""Conflict enrichment: marker rewriting, entry resolution and orchestration."""

from .enricher import ConflictEnricher, EnrichmentReport
from .markers import MarkerRewriter, has_conflict_markers, strip_context
from .resolver import resolve_entry

__all__ = [
    "ConflictEnricher",
    "EnrichmentReport",
    "MarkerRewriter",
    "has_conflict_markers",
    "resolve_entry",
    "strip_context",
]
