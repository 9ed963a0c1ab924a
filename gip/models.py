"""Core data models for gip change manifests.

A manifest describes the intent behind one commit. Every schema version is
represented by these same models: fields that only existed in older versions
stay optional and are consumed by :func:`gip.migrate.migrate`.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

SCHEMA_VERSION_1_0 = "1.0"
SCHEMA_VERSION_2_0 = "2.0"
SCHEMA_VERSION_CURRENT = SCHEMA_VERSION_2_0
KNOWN_SCHEMA_VERSIONS = (SCHEMA_VERSION_1_0, SCHEMA_VERSION_2_0)

DEFAULT_HUNK_ID = "H#0"
COMMIT_PLACEHOLDER = "HEAD"

BEHAVIOR_CLASSES = (
    "bugfix",
    "feature",
    "refactor",
    "perf",
    "security",
    "validation",
    "docs",
    "config",
    "migration",
)

CHANGE_TYPES = ("add", "modify", "delete", "rename")


class _ManifestModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Anchor(_ManifestModel):
    """Location of a change: repository-relative file, symbol and hunk label."""

    file: str
    symbol: str = ""
    hunk_id: str = ""


class SignatureDelta(_ManifestModel):
    before: str = ""
    after: str = ""


class Contract(_ManifestModel):
    """Behavioral contract of the changed symbol."""

    inputs: Optional[List[str]] = None
    outputs: Optional[str] = None
    preconditions: List[str] = Field(default_factory=list)
    postconditions: List[str] = Field(default_factory=list)
    error_model: List[str] = Field(default_factory=list)


class Compatibility(_ManifestModel):
    """Compatibility flags.

    ``binary_breaking``, ``source_breaking`` and ``data_model_migration`` are
    1.0 fields. They are read during migration and never cleared.
    """

    breaking: bool = False
    deprecations: Optional[List[str]] = None
    migrations: Optional[List[str]] = None
    binary_breaking: Optional[bool] = None
    source_breaking: Optional[bool] = None
    data_model_migration: Optional[bool] = None


class PerfBudget(_ManifestModel):
    expected_max_latency_ms: Optional[int] = None
    cpu_delta_pct: Optional[int] = None


class GlobalIntent(_ManifestModel):
    """Commit-wide rationale used when no entry explains a change."""

    behavior_class: List[str] = Field(default_factory=list)
    rationale: str = ""


class Entry(_ManifestModel):
    """A single localized change within a commit."""

    anchor: Anchor
    change_type: str = "modify"
    rationale: str = ""
    behavior_class: List[str] = Field(default_factory=list)
    signature_delta: Optional[SignatureDelta] = None
    contract: Contract = Field(default_factory=Contract)
    side_effects: List[str] = Field(default_factory=list)
    compatibility: Optional[Compatibility] = None
    tests_touched: Optional[List[str]] = None
    perf_budget: Optional[PerfBudget] = None
    security_notes: Optional[List[str]] = None
    feature_flags: Optional[List[str]] = None
    inherits_global_intent: Optional[bool] = None

    def effective_rationale(self, global_intent: GlobalIntent | None) -> str:
        if not self.rationale and self.inherits_global_intent and global_intent:
            return global_intent.rationale
        return self.rationale

    def effective_behavior_class(
        self, global_intent: GlobalIntent | None
    ) -> List[str]:
        if not self.behavior_class and self.inherits_global_intent and global_intent:
            return list(global_intent.behavior_class)
        return list(self.behavior_class)


class Manifest(_ManifestModel):
    """Root of the intent graph for one commit."""

    # A payload without a version predates versioning and is migrated as legacy.
    schema_version: str = ""
    commit: str = COMMIT_PLACEHOLDER
    global_intent: Optional[GlobalIntent] = None
    entries: List[Entry] = Field(default_factory=list)

    @classmethod
    def new(cls, commit: str = COMMIT_PLACEHOLDER) -> "Manifest":
        return cls(schema_version=SCHEMA_VERSION_CURRENT, commit=commit)

    def entries_for(self, file_path: str) -> List[Entry]:
        """Return entries anchored to ``file_path`` or a file with the same base name."""
        target = _normalise_path(file_path)
        target_name = target.rsplit("/", 1)[-1]
        matches: List[Entry] = []
        for entry in self.entries:
            anchor_file = _normalise_path(entry.anchor.file)
            if anchor_file == target or anchor_file.rsplit("/", 1)[-1] == target_name:
                matches.append(entry)
        return matches

    def behavior_classes(self) -> List[str]:
        """All behavior tags used by the manifest, in first-seen order."""
        seen: List[str] = []
        sources = [self.global_intent.behavior_class] if self.global_intent else []
        sources.extend(entry.behavior_class for entry in self.entries)
        for tags in sources:
            for tag in tags:
                if tag not in seen:
                    seen.append(tag)
        return seen


def _normalise_path(path: str) -> str:
    return path.replace("\\", "/")


__all__ = [
    "Anchor",
    "BEHAVIOR_CLASSES",
    "CHANGE_TYPES",
    "COMMIT_PLACEHOLDER",
    "Compatibility",
    "Contract",
    "DEFAULT_HUNK_ID",
    "Entry",
    "GlobalIntent",
    "KNOWN_SCHEMA_VERSIONS",
    "Manifest",
    "PerfBudget",
    "SCHEMA_VERSION_1_0",
    "SCHEMA_VERSION_2_0",
    "SCHEMA_VERSION_CURRENT",
    "SignatureDelta",
]
