"""Schema migration for stored manifests."""

from __future__ import annotations

from .models import DEFAULT_HUNK_ID, SCHEMA_VERSION_CURRENT, Manifest


def needs_migration(manifest: Manifest) -> bool:
    return manifest.schema_version != SCHEMA_VERSION_CURRENT


def migrate(manifest: Manifest) -> Manifest:
    """Return ``manifest`` upgraded to the current schema.

    The input is never mutated. A manifest already on the current version is
    returned as an equal copy; anything else (1.0, empty or unknown versions)
    is normalized:

    * ``schema_version`` becomes current.
    * Compatibility blocks always carry ``deprecations``/``migrations`` lists,
      and legacy ``binary_breaking``/``source_breaking`` imply ``breaking``.
    * Empty hunk ids become ``H#0``.
    """
    migrated = manifest.model_copy(deep=True)
    if not needs_migration(manifest):
        return migrated

    migrated.schema_version = SCHEMA_VERSION_CURRENT
    for entry in migrated.entries:
        compat = entry.compatibility
        if compat is not None:
            if compat.deprecations is None:
                compat.deprecations = []
            if compat.migrations is None:
                compat.migrations = []
            if compat.binary_breaking or compat.source_breaking:
                compat.breaking = True
        if not entry.anchor.hunk_id:
            entry.anchor.hunk_id = DEFAULT_HUNK_ID
    return migrated


__all__ = ["migrate", "needs_migration"]
