"""Commit-keyed manifest storage backed by git notes."""

from __future__ import annotations

from pathlib import Path

from ..codec.canonical import decode_canonical, encode_canonical
from ..errors import ManifestNotFoundError
from ..git.adapter import DEFAULT_NOTES_REF, GitAdapter
from ..logging import get_logger
from ..migrate import migrate, needs_migration
from ..models import Manifest

PENDING_FILENAME = "pending.json"


class ManifestStore:
    """Persists manifests under ``refs/notes/<notes_ref>``, one note per commit.

    Manifests that are not yet bound to a commit live in a pending file inside
    the working tree's control directory.
    """

    def __init__(
        self,
        git: GitAdapter,
        *,
        notes_ref: str = DEFAULT_NOTES_REF,
        control_dir: Path | None = None,
    ) -> None:
        self._git = git
        self.notes_ref = notes_ref
        self.control_dir = control_dir if control_dir is not None else git.cwd / ".gip"
        self.logger = get_logger("stores.manifest")

    def save(self, manifest: Manifest, commit_id: str) -> None:
        """Attach ``manifest`` to ``commit_id``, replacing any existing note."""
        self._git.add_note(commit_id, encode_canonical(manifest), ref=self.notes_ref)
        self.logger.debug("Saved manifest note for %s", commit_id)

    def load(self, commit_id: str) -> Manifest:
        """Return the migrated manifest stored for ``commit_id``."""
        payload = self._git.show_note(commit_id, ref=self.notes_ref)
        return self._migrated(decode_canonical(payload), commit_id)

    def exists(self, commit_id: str) -> bool:
        try:
            self._git.show_note(commit_id, ref=self.notes_ref)
        except ManifestNotFoundError:
            return False
        return True

    # ------------------------------------------------------------------
    # Pending manifests

    def pending_path(self, location: Path | None = None) -> Path:
        return (location or self.control_dir) / PENDING_FILENAME

    def save_pending(self, manifest: Manifest, location: Path | None = None) -> Path:
        path = self.pending_path(location)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(encode_canonical(manifest), encoding="utf-8")
        self.logger.debug("Saved pending manifest to %s", path)
        return path

    def load_pending(self, location: Path | None = None) -> Manifest:
        path = self.pending_path(location)
        try:
            payload = path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise ManifestNotFoundError(str(path)) from exc
        return self._migrated(decode_canonical(payload), str(path))

    def clear_pending(self, location: Path | None = None) -> bool:
        path = self.pending_path(location)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        return True

    # ------------------------------------------------------------------
    # Sharing

    def push_notes(self, remote: str) -> None:
        self._git.push_notes(remote, ref=self.notes_ref)

    def fetch_notes(self, remote: str) -> None:
        self._git.fetch_notes(remote, ref=self.notes_ref)

    def _migrated(self, manifest: Manifest, key: str) -> Manifest:
        if needs_migration(manifest):
            self.logger.debug(
                "Migrating manifest %s from schema %r", key, manifest.schema_version
            )
        return migrate(manifest)


__all__ = ["ManifestStore", "PENDING_FILENAME"]
