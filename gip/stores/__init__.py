"""Persistent stores used by gip."""

from .manifest_store import ManifestStore, PENDING_FILENAME

__all__ = ["ManifestStore", "PENDING_FILENAME"]
