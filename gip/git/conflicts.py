"""Discovery of files left in an unresolved merge state."""

from __future__ import annotations

from typing import List

from .adapter import GitAdapter


class ConflictScanner:
    """Asks git which paths still carry unmerged index entries.

    Nothing is cached: git is the only source of truth for conflict state and
    it changes as the user resolves files.
    """

    def __init__(self, git: GitAdapter) -> None:
        self._git = git

    def list_conflicted_files(self) -> List[str]:
        return self._git.conflicted_files()


__all__ = ["ConflictScanner"]
