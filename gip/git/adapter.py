"""Git operations used by gip, expressed over an injectable tool runner."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Sequence

from ..errors import ExternalToolError, ManifestNotFoundError
from ..logging import get_logger
from .runner import ToolResult, ToolRunner, run_tool

DEFAULT_NOTES_REF = "gip"

_MISSING_NOTE_MARKERS = ("no note found", "no notes found")


class GitAdapter:
    """Runs git commands relative to a working directory."""

    def __init__(
        self,
        cwd: Path | str | None = None,
        runner: ToolRunner | None = None,
    ) -> None:
        self.cwd = Path(cwd) if cwd is not None else Path.cwd()
        self._runner = runner or run_tool
        self.logger = get_logger("git")

    # ------------------------------------------------------------------
    # Generic invocation

    def run(self, args: Sequence[str], *, capture_output: bool = True) -> ToolResult:
        command = ["git", *args]
        self.logger.debug("Running %s", " ".join(command))
        return self._runner(command, cwd=self.cwd, capture_output=capture_output)

    def run_checked(self, args: Sequence[str]) -> str:
        """Run a git command and return its trimmed stdout, raising on failure."""
        result = self.run(args)
        if not result.ok:
            raise ExternalToolError(["git", *args], result.returncode, result.stderr)
        return result.stdout.strip()

    def run_interactive(self, args: Sequence[str]) -> int:
        """Run a git command attached to the terminal and return its exit status."""
        return self.run(args, capture_output=False).returncode

    # ------------------------------------------------------------------
    # Repository state

    def is_repo(self) -> bool:
        try:
            return self.run(["rev-parse", "--git-dir"]).ok
        except ExternalToolError:
            return False

    def repo_root(self) -> Path:
        return Path(self.run_checked(["rev-parse", "--show-toplevel"]))

    def current_commit(self) -> str:
        return self.run_checked(["rev-parse", "HEAD"])

    def resolve_commit(self, ref: str) -> Optional[str]:
        """Return the sha ``ref`` points at, or ``None`` when it does not resolve."""
        result = self.run(["rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}"])
        if not result.ok:
            return None
        sha = result.stdout.strip()
        return sha or None

    def conflicted_files(self) -> List[str]:
        output = self.run_checked(["diff", "--name-only", "--diff-filter=U"])
        return [line.strip() for line in output.splitlines() if line.strip()]

    def commits_touching(self, path: str, *, limit: int | None = None) -> List[str]:
        args = ["log", "--format=%H"]
        if limit is not None:
            args.append(f"--max-count={limit}")
        args.extend(["--", path])
        output = self.run_checked(args)
        return [line.strip() for line in output.splitlines() if line.strip()]

    # ------------------------------------------------------------------
    # Notes side-channel

    def add_note(self, commit: str, content: str, *, ref: str = DEFAULT_NOTES_REF) -> None:
        self.run_checked(["notes", f"--ref={ref}", "add", "-f", "-m", content, commit])

    def show_note(self, commit: str, *, ref: str = DEFAULT_NOTES_REF) -> str:
        args = ["notes", f"--ref={ref}", "show", commit]
        result = self.run(args)
        if result.ok:
            return result.stdout
        stderr = result.stderr.lower()
        if any(marker in stderr for marker in _MISSING_NOTE_MARKERS):
            raise ManifestNotFoundError(commit)
        raise ExternalToolError(["git", *args], result.returncode, result.stderr)

    def push_notes(self, remote: str, *, ref: str = DEFAULT_NOTES_REF) -> None:
        self.run_checked(["push", remote, f"refs/notes/{ref}"])

    def fetch_notes(self, remote: str, *, ref: str = DEFAULT_NOTES_REF) -> None:
        self.run_checked(["fetch", remote, f"refs/notes/{ref}:refs/notes/{ref}"])


__all__ = ["DEFAULT_NOTES_REF", "GitAdapter"]
