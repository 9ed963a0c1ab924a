"""Synchronous capability for invoking external tools."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Sequence

from ..errors import ExternalToolError


@dataclass(frozen=True)
class ToolResult:
    """Captured outcome of one external command."""

    stdout: str
    returncode: int
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


# runner(args, *, cwd, capture_output) -> ToolResult
ToolRunner = Callable[..., ToolResult]


def run_tool(
    args: Sequence[str],
    *,
    cwd: Path | str | None = None,
    capture_output: bool = True,
) -> ToolResult:
    """Run ``args`` to completion and report stdout and the exit status.

    With ``capture_output=False`` the child shares this process's terminal,
    which is what pass-through commands such as ``git merge`` need.
    """
    try:
        completed = subprocess.run(
            list(args),
            cwd=str(cwd) if cwd is not None else None,
            check=False,
            text=True,
            capture_output=capture_output,
        )
    except FileNotFoundError as exc:
        raise ExternalToolError(args, 127, f"{args[0]} is not installed") from exc
    if capture_output:
        return ToolResult(
            stdout=completed.stdout or "",
            returncode=completed.returncode,
            stderr=completed.stderr or "",
        )
    return ToolResult(stdout="", returncode=completed.returncode)


__all__ = ["ToolResult", "ToolRunner", "run_tool"]
