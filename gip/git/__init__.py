"""Git integration for gip."""

from .adapter import DEFAULT_NOTES_REF, GitAdapter
from .conflicts import ConflictScanner
from .runner import ToolResult, ToolRunner, run_tool

__all__ = [
    "ConflictScanner",
    "DEFAULT_NOTES_REF",
    "GitAdapter",
    "ToolResult",
    "ToolRunner",
    "run_tool",
]
