"""Attribute a conflict side to the manifest entry that most likely explains it."""

from __future__ import annotations

from typing import Optional, Sequence

from ..models import Entry, Manifest


def resolve_entry(
    manifest: Manifest,
    file_path: str,
    preceding_lines: Optional[Sequence[str]] = None,
) -> Optional[Entry]:
    """Pick the entry for ``file_path`` whose symbol encloses the conflict.

    ``preceding_lines`` is the window of source right before the conflict
    boundary, in file order. The window is scanned from the boundary
    backwards and the least-indented line mentioning a candidate symbol wins:
    an enclosing definition sits shallower than the calls nested inside it.
    On equal indentation the line seen first in the backward scan is kept.

    When no symbol is mentioned, the first entry for the file is returned.
    The result is a best-effort attribution, never ground truth.
    """
    candidates = manifest.entries_for(file_path)
    if not candidates:
        return None

    if preceding_lines:
        best: Optional[Entry] = None
        min_indent: Optional[int] = None
        for line in reversed(preceding_lines):
            indent = len(line) - len(line.lstrip())
            for entry in candidates:
                symbol = entry.anchor.symbol
                # An empty symbol would match every line.
                if not symbol or symbol not in line:
                    continue
                if min_indent is None or indent < min_indent:
                    best = entry
                    min_indent = indent
        if best is not None:
            return best

    return candidates[0]


__all__ = ["resolve_entry"]
