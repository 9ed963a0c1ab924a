"""Conflict marker rewriting with injected manifest context."""

from __future__ import annotations

import enum
from typing import List, Optional, Sequence

from ..models import Manifest
from .resolver import resolve_entry

OURS_MARKER = "<<<<<<<"
SEPARATOR_MARKER = "======="
THEIRS_MARKER = ">>>>>>>"
CONTEXT_PREFIX = "|||"

DEFAULT_OURS_WINDOW = 50
DEFAULT_THEIRS_WINDOW = 100


class _State(enum.Enum):
    OUTSIDE = "outside"
    INSIDE_OURS = "inside_ours"
    INSIDE_THEIRS = "inside_theirs"


class MarkerRewriter:
    """Injects context blocks into git conflict regions.

    The ours block follows the ``<<<<<<<`` line and the theirs block precedes
    the ``>>>>>>>`` line. Original lines, delimiters included, are emitted
    byte-for-byte. Every injected line starts with ``|||`` followed by a space,
    so it can never be mistaken for a delimiter and :func:`strip_context`
    can remove it again.
    """

    HEADER_FMT = "Gip CONTEXT ({label} - {description})"
    OURS_DESCRIPTION = "Your changes"
    THEIRS_DESCRIPTION = "Their changes"

    def __init__(
        self,
        *,
        ours_window: int = DEFAULT_OURS_WINDOW,
        theirs_window: int = DEFAULT_THEIRS_WINDOW,
    ) -> None:
        self.ours_window = ours_window
        # The theirs window also spans the conflict body, hence wider.
        self.theirs_window = theirs_window

    def rewrite(
        self,
        text: str,
        file_path: str,
        ours: Optional[Manifest],
        theirs: Optional[Manifest],
    ) -> Optional[str]:
        """Return the enriched text, or ``None`` when nothing needs rewriting."""
        if ours is None and theirs is None:
            return None
        lines = split_lines(text)
        if not any(line.startswith(OURS_MARKER) for line in lines):
            return None

        newline = _detect_newline(lines)
        bare = [line.rstrip("\r\n") for line in lines]
        output: List[str] = []
        state = _State.OUTSIDE

        for index, line in enumerate(lines):
            if state is _State.OUTSIDE and line.startswith(OURS_MARKER):
                output.append(line)
                if ours is not None:
                    if not line.endswith("\n"):
                        output.append(newline)
                    label = bare[index][len(OURS_MARKER) :].strip() or "HEAD"
                    window = bare[max(0, index - self.ours_window) : index]
                    block = self.format_block(
                        label, self.OURS_DESCRIPTION, ours, file_path, window
                    )
                    output.extend(f"{block_line}{newline}" for block_line in block)
                state = _State.INSIDE_OURS
            elif state is _State.INSIDE_OURS and line.startswith(SEPARATOR_MARKER):
                output.append(line)
                state = _State.INSIDE_THEIRS
            elif state is _State.INSIDE_THEIRS and line.startswith(THEIRS_MARKER):
                if theirs is not None:
                    label = bare[index][len(THEIRS_MARKER) :].strip() or "theirs"
                    window = bare[max(0, index - self.theirs_window) : index]
                    block = self.format_block(
                        label, self.THEIRS_DESCRIPTION, theirs, file_path, window
                    )
                    output.extend(f"{block_line}{newline}" for block_line in block)
                output.append(line)
                state = _State.OUTSIDE
            else:
                output.append(line)

        return "".join(output)

    def format_block(
        self,
        label: str,
        description: str,
        manifest: Manifest,
        file_path: str,
        context: Optional[Sequence[str]] = None,
    ) -> List[str]:
        """Render the prefixed context lines for one side of a conflict."""
        fields: List[str] = [
            self.HEADER_FMT.format(label=label, description=description),
            f"Commit: {manifest.commit}",
        ]
        intent = manifest.global_intent
        entry = resolve_entry(manifest, file_path, context)

        if entry is None:
            if intent is not None:
                fields.append(f"behaviorClass: {', '.join(intent.behavior_class)}")
                fields.append(f"rationale: {intent.rationale}")
            return _prefixed(fields)

        behavior = entry.effective_behavior_class(intent)
        if behavior:
            fields.append(f"behaviorClass: {', '.join(behavior)}")
        rationale = entry.effective_rationale(intent)
        if rationale:
            fields.append(f"rationale: {rationale}")
        fields.append(f"changeType: {entry.change_type}")

        if entry.signature_delta is not None:
            fields.append(f"signatureBefore: {entry.signature_delta.before}")
            fields.append(f"signatureAfter: {entry.signature_delta.after}")

        compat = entry.compatibility
        if compat is not None:
            fields.append(f"breaking: {'true' if compat.breaking else 'false'}")
            fields.extend(_indexed("deprecations", compat.deprecations or []))
            fields.extend(_indexed("migrations", compat.migrations or []))

        contract = entry.contract
        fields.extend(_indexed("inputs", contract.inputs or []))
        if contract.outputs is not None:
            fields.append(f"outputs: {contract.outputs}")
        fields.extend(_indexed("preconditions", contract.preconditions))
        fields.extend(_indexed("postconditions", contract.postconditions))
        fields.extend(_indexed("errorModel", contract.error_model))
        fields.extend(_indexed("sideEffects", entry.side_effects))
        fields.append(f"symbol: {entry.anchor.symbol}")
        return _prefixed(fields)


def strip_context(text: str) -> str:
    """Remove injected context lines from conflict regions."""
    marker = f"{CONTEXT_PREFIX} "
    output: List[str] = []
    state = _State.OUTSIDE
    for line in split_lines(text):
        if state is _State.OUTSIDE:
            if line.startswith(OURS_MARKER):
                state = _State.INSIDE_OURS
        elif line.startswith(marker):
            continue
        elif state is _State.INSIDE_OURS and line.startswith(SEPARATOR_MARKER):
            state = _State.INSIDE_THEIRS
        elif state is _State.INSIDE_THEIRS and line.startswith(THEIRS_MARKER):
            state = _State.OUTSIDE
        output.append(line)
    return "".join(output)


def has_conflict_markers(text: str) -> bool:
    return any(line.startswith(OURS_MARKER) for line in split_lines(text))


def split_lines(text: str) -> List[str]:
    """Split on ``\\n`` keeping line endings so that joining is lossless."""
    if not text:
        return []
    parts = text.split("\n")
    lines = [f"{part}\n" for part in parts[:-1]]
    if parts[-1]:
        lines.append(parts[-1])
    return lines


def _detect_newline(lines: Sequence[str]) -> str:
    for line in lines:
        if line.endswith("\r\n"):
            return "\r\n"
        if line.endswith("\n"):
            return "\n"
    return "\n"


def _indexed(name: str, values: Sequence[str]) -> List[str]:
    return [f"{name}[{index}]: {value}" for index, value in enumerate(values)]


def _prefixed(fields: Sequence[str]) -> List[str]:
    prefixed: List[str] = []
    for text in fields:
        # Multi-line free text must not leave unprefixed lines behind.
        for part in text.splitlines() or [""]:
            prefixed.append(f"{CONTEXT_PREFIX} {part}")
    return prefixed


__all__ = [
    "CONTEXT_PREFIX",
    "DEFAULT_OURS_WINDOW",
    "DEFAULT_THEIRS_WINDOW",
    "MarkerRewriter",
    "OURS_MARKER",
    "SEPARATOR_MARKER",
    "THEIRS_MARKER",
    "has_conflict_markers",
    "split_lines",
    "strip_context",
]
