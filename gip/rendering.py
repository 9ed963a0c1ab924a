"""Jinja rendering for the authoring template and context reports."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from jinja2 import Environment, FileSystemLoader

from .models import (
    BEHAVIOR_CLASSES,
    CHANGE_TYPES,
    COMMIT_PLACEHOLDER,
    SCHEMA_VERSION_CURRENT,
    Entry,
    Manifest,
)

TEMPLATES_DIR = Path(__file__).with_name("templates")
AUTHORING_TEMPLATE = "manifest.gip.j2"
CONTEXT_TEMPLATE = "context.txt.j2"

# Rationale of the placeholder entry; its presence means the template was not edited.
PLACEHOLDER_RATIONALE = "Describe your changes here"


@dataclass
class CommitContext:
    """A manifest together with the entries selected for display."""

    manifest: Manifest
    entries: List[Entry] = field(default_factory=list)


def _create_env() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )


def render_authoring_template() -> str:
    """Return the compact-notation template written for new manifests."""
    template = _create_env().get_template(AUTHORING_TEMPLATE)
    return template.render(
        behavior_classes=BEHAVIOR_CLASSES,
        change_types=CHANGE_TYPES,
        schema_version=SCHEMA_VERSION_CURRENT,
        commit=COMMIT_PLACEHOLDER,
        sentinel=PLACEHOLDER_RATIONALE,
    )


def render_context(
    contexts: Sequence[CommitContext], *, target: Optional[str] = None
) -> str:
    template = _create_env().get_template(CONTEXT_TEMPLATE)
    return template.render(contexts=list(contexts), target=target)


__all__ = [
    "CommitContext",
    "PLACEHOLDER_RATIONALE",
    "TEMPLATES_DIR",
    "render_authoring_template",
    "render_context",
]
