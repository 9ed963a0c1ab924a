"""Validation of the manifest authored before a commit."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from ..codec.compact import decode_compact
from ..errors import ValidationError
from ..logging import get_logger
from ..models import BEHAVIOR_CLASSES, CHANGE_TYPES, Manifest
from ..rendering import PLACEHOLDER_RATIONALE, render_authoring_template


def remediation_steps(path: Path) -> List[str]:
    return [
        f"Read the file at: {path}",
        "Understand the code changes you are committing.",
        "Fill out the 'rationale', 'changeType', and 'behaviorClass' fields in the manifest file.",
        "Save the file.",
        "Retry the commit command.",
    ]


class AuthoringValidator:
    """Rejects missing, unedited or inconsistent authoring files."""

    name = "authoring"

    def __init__(self, template: Optional[str] = None) -> None:
        self.template = template if template is not None else render_authoring_template()
        self.logger = get_logger("validators.authoring")

    def validate(self, path: Path) -> Manifest:
        """Return the parsed manifest at ``path`` or raise :class:`ValidationError`.

        A missing file is replaced by the template before the error is raised,
        so the user has something to fill in. Parse failures surface as
        :class:`gip.errors.ManifestParseError`.
        """
        if not path.exists():
            self.write_template(path)
            self._reject(path, f"Manifest file was missing. Created new template at {path}")

        content = path.read_text(encoding="utf-8")
        if _normalise(content) == _normalise(self.template):
            self._reject(path, "Manifest file is unchanged from template")
        if PLACEHOLDER_RATIONALE in content:
            self._reject(
                path, f"Manifest contains placeholder text '{PLACEHOLDER_RATIONALE}'"
            )

        manifest = decode_compact(content)
        issues = self.check(manifest)
        if issues:
            self._reject(path, "; ".join(issues))
        return manifest

    def check(self, manifest: Manifest) -> List[str]:
        """Return vocabulary and completeness problems in ``manifest``."""
        issues: List[str] = []
        if not manifest.entries and manifest.global_intent is None:
            issues.append("Manifest has no entries and no globalIntent")
        if manifest.global_intent is not None:
            issues.extend(_unknown_behaviors("globalIntent", manifest.global_intent.behavior_class))
        for index, entry in enumerate(manifest.entries):
            label = f"entry {index} ({entry.anchor.file or '?'})"
            if not entry.anchor.file:
                issues.append(f"{label} has no anchor file")
            if entry.change_type not in CHANGE_TYPES:
                issues.append(
                    f"{label} has unknown changeType {entry.change_type!r}; "
                    f"expected one of {', '.join(CHANGE_TYPES)}"
                )
            issues.extend(_unknown_behaviors(label, entry.behavior_class))
        return issues

    def write_template(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.template, encoding="utf-8")
        self.logger.debug("Wrote manifest template to %s", path)

    def _reject(self, path: Path, reason: str) -> None:
        raise ValidationError(
            reason,
            path=str(path),
            remediation=remediation_steps(path),
            template=self.template,
        )


def _unknown_behaviors(label: str, tags: List[str]) -> List[str]:
    unknown = [tag for tag in tags if tag not in BEHAVIOR_CLASSES]
    if not unknown:
        return []
    return [
        f"{label} has unknown behaviorClass {', '.join(unknown)}; "
        f"expected any of {', '.join(BEHAVIOR_CLASSES)}"
    ]


def _normalise(text: str) -> str:
    return text.replace("\r\n", "\n").strip()


__all__ = ["AuthoringValidator", "remediation_steps"]
