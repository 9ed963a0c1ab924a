"""Exception hierarchy shared across gip components."""

from __future__ import annotations

from typing import Sequence


class GipError(RuntimeError):
    """Base class for errors raised by gip."""


class ConfigError(GipError):
    """Raised when the configuration file cannot be parsed."""


class ValidationError(GipError):
    """Raised when an authored manifest is missing or incomplete.

    The user can always recover by editing the authoring file, so the error
    carries the remediation steps and the full template to show alongside the
    reason.
    """

    def __init__(
        self,
        reason: str,
        *,
        path: str | None = None,
        remediation: Sequence[str] = (),
        template: str = "",
    ) -> None:
        super().__init__(reason)
        self.reason = reason
        self.path = path
        self.remediation = list(remediation)
        self.template = template


class ManifestNotFoundError(GipError, LookupError):
    """Raised when no manifest is stored for a commit or location."""

    def __init__(self, key: str) -> None:
        super().__init__(f"No manifest found for {key}")
        self.key = key


class ManifestParseError(GipError, ValueError):
    """Raised when stored or authored notation is not a valid manifest."""

    def __init__(self, message: str, *, line: int | None = None) -> None:
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)
        self.line = line


class ExternalToolError(GipError):
    """Raised when the git binary is unavailable or exits non-zero."""

    def __init__(
        self,
        args: Sequence[str],
        returncode: int,
        stderr: str = "",
    ) -> None:
        command = " ".join(args)
        detail = stderr.strip() or f"exit status {returncode}"
        super().__init__(f"`{command}` failed: {detail}")
        self.command = list(args)
        self.returncode = returncode
        self.stderr = stderr


__all__ = [
    "ConfigError",
    "ExternalToolError",
    "GipError",
    "ManifestNotFoundError",
    "ManifestParseError",
    "ValidationError",
]
