"""Configuration loading for gip (.gip.yml)."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .errors import ConfigError
from .git.adapter import DEFAULT_NOTES_REF
from .merge.markers import DEFAULT_OURS_WINDOW, DEFAULT_THEIRS_WINDOW

CONFIG_FILENAME = ".gip.yml"


@dataclass
class GipConfig:
    """Represents the settings defined in .gip.yml."""

    root: Path
    notes_ref: str = DEFAULT_NOTES_REF
    remote: str = "origin"
    ours_context_lines: int = DEFAULT_OURS_WINDOW
    theirs_context_lines: int = DEFAULT_THEIRS_WINDOW
    control_dir_name: str = ".gip"
    authoring_filename: str = "manifest.gip"

    @property
    def control_dir(self) -> Path:
        return self.root / self.control_dir_name

    @property
    def authoring_path(self) -> Path:
        return self.control_dir / self.authoring_filename


def load_config(config_path: Path) -> GipConfig:
    """Load configuration from disk, falling back to defaults when absent."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return GipConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    config = GipConfig(root=root)

    notes = _as_dict(data.get("notes"))
    config.notes_ref = _as_str(notes.get("ref")) or config.notes_ref
    config.remote = _as_str(notes.get("remote")) or config.remote

    context = _as_dict(data.get("context"))
    config.ours_context_lines = _as_positive_int(
        context.get("ours_lines"), config.ours_context_lines
    )
    config.theirs_context_lines = _as_positive_int(
        context.get("theirs_lines"), config.theirs_context_lines
    )

    authoring = _as_dict(data.get("authoring"))
    config.control_dir_name = _as_str(authoring.get("control_dir")) or config.control_dir_name
    config.authoring_filename = _as_str(authoring.get("file")) or config.authoring_filename

    return config


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return None
    return str(value) if isinstance(value, (str, int, float)) and str(value) else None


def _as_positive_int(value: Any, default: int) -> int:
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value if value > 0 else default
    if isinstance(value, str):
        try:
            parsed = int(value)
        except ValueError:
            return default
        return parsed if parsed > 0 else default
    return default


__all__ = ["CONFIG_FILENAME", "GipConfig", "load_config"]
