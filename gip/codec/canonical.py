"""Canonical JSON notation used for storage and exact round-trips."""

from __future__ import annotations

import json

from pydantic import ValidationError as PydanticValidationError

from ..errors import ManifestParseError
from ..models import Manifest


def encode_canonical(manifest: Manifest) -> str:
    """Serialise ``manifest`` to pretty JSON with camelCase keys."""
    return manifest.model_dump_json(by_alias=True, exclude_none=True, indent=2)


def decode_canonical(text: str) -> Manifest:
    """Parse canonical JSON into a manifest without migrating it."""
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ManifestParseError(f"Invalid manifest JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise ManifestParseError("Manifest JSON must contain an object at the root")
    try:
        return Manifest.model_validate(payload)
    except PydanticValidationError as exc:
        raise ManifestParseError(f"Manifest does not match schema: {exc}") from exc


__all__ = ["decode_canonical", "encode_canonical"]
