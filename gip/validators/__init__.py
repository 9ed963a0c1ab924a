"""Validation of authored manifests."""

from ..errors import ValidationError
from .authoring import AuthoringValidator, remediation_steps

__all__ = ["AuthoringValidator", "ValidationError", "remediation_steps"]
