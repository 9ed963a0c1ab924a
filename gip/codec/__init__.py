"""Serialisations of :class:`gip.models.Manifest`."""

from .canonical import decode_canonical, encode_canonical
from .compact import decode_compact, encode_compact

__all__ = [
    "decode_canonical",
    "decode_compact",
    "encode_canonical",
    "encode_compact",
]
