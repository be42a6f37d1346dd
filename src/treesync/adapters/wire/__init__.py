"""JSON wire format adapter package."""

from __future__ import annotations

from .schema import WireInstance, WirePatch, WireSnapshotNode, WireUpdate
from .translator import (
    encode_patch,
    encode_value,
    seed_tree,
    translate_patch,
    translate_value,
)

__all__ = [
    "WireInstance",
    "WirePatch",
    "WireSnapshotNode",
    "WireUpdate",
    "encode_patch",
    "encode_value",
    "seed_tree",
    "translate_patch",
    "translate_value",
]
