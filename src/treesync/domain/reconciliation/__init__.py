"""Patch application engine.

Reconciles a live object tree with a desired-state patch and returns the
portion of the patch that could not be applied.
"""

from __future__ import annotations

from .apply import PatchApplier
from .decode import decode_value
from .identity_map import IdentityMap
from .properties import PropertyApplier
from .reify import Reifier, resolve_deferred_refs
from .set_property import PropertyWriter

__all__ = [
    "IdentityMap",
    "PatchApplier",
    "PropertyApplier",
    "PropertyWriter",
    "Reifier",
    "decode_value",
    "resolve_deferred_refs",
]
