"""Public domain model surface."""

from __future__ import annotations

from treesync.domain.model.errors import (
    DecodeError,
    IdentityConflictError,
    LackingPropertyPermissionsError,
    MalformedPatchError,
    OtherPropertyError,
    PropertyWriteError,
    TreeSyncError,
    UnknownIdError,
    UnknownObjectError,
    UnwritablePropertyError,
)
from treesync.domain.model.patch import (
    DeferredRef,
    PatchSet,
    Update,
    VirtualInstance,
    subtree_ids,
)
from treesync.domain.model.values import Composite, Id, Primitive, Ref, VirtualValue

__all__ = [
    "Composite",
    "DecodeError",
    "DeferredRef",
    "Id",
    "IdentityConflictError",
    "LackingPropertyPermissionsError",
    "MalformedPatchError",
    "OtherPropertyError",
    "PatchSet",
    "Primitive",
    "PropertyWriteError",
    "Ref",
    "TreeSyncError",
    "UnknownIdError",
    "UnknownObjectError",
    "UnwritablePropertyError",
    "Update",
    "VirtualInstance",
    "VirtualValue",
    "subtree_ids",
]
