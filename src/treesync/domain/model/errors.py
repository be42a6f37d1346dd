"""Errors raised by the reconciliation engine."""

from __future__ import annotations


class TreeSyncError(Exception):
    """Base class for every treesync error."""


class MalformedPatchError(TreeSyncError):
    """The patch violates an invariant and cannot be applied at all."""


class IdentityConflictError(MalformedPatchError):
    """An id is already bound to a different live object."""

    def __init__(self, node_id: str) -> None:
        super().__init__(f"Id {node_id} is already bound to a different object")
        self.node_id = node_id


class UnknownIdError(TreeSyncError):
    def __init__(self, node_id: str) -> None:
        super().__init__(f"Unknown id {node_id}")
        self.node_id = node_id


class UnknownObjectError(TreeSyncError):
    def __init__(self, live_object: object) -> None:
        super().__init__(f"Object {live_object!r} is not registered")
        self.live_object = live_object


class DecodeError(TreeSyncError):
    """A virtual value could not be turned into a native value."""


class PropertyWriteError(TreeSyncError):
    """A property write was rejected."""

    reason = "property write failed"

    def __init__(self, class_name: str, property_name: str) -> None:
        super().__init__(f"{self.reason}: {class_name}.{property_name}")
        self.class_name = class_name
        self.property_name = property_name


class UnwritablePropertyError(PropertyWriteError):
    reason = "property is not writable"


class LackingPropertyPermissionsError(PropertyWriteError):
    reason = "lacking permission to write property"


class OtherPropertyError(PropertyWriteError):
    reason = "property write rejected"
