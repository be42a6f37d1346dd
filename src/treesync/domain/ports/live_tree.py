"""Port for the host object tree that patches are applied to."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, TypeAlias

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

LiveObject: TypeAlias = object


class LiveTree(Protocol):
    """Native create/destroy/reparent primitives of the host tree.

    Every mutating method raises on failure; the engine decides whether the
    failure is recoverable.
    """

    def create(self, class_name: str, parent: LiveObject) -> LiveObject: ...

    def destroy(self, obj: LiveObject) -> None: ...

    def set_parent(self, obj: LiveObject, parent: LiveObject | None) -> None: ...

    def rename(self, obj: LiveObject, name: str) -> None: ...

    def get_name(self, obj: LiveObject) -> str: ...

    def get_class_name(self, obj: LiveObject) -> str: ...

    def get_parent(self, obj: LiveObject) -> LiveObject | None: ...

    def get_children(self, obj: LiveObject) -> Sequence[LiveObject]: ...

    def set_properties(self, obj: LiveObject, values: Mapping[str, object]) -> None:
        """Bulk structured write of a property group."""
        ...
