"""Bidirectional registry between stable ids and live objects."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from treesync.domain.model import IdentityConflictError, UnknownIdError, UnknownObjectError

if TYPE_CHECKING:
    from collections.abc import Iterator

    from treesync.domain.model import Id
    from treesync.domain.ports import LiveObject, LiveTree

log = getLogger(__name__)


class IdentityMap:
    """One-to-one mapping between ids and live objects of ``tree``.

    Live objects are used as dictionary keys, so they must hash by identity.
    """

    def __init__(self, tree: LiveTree) -> None:
        self._tree = tree
        self._objects_by_id: dict[Id, LiveObject] = {}
        self._ids_by_object: dict[LiveObject, Id] = {}
        self._suppressed: set[LiveObject] = set()

    def __len__(self) -> int:
        return len(self._objects_by_id)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._objects_by_id

    def register(self, node_id: Id, obj: LiveObject, *, replace: bool = False) -> None:
        """Bind ``node_id`` to ``obj``.

        Binding an id that already points at another object is a malformed
        patch unless ``replace`` is set, in which case the previous object is
        unbound. Class rebuilds rely on this to repoint an id.
        """

        existing = self._objects_by_id.get(node_id)
        if existing is not None and existing is not obj:
            if not replace:
                raise IdentityConflictError(node_id)
            del self._ids_by_object[existing]
        previous_id = self._ids_by_object.get(obj)
        if previous_id is not None and previous_id != node_id:
            del self._objects_by_id[previous_id]
        self._objects_by_id[node_id] = obj
        self._ids_by_object[obj] = node_id

    def by_id(self, node_id: Id | None) -> LiveObject | None:
        if node_id is None:
            return None
        return self._objects_by_id.get(node_id)

    def by_object(self, obj: LiveObject) -> Id | None:
        return self._ids_by_object.get(obj)

    def unregister_object(self, obj: LiveObject) -> None:
        node_id = self._ids_by_object.pop(obj, None)
        if node_id is not None:
            del self._objects_by_id[node_id]
        self._suppressed.discard(obj)

    def destroy_id(self, node_id: Id) -> None:
        obj = self._objects_by_id.get(node_id)
        if obj is None:
            raise UnknownIdError(node_id)
        self._destroy(obj)

    def destroy_object(self, obj: LiveObject) -> None:
        if obj not in self._ids_by_object:
            raise UnknownObjectError(obj)
        self._destroy(obj)

    def _destroy(self, obj: LiveObject) -> None:
        descendants = list(self._descendants(obj))
        self._tree.destroy(obj)
        self.unregister_object(obj)
        for descendant in descendants:
            self.unregister_object(descendant)

    def _descendants(self, obj: LiveObject) -> Iterator[LiveObject]:
        for child in self._tree.get_children(obj):
            yield child
            yield from self._descendants(child)

    def suppress(self, obj: LiveObject) -> None:
        """Hide writes to ``obj`` from change watchers until the cycle ends."""

        self._suppressed.add(obj)

    def is_suppressed(self, obj: LiveObject) -> bool:
        return obj in self._suppressed

    def release_suppressed(self) -> None:
        if self._suppressed:
            log.debug("Releasing change suppression on %s objects", len(self._suppressed))
        self._suppressed.clear()
