"""Materialize virtual subtrees into live objects and resolve deferred refs."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from treesync.domain.model import (
    MalformedPatchError,
    PatchSet,
    PropertyWriteError,
    Update,
    subtree_ids,
)

if TYPE_CHECKING:
    from treesync.domain.model import DeferredRef, Id, VirtualInstance
    from treesync.domain.ports import LiveObject, LiveTree

    from .identity_map import IdentityMap
    from .properties import PropertyApplier
    from .set_property import PropertyWriter

log = getLogger(__name__)


class Reifier:
    """Build live objects for virtual instances, depth first."""

    def __init__(
        self,
        tree: LiveTree,
        identity_map: IdentityMap,
        properties: PropertyApplier,
    ) -> None:
        self._tree = tree
        self._identity_map = identity_map
        self._properties = properties

    def reify_instance(
        self,
        deferred_refs: list[DeferredRef],
        added: dict[Id, VirtualInstance],
        root_id: Id,
        parent_object: LiveObject | None,
        *,
        replace: bool = False,
    ) -> PatchSet:
        """Create ``root_id`` and its declared descendants under ``parent_object``.

        Returns the parts that could not be applied. Reference properties are
        appended to ``deferred_refs`` instead of being written. ``replace``
        lets the root repoint an id that is already bound, for class rebuilds.

        Raises :class:`MalformedPatchError` when there is no parent to attach
        to or a declared child is missing from ``added``.
        """

        if parent_object is None:
            raise MalformedPatchError(f"Cannot reify {root_id} without a parent object")
        failures = PatchSet()
        self._reify(deferred_refs, added, root_id, parent_object, failures, replace=replace)
        return failures

    def _reify(
        self,
        deferred_refs: list[DeferredRef],
        added: dict[Id, VirtualInstance],
        node_id: Id,
        parent_object: LiveObject,
        failures: PatchSet,
        *,
        replace: bool = False,
    ) -> None:
        instance = added.get(node_id)
        if instance is None:
            raise MalformedPatchError(f"Cannot reify {node_id}: it is not part of the patch")

        try:
            obj = self._tree.create(instance.class_name, parent_object)
        except Exception as exc:  # noqa: BLE001 - host failures are per-node
            log.debug("Could not create %s (%s): %s", node_id, instance.class_name, exc)
            for failed_id in subtree_ids(added, node_id):
                failures.added[failed_id] = added[failed_id]
            return

        try:
            self._tree.rename(obj, instance.name)
        except Exception as exc:  # noqa: BLE001
            log.debug("Could not name %s %r: %s", node_id, instance.name, exc)
            failures.record_update(Update(id=node_id, changed_name=instance.name))

        self._identity_map.register(node_id, obj, replace=replace)
        self._properties.apply(
            node_id,
            obj,
            instance.properties,
            deferred_refs=deferred_refs,
            failures=failures,
        )

        for child_id in instance.children:
            if child_id in self._identity_map:
                log.debug("Child %s of %s already exists, skipping", child_id, node_id)
                continue
            self._reify(deferred_refs, added, child_id, obj, failures)


def resolve_deferred_refs(
    identity_map: IdentityMap,
    writer: PropertyWriter,
    deferred_refs: list[DeferredRef],
    unapplied_patch: PatchSet,
) -> None:
    """Write every held-back ref now that all additions have materialized.

    Unresolvable targets and rejected writes are merged into the ``updated``
    entry for the owning id.
    """

    for entry in deferred_refs:
        target_id = entry.value.target
        target = identity_map.by_id(target_id)
        if target is None and target_id is not None:
            log.debug(
                "Ref %s.%s points at unknown id %s", entry.id, entry.property_name, target_id
            )
            unapplied_patch.record_property_failure(entry.id, entry.property_name, entry.value)
            continue

        try:
            writer.write(entry.live_object, entry.property_name, target)
        except PropertyWriteError as exc:
            log.debug("Could not set ref %s.%s: %s", entry.id, entry.property_name, exc)
            unapplied_patch.record_property_failure(entry.id, entry.property_name, entry.value)
