"""Apply a patch to the live tree and report what could not be applied.

The patch is applied in four ordered phases:
1) removals
2) additions, each connected subtree reified once from its topmost new node
3) updates, including class rebuilds that move children to a new object
4) reference properties held back during phases 2 and 3

Per-item failures end up in the returned unapplied patch. Only a malformed
addition (no parent to attach to) aborts the whole call.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from logging import getLogger
from typing import TYPE_CHECKING

from treesync.config import ReconcileConfig
from treesync.domain.model import (
    MalformedPatchError,
    PatchSet,
    Update,
    VirtualInstance,
    subtree_ids,
)

from .identity_map import IdentityMap
from .properties import PropertyApplier
from .reify import Reifier, resolve_deferred_refs
from .set_property import PropertyWriter

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

    from treesync.domain.model import DeferredRef, Id
    from treesync.domain.ports import HistoryRecorder, LiveObject, LiveTree, PropertySchema

    from .decode import Converter

log = getLogger(__name__)


class PatchApplier:
    """Reconcile a live tree with patches, one ``apply`` call at a time."""

    def __init__(
        self,
        *,
        tree: LiveTree,
        schema: PropertySchema,
        history: HistoryRecorder | None = None,
        identity_map: IdentityMap | None = None,
        config: ReconcileConfig | None = None,
        converters: Mapping[str, Converter] | None = None,
    ) -> None:
        self.tree = tree
        self.identity_map = identity_map if identity_map is not None else IdentityMap(tree)
        self.config = config or ReconcileConfig()
        self._history = history
        self._writer = PropertyWriter(
            tree, schema, styled_properties_name=self.config.styled_properties_name
        )
        self._properties = PropertyApplier(
            self.identity_map, self._writer, self.config, converters=converters
        )
        self._reifier = Reifier(tree, self.identity_map, self._properties)

    def apply(self, patch: PatchSet) -> PatchSet:
        """Apply ``patch`` and return the parts that could not be applied.

        Raises :class:`MalformedPatchError` when an addition has no parent in
        the live tree. The history recording is committed either way.
        """

        removed, added, updated = patch.count_changes()
        log.debug("Applying patch: removed=%s, added=%s, updated=%s", removed, added, updated)

        unapplied = PatchSet()
        deferred_refs: list[DeferredRef] = []
        with self._history_recording():
            try:
                self._apply_removals(patch, unapplied)
                self._apply_additions(patch, unapplied, deferred_refs)
                self._apply_updates(patch, unapplied, deferred_refs)
                resolve_deferred_refs(self.identity_map, self._writer, deferred_refs, unapplied)
            finally:
                self.identity_map.release_suppressed()

        if not unapplied.is_empty():
            removed, added, updated = unapplied.count_changes()
            log.info(
                "Patch partially applied: unapplied removed=%s, added=%s, updated=%s",
                removed,
                added,
                updated,
            )
        return unapplied

    @contextmanager
    def _history_recording(self) -> Iterator[None]:
        if self._history is None:
            yield
            return
        timestamp = datetime.now().strftime("%H:%M:%S")
        label = f"{self.config.history_label_prefix}: Patch {timestamp}"
        handle = self._history.try_begin(label)
        if handle is None:
            # only one recording can be open at a time
            log.debug("Could not begin history recording %r; another is in progress", label)
        try:
            yield
        finally:
            if handle is not None:
                self._history.finish(handle, commit=True)

    def _apply_removals(self, patch: PatchSet, unapplied: PatchSet) -> None:
        for target in patch.removed:
            try:
                if isinstance(target, str):
                    self.identity_map.destroy_id(target)
                else:
                    self.identity_map.destroy_object(target)
            except Exception as exc:  # noqa: BLE001 - every failed removal is reported
                log.debug("Could not remove %r: %s", target, exc)
                unapplied.removed.append(target)

    def _apply_additions(
        self,
        patch: PatchSet,
        unapplied: PatchSet,
        deferred_refs: list[DeferredRef],
    ) -> None:
        consumed: set[Id] = set()
        for node_id in patch.added:
            # Reify from the top of each pending subtree so every node is built once.
            # A node that is not a declared child of its pending parent takes more than one pass.
            while node_id not in consumed and node_id not in self.identity_map:
                root_id = self._find_attach_root(patch.added, node_id, consumed)
                self._add_subtree(patch.added, root_id, consumed, unapplied, deferred_refs)

    def _find_attach_root(
        self,
        added: dict[Id, VirtualInstance],
        node_id: Id,
        consumed: set[Id],
    ) -> Id:
        """Walk up through pending additions to the node that attaches to the live tree."""

        seen = {node_id}
        current = added[node_id]
        while (
            current.parent in added
            and current.parent not in consumed
            and current.parent not in self.identity_map
        ):
            parent_id = current.parent
            if parent_id in seen:
                log.error("Parent cycle in patch additions at %s", parent_id)
                raise MalformedPatchError(f"Parent cycle in patch additions at {parent_id}")
            seen.add(parent_id)
            current = added[parent_id]
        return current.id

    def _add_subtree(
        self,
        added: dict[Id, VirtualInstance],
        root_id: Id,
        consumed: set[Id],
        unapplied: PatchSet,
        deferred_refs: list[DeferredRef],
    ) -> None:
        root = added[root_id]
        subtree = subtree_ids(added, root_id)
        consumed.update(subtree)

        if root.parent in consumed and root.parent not in self.identity_map:
            log.debug("Cannot add %s: its parent %s could not be added", root_id, root.parent)
            for failed_id in subtree:
                unapplied.added[failed_id] = added[failed_id]
            return

        parent_object = self.identity_map.by_id(root.parent)
        if parent_object is None:
            log.error(
                "Cannot add %s from a patch: its parent %s does not exist", root_id, root.parent
            )
            raise MalformedPatchError(
                f"Cannot add an instance from a patch that has no parent: "
                f"{root_id} with parent {root.parent}"
            )

        failures = self._reifier.reify_instance(deferred_refs, added, root_id, parent_object)
        if not failures.is_empty():
            log.debug("Failed to reify part of %s: %s", root_id, failures)
            unapplied.assign(failures)

    def _apply_updates(
        self,
        patch: PatchSet,
        unapplied: PatchSet,
        deferred_refs: list[DeferredRef],
    ) -> None:
        for update in patch.updated:
            obj = self.identity_map.by_id(update.id)
            if obj is None:
                log.debug("Cannot update %s: it does not exist", update.id)
                unapplied.record_update(update)
                continue

            # keep a two-way watcher from picking up our own writes
            self.identity_map.suppress(obj)

            if update.changed_class_name is not None:
                self._rebuild(obj, update, update.changed_class_name, unapplied, deferred_refs)
                continue

            partial = Update(id=update.id)
            failures = PatchSet()
            if update.changed_name is not None:
                try:
                    self.tree.rename(obj, update.changed_name)
                except Exception as exc:  # noqa: BLE001
                    log.debug("Could not rename %s: %s", update.id, exc)
                    partial.changed_name = update.changed_name

            if update.changed_metadata is not None:
                # metadata changes are not supported yet
                partial.changed_metadata = update.changed_metadata

            if update.changed_properties:
                self._properties.apply(
                    update.id,
                    obj,
                    update.changed_properties,
                    deferred_refs=deferred_refs,
                    failures=failures,
                )

            if not partial.is_empty():
                unapplied.record_update(partial)
            unapplied.assign(failures)

    def _rebuild(
        self,
        original: LiveObject,
        update: Update,
        class_name: str,
        unapplied: PatchSet,
        deferred_refs: list[DeferredRef],
    ) -> None:
        """Replace ``original`` with a new object of the changed class.

        Only the properties named in the update are applied to the new object.
        Children move over all-or-nothing; the original is detached rather than
        destroyed so an undo can bring it back.
        """

        new_name = (
            update.changed_name if update.changed_name is not None else self.tree.get_name(original)
        )
        parent = self.tree.get_parent(original)
        if parent is None:
            log.debug("Cannot change class of %s: it has no parent", update.id)
            unapplied.record_update(update)
            return

        replacement_instance = VirtualInstance(
            id=update.id,
            class_name=class_name,
            name=new_name,
            parent=self.identity_map.by_object(parent),
            properties=dict(update.changed_properties or {}),
        )
        local_refs: list[DeferredRef] = []
        failures = self._reifier.reify_instance(
            local_refs,
            {update.id: replacement_instance},
            update.id,
            parent,
            replace=True,
        )

        replacement = self.identity_map.by_id(update.id)
        if replacement is None or replacement is original:
            log.debug("Could not create %s for %s", class_name, update.id)
            unapplied.record_update(update)
            return

        if self.tree.get_name(replacement) != new_name or not self._move_children(
            original, replacement
        ):
            log.debug("Rolling back class change of %s", update.id)
            self.identity_map.register(update.id, original, replace=True)
            self.tree.destroy(replacement)
            unapplied.record_update(update)
            return

        self.identity_map.suppress(replacement)
        deferred_refs.extend(local_refs)
        if update.changed_metadata is not None:
            # metadata changes are not supported yet
            unapplied.record_update(Update(id=update.id, changed_metadata=update.changed_metadata))
        unapplied.assign(failures)

    def _move_children(self, original: LiveObject, replacement: LiveObject) -> bool:
        moved: list[LiveObject] = []
        try:
            for child in list(self.tree.get_children(original)):
                self.tree.set_parent(child, replacement)
                moved.append(child)
            self.tree.set_parent(original, None)
        except Exception as exc:  # noqa: BLE001
            log.debug("Could not move children to rebuilt object: %s", exc)
            for child in moved:
                self.tree.set_parent(child, original)
            return False
        return True
