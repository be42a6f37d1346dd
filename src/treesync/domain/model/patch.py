"""Patch containers: desired-state nodes, updates and patch sets."""

# pyright: reportUnknownVariableType=false

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .values import Id, Ref, VirtualValue


@dataclass(slots=True, kw_only=True)
class VirtualInstance:
    """Desired state of one node, consumed once while a patch is applied."""

    id: Id
    class_name: str
    name: str
    parent: Id | None = None
    properties: dict[str, VirtualValue] = field(default_factory=dict)
    children: list[Id] = field(default_factory=list)


@dataclass(slots=True, kw_only=True)
class Update:
    """Changes to an existing node. Unset fields are left untouched."""

    id: Id
    changed_name: str | None = None
    changed_class_name: str | None = None
    changed_properties: dict[str, VirtualValue] | None = None
    changed_metadata: object | None = None

    def is_empty(self) -> bool:
        return (
            self.changed_name is None
            and self.changed_class_name is None
            and not self.changed_properties
            and self.changed_metadata is None
        )

    def merge(self, other: Update) -> None:
        """Fold ``other`` into this update; ``other`` wins on conflicts."""

        if other.id != self.id:
            raise ValueError(f"Cannot merge update for {other.id} into update for {self.id}")
        if other.changed_name is not None:
            self.changed_name = other.changed_name
        if other.changed_class_name is not None:
            self.changed_class_name = other.changed_class_name
        if other.changed_metadata is not None:
            self.changed_metadata = other.changed_metadata
        if other.changed_properties:
            if self.changed_properties is None:
                self.changed_properties = {}
            self.changed_properties.update(other.changed_properties)


@dataclass(slots=True)
class DeferredRef:
    """A reference-typed property waiting for its target to materialize."""

    id: Id
    live_object: object
    property_name: str
    value: Ref


@dataclass(slots=True)
class PatchSet:
    """Additions, removals and updates keyed by stable ids.

    The same shape describes both an incoming patch and the unapplied part of
    one: an empty ``PatchSet`` returned from an apply means full success.
    Removals may name a node by id or by its live object.
    """

    removed: list[object] = field(default_factory=list)
    added: dict[Id, VirtualInstance] = field(default_factory=dict)
    updated: list[Update] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.removed and not self.added and not self.updated

    def count_changes(self) -> tuple[int, int, int]:
        return len(self.removed), len(self.added), len(self.updated)

    def update_for(self, node_id: Id) -> Update | None:
        for update in self.updated:
            if update.id == node_id:
                return update
        return None

    def record_update(self, update: Update) -> None:
        """Merge ``update`` into the entry for its id, appending one if absent."""

        existing = self.update_for(update.id)
        if existing is None:
            # later merges must not write through to the caller's patch
            properties = update.changed_properties
            self.updated.append(
                replace(update, changed_properties=None if properties is None else dict(properties))
            )
        else:
            existing.merge(update)

    def record_property_failure(self, node_id: Id, name: str, value: VirtualValue) -> None:
        self.record_update(Update(id=node_id, changed_properties={name: value}))

    def assign(self, other: PatchSet) -> None:
        """Merge every entry of ``other`` into this patch set."""

        self.removed.extend(other.removed)
        self.added.update(other.added)
        for update in other.updated:
            self.record_update(update)


def subtree_ids(added: dict[Id, VirtualInstance], root_id: Id) -> list[Id]:
    """Return ``root_id`` and every descendant declared inside ``added``."""

    ids: list[Id] = []
    pending = [root_id]
    while pending:
        node_id = pending.pop()
        instance = added.get(node_id)
        if instance is None or node_id in ids:
            continue
        ids.append(node_id)
        pending.extend(reversed(instance.children))
    return ids
