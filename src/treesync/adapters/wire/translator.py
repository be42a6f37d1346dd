"""Translate between the JSON wire format and the domain patch model."""

from __future__ import annotations

from collections.abc import Mapping
from logging import getLogger
from typing import TYPE_CHECKING, Any, cast

from treesync.domain.model import (
    Composite,
    PatchSet,
    Primitive,
    Ref,
    Update,
    VirtualInstance,
)

if TYPE_CHECKING:
    from treesync.adapters.memory import LiveNode, MemoryTree
    from treesync.domain.model import VirtualValue
    from treesync.domain.reconciliation import IdentityMap

    from .schema import WireInstance, WirePatch, WireSnapshotNode, WireUpdate, WireValue

log = getLogger(__name__)

REF_TAG = "Ref"
COMPOSITE_TAG = "Composite"
COMPOSITE_TAGS = frozenset({COMPOSITE_TAG, "Attributes"})


def translate_value(payload: Mapping[str, object]) -> VirtualValue:
    if len(payload) != 1:
        raise ValueError(f"Expected exactly one type key, got {sorted(payload)}")
    ((tag, raw),) = payload.items()
    if tag == REF_TAG:
        if raw is not None and not isinstance(raw, str):
            raise ValueError(f"Ref target must be an id or null, got {raw!r}")
        return Ref(raw)
    if tag in COMPOSITE_TAGS:
        if not isinstance(raw, Mapping):
            raise ValueError(f"{tag} value must be an object")
        entries = cast(Mapping[str, object], raw)
        return Composite(
            {name: translate_value(_tagged(name, entry)) for name, entry in entries.items()}
        )
    return Primitive(tag, raw)


def encode_value(value: VirtualValue) -> dict[str, Any]:
    match value:
        case Primitive(type=type_name, raw=raw):
            return {type_name: raw}
        case Ref(target=target):
            return {REF_TAG: target}
        case Composite(entries=entries):
            return {COMPOSITE_TAG: {name: encode_value(entry) for name, entry in entries.items()}}


def translate_patch(patch: WirePatch) -> PatchSet:
    return PatchSet(
        removed=list(patch.removed),
        added={
            node_id: _translate_instance(instance) for node_id, instance in patch.added.items()
        },
        updated=[_translate_update(update) for update in patch.updated],
    )


def encode_patch(patch: PatchSet) -> dict[str, Any]:
    removed: list[str] = []
    for target in patch.removed:
        if not isinstance(target, str):
            raise TypeError(f"Cannot encode removal of live object {target!r}")
        removed.append(target)
    return {
        "removed": removed,
        "added": {
            node_id: _encode_instance(instance) for node_id, instance in patch.added.items()
        },
        "updated": [_encode_update(update) for update in patch.updated],
    }


def seed_tree(
    snapshot: WireSnapshotNode,
    tree: MemoryTree,
    identity_map: IdentityMap,
) -> None:
    """Populate ``tree`` from ``snapshot`` and register every node that carries an id.

    The snapshot's top node stands for ``tree.root``. Ref properties are set once
    every node exists.
    """

    pending_refs: list[tuple[LiveNode, str, Ref]] = []
    _seed_node(snapshot, tree.root, tree, identity_map, pending_refs)
    for node, name, ref in pending_refs:
        target = identity_map.by_id(ref.target)
        if target is None and ref.target is not None:
            log.warning("Snapshot ref %s.%s points at unknown id %s", node.name, name, ref.target)
            continue
        node.properties[name] = target
    log.debug("Seeded tree with %s registered nodes", len(identity_map))


def _seed_node(
    snapshot: WireSnapshotNode,
    node: LiveNode,
    tree: MemoryTree,
    identity_map: IdentityMap,
    pending_refs: list[tuple[LiveNode, str, Ref]],
) -> None:
    node.name = snapshot.name
    if snapshot.id is not None:
        identity_map.register(snapshot.id, node)
    for name, payload in snapshot.properties.items():
        value = translate_value(payload)
        if isinstance(value, Ref):
            pending_refs.append((node, name, value))
        else:
            node.properties[name] = _plain(value)
    for child_snapshot in snapshot.children:
        child = tree.create(child_snapshot.class_name, node)
        _seed_node(child_snapshot, child, tree, identity_map, pending_refs)


def _plain(value: VirtualValue) -> object:
    match value:
        case Primitive(raw=raw):
            return raw
        case Ref(target=target):
            return target
        case Composite(entries=entries):
            return {name: _plain(entry) for name, entry in entries.items()}


def _tagged(name: str, entry: object) -> Mapping[str, object]:
    if not isinstance(entry, Mapping):
        raise ValueError(f"Value of {name!r} must be an object with one type key")
    return cast(Mapping[str, object], entry)


def _translate_properties(properties: Mapping[str, WireValue]) -> dict[str, VirtualValue]:
    return {name: translate_value(payload) for name, payload in properties.items()}


def _translate_instance(instance: WireInstance) -> VirtualInstance:
    return VirtualInstance(
        id=instance.id,
        class_name=instance.class_name,
        name=instance.name,
        parent=instance.parent,
        properties=_translate_properties(instance.properties),
        children=list(instance.children),
    )


def _translate_update(update: WireUpdate) -> Update:
    properties = update.changed_properties
    return Update(
        id=update.id,
        changed_name=update.changed_name,
        changed_class_name=update.changed_class_name,
        changed_properties=None if properties is None else _translate_properties(properties),
        changed_metadata=update.changed_metadata,
    )


def _encode_instance(instance: VirtualInstance) -> dict[str, Any]:
    return {
        "Id": instance.id,
        "ClassName": instance.class_name,
        "Name": instance.name,
        "Parent": instance.parent,
        "Properties": {name: encode_value(value) for name, value in instance.properties.items()},
        "Children": list(instance.children),
    }


def _encode_update(update: Update) -> dict[str, Any]:
    payload: dict[str, Any] = {"id": update.id}
    if update.changed_name is not None:
        payload["changedName"] = update.changed_name
    if update.changed_class_name is not None:
        payload["changedClassName"] = update.changed_class_name
    if update.changed_properties is not None:
        payload["changedProperties"] = {
            name: encode_value(value) for name, value in update.changed_properties.items()
        }
    if update.changed_metadata is not None:
        payload["changedMetadata"] = update.changed_metadata
    return payload
