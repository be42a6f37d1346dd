from __future__ import annotations

import pytest

from tests.helpers.trees import added, build_node, instance, ref, string
from treesync.adapters.memory import LiveNode, MemorySchema, MemoryTree
from treesync.config import ReconcileConfig
from treesync.domain.model import DeferredRef, MalformedPatchError, PatchSet, Update
from treesync.domain.reconciliation import (
    IdentityMap,
    PropertyApplier,
    PropertyWriter,
    Reifier,
    resolve_deferred_refs,
)


@pytest.fixture
def writer(tree: MemoryTree, schema: MemorySchema) -> PropertyWriter:
    return PropertyWriter(tree, schema)


@pytest.fixture
def reifier(tree: MemoryTree, identity_map: IdentityMap, writer: PropertyWriter) -> Reifier:
    properties = PropertyApplier(identity_map, writer, ReconcileConfig())
    return Reifier(tree, identity_map, properties)


def test_reify_builds_declared_subtree(
    tree: MemoryTree, identity_map: IdentityMap, reifier: Reifier
) -> None:
    nodes = added(
        instance("folder", "Folder", name="Stuff", children=["value"]),
        instance("value", "StringValue", parent="folder", properties={"Value": string("hi")}),
    )
    deferred: list[DeferredRef] = []

    failures = reifier.reify_instance(deferred, nodes, "folder", tree.root)

    assert failures.is_empty()
    assert deferred == []
    folder = identity_map.by_id("folder")
    value = identity_map.by_id("value")
    assert isinstance(folder, LiveNode)
    assert isinstance(value, LiveNode)
    assert (folder.class_name, folder.name, folder.parent) == ("Folder", "Stuff", tree.root)
    assert value.parent is folder
    assert value.properties == {"Value": "hi"}


def test_reify_defers_ref_properties(
    tree: MemoryTree, identity_map: IdentityMap, reifier: Reifier
) -> None:
    nodes = added(instance("pointer", "ObjectValue", properties={"Value": ref("later")}))
    deferred: list[DeferredRef] = []

    failures = reifier.reify_instance(deferred, nodes, "pointer", tree.root)

    assert failures.is_empty()
    assert deferred == [
        DeferredRef("pointer", identity_map.by_id("pointer"), "Value", ref("later"))
    ]


def test_reify_records_property_failures_and_keeps_going(
    tree: MemoryTree, identity_map: IdentityMap, reifier: Reifier
) -> None:
    nodes = added(
        instance(
            "part",
            "Part",
            properties={"Color": string("red"), "Locked": string("yes"), "Mass": string("1")},
        )
    )

    failures = reifier.reify_instance([], nodes, "part", tree.root)

    part = identity_map.by_id("part")
    assert isinstance(part, LiveNode)
    assert part.properties == {"Color": "red"}
    assert failures == PatchSet(
        updated=[
            Update(
                id="part",
                changed_properties={"Locked": string("yes"), "Mass": string("1")},
            )
        ]
    )


def test_reify_records_uncreatable_subtree(schema: MemorySchema) -> None:
    tree = MemoryTree(uncreatable={"Service"})
    identity_map = IdentityMap(tree)
    properties = PropertyApplier(identity_map, PropertyWriter(tree, schema), ReconcileConfig())
    reifier = Reifier(tree, identity_map, properties)
    nodes = added(
        instance("top", "Folder", children=["service", "sibling"]),
        instance("service", "Service", parent="top", children=["inner"]),
        instance("inner", "Folder", parent="service"),
        instance("sibling", "Folder", parent="top"),
    )

    failures = reifier.reify_instance([], nodes, "top", tree.root)

    assert sorted(failures.added) == ["inner", "service"]
    assert "top" in identity_map
    assert "sibling" in identity_map
    assert "service" not in identity_map


def test_reify_without_parent_is_malformed(reifier: Reifier) -> None:
    with pytest.raises(MalformedPatchError):
        reifier.reify_instance([], added(instance("a", "Folder")), "a", None)


def test_reify_with_undeclared_child_is_malformed(tree: MemoryTree, reifier: Reifier) -> None:
    nodes = added(instance("a", "Folder", children=["ghost"]))

    with pytest.raises(MalformedPatchError, match="ghost"):
        reifier.reify_instance([], nodes, "a", tree.root)


def test_reify_skips_children_that_already_exist(
    tree: MemoryTree, identity_map: IdentityMap, reifier: Reifier
) -> None:
    existing = build_node(tree, identity_map, "existing", "Folder")
    nodes = added(instance("a", "Folder", children=["existing"]))

    failures = reifier.reify_instance([], nodes, "a", tree.root)

    assert failures.is_empty()
    assert existing.parent is tree.root


def test_resolve_deferred_refs_writes_targets_and_records_misses(
    tree: MemoryTree, identity_map: IdentityMap, writer: PropertyWriter
) -> None:
    pointer = build_node(tree, identity_map, "pointer", "ObjectValue")
    target = build_node(tree, identity_map, "target", "Folder")
    other = build_node(tree, identity_map, "other", "ObjectValue")
    unapplied = PatchSet(updated=[Update(id="other", changed_name="Other")])

    resolve_deferred_refs(
        identity_map,
        writer,
        [
            DeferredRef("pointer", pointer, "Value", ref("target")),
            DeferredRef("other", other, "Value", ref("missing")),
        ],
        unapplied,
    )

    assert pointer.properties["Value"] is target
    assert unapplied.updated == [
        Update(id="other", changed_name="Other", changed_properties={"Value": ref("missing")})
    ]


def test_resolve_deferred_refs_clears_null_refs(
    tree: MemoryTree, identity_map: IdentityMap, writer: PropertyWriter
) -> None:
    pointer = build_node(tree, identity_map, "pointer", "ObjectValue")
    pointer.properties["Value"] = tree.root
    unapplied = PatchSet()

    resolve_deferred_refs(
        identity_map, writer, [DeferredRef("pointer", pointer, "Value", ref(None))], unapplied
    )

    assert pointer.properties["Value"] is None
    assert unapplied.is_empty()
