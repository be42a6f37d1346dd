from __future__ import annotations

import pytest

from tests.helpers.trees import build_node
from treesync.adapters.memory import MemoryTree
from treesync.domain.model import IdentityConflictError, UnknownIdError, UnknownObjectError
from treesync.domain.reconciliation import IdentityMap


def test_register_is_bidirectional(tree: MemoryTree) -> None:
    identity_map = IdentityMap(tree)
    node = tree.create("Folder", tree.root)

    identity_map.register("a", node)

    assert identity_map.by_id("a") is node
    assert identity_map.by_object(node) == "a"
    assert "a" in identity_map
    assert len(identity_map) == 1
    assert identity_map.by_id(None) is None


def test_register_rejects_rebinding_without_replace(tree: MemoryTree) -> None:
    identity_map = IdentityMap(tree)
    identity_map.register("a", tree.create("Folder", tree.root))

    with pytest.raises(IdentityConflictError):
        identity_map.register("a", tree.create("Folder", tree.root))


def test_register_same_binding_twice_is_fine(tree: MemoryTree) -> None:
    identity_map = IdentityMap(tree)
    node = tree.create("Folder", tree.root)

    identity_map.register("a", node)
    identity_map.register("a", node)

    assert len(identity_map) == 1


def test_register_with_replace_repoints_id(tree: MemoryTree) -> None:
    identity_map = IdentityMap(tree)
    old = tree.create("Folder", tree.root)
    new = tree.create("Model", tree.root)
    identity_map.register("a", old)

    identity_map.register("a", new, replace=True)

    assert identity_map.by_id("a") is new
    assert identity_map.by_object(old) is None
    assert identity_map.by_object(new) == "a"


def test_destroy_id_destroys_and_unbinds_descendants(
    tree: MemoryTree, identity_map: IdentityMap
) -> None:
    parent = build_node(tree, identity_map, "parent", "Folder")
    child = build_node(tree, identity_map, "child", "Folder", parent=parent)

    identity_map.destroy_id("parent")

    assert parent.destroyed
    assert child.destroyed
    assert parent not in tree.root.children
    assert "parent" not in identity_map
    assert "child" not in identity_map


def test_destroy_object_uses_object_identity(tree: MemoryTree, identity_map: IdentityMap) -> None:
    node = build_node(tree, identity_map, "a", "Folder")

    identity_map.destroy_object(node)

    assert node.destroyed
    assert identity_map.by_object(node) is None


def test_destroy_unknown_targets_raise(tree: MemoryTree, identity_map: IdentityMap) -> None:
    with pytest.raises(UnknownIdError):
        identity_map.destroy_id("missing")
    with pytest.raises(UnknownObjectError):
        identity_map.destroy_object(tree.create("Folder", tree.root))


def test_suppression_is_released_at_end_of_cycle(
    tree: MemoryTree, identity_map: IdentityMap
) -> None:
    node = build_node(tree, identity_map, "a", "Folder")

    identity_map.suppress(node)
    assert identity_map.is_suppressed(node)

    identity_map.release_suppressed()
    assert not identity_map.is_suppressed(node)
