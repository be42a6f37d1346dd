from __future__ import annotations

import pytest

from tests.helpers.trees import ROOT_ID, make_schema
from treesync.adapters.memory import MemoryHistory, MemorySchema, MemoryTree
from treesync.domain.reconciliation import IdentityMap, PatchApplier


@pytest.fixture
def tree() -> MemoryTree:
    return MemoryTree()


@pytest.fixture
def schema() -> MemorySchema:
    return make_schema()


@pytest.fixture
def history() -> MemoryHistory:
    return MemoryHistory()


@pytest.fixture
def identity_map(tree: MemoryTree) -> IdentityMap:
    identity_map = IdentityMap(tree)
    identity_map.register(ROOT_ID, tree.root)
    return identity_map


@pytest.fixture
def applier(
    tree: MemoryTree,
    schema: MemorySchema,
    history: MemoryHistory,
    identity_map: IdentityMap,
) -> PatchApplier:
    return PatchApplier(tree=tree, schema=schema, history=history, identity_map=identity_map)
