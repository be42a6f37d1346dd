"""Application orchestration entry points."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from treesync.adapters.memory import MemorySchema, MemoryTree
from treesync.adapters.wire import WirePatch, WireSnapshotNode, seed_tree, translate_patch
from treesync.config import get_reconcile_config
from treesync.domain.reconciliation import IdentityMap, PatchApplier

if TYPE_CHECKING:
    from pathlib import Path

    from treesync.config import ReconcileConfig
    from treesync.domain.model import PatchSet
    from treesync.domain.ports import HistoryRecorder, PropertySchema

log = getLogger(__name__)


@dataclass(slots=True)
class ApplyOutcome:
    unapplied: PatchSet
    tree: MemoryTree
    identity_map: IdentityMap


def load_patch(path: Path) -> PatchSet:
    return translate_patch(WirePatch.model_validate_json(path.read_text(encoding="utf-8")))


def load_tree(path: Path) -> tuple[MemoryTree, IdentityMap]:
    snapshot = WireSnapshotNode.model_validate_json(path.read_text(encoding="utf-8"))
    tree = MemoryTree()
    identity_map = IdentityMap(tree)
    seed_tree(snapshot, tree, identity_map)
    return tree, identity_map


def apply_patch_files(
    tree_path: Path,
    patch_path: Path,
    *,
    schema: PropertySchema | None = None,
    history: HistoryRecorder | None = None,
    config: ReconcileConfig | None = None,
) -> ApplyOutcome:
    """Apply the patch at ``patch_path`` to the tree snapshot at ``tree_path``.

    Without an explicit schema every property is treated as writable.
    """

    tree, identity_map = load_tree(tree_path)
    patch = load_patch(patch_path)
    applier = PatchApplier(
        tree=tree,
        schema=schema or MemorySchema(permissive=True),
        history=history,
        identity_map=identity_map,
        config=config or get_reconcile_config(),
    )
    log.info("Applying %s to %s", patch_path, tree_path)
    unapplied = applier.apply(patch)
    return ApplyOutcome(unapplied=unapplied, tree=tree, identity_map=identity_map)
