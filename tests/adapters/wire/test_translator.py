from __future__ import annotations

import pytest
from pydantic import ValidationError

from treesync.adapters.memory import LiveNode, MemoryTree
from treesync.adapters.wire import (
    WirePatch,
    WireSnapshotNode,
    encode_patch,
    seed_tree,
    translate_patch,
    translate_value,
)
from treesync.domain.model import Composite, PatchSet, Primitive, Ref, Update, VirtualInstance
from treesync.domain.reconciliation import IdentityMap

PATCH_PAYLOAD = {
    "removed": ["gone"],
    "added": {
        "n1": {
            "Id": "n1",
            "ClassName": "Part",
            "Name": "Wheel",
            "Parent": "root",
            "Properties": {
                "Color": {"Color3": [1, 0, 0]},
                "Target": {"Ref": "n2"},
                "Attributes": {"Attributes": {"Health": {"Float64": 100}}},
            },
            "Children": [],
        }
    },
    "updated": [
        {
            "id": "n3",
            "changedName": "Renamed",
            "changedProperties": {"Value": {"String": "x"}},
            "changedMetadata": {"ignoreUnknownInstances": True},
        }
    ],
}


def test_translate_patch_builds_domain_patch() -> None:
    patch = translate_patch(WirePatch.model_validate(PATCH_PAYLOAD))

    assert patch.removed == ["gone"]
    assert patch.added["n1"] == VirtualInstance(
        id="n1",
        class_name="Part",
        name="Wheel",
        parent="root",
        properties={
            "Color": Primitive("Color3", [1, 0, 0]),
            "Target": Ref("n2"),
            "Attributes": Composite({"Health": Primitive("Float64", 100)}),
        },
    )
    assert patch.updated == [
        Update(
            id="n3",
            changed_name="Renamed",
            changed_properties={"Value": Primitive("String", "x")},
            changed_metadata={"ignoreUnknownInstances": True},
        )
    ]


def test_translate_value_handles_null_ref() -> None:
    assert translate_value({"Ref": None}) == Ref(None)


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"String": "a", "Int32": 1},
        {"Ref": 5},
        {"Composite": "flat"},
        {"Composite": {"Inner": "untagged"}},
    ],
)
def test_translate_value_rejects_malformed_values(payload: dict[str, object]) -> None:
    with pytest.raises(ValueError):
        translate_value(payload)


def test_untagged_property_fails_validation() -> None:
    payload = {
        "added": {"n1": {"Id": "n1", "ClassName": "Part", "Name": "n1", "Properties": {"A": 1}}}
    }

    with pytest.raises(ValidationError):
        WirePatch.model_validate(payload)


def test_encode_patch_writes_wire_shape() -> None:
    patch = PatchSet(
        removed=["gone"],
        updated=[
            Update(
                id="n3",
                changed_properties={
                    "Target": Ref("n2"),
                    "Attributes": Composite({"Health": Primitive("Float64", 1.5)}),
                },
            )
        ],
    )

    assert encode_patch(patch) == {
        "removed": ["gone"],
        "added": {},
        "updated": [
            {
                "id": "n3",
                "changedProperties": {
                    "Target": {"Ref": "n2"},
                    "Attributes": {"Composite": {"Health": {"Float64": 1.5}}},
                },
            }
        ],
    }


def test_encoded_patch_is_accepted_by_the_wire_model() -> None:
    patch = translate_patch(WirePatch.model_validate(PATCH_PAYLOAD))

    again = translate_patch(WirePatch.model_validate(encode_patch(patch)))

    assert again == patch


def test_encode_patch_rejects_live_object_removals() -> None:
    with pytest.raises(TypeError):
        encode_patch(PatchSet(removed=[LiveNode("Folder", "f")]))


def test_seed_tree_registers_ids_and_resolves_refs() -> None:
    snapshot = WireSnapshotNode.model_validate(
        {
            "Id": "root",
            "ClassName": "DataModel",
            "Name": "game",
            "Children": [
                {
                    "Id": "model",
                    "ClassName": "Model",
                    "Name": "Car",
                    "Properties": {"PrimaryPart": {"Ref": "wheel"}},
                    "Children": [
                        {
                            "Id": "wheel",
                            "ClassName": "Part",
                            "Name": "Wheel",
                            "Properties": {"Size": {"Vector3": [1, 2, 3]}},
                        },
                        {"ClassName": "Folder", "Name": "Untracked"},
                    ],
                }
            ],
        }
    )
    tree = MemoryTree()
    identity_map = IdentityMap(tree)

    seed_tree(snapshot, tree, identity_map)

    model = identity_map.by_id("model")
    wheel = identity_map.by_id("wheel")
    assert identity_map.by_id("root") is tree.root
    assert tree.root.name == "game"
    assert isinstance(model, LiveNode)
    assert isinstance(wheel, LiveNode)
    assert model.properties["PrimaryPart"] is wheel
    assert wheel.properties["Size"] == [1, 2, 3]
    assert [child.name for child in model.children] == ["Wheel", "Untracked"]
    assert len(identity_map) == 3
