"""Pydantic models describing the JSON wire format of patches and snapshots.

Property values are single-key objects whose key names the value type, for
example ``{"String": "Hello"}``, ``{"Ref": "2f1c..."}`` or
``{"Attributes": {"Health": {"Float64": 100}}}``.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, cast

from pydantic import BaseModel, ConfigDict, Field, field_validator

WireValue = dict[str, Any]


def _check_tagged_values(value: object) -> object:
    if value is None:
        return value
    if not isinstance(value, Mapping):
        raise ValueError("properties must be an object")
    for name, entry in cast(Mapping[str, object], value).items():
        if not isinstance(entry, Mapping) or len(cast(Mapping[str, object], entry)) != 1:
            raise ValueError(f"property {name!r} must be an object with exactly one type key")
    return value


class WireBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class WireInstance(WireBaseModel):
    id: str = Field(alias="Id")
    class_name: str = Field(alias="ClassName")
    name: str = Field(alias="Name")
    parent: str | None = Field(default=None, alias="Parent")
    properties: dict[str, WireValue] = Field(default_factory=dict, alias="Properties")
    children: list[str] = Field(default_factory=list, alias="Children")

    _check_properties = field_validator("properties", mode="before")(_check_tagged_values)


class WireUpdate(WireBaseModel):
    id: str
    changed_name: str | None = Field(default=None, alias="changedName")
    changed_class_name: str | None = Field(default=None, alias="changedClassName")
    changed_properties: dict[str, WireValue] | None = Field(
        default=None, alias="changedProperties"
    )
    changed_metadata: Any | None = Field(default=None, alias="changedMetadata")

    _check_properties = field_validator("changed_properties", mode="before")(
        _check_tagged_values
    )


class WirePatch(WireBaseModel):
    removed: list[str] = Field(default_factory=list)
    added: dict[str, WireInstance] = Field(default_factory=dict)
    updated: list[WireUpdate] = Field(default_factory=list["WireUpdate"])


class WireSnapshotNode(WireBaseModel):
    """One node of a live tree snapshot. The top node stands for the tree root."""

    id: str | None = Field(default=None, alias="Id")
    class_name: str = Field(alias="ClassName")
    name: str = Field(alias="Name")
    properties: dict[str, WireValue] = Field(default_factory=dict, alias="Properties")
    children: list[WireSnapshotNode] = Field(
        default_factory=list["WireSnapshotNode"], alias="Children"
    )

    _check_properties = field_validator("properties", mode="before")(_check_tagged_values)
