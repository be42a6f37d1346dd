"""Virtual property values as carried by patches."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TypeAlias

Id: TypeAlias = str


@dataclass(frozen=True, slots=True)
class Primitive:
    """A plain value tagged with its wire type (``"String"``, ``"Bool"``, ...)."""

    type: str
    raw: object


@dataclass(frozen=True, slots=True)
class Ref:
    """Reference to another node by id. ``None`` clears the reference."""

    target: Id | None


@dataclass(frozen=True, slots=True)
class Composite:
    """Structured group of named values (attribute bags, styled properties)."""

    entries: dict[str, VirtualValue] = field(default_factory=dict)


VirtualValue: TypeAlias = Primitive | Ref | Composite
