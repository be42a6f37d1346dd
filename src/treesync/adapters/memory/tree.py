"""In-memory live tree used by the CLI and tests."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping, Sequence

ROOT_CLASS_NAME = "DataModel"


@dataclass(eq=False, slots=True)
class LiveNode:
    """A node of :class:`MemoryTree`. Hashes by identity."""

    class_name: str
    name: str
    parent: LiveNode | None = None
    children: list[LiveNode] = field(default_factory=list["LiveNode"])
    properties: dict[str, object] = field(default_factory=dict[str, object])
    destroyed: bool = False

    def __repr__(self) -> str:
        return f"<{self.class_name} {self.name!r}>"

    def descendants(self) -> Iterator[LiveNode]:
        for child in self.children:
            yield child
            yield from child.descendants()


class MemoryTree:
    """Tree of :class:`LiveNode` objects implementing the live tree port.

    ``uncreatable`` lists class names whose creation fails. Nodes in
    ``locked`` refuse to be renamed, reparented or destroyed.
    """

    def __init__(self, *, uncreatable: set[str] | None = None) -> None:
        self.root = LiveNode(ROOT_CLASS_NAME, "root")
        self.uncreatable: set[str] = set(uncreatable or ())
        self.locked: set[LiveNode] = set()

    def create(self, class_name: str, parent: object) -> LiveNode:
        if class_name in self.uncreatable:
            raise ValueError(f"Cannot create instance of class {class_name}")
        node = LiveNode(class_name, class_name)
        self._attach(node, _node(parent))
        return node

    def destroy(self, obj: object) -> None:
        node = self._unlocked(obj)
        self._detach(node)
        node.destroyed = True
        for descendant in node.descendants():
            descendant.destroyed = True

    def set_parent(self, obj: object, parent: object | None) -> None:
        node = self._unlocked(obj)
        if parent is None:
            self._detach(node)
            return
        new_parent = _node(parent)
        if new_parent is node or new_parent in set(node.descendants()):
            raise ValueError(f"Cannot parent {node!r} to its own descendant")
        self._detach(node)
        self._attach(node, new_parent)

    def rename(self, obj: object, name: str) -> None:
        self._unlocked(obj).name = name

    def get_name(self, obj: object) -> str:
        return _node(obj).name

    def get_class_name(self, obj: object) -> str:
        return _node(obj).class_name

    def get_parent(self, obj: object) -> LiveNode | None:
        return _node(obj).parent

    def get_children(self, obj: object) -> Sequence[LiveNode]:
        return tuple(_node(obj).children)

    def set_properties(self, obj: object, values: Mapping[str, object]) -> None:
        _node(obj).properties.update(values)

    def _unlocked(self, obj: object) -> LiveNode:
        node = _node(obj)
        if node in self.locked:
            raise PermissionError(f"{node!r} is locked")
        return node

    @staticmethod
    def _attach(node: LiveNode, parent: LiveNode) -> None:
        if parent.destroyed:
            raise ValueError(f"Cannot parent {node!r} to destroyed {parent!r}")
        node.parent = parent
        parent.children.append(node)

    @staticmethod
    def _detach(node: LiveNode) -> None:
        if node.parent is not None:
            node.parent.children.remove(node)
            node.parent = None


def _node(obj: object) -> LiveNode:
    if not isinstance(obj, LiveNode):
        raise TypeError(f"Expected a LiveNode, got {type(obj).__name__}")
    return obj
