"""In-memory host adapter."""

from __future__ import annotations

from .schema import EnumItem, MemoryDescriptor, MemoryHistory, MemorySchema
from .tree import LiveNode, MemoryTree

__all__ = [
    "EnumItem",
    "LiveNode",
    "MemoryDescriptor",
    "MemoryHistory",
    "MemorySchema",
    "MemoryTree",
]
