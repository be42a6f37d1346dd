"""Domain port definitions for host adapters."""

from __future__ import annotations

from .history import HistoryRecorder
from .live_tree import LiveObject, LiveTree
from .schema import (
    DescriptorWriteError,
    PropertyDescriptor,
    PropertySchema,
    Scriptability,
    WriteFailureKind,
)

__all__ = [
    "DescriptorWriteError",
    "HistoryRecorder",
    "LiveObject",
    "LiveTree",
    "PropertyDescriptor",
    "PropertySchema",
    "Scriptability",
    "WriteFailureKind",
]
