"""Port for the per-class property schema."""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from .live_tree import LiveObject


class Scriptability(StrEnum):
    NONE = "None"
    READ = "Read"
    WRITE = "Write"
    READ_WRITE = "ReadWrite"

    @property
    def writable(self) -> bool:
        return self in (Scriptability.WRITE, Scriptability.READ_WRITE)


class WriteFailureKind(StrEnum):
    PERMISSION_DENIED = "permission_denied"
    OTHER = "other"
    UNKNOWN = "unknown"


class DescriptorWriteError(Exception):
    """Raised by :meth:`PropertyDescriptor.write` when the host rejects a write.

    ``kind`` is ``UNKNOWN`` when the host only exposes a free-form message in
    ``detail``.
    """

    def __init__(self, detail: str, *, kind: WriteFailureKind = WriteFailureKind.UNKNOWN) -> None:
        super().__init__(detail)
        self.detail = detail
        self.kind = kind


class PropertyDescriptor(Protocol):
    @property
    def scriptability(self) -> Scriptability: ...

    def write(self, obj: LiveObject, value: object) -> None: ...


class PropertySchema(Protocol):
    def find_descriptor(self, class_name: str, property_name: str) -> PropertyDescriptor | None: ...

    def find_enum_item(self, enum_name: str, item_name: str) -> object | None:
        """Return the native value of ``Enum.<enum_name>.<item_name>`` if it exists."""
        ...
