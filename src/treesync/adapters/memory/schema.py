"""In-memory property schema and history recorder."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, NoReturn

from treesync.domain.ports import DescriptorWriteError, Scriptability, WriteFailureKind

from .tree import LiveNode

if TYPE_CHECKING:
    from collections.abc import Callable


@dataclass(frozen=True, slots=True)
class EnumItem:
    """Native enum value handed out by :meth:`MemorySchema.find_enum_item`."""

    enum_name: str
    name: str
    value: int


@dataclass(slots=True)
class MemoryDescriptor:
    """Descriptor storing values in ``LiveNode.properties``.

    ``permission_denied`` makes every write fail as a permission problem.
    ``structured_errors=False`` reports failures only through the message, the
    way hosts without error codes do. ``validate`` may raise ``ValueError`` to
    reject a value.
    """

    name: str
    scriptability: Scriptability = Scriptability.READ_WRITE
    permission_denied: bool = False
    structured_errors: bool = True
    validate: Callable[[object], None] | None = None

    def write(self, obj: object, value: object) -> None:
        if not isinstance(obj, LiveNode):
            raise TypeError(f"Expected a LiveNode, got {type(obj).__name__}")
        if self.permission_denied:
            self._fail(
                f"The current identity is lacking permission to write {self.name}",
                WriteFailureKind.PERMISSION_DENIED,
            )
        if self.validate is not None:
            try:
                self.validate(value)
            except ValueError as exc:
                self._fail(str(exc), WriteFailureKind.OTHER)
        obj.properties[self.name] = value

    def _fail(self, detail: str, kind: WriteFailureKind) -> NoReturn:
        if not self.structured_errors:
            kind = WriteFailureKind.UNKNOWN
        raise DescriptorWriteError(detail, kind=kind)


@dataclass(slots=True)
class MemorySchema:
    """Property schema keyed by ``(class_name, property_name)``.

    With ``permissive`` set, properties without an explicit descriptor get a
    plain read-write one instead of being treated as unknown.
    """

    descriptors: dict[tuple[str, str], MemoryDescriptor] = field(
        default_factory=dict[tuple[str, str], MemoryDescriptor]
    )
    enums: dict[str, dict[str, int]] = field(default_factory=dict[str, dict[str, int]])
    permissive: bool = False

    def add(self, class_name: str, descriptor: MemoryDescriptor) -> MemoryDescriptor:
        self.descriptors[class_name, descriptor.name] = descriptor
        return descriptor

    def find_descriptor(self, class_name: str, property_name: str) -> MemoryDescriptor | None:
        descriptor = self.descriptors.get((class_name, property_name))
        if descriptor is None and self.permissive:
            return MemoryDescriptor(property_name)
        return descriptor

    def find_enum_item(self, enum_name: str, item_name: str) -> EnumItem | None:
        value = self.enums.get(enum_name, {}).get(item_name)
        if value is None:
            return None
        return EnumItem(enum_name, item_name, value)


class MemoryHistory:
    """History recorder that remembers every finished recording.

    Only one recording can be open at a time, mirroring hosts that refuse to
    nest them.
    """

    def __init__(self) -> None:
        self.finished: list[tuple[str, bool]] = []
        self._open: dict[int, str] = {}
        self._next_handle = 1
        self.busy = False

    @property
    def is_recording(self) -> bool:
        return bool(self._open)

    def try_begin(self, label: str) -> int | None:
        if self.busy or self._open:
            return None
        handle = self._next_handle
        self._next_handle += 1
        self._open[handle] = label
        return handle

    def finish(self, handle: object, *, commit: bool) -> None:
        if not isinstance(handle, int) or handle not in self._open:
            raise ValueError(f"Unknown history recording {handle!r}")
        self.finished.append((self._open.pop(handle), commit))
