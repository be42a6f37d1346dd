"""Write decoded values onto live objects through the property schema."""

from __future__ import annotations

import re
from collections.abc import Mapping
from logging import getLogger
from typing import TYPE_CHECKING

from treesync.domain.model import (
    LackingPropertyPermissionsError,
    OtherPropertyError,
    UnwritablePropertyError,
)
from treesync.domain.ports import DescriptorWriteError, WriteFailureKind

if TYPE_CHECKING:
    from treesync.domain.ports import LiveObject, LiveTree, PropertySchema

log = getLogger(__name__)

_ENUM_PATTERN = re.compile(r"^Enum\.([^.]+)\.([^.]+)$")
_PERMISSION_DETAIL = "lacking permission"


class PropertyWriter:
    """Apply one property write and classify how it failed.

    Properties without a schema descriptor are not reflected on live objects
    and are skipped as a successful no-op.
    """

    def __init__(
        self,
        tree: LiveTree,
        schema: PropertySchema,
        *,
        styled_properties_name: str = "StyledProperties",
    ) -> None:
        self._tree = tree
        self._schema = schema
        self._styled_properties_name = styled_properties_name

    def write(self, obj: LiveObject, property_name: str, value: object) -> None:
        if property_name == self._styled_properties_name and isinstance(value, Mapping):
            self._write_styled_properties(obj, value)
            return

        class_name = self._tree.get_class_name(obj)
        descriptor = self._schema.find_descriptor(class_name, property_name)
        if descriptor is None:
            log.debug("Skipping unknown property %s.%s", class_name, property_name)
            return

        if not descriptor.scriptability.writable:
            raise UnwritablePropertyError(class_name, property_name)

        try:
            descriptor.write(obj, value)
        except DescriptorWriteError as exc:
            if _is_permission_failure(exc):
                raise LackingPropertyPermissionsError(class_name, property_name) from exc
            raise OtherPropertyError(class_name, property_name) from exc
        except Exception as exc:  # noqa: BLE001 - host failures are per-property
            raise OtherPropertyError(class_name, property_name) from exc

    def _write_styled_properties(self, obj: LiveObject, values: Mapping[object, object]) -> None:
        # Validation of the group is left to the host; the bulk write counts as applied.
        rewritten = {str(name): self._rewrite_enum(value) for name, value in values.items()}
        self._tree.set_properties(obj, rewritten)

    def _rewrite_enum(self, value: object) -> object:
        if not isinstance(value, str):
            return value
        match = _ENUM_PATTERN.match(value)
        if match is None:
            return value
        item = self._schema.find_enum_item(match.group(1), match.group(2))
        return value if item is None else item


def _is_permission_failure(exc: DescriptorWriteError) -> bool:
    if exc.kind is WriteFailureKind.UNKNOWN:
        return _PERMISSION_DETAIL in exc.detail
    return exc.kind is WriteFailureKind.PERMISSION_DENIED
