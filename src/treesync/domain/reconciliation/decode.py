"""Decode virtual property values into native values."""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeAlias

from treesync.domain.model import Composite, DecodeError, Primitive, Ref

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from treesync.domain.model import VirtualValue

    from .identity_map import IdentityMap

Converter: TypeAlias = "Callable[[object], object]"


def decode_value(
    value: VirtualValue,
    identity_map: IdentityMap,
    *,
    converters: Mapping[str, Converter] | None = None,
) -> object:
    """Return the native value for ``value``.

    ``Ref`` values resolve against ``identity_map`` right away; callers that
    need to wait for the target to exist must hold refs back themselves.
    """

    match value:
        case Primitive(type=type_name, raw=raw):
            converter = (converters or {}).get(type_name)
            if converter is None:
                return raw
            try:
                return converter(raw)
            except (TypeError, ValueError) as exc:
                raise DecodeError(f"Cannot decode {type_name} value {raw!r}: {exc}") from exc
        case Ref(target=None):
            return None
        case Ref(target=target):
            obj = identity_map.by_id(target)
            if obj is None:
                raise DecodeError(f"Ref target {target} does not exist")
            return obj
        case Composite(entries=entries):
            return {
                name: decode_value(entry, identity_map, converters=converters)
                for name, entry in entries.items()
            }
