"""Apply a node's declared properties, holding refs back for later."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from treesync.domain.model import (
    Composite,
    DecodeError,
    DeferredRef,
    PropertyWriteError,
    Ref,
)

from .decode import decode_value

if TYPE_CHECKING:
    from collections.abc import Mapping

    from treesync.config import ReconcileConfig
    from treesync.domain.model import Id, PatchSet, VirtualValue
    from treesync.domain.ports import LiveObject

    from .decode import Converter
    from .identity_map import IdentityMap
    from .set_property import PropertyWriter

log = getLogger(__name__)


class PropertyApplier:
    def __init__(
        self,
        identity_map: IdentityMap,
        writer: PropertyWriter,
        config: ReconcileConfig,
        *,
        converters: Mapping[str, Converter] | None = None,
    ) -> None:
        self._identity_map = identity_map
        self._writer = writer
        self._config = config
        self._converters = converters

    def apply(
        self,
        node_id: Id,
        obj: LiveObject,
        properties: Mapping[str, VirtualValue],
        *,
        deferred_refs: list[DeferredRef],
        failures: PatchSet,
    ) -> None:
        """Write ``properties`` onto ``obj``, recording failures under ``node_id``.

        The post-properties group is applied after everything else. Failed
        entries from that group are recorded under the same nesting.
        """

        post_key = self._config.post_properties_key
        main = {name: value for name, value in properties.items() if name != post_key}
        for name, value in main.items():
            if not self._apply_one(node_id, obj, name, value, deferred_refs=deferred_refs):
                failures.record_property_failure(node_id, name, value)

        post = properties.get(post_key)
        if post is None:
            return
        group_name = self._config.post_properties_group
        group = post.entries.get(group_name) if isinstance(post, Composite) else None
        if not isinstance(group, Composite):
            log.debug("Ignoring malformed %s on %s", post_key, node_id)
            failures.record_property_failure(node_id, post_key, post)
            return

        failed_group: dict[str, VirtualValue] = {}
        for name, value in group.entries.items():
            if not self._apply_one(node_id, obj, name, value, deferred_refs=deferred_refs):
                failed_group[name] = value
        if failed_group:
            failures.record_property_failure(
                node_id, post_key, Composite({group_name: Composite(failed_group)})
            )

    def _apply_one(
        self,
        node_id: Id,
        obj: LiveObject,
        name: str,
        value: VirtualValue,
        *,
        deferred_refs: list[DeferredRef],
    ) -> bool:
        # Ref targets may not exist yet; they are resolved once every addition is in place.
        if isinstance(value, Ref):
            deferred_refs.append(DeferredRef(node_id, obj, name, value))
            return True

        try:
            decoded = decode_value(value, self._identity_map, converters=self._converters)
        except DecodeError as exc:
            log.debug("Could not decode %s on %s: %s", name, node_id, exc)
            return False

        try:
            self._writer.write(obj, name, decoded)
        except PropertyWriteError as exc:
            log.debug("Could not set %s on %s: %s", name, node_id, exc)
            return False
        return True
