"""Reconciliation engine settings."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_env_var

DEFAULT_HISTORY_LABEL_PREFIX = "treesync"
DEFAULT_STYLED_PROPERTIES_NAME = "StyledProperties"
DEFAULT_POST_PROPERTIES_KEY = "PostProperties"
DEFAULT_POST_PROPERTIES_GROUP = "Attributes"


@dataclass(frozen=True, slots=True)
class ReconcileConfig:
    """Names the engine treats specially while applying properties.

    ``post_properties_key`` holds a composite whose ``post_properties_group``
    entry is applied after every other property of the same node.
    """

    history_label_prefix: str = DEFAULT_HISTORY_LABEL_PREFIX
    styled_properties_name: str = DEFAULT_STYLED_PROPERTIES_NAME
    post_properties_key: str = DEFAULT_POST_PROPERTIES_KEY
    post_properties_group: str = DEFAULT_POST_PROPERTIES_GROUP


def get_reconcile_config() -> ReconcileConfig:
    return ReconcileConfig(
        history_label_prefix=optional_env_var(
            "TREESYNC_HISTORY_LABEL", DEFAULT_HISTORY_LABEL_PREFIX
        ),
        styled_properties_name=optional_env_var(
            "TREESYNC_STYLED_PROPERTIES", DEFAULT_STYLED_PROPERTIES_NAME
        ),
        post_properties_key=optional_env_var(
            "TREESYNC_POST_PROPERTIES_KEY", DEFAULT_POST_PROPERTIES_KEY
        ),
        post_properties_group=optional_env_var(
            "TREESYNC_POST_PROPERTIES_GROUP", DEFAULT_POST_PROPERTIES_GROUP
        ),
    )
