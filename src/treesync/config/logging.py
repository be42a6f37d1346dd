"""Shared logging helpers for treesync."""

from __future__ import annotations

import logging

from .env import optional_env_var
from .errors import ConfigurationError

LOG_LEVEL_ENV_VAR = "TREESYNC_LOG_LEVEL"


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Initialise the root logger once with sensible defaults.

    Parameters mirror ``logging.basicConfig`` with a simplified contract: we default
    to INFO level and a terse format suitable for CLI output. Pass ``force=True`` to
    reconfigure during tests or specialised entry points.
    """

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )


def get_log_level(default: int = logging.INFO) -> int:
    """Read the log level name from ``TREESYNC_LOG_LEVEL``."""

    name = optional_env_var(LOG_LEVEL_ENV_VAR, logging.getLevelName(default)).upper()
    level = logging.getLevelNamesMapping().get(name)
    if level is None:
        raise ConfigurationError(f"Unknown log level {name!r} in {LOG_LEVEL_ENV_VAR}")
    return level
