"""Application configuration helpers."""

from __future__ import annotations

from .env import optional_env_var
from .errors import ConfigurationError
from .logging import configure_logging, get_log_level
from .reconcile import ReconcileConfig, get_reconcile_config

__all__ = [
    "ConfigurationError",
    "ReconcileConfig",
    "configure_logging",
    "get_log_level",
    "get_reconcile_config",
    "optional_env_var",
]
