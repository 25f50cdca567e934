"""Shared configuration dataclasses for the plugin runtime."""

from .logging_policy import LoggingPolicy, configure_logging, load_logging_policy
from .models import (
    DEFAULT_TOKEN_TIMEOUT_S,
    PluginConfig,
    ReadyOptions,
    load_plugin_config,
)

__all__ = [
    "DEFAULT_TOKEN_TIMEOUT_S",
    "LoggingPolicy",
    "PluginConfig",
    "ReadyOptions",
    "configure_logging",
    "load_logging_policy",
    "load_plugin_config",
]
