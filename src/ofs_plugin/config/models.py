"""Configuration dataclasses for the plugin runtime."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from ofs_plugin.config.logging_policy import (
    LoggingPolicy,
    _coerce_bool,
    load_logging_policy,
)
from ofs_plugin.protocol import DEFAULT_CALL_ID_LENGTH, ReadyMessage

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_TIMEOUT_S = 10.0


@dataclass(frozen=True)
class ReadyOptions:
    """Capability flags announced to the host in the ``ready`` message."""

    send_init_data: bool = True
    enable_back_button: bool = False
    show_header: bool = False
    send_message_as_js_object: bool = False

    def to_message(self) -> ReadyMessage:
        return ReadyMessage(
            send_init_data=self.send_init_data,
            enable_back_button=self.enable_back_button,
            show_header=self.show_header,
            send_message_as_js_object=self.send_message_as_js_object,
        )


@dataclass(frozen=True)
class PluginConfig:
    """Top-level plugin configuration values."""

    token_timeout_s: float = DEFAULT_TOKEN_TIMEOUT_S
    call_id_length: int = DEFAULT_CALL_ID_LENGTH
    verify_connection: bool = False
    ready: ReadyOptions = field(default_factory=ReadyOptions)
    logging: LoggingPolicy = field(default_factory=LoggingPolicy)


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    try:
        v = env.get(name)
        return float(v) if v not in (None, "") else float(default)
    except Exception:
        return float(default)


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    try:
        v = env.get(name)
        return int(v) if v not in (None, "") else int(default)
    except Exception:
        return int(default)


def _load_ready_options(env: Mapping[str, str]) -> ReadyOptions:
    defaults = ReadyOptions()
    raw = env.get("OFS_PLUGIN_READY")
    cfg: dict[str, Any] = {}
    if raw:
        try:
            parsed = json.loads(raw)
            if isinstance(parsed, dict):
                cfg = parsed
        except Exception:
            logger.debug("Failed to parse OFS_PLUGIN_READY JSON; using defaults", exc_info=True)
    return ReadyOptions(
        send_init_data=_coerce_bool(cfg.get("sendInitData"), defaults.send_init_data),
        enable_back_button=_coerce_bool(cfg.get("enableBackButton"), defaults.enable_back_button),
        show_header=_coerce_bool(cfg.get("showHeader"), defaults.show_header),
        send_message_as_js_object=_coerce_bool(
            cfg.get("sendMessageAsJsObject"),
            defaults.send_message_as_js_object,
        ),
    )


def load_plugin_config(env: Optional[Mapping[str, str]] = None) -> PluginConfig:
    """Resolve :class:`PluginConfig` from ``OFS_PLUGIN_*`` environment variables."""

    env = os.environ if env is None else env
    timeout = _env_float(env, "OFS_PLUGIN_TOKEN_TIMEOUT_S", DEFAULT_TOKEN_TIMEOUT_S)
    if timeout <= 0:
        timeout = DEFAULT_TOKEN_TIMEOUT_S
    return PluginConfig(
        token_timeout_s=timeout,
        call_id_length=max(16, _env_int(env, "OFS_PLUGIN_CALL_ID_LENGTH", DEFAULT_CALL_ID_LENGTH)),
        verify_connection=_coerce_bool(env.get("OFS_PLUGIN_VERIFY_CONNECTION"), False),
        ready=_load_ready_options(env),
        logging=load_logging_policy(env),
    )


__all__ = [
    "DEFAULT_TOKEN_TIMEOUT_S",
    "ReadyOptions",
    "PluginConfig",
    "load_plugin_config",
]
