"""Central debug/logging policy plumbing for the plugin runtime."""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

_PACKAGE_LOGGER = "ofs_plugin"
_DEFAULT_FORMAT = "[%(asctime)s] %(name)s - %(levelname)s - %(message)s"

_TRUTHY = {"1", "true", "yes", "on", "dbg", "debug"}
_FALSY = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class LoggingPolicy:
    enabled: bool = False
    log_envelopes: bool = False
    log_proxy: bool = False
    log_format: str = _DEFAULT_FORMAT

    @property
    def level(self) -> int:
        return logging.DEBUG if self.enabled else logging.INFO


_FLAG_MAP: dict[str, Iterable[str]] = {
    "envelopes": ("log_envelopes",),
    "proxy": ("log_proxy",),
    "all": ("log_envelopes", "log_proxy"),
}


def _coerce_bool(value: object, default: bool = False) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        val = value.strip().lower()
        if val in _TRUTHY:
            return True
        if val in _FALSY:
            return False
    return default


def _split_flags(raw: object) -> set[str]:
    result: set[str] = set()
    items: Iterable[object]
    if raw is None:
        return result
    if isinstance(raw, str):
        items = raw.split(",")
    elif isinstance(raw, Iterable):
        items = raw
    else:
        return result
    for item in items:
        token = str(item).strip().lower()
        if token:
            result.add(token)
    return result


def _load_debug_config(env: Mapping[str, str]) -> tuple[bool, dict[str, object]]:
    raw = env.get("OFS_PLUGIN_DEBUG")
    if raw is None:
        return False, {}
    raw_str = raw.strip()
    if raw_str.lower() in _FALSY:
        return False, {}
    if raw_str.lower() in _TRUTHY:
        return True, {}
    try:
        parsed = json.loads(raw_str)
        if isinstance(parsed, dict):
            return _coerce_bool(parsed.get("enabled", True), True), parsed
        if isinstance(parsed, (list, tuple)):
            return True, {"flags": parsed}
    except Exception:
        logger.debug("Failed to parse OFS_PLUGIN_DEBUG JSON; treating as flag list", exc_info=True)
    return True, {"flags": raw_str}


def load_logging_policy(env: Optional[Mapping[str, str]] = None) -> LoggingPolicy:
    env = os.environ if env is None else env
    enabled, cfg = _load_debug_config(env)
    flags = _split_flags(cfg.get("flags"))

    toggles = {"log_envelopes": False, "log_proxy": False}
    for flag, attrs in _FLAG_MAP.items():
        if flag in flags:
            for attr in attrs:
                toggles[attr] = True
    if _coerce_bool(env.get("OFS_PLUGIN_LOG_ENVELOPES"), False):
        toggles["log_envelopes"] = True

    log_format = str(cfg.get("format") or env.get("OFS_PLUGIN_LOG_FORMAT") or _DEFAULT_FORMAT)
    return LoggingPolicy(enabled=enabled, log_format=log_format, **toggles)


def configure_logging(policy: LoggingPolicy) -> logging.Logger:
    """Attach one stream handler to the package logger according to *policy*.

    Calling this repeatedly reuses the handler installed by the first call.
    """

    package_logger = logging.getLogger(_PACKAGE_LOGGER)
    handler = next(
        (h for h in package_logger.handlers if getattr(h, "_ofs_plugin_local", False)),
        None,
    )
    if handler is None:
        handler = logging.StreamHandler()
        setattr(handler, "_ofs_plugin_local", True)
        package_logger.addHandler(handler)
    handler.setFormatter(logging.Formatter(policy.log_format))
    handler.setLevel(policy.level)
    package_logger.setLevel(policy.level)
    package_logger.propagate = False
    return package_logger


__all__ = ["LoggingPolicy", "load_logging_policy", "configure_logging"]
