"""Exception types raised by the plugin runtime."""

from __future__ import annotations

from typing import Mapping


class PluginError(RuntimeError):
    """Base class for plugin runtime failures."""


class UnknownMethodError(PluginError):
    """Raised when the host delivers an envelope with an unrecognised method."""

    def __init__(self, method: str, *, tag: str | None = None) -> None:
        prefix = f"{tag}: " if tag else ""
        super().__init__(f"{prefix}Unknown method {method}")
        self.method = str(method)


class ProxyAcquisitionError(PluginError):
    """Raised when the authenticated client cannot be built or reached."""

    def __init__(
        self,
        *,
        code: str,
        message: str,
        details: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = str(code)
        self.details = dict(details) if details else None


__all__ = ["PluginError", "UnknownMethodError", "ProxyAcquisitionError"]
