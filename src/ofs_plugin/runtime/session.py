"""Per-instance session state owned by one plugin."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ofs_plugin.protocol import Environment


@dataclass
class SessionState:
    tag: str
    environment: Environment | None = None
    proxy: Any | None = None
    pending_call_id: str | None = None
    lock_state: bool = False

    def update_environment(self, environment: Environment | None) -> bool:
        """Replace the environment when *environment* is present (last write wins)."""

        if environment is None:
            return False
        self.environment = environment
        return True


__all__ = ["SessionState"]
