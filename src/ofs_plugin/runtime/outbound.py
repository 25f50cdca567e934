"""Outbound envelope framing towards the host frame."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Mapping, Optional

from ofs_plugin.channel.base import HostChannel
from ofs_plugin.channel.origins import resolve_target_origin
from ofs_plugin.protocol import API_VERSION

logger = logging.getLogger(__name__)


def _as_fields(data: Any) -> Dict[str, Any]:
    if data is None:
        return {}
    to_dict = getattr(data, "to_dict", None)
    if callable(to_dict):
        return dict(to_dict())
    if isinstance(data, Mapping):
        return dict(data)
    raise TypeError(f"outbound data must be a mapping, got {type(data).__name__}")


class Outbound:
    """Frames envelopes and posts them to the host's origin only.

    The destination is recomputed from the channel's referrer on every send;
    nothing in an inbound envelope can redirect it.
    """

    def __init__(self, channel: HostChannel, *, tag: str, log_envelopes: bool = False) -> None:
        self._channel = channel
        self._tag = tag
        self._log_envelopes = bool(log_envelopes)

    @property
    def channel(self) -> HostChannel:
        return self._channel

    def target_origin(self) -> str:
        return resolve_target_origin(
            self._channel.referrer,
            tuple(self._channel.ancestor_origins or ()),
        )

    @staticmethod
    def build(method: str, data: Any = None) -> Dict[str, Any]:
        envelope: Dict[str, Any] = {"apiVersion": API_VERSION, "method": method}
        envelope.update(_as_fields(data))
        return envelope

    def send(self, method: str, data: Optional[Any] = None) -> bool:
        envelope = self.build(method, data)
        if self._log_envelopes:
            logger.debug("%s: Sending message %s", self._tag, json.dumps(envelope, indent=4, default=str))
        else:
            logger.debug("%s: Sending %s", self._tag, envelope.get("method"))
        origin = self.target_origin()
        if not origin:
            logger.debug("%s: No host origin available; %s not sent", self._tag, method)
            return False
        self._channel.post_message(envelope, origin)
        return True


__all__ = ["Outbound"]
