"""Lenient parsing of host envelopes."""

from __future__ import annotations

import json
import logging
from numbers import Integral
from typing import Any, Mapping

from .messages import (
    MESSAGE_TYPES,
    NO_METHOD,
    UNSET_API_VERSION,
    Envelope,
)

logger = logging.getLogger(__name__)


def _coerce_api_version(value: Any) -> int:
    if isinstance(value, bool):
        return UNSET_API_VERSION
    if isinstance(value, Integral):
        return int(value)
    return UNSET_API_VERSION


class EnvelopeParser:
    """Turn raw channel payloads into :class:`Envelope` values.

    ``parse`` never raises. Anything that is not a JSON object with a string
    ``method`` collapses into the sentinel envelope (``method == "no method"``,
    ``api_version == -1``) so the channel keeps running on malformed input.
    """

    def parse(self, raw: str | bytes | bytearray | Mapping[str, Any] | None) -> Envelope:
        try:
            return self._parse(raw)
        except Exception:
            logger.debug("envelope parse failed; using sentinel", exc_info=True)
            return Envelope()

    def _parse(self, raw: Any) -> Envelope:
        if isinstance(raw, (bytes, bytearray)):
            raw = bytes(raw).decode("utf-8")
        if isinstance(raw, str):
            data = json.loads(raw)
        else:
            data = raw
        if not isinstance(data, Mapping):
            return Envelope()
        method = data.get("method")
        if not isinstance(method, str) or not method:
            return Envelope()
        fields = {
            str(key): value
            for key, value in data.items()
            if key not in ("method", "apiVersion")
        }
        return Envelope(
            method=method,
            api_version=_coerce_api_version(data.get("apiVersion")),
            fields=fields,
        )

    def narrow(self, envelope: Envelope) -> Any:
        """Return the typed message for *envelope*'s method tag.

        Raises ``KeyError`` for tags outside the closed method set; callers
        decide whether that is a protocol violation.
        """

        if envelope.method == NO_METHOD:
            raise KeyError(NO_METHOD)
        loader = MESSAGE_TYPES[envelope.method]
        return loader.from_envelope(envelope)


__all__ = ["EnvelopeParser"]
