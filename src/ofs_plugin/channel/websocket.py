"""WebSocket transport standing in for the browser frame's message channel.

The host side of the socket plays the embedding document: its page URL is
the referrer, so outbound envelopes are only delivered when their target
origin matches the socket's own origin.
"""

from __future__ import annotations

import asyncio
import json
import logging
from contextlib import suppress
from typing import TYPE_CHECKING, Any, Mapping, Optional, Sequence

import websockets

from ofs_plugin.channel.origins import http_url_for_socket, origin_from_url
from ofs_plugin.errors import PluginError

if TYPE_CHECKING:  # pragma: no cover
    from ofs_plugin.plugin import OFSPlugin

logger = logging.getLogger(__name__)


class WebSocketHostChannel:
    def __init__(
        self,
        url: str,
        *,
        referrer: Optional[str] = None,
        ancestor_origins: Sequence[str] = (),
    ) -> None:
        self.url = str(url)
        self._referrer = referrer if referrer is not None else http_url_for_socket(self.url)
        self._ancestor_origins = tuple(ancestor_origins)
        self._peer_origin = origin_from_url(self._referrer)
        self._outbox: asyncio.Queue[str] = asyncio.Queue()
        self._websocket: Any = None
        self._stop_requested = False

    @property
    def referrer(self) -> str:
        return self._referrer

    @property
    def ancestor_origins(self) -> Sequence[str]:
        return self._ancestor_origins

    @property
    def peer_origin(self) -> str:
        return self._peer_origin

    @property
    def queued(self) -> int:
        return self._outbox.qsize()

    def post_message(self, data: Mapping[str, Any], target_origin: str) -> None:
        if target_origin != self._peer_origin:
            logger.warning(
                "Dropping %s for origin %r; peer is %r",
                data.get("method"),
                target_origin,
                self._peer_origin,
            )
            return
        self._outbox.put_nowait(json.dumps(data, default=str))

    def run(self, plugin: "OFSPlugin") -> None:
        """Connect and serve *plugin* until the host closes the socket."""

        asyncio.run(self.serve(plugin))

    async def serve(self, plugin: "OFSPlugin") -> None:
        self._stop_requested = False
        logger.info("Connecting to host at %s", self.url)
        try:
            async with websockets.connect(self.url) as ws:
                logger.info("Connected to host (origin %s)", self._peer_origin)
                self._websocket = ws

                async def _sender() -> None:
                    while True:
                        msg = await self._outbox.get()
                        logger.debug("HostChannel sender -> %s", msg)
                        try:
                            await ws.send(msg)
                        except Exception:
                            logger.debug("Host sender failed; stopping", exc_info=True)
                            break

                send_task = asyncio.create_task(_sender())
                plugin.start()
                try:
                    async for raw in ws:
                        try:
                            await plugin.on_envelope(raw)
                        except PluginError as exc:
                            logger.error("%s", exc)
                        except Exception:
                            logger.exception("Host message dispatch failed")
                        if self._stop_requested:
                            break
                    # flush what the last handlers queued
                    while not self._outbox.empty() and not send_task.done():
                        await asyncio.sleep(0)
                finally:
                    send_task.cancel()
                    with suppress(asyncio.CancelledError):
                        await send_task
        finally:
            self._websocket = None
            await plugin.shutdown()
            logger.info("Host channel closed")

    async def stop(self) -> None:
        self._stop_requested = True
        ws = self._websocket
        if ws is not None:
            with suppress(Exception):
                await ws.close()


__all__ = ["WebSocketHostChannel"]
