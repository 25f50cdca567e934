"""Single-slot gate that holds ``open`` until the proxy is ready.

The acquisition flow closes the gate when it sends a token request and opens
it again when the correlated result arrives. Waiting is bounded: after
``timeout_s`` the gate forces itself open so ``open`` always runs, possibly
without a proxy.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from ofs_plugin.runtime.session import SessionState

logger = logging.getLogger(__name__)


class ProxyGate:
    def __init__(self, session: SessionState, *, timeout_s: float) -> None:
        self._session = session
        self._timeout_s = float(timeout_s)
        self._slot = asyncio.Lock()
        self._ready = asyncio.Event()
        self._ready.set()

    @property
    def timeout_s(self) -> float:
        return self._timeout_s

    @property
    def held(self) -> bool:
        """True while an acquisition is outstanding."""

        return not self._ready.is_set()

    @property
    def waiting(self) -> bool:
        return self._session.lock_state

    @property
    def occupied(self) -> bool:
        """True while an open sequence holds the slot."""

        return self._slot.locked()

    @asynccontextmanager
    async def slot(self) -> AsyncIterator[None]:
        """Serialise open sequences; a second ``open`` queues behind the first."""

        async with self._slot:
            yield

    async def acquire_slot(self) -> None:
        await self._slot.acquire()

    def release_slot(self) -> None:
        # asyncio.Lock has no owner; the task finishing the sequence releases it
        self._slot.release()

    def hold(self) -> None:
        self._ready.clear()

    def release(self) -> None:
        self._ready.set()

    async def wait_ready(self) -> bool:
        """Wait for :meth:`release`; return False when the bound expired instead."""

        if self._ready.is_set():
            return True
        tag = self._session.tag
        logger.info("%s: Waiting for proxy (up to %.1fs)", tag, self._timeout_s)
        self._session.lock_state = True
        try:
            await asyncio.wait_for(self._ready.wait(), timeout=self._timeout_s)
            return True
        except asyncio.TimeoutError:
            logger.warning(
                "%s: Proxy not ready after %.1fs; continuing without it",
                tag,
                self._timeout_s,
            )
            self._ready.set()
            return False
        finally:
            self._session.lock_state = False


__all__ = ["ProxyGate"]
