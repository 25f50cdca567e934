"""Plugin base class: lifecycle dispatch and extension points.

Subclasses implement :meth:`OFSPlugin.open`, :meth:`OFSPlugin.error`,
:meth:`OFSPlugin.wakeup` and :meth:`OFSPlugin.call_procedure_result`; a
subclass missing any of them cannot be instantiated. ``init`` and
``update_result`` are optional.

Extension points may be plain functions or coroutines.
"""

from __future__ import annotations

import abc
import asyncio
import inspect
import json
import logging
from typing import Any, Mapping, Optional, Set

from ofs_plugin.channel.base import HostChannel
from ofs_plugin.config import PluginConfig, load_plugin_config
from ofs_plugin.errors import UnknownMethodError
from ofs_plugin.protocol import (
    CALL_PROCEDURE_METHOD,
    CALL_PROCEDURE_RESULT_METHOD,
    CLOSE_METHOD,
    ERROR_METHOD,
    INBOUND_METHODS,
    INIT_END_METHOD,
    INIT_METHOD,
    NO_METHOD,
    OPEN_METHOD,
    READY_METHOD,
    UPDATE_METHOD,
    UPDATE_RESULT_METHOD,
    WAKEUP_METHOD,
    CallProcedureMessage,
    CallProcedureResultMessage,
    Environment,
    EnvelopeParser,
    ErrorMessage,
    InitMessage,
    OpenMessage,
    UpdateResultMessage,
    WakeupMessage,
    call_id_matches,
    generate_call_id,
    message_environment,
)
from ofs_plugin.proxy import ProxyFactory, default_proxy_factory
from ofs_plugin.runtime import (
    APPLICATIONS_PROPERTY,
    ENVIRONMENT_PROPERTY,
    AcquisitionPath,
    Outbound,
    ProxyAcquisitionFlow,
    ProxyGate,
    SessionState,
)
from ofs_plugin.storage import MemoryPropertyStore, PropertyStore, property_key

logger = logging.getLogger(__name__)


async def _invoke(callback: Any, message: Any) -> Any:
    result = callback(message)
    if inspect.isawaitable(result):
        result = await result
    return result


class OFSPlugin(abc.ABC):
    def __init__(
        self,
        tag: str,
        *,
        channel: HostChannel,
        store: Optional[PropertyStore] = None,
        config: Optional[PluginConfig] = None,
        proxy_factory: Optional[ProxyFactory] = None,
    ) -> None:
        self._config = config if config is not None else load_plugin_config()
        self._session = SessionState(tag=str(tag))
        self._store: PropertyStore = store if store is not None else MemoryPropertyStore()
        self._parser = EnvelopeParser()
        self._outbound = Outbound(
            channel,
            tag=self._session.tag,
            log_envelopes=self._config.logging.log_envelopes,
        )
        self._gate = ProxyGate(self._session, timeout_s=self._config.token_timeout_s)
        self._flow = ProxyAcquisitionFlow(
            session=self._session,
            store=self._store,
            outbound=self._outbound,
            gate=self._gate,
            proxy_factory=proxy_factory or default_proxy_factory,
            call_id_length=self._config.call_id_length,
            verify_connection=self._config.verify_connection,
            log_proxy=self._config.logging.log_proxy,
        )
        self._open_tasks: Set[asyncio.Task[None]] = set()
        self._open_failures: list[BaseException] = []
        self._forwarding_call_ids: Set[str] = set()
        logger.info("%s: Created", self._session.tag)

    # ------------------------------------------------------------------
    # Session accessors

    @property
    def tag(self) -> str:
        return self._session.tag

    @property
    def proxy(self) -> Any:
        return self._session.proxy

    @property
    def environment(self) -> Environment | None:
        return self._session.environment

    @property
    def pending_call_id(self) -> str | None:
        return self._session.pending_call_id

    @property
    def lock_state(self) -> bool:
        return self._session.lock_state

    @property
    def session(self) -> SessionState:
        return self._session

    @property
    def config(self) -> PluginConfig:
        return self._config

    def store_init_property(self, name: str, value: str) -> None:
        self._store.set(property_key(self.tag, name), value)

    def get_init_property(self, name: str) -> Optional[str]:
        return self._store.get(property_key(self.tag, name))

    # ------------------------------------------------------------------
    # Outbound

    def start(self) -> bool:
        """Announce the plugin to the host with a ``ready`` message."""

        logger.info("%s: Plugin ready", self.tag)
        return self._outbound.send(READY_METHOD, self._config.ready.to_message())

    def send_message(self, method: str, data: Any = None) -> bool:
        return self._outbound.send(method, data)

    def close(self, data: Any = None) -> bool:
        return self.send_message(CLOSE_METHOD, data)

    def update(self, data: Any = None) -> bool:
        return self.send_message(UPDATE_METHOD, data)

    def call_procedure(self, procedure: str, params: Optional[Mapping[str, Any]] = None) -> Optional[str]:
        """Send a host procedure call; returns its call id when it was sent.

        The result comes back through :meth:`call_procedure_result`.
        """

        call_id = generate_call_id(self._config.call_id_length)
        message = CallProcedureMessage(
            call_id=call_id,
            procedure=str(procedure),
            params=dict(params) if params is not None else None,
        )
        if not self.send_message(CALL_PROCEDURE_METHOD, message):
            return None
        return call_id

    # ------------------------------------------------------------------
    # Inbound dispatch

    async def on_envelope(self, raw: Any) -> None:
        """Process one inbound message from the host.

        Raises :class:`UnknownMethodError` for methods outside the protocol.
        """

        if self._config.logging.log_envelopes:
            logger.debug("%s: Message received: %r", self.tag, raw)
        envelope = self._parser.parse(raw)
        method = envelope.method
        if method == NO_METHOD:
            logger.warning("%s: Message discarded", self.tag)
            return
        if method not in INBOUND_METHODS:
            raise UnknownMethodError(method, tag=self.tag)
        logger.info("%s: Message received: %s", self.tag, method)
        message = self._parser.narrow(envelope)

        if method == INIT_METHOD:
            await self._handle_init(message)
        elif method == OPEN_METHOD:
            await self._handle_open(message)
        elif method == CALL_PROCEDURE_RESULT_METHOD:
            await self._handle_call_procedure_result(message)
        elif method == UPDATE_RESULT_METHOD:
            self._apply_environment(message)
            await _invoke(self.update_result, message)
        elif method == WAKEUP_METHOD:
            self._apply_environment(message)
            await _invoke(self.wakeup, message)
        elif method == ERROR_METHOD:
            self._apply_environment(message)
            await _invoke(self.error, message)

    def _apply_environment(self, message: Any) -> None:
        if self._session.update_environment(message_environment(message)):
            logger.debug("%s: Environment %s", self.tag, self._session.environment)

    async def _handle_init(self, message: InitMessage) -> None:
        if message.raw_applications is not None:
            self.store_init_property(APPLICATIONS_PROPERTY, json.dumps(message.raw_applications))
        if message.environment is not None:
            self.store_init_property(ENVIRONMENT_PROPERTY, json.dumps(message.environment.to_dict()))
        self._apply_environment(message)
        result = await _invoke(self.init, message)
        self._outbound.send(INIT_END_METHOD, result)

    async def _handle_open(self, message: OpenMessage) -> None:
        # Runs inline unless it has to wait for a token result, which arrives
        # through this same channel and so must not block delivery.
        # A released slot may already be promised to a woken sequence that has
        # not run yet, so any scheduled sequence forces this one to queue too.
        if self._gate.occupied or self._open_tasks:
            logger.info("%s: open queued behind pending acquisition", self.tag)
            self._schedule_open(self._open_sequence(message))
            return
        await self._gate.acquire_slot()
        try:
            path = self._flow.begin(message)
        except BaseException:
            self._gate.release_slot()
            raise
        if path is AcquisitionPath.TOKEN and self._gate.held:
            self._schedule_open(self._resume_open(message, path))
            return
        try:
            await self._finish_open(message, path)
        finally:
            self._gate.release_slot()

    async def _open_sequence(self, message: OpenMessage) -> None:
        async with self._gate.slot():
            path = self._flow.begin(message)
            await self._finish_open(message, path)

    async def _resume_open(self, message: OpenMessage, path: AcquisitionPath) -> None:
        try:
            await self._finish_open(message, path)
        finally:
            self._gate.release_slot()

    async def _finish_open(self, message: OpenMessage, path: AcquisitionPath) -> None:
        if not await self._gate.wait_ready():
            self._flow.abandon()
        elif path is AcquisitionPath.CREDENTIALS:
            await self._flow.verify()
        self._apply_environment(message)
        await _invoke(self.open, message)

    def _schedule_open(self, coro: Any) -> None:
        task = asyncio.create_task(coro, name=f"{self.tag}-open")
        self._open_tasks.add(task)
        task.add_done_callback(self._on_open_done)

    def _on_open_done(self, task: asyncio.Task[None]) -> None:
        self._open_tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("%s: open failed", self.tag, exc_info=exc)
            self._open_failures.append(exc)

    async def _handle_call_procedure_result(self, message: CallProcedureResultMessage) -> None:
        self._apply_environment(message)
        if call_id_matches(self._session.pending_call_id, message.call_id):
            self._flow.complete(message)
            return
        call_id = message.call_id or ""
        if call_id in self._forwarding_call_ids:
            logger.warning("%s: callProcedureResult %s re-delivered by its handler; dropped", self.tag, call_id)
            return
        self._forwarding_call_ids.add(call_id)
        try:
            await _invoke(self.call_procedure_result, message)
        finally:
            self._forwarding_call_ids.discard(call_id)

    async def wait_idle(self) -> None:
        """Wait for scheduled ``open`` sequences; re-raise the first failure."""

        while self._open_tasks:
            await asyncio.gather(*tuple(self._open_tasks), return_exceptions=True)
        if self._open_failures:
            exc = self._open_failures[0]
            self._open_failures.clear()
            raise exc

    async def shutdown(self) -> None:
        tasks = tuple(self._open_tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._flow.abandon()
        self._gate.release()
        self._open_failures.clear()
        proxy = self._session.proxy
        self._session.proxy = None
        close = getattr(proxy, "close", None)
        if callable(close):
            result = close()
            if inspect.isawaitable(result):
                await result
        logger.info("%s: Shut down", self.tag)

    # ------------------------------------------------------------------
    # Extension points

    def init(self, message: InitMessage) -> Optional[Mapping[str, Any]]:
        """Return extra ``initEnd`` fields, or None for the bare envelope."""

        logger.warning("%s: Empty init method", self.tag)
        return None

    def update_result(self, message: UpdateResultMessage) -> Any:
        logger.warning("%s: updateResult received with no handler", self.tag)
        return None

    @abc.abstractmethod
    def open(self, message: OpenMessage) -> Any:
        """Handle the activity screen; :attr:`proxy` may be None."""

    @abc.abstractmethod
    def error(self, message: ErrorMessage) -> Any:
        ...

    @abc.abstractmethod
    def wakeup(self, message: WakeupMessage) -> Any:
        ...

    @abc.abstractmethod
    def call_procedure_result(self, message: CallProcedureResultMessage) -> Any:
        """Handle results of calls other than the pending token request."""


__all__ = ["OFSPlugin"]
