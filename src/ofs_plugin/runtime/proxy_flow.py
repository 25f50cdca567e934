"""Acquisition of the authenticated backend client for an ``open`` sequence."""

from __future__ import annotations

import asyncio
import enum
import inspect
import json
import logging
from typing import Any, Dict, Mapping, Optional, Set

from ofs_plugin.protocol import (
    ACCESS_TOKEN_PROCEDURE,
    CALL_PROCEDURE_METHOD,
    Application,
    CallProcedureMessage,
    CallProcedureResultMessage,
    OpenMessage,
    applications_from_dict,
    generate_call_id,
)
from ofs_plugin.proxy import (
    Credentials,
    InstanceCredentials,
    ProxyFactory,
    TokenCredentials,
)
from ofs_plugin.runtime.gate import ProxyGate
from ofs_plugin.runtime.outbound import Outbound
from ofs_plugin.runtime.session import SessionState
from ofs_plugin.storage import PropertyStore, property_key

logger = logging.getLogger(__name__)

APPLICATIONS_PROPERTY = "applications"
ENVIRONMENT_PROPERTY = "environment"
BASE_URL_PROPERTY = "baseURL"

_FAILED_STATUSES = {"error", "failed", "failure"}


class AcquisitionPath(str, enum.Enum):
    TOKEN = "token"
    CREDENTIALS = "credentials"
    NONE = "none"


def _extract_token(result_data: Any) -> Optional[str]:
    if not isinstance(result_data, Mapping):
        return None
    status = result_data.get("status")
    if isinstance(status, str) and status.strip().lower() in _FAILED_STATUSES:
        return None
    token = result_data.get("token")
    if isinstance(token, str) and token:
        return token
    return None


class ProxyAcquisitionFlow:
    """Decide how the proxy is obtained and build it.

    Either from a token exchanged through the host (``callProcedure``
    ``getAccessToken`` for the registry's backend application), or directly
    from inline secured credentials, or not at all.
    """

    def __init__(
        self,
        *,
        session: SessionState,
        store: PropertyStore,
        outbound: Outbound,
        gate: ProxyGate,
        proxy_factory: ProxyFactory,
        call_id_length: int,
        verify_connection: bool = False,
        log_proxy: bool = False,
    ) -> None:
        self._session = session
        self._store = store
        self._outbound = outbound
        self._gate = gate
        self._proxy_factory = proxy_factory
        self._call_id_length = int(call_id_length)
        self._verify_connection = bool(verify_connection)
        self._log_proxy = bool(log_proxy)
        self._retiring: Set[asyncio.Task[Any]] = set()

    @property
    def tag(self) -> str:
        return self._session.tag

    def _get(self, name: str) -> Optional[str]:
        return self._store.get(property_key(self.tag, name))

    def _set(self, name: str, value: str) -> None:
        self._store.set(property_key(self.tag, name), value)

    def load_applications(self) -> Dict[str, Application]:
        raw = self._get(APPLICATIONS_PROPERTY)
        if not raw:
            return {}
        try:
            return applications_from_dict(json.loads(raw))
        except json.JSONDecodeError:
            logger.warning("%s: Stored applications are not valid JSON; ignoring", self.tag)
            return {}

    def _backend_application(self) -> Optional[Application]:
        for application in self.load_applications().values():
            if not application.is_backend:
                continue
            if not application.resource_url:
                logger.warning("%s: Application %s has no resourceUrl; skipped", self.tag, application.key)
                continue
            return application
        return None

    def begin(self, message: OpenMessage) -> AcquisitionPath:
        """Start acquisition for *message*; holds the gate on the token path."""

        application = self._backend_application()
        if application is not None:
            self._request_token(application)
            return AcquisitionPath.TOKEN

        secured = message.secured_data
        if secured is not None and secured.has_credentials:
            logger.info("%s: Creating proxy for instance %s", self.tag, secured.instance)
            self._install(
                InstanceCredentials(
                    instance=str(secured.instance),
                    client_id=str(secured.client_id),
                    client_secret=str(secured.client_secret),
                )
            )
            return AcquisitionPath.CREDENTIALS

        logger.info("%s: No credentials available; opening without proxy", self.tag)
        return AcquisitionPath.NONE

    def _request_token(self, application: Application) -> None:
        self._set(BASE_URL_PROPERTY, str(application.resource_url))
        call_id = generate_call_id(self._call_id_length)
        self._session.pending_call_id = call_id
        self._gate.hold()
        request = CallProcedureMessage(
            call_id=call_id,
            procedure=ACCESS_TOKEN_PROCEDURE,
            params={"applicationKey": application.key},
        )
        logger.info("%s: Requesting token for application %s", self.tag, application.key)
        if not self._outbound.send(CALL_PROCEDURE_METHOD, request):
            logger.warning("%s: Token request not delivered; opening without proxy", self.tag)
            self._session.pending_call_id = None
            self._gate.release()

    def complete(self, message: CallProcedureResultMessage) -> bool:
        """Resolve the pending token request; always releases the gate."""

        try:
            token = _extract_token(message.result_data)
            base_url = self._get(BASE_URL_PROPERTY)
            if token is None:
                logger.error(
                    "%s: Token request %s failed: %r",
                    self.tag,
                    message.call_id,
                    message.result_data if self._log_proxy else type(message.result_data).__name__,
                )
                return False
            if not base_url:
                logger.error("%s: Token received but no baseURL stored", self.tag)
                return False
            logger.info("%s: Token received; creating proxy for %s", self.tag, base_url)
            return self._install(TokenCredentials(base_url=base_url, token=token))
        finally:
            self._session.pending_call_id = None
            self._gate.release()

    def abandon(self) -> None:
        call_id = self._session.pending_call_id
        if call_id is not None:
            logger.warning("%s: Abandoning token request %s", self.tag, call_id)
        self._session.pending_call_id = None

    def _install(self, credentials: Credentials) -> bool:
        try:
            proxy = self._proxy_factory(credentials)
        except Exception:
            logger.exception("%s: Proxy creation failed", self.tag)
            return False
        previous = self._session.proxy
        self._session.proxy = proxy
        if self._log_proxy:
            logger.debug("%s: Proxy installed %r", self.tag, credentials)
        if previous is not None and previous is not proxy:
            self._retire(previous)
        return True

    def _retire(self, proxy: Any) -> None:
        close = getattr(proxy, "close", None)
        if not callable(close):
            return
        result = close()
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._retiring.add(task)
            task.add_done_callback(self._retiring.discard)

    async def verify(self) -> None:
        """Optional connection check for credential-built proxies."""

        proxy = self._session.proxy
        if not self._verify_connection or proxy is None:
            return
        check = getattr(proxy, "get_subscriptions", None)
        if not callable(check):
            return
        try:
            response = await check()
        except Exception:
            logger.warning("%s: Connection check failed", self.tag, exc_info=True)
            return
        status = getattr(response, "status", None)
        logger.info("%s: Connection check successful: %s", self.tag, status == 200)


__all__ = [
    "APPLICATIONS_PROPERTY",
    "ENVIRONMENT_PROPERTY",
    "BASE_URL_PROPERTY",
    "AcquisitionPath",
    "ProxyAcquisitionFlow",
]
