"""Authenticated Field Service REST client built by the acquisition flow.

Only the construction contract and a couple of calls live here; the backend
API surface beyond that belongs to the embedding plugin.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Union

import aiohttp

from ofs_plugin.errors import ProxyAcquisitionError

logger = logging.getLogger(__name__)

_SUBSCRIPTIONS_PATH = "/rest/ofscCore/v1/events/subscriptions"
_DEFAULT_TIMEOUT_S = 30.0


@dataclass(frozen=True)
class InstanceCredentials:
    instance: str
    client_id: str
    client_secret: str

    def __repr__(self) -> str:
        return f"InstanceCredentials(instance={self.instance!r}, client_id={self.client_id!r}, client_secret='***')"


@dataclass(frozen=True)
class TokenCredentials:
    base_url: str
    token: str

    def __repr__(self) -> str:
        return f"TokenCredentials(base_url={self.base_url!r}, token='***')"


Credentials = Union[InstanceCredentials, TokenCredentials]
ProxyFactory = Callable[[Credentials], Any]


@dataclass(frozen=True)
class ProxyResponse:
    status: int
    data: Any = None


def _instance_base_url(instance: str) -> str:
    return f"https://{instance}.fs.ocs.oraclecloud.com"


class OFSProxy:
    """REST client authenticated either with client credentials or a bearer token.

    Construction performs no I/O; the HTTP session is opened lazily on the
    first request inside the running event loop.
    """

    def __init__(self, credentials: Credentials, *, timeout_s: float = _DEFAULT_TIMEOUT_S) -> None:
        if isinstance(credentials, InstanceCredentials):
            if not (credentials.instance and credentials.client_id and credentials.client_secret):
                raise ProxyAcquisitionError(
                    code="proxy.invalid_credentials",
                    message="instance, client id and client secret are required",
                    details={"instance": credentials.instance or None},
                )
            self._base_url = _instance_base_url(credentials.instance)
            self._auth: Optional[aiohttp.BasicAuth] = aiohttp.BasicAuth(
                f"{credentials.client_id}@{credentials.instance}",
                credentials.client_secret,
            )
            self._headers: Dict[str, str] = {}
        elif isinstance(credentials, TokenCredentials):
            if not (credentials.base_url and credentials.token):
                raise ProxyAcquisitionError(
                    code="proxy.invalid_token",
                    message="base URL and token are required",
                    details={"base_url": credentials.base_url or None},
                )
            self._base_url = credentials.base_url.rstrip("/")
            self._auth = None
            self._headers = {"Authorization": f"Bearer {credentials.token}"}
        else:
            raise ProxyAcquisitionError(
                code="proxy.unsupported_credentials",
                message=f"unsupported credentials type {type(credentials).__name__}",
                details={"type": type(credentials).__name__},
            )
        self._credentials = credentials
        self._timeout = aiohttp.ClientTimeout(total=float(timeout_s))
        self._session: aiohttp.ClientSession | None = None

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def credentials(self) -> Credentials:
        return self._credentials

    @property
    def headers(self) -> Mapping[str, str]:
        return dict(self._headers)

    def _ensure_session(self) -> aiohttp.ClientSession:
        session = self._session
        if session is None or session.closed:
            session = aiohttp.ClientSession(
                auth=self._auth,
                headers=self._headers,
                timeout=self._timeout,
            )
            self._session = session
        return session

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        json_body: Any = None,
    ) -> ProxyResponse:
        url = f"{self._base_url}{path}"
        session = self._ensure_session()
        async with session.request(method, url, params=params, json=json_body) as resp:
            try:
                data = await resp.json(content_type=None)
            except ValueError:
                data = await resp.text()
            return ProxyResponse(status=resp.status, data=data)

    async def get(self, path: str, *, params: Optional[Mapping[str, Any]] = None) -> ProxyResponse:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, *, json_body: Any = None) -> ProxyResponse:
        return await self.request("POST", path, json_body=json_body)

    async def get_subscriptions(self) -> ProxyResponse:
        return await self.get(_SUBSCRIPTIONS_PATH)

    async def close(self) -> None:
        session = self._session
        self._session = None
        if session is not None and not session.closed:
            await session.close()


def default_proxy_factory(credentials: Credentials) -> OFSProxy:
    return OFSProxy(credentials)


__all__ = [
    "InstanceCredentials",
    "TokenCredentials",
    "Credentials",
    "ProxyFactory",
    "ProxyResponse",
    "OFSProxy",
    "default_proxy_factory",
]
