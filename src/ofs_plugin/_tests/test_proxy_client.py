import asyncio

import pytest

pytest.importorskip("aiohttp")

from ofs_plugin.errors import ProxyAcquisitionError
from ofs_plugin.proxy import InstanceCredentials, OFSProxy, TokenCredentials, default_proxy_factory


def test_instance_credentials_target_instance_host() -> None:
    proxy = OFSProxy(InstanceCredentials("acme-test", "client", "hunter2"))
    assert proxy.base_url == "https://acme-test.fs.ocs.oraclecloud.com"
    assert proxy.headers == {}
    assert "hunter2" not in repr(proxy.credentials)


def test_token_credentials_use_bearer_header() -> None:
    proxy = default_proxy_factory(TokenCredentials("https://api.example/", "abc123xyz"))
    assert proxy.base_url == "https://api.example"
    assert proxy.headers == {"Authorization": "Bearer abc123xyz"}
    assert "abc123xyz" not in repr(proxy.credentials)


@pytest.mark.parametrize(
    "credentials",
    [
        InstanceCredentials("", "client", "secret"),
        TokenCredentials("https://api.example", ""),
        "not credentials",
    ],
)
def test_invalid_credentials_raise(credentials) -> None:
    with pytest.raises(ProxyAcquisitionError) as excinfo:
        OFSProxy(credentials)
    assert excinfo.value.code.startswith("proxy.")
    assert excinfo.value.details


def test_close_without_session_is_a_no_op() -> None:
    async def runner() -> None:
        proxy = OFSProxy(TokenCredentials("https://api.example", "tok"))
        await proxy.close()
        await proxy.close()

    asyncio.run(runner())
