import pytest

from ofs_plugin.channel.origins import http_url_for_socket, origin_from_url, resolve_target_origin


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("https://host.example/app/path", "https://host.example"),
        ("https://host.example:8443/app?x=1#frag", "https://host.example:8443"),
        ("http://user:pw@host.example/app", "http://host.example"),
        ("host.example/app/path", "https://host.example"),
        ("", ""),
        (None, ""),
        ("https:///nohost", ""),
    ],
)
def test_origin_from_url(url, expected) -> None:
    assert origin_from_url(url) == expected


def test_resolve_prefers_referrer() -> None:
    assert resolve_target_origin("https://a.example/x", ["https://b.example"]) == "https://a.example"


def test_resolve_falls_back_to_first_ancestor() -> None:
    assert resolve_target_origin("", ["https://b.example/page", "https://c.example"]) == "https://b.example"
    assert resolve_target_origin(None, ()) == ""


def test_http_url_for_socket() -> None:
    assert http_url_for_socket("ws://localhost:8765/plugin") == "http://localhost:8765/plugin"
    assert http_url_for_socket("wss://host.example/p") == "https://host.example/p"
