"""Origin helpers shared by the outbound path and channel implementations."""

from __future__ import annotations

from typing import Sequence
from urllib.parse import urlsplit

_DEFAULT_SCHEME = "https"
_WS_SCHEMES = {"ws": "http", "wss": "https"}


def origin_from_url(url: str | None) -> str:
    """Reduce *url* to ``scheme://host[:port]``; empty string when unusable."""

    if not url:
        return ""
    text = str(url).strip()
    if "://" not in text:
        host = text.split("/")[0]
        return f"{_DEFAULT_SCHEME}://{host}" if host else ""
    try:
        parts = urlsplit(text)
    except ValueError:
        return ""
    host = parts.netloc.rsplit("@", 1)[-1]
    if not parts.scheme or not host:
        return ""
    return f"{parts.scheme}://{host}"


def resolve_target_origin(referrer: str | None, ancestor_origins: Sequence[str] = ()) -> str:
    """Prefer the referring document, then the nearest ancestor origin."""

    source = referrer or (ancestor_origins[0] if ancestor_origins else "")
    return origin_from_url(source)


def http_url_for_socket(url: str) -> str:
    """Map a ``ws://``/``wss://`` URL onto the page URL serving it."""

    parts = urlsplit(url)
    scheme = _WS_SCHEMES.get(parts.scheme, parts.scheme)
    return parts._replace(scheme=scheme).geturl()


__all__ = ["origin_from_url", "resolve_target_origin", "http_url_for_socket"]
