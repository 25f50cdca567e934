"""Transports between the plugin and its host frame."""

from .base import HostChannel
from .origins import http_url_for_socket, origin_from_url, resolve_target_origin
from .websocket import WebSocketHostChannel

__all__ = [
    "HostChannel",
    "WebSocketHostChannel",
    "http_url_for_socket",
    "origin_from_url",
    "resolve_target_origin",
]
