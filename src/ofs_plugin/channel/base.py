"""Host channel contract."""

from __future__ import annotations

from typing import Any, Mapping, Protocol, Sequence


class HostChannel(Protocol):
    """Bidirectional message channel between the plugin and its host frame.

    ``referrer`` and ``ancestor_origins`` describe the embedding document and
    are the only inputs used to decide where outbound messages may go.
    ``post_message`` must deliver *data* only to a peer whose origin equals
    *target_origin*.
    """

    @property
    def referrer(self) -> str: ...

    @property
    def ancestor_origins(self) -> Sequence[str]: ...

    def post_message(self, data: Mapping[str, Any], target_origin: str) -> None: ...


__all__ = ["HostChannel"]
