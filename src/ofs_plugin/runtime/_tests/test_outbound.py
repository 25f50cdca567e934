import pytest

from ofs_plugin.protocol import ReadyMessage
from ofs_plugin.runtime import Outbound


class RecordingChannel:
    def __init__(self, referrer: str = "", ancestor_origins=()) -> None:
        self.referrer = referrer
        self.ancestor_origins = tuple(ancestor_origins)
        self.sent: list[tuple[dict, str]] = []

    def post_message(self, data, target_origin: str) -> None:
        self.sent.append((dict(data), target_origin))


def test_send_targets_referrer_origin() -> None:
    channel = RecordingChannel("https://host.example/app/path")
    outbound = Outbound(channel, tag="t")
    assert outbound.send("ready", ReadyMessage(send_init_data=True)) is True
    assert channel.sent == [
        ({"apiVersion": 1, "method": "ready", "sendInitData": True}, "https://host.example"),
    ]


def test_send_falls_back_to_ancestor_origin() -> None:
    channel = RecordingChannel("", ["https://parent.example"])
    assert Outbound(channel, tag="t").send("close") is True
    assert channel.sent[0][1] == "https://parent.example"


def test_send_without_origin_is_a_no_op() -> None:
    channel = RecordingChannel("")
    outbound = Outbound(channel, tag="t")
    assert outbound.send("close", {"activity": {}}) is False
    assert channel.sent == []


def test_origin_follows_referrer_changes() -> None:
    channel = RecordingChannel("https://one.example/a")
    outbound = Outbound(channel, tag="t")
    outbound.send("update")
    channel.referrer = "https://two.example/b"
    outbound.send("update")
    assert [origin for _, origin in channel.sent] == ["https://one.example", "https://two.example"]


def test_build_lets_caller_fields_win() -> None:
    envelope = Outbound.build("update", {"apiVersion": 2, "activity": {"aid": 1}})
    assert envelope == {"apiVersion": 2, "method": "update", "activity": {"aid": 1}}
    assert Outbound.build("close") == {"apiVersion": 1, "method": "close"}


def test_build_rejects_non_mapping() -> None:
    with pytest.raises(TypeError):
        Outbound.build("update", ["not", "a", "mapping"])


def test_repeated_ready_sends_equal_envelopes() -> None:
    channel = RecordingChannel("https://host.example/app")
    outbound = Outbound(channel, tag="t")
    outbound.send("ready", ReadyMessage(send_init_data=True))
    outbound.send("ready", ReadyMessage(send_init_data=True))
    assert len(channel.sent) == 2
    assert channel.sent[0] == channel.sent[1]
