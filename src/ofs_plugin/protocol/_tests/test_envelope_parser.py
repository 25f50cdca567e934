import json

import pytest

from ofs_plugin.protocol import (
    NO_METHOD,
    UNSET_API_VERSION,
    CallProcedureResultMessage,
    EnvelopeParser,
    InitMessage,
    OpenMessage,
)


@pytest.mark.parametrize(
    "raw",
    [
        "not json",
        "[1, 2, 3]",
        "42",
        '{"apiVersion": 1}',
        '{"method": 7}',
        '{"method": ""}',
        b"\xff\xfe",
        None,
        [("method", "open")],
    ],
)
def test_malformed_input_collapses_to_sentinel(raw) -> None:
    envelope = EnvelopeParser().parse(raw)
    assert envelope.method == NO_METHOD
    assert envelope.api_version == UNSET_API_VERSION
    assert envelope.is_sentinel


def test_parse_keeps_unknown_fields() -> None:
    raw = json.dumps(
        {
            "apiVersion": 1,
            "method": "open",
            "entity": "activity",
            "vendorFlag": {"x": 1},
        }
    )
    envelope = EnvelopeParser().parse(raw)
    assert envelope.method == "open"
    assert envelope.api_version == 1
    assert envelope.get("vendorFlag") == {"x": 1}
    assert "method" not in envelope.fields
    assert "apiVersion" not in envelope.fields


def test_parse_accepts_bytes_and_mappings() -> None:
    parser = EnvelopeParser()
    from_bytes = parser.parse(b'{"method": "wakeup", "apiVersion": 1}')
    from_mapping = parser.parse({"method": "wakeup", "apiVersion": 1})
    assert from_bytes.method == from_mapping.method == "wakeup"
    assert from_bytes.api_version == from_mapping.api_version == 1


@pytest.mark.parametrize("version", [None, "1", 1.5, True])
def test_non_integral_api_version_is_unset(version) -> None:
    data = {"method": "wakeup"}
    if version is not None:
        data["apiVersion"] = version
    envelope = EnvelopeParser().parse(data)
    assert envelope.method == "wakeup"
    assert envelope.api_version == UNSET_API_VERSION


def test_unknown_method_still_parses() -> None:
    envelope = EnvelopeParser().parse('{"method": "teleport", "apiVersion": 1}')
    assert envelope.method == "teleport"
    with pytest.raises(KeyError):
        EnvelopeParser().narrow(envelope)


def test_narrow_sentinel_raises() -> None:
    parser = EnvelopeParser()
    with pytest.raises(KeyError):
        parser.narrow(parser.parse("garbage"))


def test_narrow_open_message() -> None:
    parser = EnvelopeParser()
    envelope = parser.parse(
        {
            "apiVersion": 1,
            "method": "open",
            "entity": "activity",
            "activity": {"aid": "4225"},
            "securedData": {
                "ofsInstance": "acme-test",
                "ofsClientId": "client",
                "ofsClientSecret": "s3cret",
                "extra": "kept",
            },
            "environment": {"environmentName": "test", "fsUrl": "https://acme.example"},
            "openParams": {"mode": "view"},
            "buttonId": "btn-1",
            "surprise": True,
        }
    )
    message = parser.narrow(envelope)
    assert isinstance(message, OpenMessage)
    assert message.api_version == 1
    assert message.entity == "activity"
    assert message.activity == {"aid": "4225"}
    assert message.secured_data is not None
    assert message.secured_data.has_credentials
    assert message.secured_data.extras == {"extra": "kept"}
    assert "s3cret" not in repr(message.secured_data)
    assert message.environment is not None
    assert message.environment.name == "test"
    assert message.environment.fs_url == "https://acme.example"
    assert message.open_params == {"mode": "view"}
    assert message.button_id == "btn-1"
    assert message.extras == {"surprise": True}


def test_narrow_init_registry() -> None:
    parser = EnvelopeParser()
    message = parser.narrow(
        parser.parse(
            {
                "apiVersion": 1,
                "method": "init",
                "applications": {
                    "backend": {"type": "ofs", "resourceUrl": "https://acme.example"},
                    "broken": "not-a-mapping",
                    "other": {"type": "oauth_user_assertion"},
                },
            }
        )
    )
    assert isinstance(message, InitMessage)
    assert set(message.applications) == {"backend", "other"}
    assert message.applications["backend"].is_backend
    assert message.applications["backend"].resource_url == "https://acme.example"
    assert not message.applications["other"].is_backend
    assert message.raw_applications is not None
    assert "broken" in message.raw_applications


def test_narrow_call_procedure_result_without_call_id() -> None:
    parser = EnvelopeParser()
    message = parser.narrow(parser.parse({"method": "callProcedureResult", "resultData": {"token": "t"}}))
    assert isinstance(message, CallProcedureResultMessage)
    assert message.call_id is None
    assert message.api_version == UNSET_API_VERSION
    assert message.result_data == {"token": "t"}
