import logging

from ofs_plugin.config import (
    DEFAULT_TOKEN_TIMEOUT_S,
    LoggingPolicy,
    configure_logging,
    load_logging_policy,
    load_plugin_config,
)


def test_plugin_config_defaults() -> None:
    config = load_plugin_config({})
    assert config.token_timeout_s == DEFAULT_TOKEN_TIMEOUT_S
    assert config.call_id_length == 32
    assert config.verify_connection is False
    assert config.ready.send_init_data is True
    assert config.ready.show_header is False
    assert config.logging.enabled is False


def test_plugin_config_env_overrides() -> None:
    env = {
        "OFS_PLUGIN_TOKEN_TIMEOUT_S": "2.5",
        "OFS_PLUGIN_CALL_ID_LENGTH": "48",
        "OFS_PLUGIN_VERIFY_CONNECTION": "yes",
        "OFS_PLUGIN_READY": '{"showHeader": true, "enableBackButton": "1", "sendInitData": false}',
    }
    config = load_plugin_config(env)
    assert config.token_timeout_s == 2.5
    assert config.call_id_length == 48
    assert config.verify_connection is True
    assert config.ready.show_header is True
    assert config.ready.enable_back_button is True
    assert config.ready.send_init_data is False
    message = config.ready.to_message().to_dict()
    assert message["method"] == "ready"
    assert message["showHeader"] is True


def test_plugin_config_rejects_bad_values() -> None:
    env = {
        "OFS_PLUGIN_TOKEN_TIMEOUT_S": "-1",
        "OFS_PLUGIN_CALL_ID_LENGTH": "4",
        "OFS_PLUGIN_READY": "{not json",
    }
    config = load_plugin_config(env)
    assert config.token_timeout_s == DEFAULT_TOKEN_TIMEOUT_S
    assert config.call_id_length == 16
    assert config.ready.send_init_data is True

    config = load_plugin_config({"OFS_PLUGIN_TOKEN_TIMEOUT_S": "soon"})
    assert config.token_timeout_s == DEFAULT_TOKEN_TIMEOUT_S


def test_logging_policy_defaults() -> None:
    policy = load_logging_policy({})
    assert policy.enabled is False
    assert policy.log_envelopes is False
    assert policy.log_proxy is False
    assert policy.level == logging.INFO


def test_logging_policy_flags() -> None:
    policy = load_logging_policy({"OFS_PLUGIN_DEBUG": "envelopes,proxy"})
    assert policy.enabled is True
    assert policy.log_envelopes is True
    assert policy.log_proxy is True
    assert policy.level == logging.DEBUG

    policy = load_logging_policy({"OFS_PLUGIN_DEBUG": '{"enabled": true, "flags": ["proxy"]}'})
    assert policy.log_proxy is True
    assert policy.log_envelopes is False

    policy = load_logging_policy({"OFS_PLUGIN_DEBUG": "0", "OFS_PLUGIN_LOG_ENVELOPES": "1"})
    assert policy.enabled is False
    assert policy.log_envelopes is True


def test_configure_logging_reuses_handler() -> None:
    package_logger = logging.getLogger("ofs_plugin")
    saved = (list(package_logger.handlers), package_logger.level, package_logger.propagate)
    try:
        configure_logging(LoggingPolicy(enabled=True))
        configure_logging(LoggingPolicy(enabled=False))
        local = [h for h in package_logger.handlers if getattr(h, "_ofs_plugin_local", False)]
        assert len(local) == 1
        assert local[0].level == logging.INFO
        assert package_logger.level == logging.INFO
    finally:
        package_logger.handlers[:] = saved[0]
        package_logger.setLevel(saved[1])
        package_logger.propagate = saved[2]
