"""Configuration loading tests."""

import logging

import pytest

from awl_forwarder.adapters.chain import ChainDispatcher
from awl_forwarder.adapters.local import LocalDispatcher
from awl_forwarder.config import ForwarderSettings
from awl_forwarder.engine.exceptions import ConfigurationError
from awl_forwarder.engine.forwarder import ForwarderEngine
from awl_forwarder.logs import setup_logger

from forwarder_mocks import (
    MOCK_CHAIN_ID,
    MOCK_FORWARDER_ADDRESS,
    MOCK_OWNER_ADDRESS,
    MOCK_RELAYER_PRIVATE_KEY,
)

BASE_ENV = {
    "FORWARDER_CHAIN_ID": str(MOCK_CHAIN_ID),
    "FORWARDER_ADDRESS": MOCK_FORWARDER_ADDRESS.lower(),
    "FORWARDER_OWNER": MOCK_OWNER_ADDRESS,
}


class TestFromEnv:

    def test_defaults(self):
        settings = ForwarderSettings.from_env(environ=BASE_ENV)

        assert settings.name == "AwlForwarder"
        assert settings.version == "1"
        assert settings.chain_id == MOCK_CHAIN_ID
        assert settings.verifying_contract == MOCK_FORWARDER_ADDRESS
        assert settings.append_sender is True
        assert settings.log_level == "INFO"
        assert settings.token_expires_in == 3600

    def test_overrides(self):
        env = dict(
            BASE_ENV,
            FORWARDER_NAME="MinimalForwarder",
            FORWARDER_VERSION="0.0.1",
            FORWARDER_APPEND_SENDER="false",
            ACCESS_TOKEN_EXPIRES_IN="60",
        )
        settings = ForwarderSettings.from_env(environ=env)

        assert settings.name == "MinimalForwarder"
        assert settings.version == "0.0.1"
        assert settings.append_sender is False
        assert settings.token_expires_in == 60

    @pytest.mark.parametrize("missing", ["FORWARDER_CHAIN_ID", "FORWARDER_ADDRESS", "FORWARDER_OWNER"])
    def test_missing_required(self, missing):
        env = {k: v for k, v in BASE_ENV.items() if k != missing}

        with pytest.raises(ConfigurationError) as exc_info:
            ForwarderSettings.from_env(environ=env)
        assert missing in str(exc_info.value)

    @pytest.mark.parametrize("key,value", [
        ("FORWARDER_CHAIN_ID", "zero"),
        ("FORWARDER_CHAIN_ID", "0"),
        ("FORWARDER_OWNER", "0x1234"),
    ])
    def test_invalid_values(self, key, value):
        with pytest.raises(ConfigurationError):
            ForwarderSettings.from_env(environ=dict(BASE_ENV, **{key: value}))

    def test_env_file(self, tmp_path, monkeypatch):
        # setenv first so the variables loaded from the file are removed afterwards
        for key in [*BASE_ENV, "FORWARDER_NAME"]:
            monkeypatch.setenv(key, "placeholder")
            monkeypatch.delenv(key)
        env_file = tmp_path / ".env"
        env_file.write_text(
            "".join(f"{k}={v}\n" for k, v in BASE_ENV.items()) + "FORWARDER_NAME=FileForwarder\n"
        )

        settings = ForwarderSettings.from_env(str(env_file))

        assert settings.name == "FileForwarder"
        assert settings.owner == MOCK_OWNER_ADDRESS

    def test_secrets_hidden_from_repr(self):
        settings = ForwarderSettings.from_env(
            environ=dict(BASE_ENV, RELAYER_PRIVATE_KEY=MOCK_RELAYER_PRIVATE_KEY, ACCESS_TOKEN_KEY="hmac-secret")
        )

        assert MOCK_RELAYER_PRIVATE_KEY not in repr(settings)
        assert "hmac-secret" not in repr(settings)


class TestBuilders:

    def test_domain(self):
        domain = ForwarderSettings.from_env(environ=BASE_ENV).domain()

        assert domain.to_dict() == {
            "name": "AwlForwarder",
            "version": "1",
            "chainId": MOCK_CHAIN_ID,
            "verifyingContract": MOCK_FORWARDER_ADDRESS,
        }

    def test_local_dispatcher_by_default(self):
        settings = ForwarderSettings.from_env(environ=BASE_ENV)
        assert isinstance(settings.build_dispatcher(), LocalDispatcher)

    def test_chain_dispatcher_when_configured(self):
        settings = ForwarderSettings.from_env(environ=dict(
            BASE_ENV,
            FORWARDER_RPC_URL="http://localhost:8545",
            RELAYER_PRIVATE_KEY=MOCK_RELAYER_PRIVATE_KEY,
        ))
        assert isinstance(settings.build_dispatcher(), ChainDispatcher)

    def test_half_configured_chain_rejected(self):
        settings = ForwarderSettings.from_env(environ=dict(BASE_ENV, FORWARDER_RPC_URL="http://localhost:8545"))
        with pytest.raises(ConfigurationError):
            settings.build_dispatcher()

    def test_build_engine(self):
        engine = ForwarderSettings.from_env(environ=BASE_ENV).build_engine()

        assert isinstance(engine, ForwarderEngine)
        assert engine.owner == MOCK_OWNER_ADDRESS
        assert engine.address == MOCK_FORWARDER_ADDRESS
        assert engine.is_whitelisted(MOCK_OWNER_ADDRESS)


def test_setup_logger():
    logger = setup_logger("debug")

    assert logger.name == "awl_forwarder"
    assert logger.level == logging.DEBUG

    with pytest.raises(ValueError):
        setup_logger("chatty")
