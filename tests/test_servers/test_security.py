import pytest
from fastapi import HTTPException

from awl_forwarder.servers import security
from awl_forwarder.engine.exceptions import InvalidTokenError, TokenExpiredError

from forwarder_mocks import MOCK_RELAYER_ADDRESS


def test_create_private_key():
    """Test private key generation with different parameters."""
    key = security.create_private_key()
    assert len(key) == 32
    assert all(c in security.string.ascii_letters + security.string.digits for c in key)

    key = security.create_private_key(length=16)
    assert len(key) == 16

    key = security.create_private_key(prefix="relay_")
    assert key.startswith("relay_")
    assert len(key) == len("relay_") + 32


def test_save_key_to_env(tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("FORWARDER_CHAIN_ID=1337\n")

    security.save_key_to_env("ACCESS_TOKEN_KEY", "first", env_file=str(env_file))
    security.save_key_to_env("ACCESS_TOKEN_KEY", "second", env_file=str(env_file))

    lines = env_file.read_text().splitlines()
    assert "FORWARDER_CHAIN_ID=1337" in lines
    assert "ACCESS_TOKEN_KEY=second" in lines
    assert "ACCESS_TOKEN_KEY=first" not in lines


def test_save_key_creates_env_file(tmp_path):
    env_file = tmp_path / "fresh.env"

    security.save_key_to_env("ACCESS_TOKEN_KEY", "value", env_file=str(env_file))

    assert "ACCESS_TOKEN_KEY=value" in env_file.read_text().splitlines()


def test_generate_and_verify_token():
    private_key = security.create_private_key()
    token = security.generate_token(private_key=private_key, subject=MOCK_RELAYER_ADDRESS.lower())

    assert len(token.split(".")) == 2  # payload.signature

    payload = security.verify_token(token=token, private_key=private_key)
    assert payload["sub"] == MOCK_RELAYER_ADDRESS
    assert payload["exp"] - payload["iat"] == 3600
    assert "nonce" in payload


def test_generate_token_rejects_bad_subject():
    with pytest.raises(ValueError):
        security.generate_token(private_key="key", subject="relayer-1")


def test_verify_token_rejections():
    private_key = security.create_private_key()
    token = security.generate_token(private_key=private_key, subject=MOCK_RELAYER_ADDRESS)

    # Invalid signature
    payload_b64, _ = token.split(".")
    with pytest.raises(InvalidTokenError):
        security.verify_token(token=f"{payload_b64}.YmFkX3NpZ25hdHVyZQ", private_key=private_key)

    # Wrong key
    with pytest.raises(InvalidTokenError):
        security.verify_token(token=token, private_key="another-key")

    # Invalid format
    with pytest.raises(InvalidTokenError):
        security.verify_token(token="invalid_token", private_key=private_key)


def test_token_expiration():
    private_key = security.create_private_key()
    token = security.generate_token(private_key=private_key, subject=MOCK_RELAYER_ADDRESS, expires_in=-1)

    with pytest.raises(TokenExpiredError):
        security.verify_token(token=token, private_key=private_key)

    # Within leeway
    security.verify_token(token=token, private_key=private_key, leeway=60)


@pytest.mark.parametrize("header", [None, "", "Token abc", "Bearer", "Bearer a.b"])
def test_caller_from_authorization_rejects(header):
    with pytest.raises(HTTPException) as exc_info:
        security.caller_from_authorization(header, "key")
    assert exc_info.value.status_code == 401


def test_caller_from_authorization():
    token = security.generate_token(private_key="key", subject=MOCK_RELAYER_ADDRESS)
    assert security.caller_from_authorization(f"Bearer {token}", "key") == MOCK_RELAYER_ADDRESS
