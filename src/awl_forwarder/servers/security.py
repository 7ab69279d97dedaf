"""
Bearer access tokens for the relay API.

Token format: ``<payload_b64>.<signature_b64>`` where the payload is compact
sorted JSON ``{"exp", "iat", "nonce", "sub"}`` and the signature is
HMAC-SHA256 over ``payload_b64`` with the server's ``ACCESS_TOKEN_KEY``. The
``sub`` claim is the caller address the server acts for.
"""

import base64
import hashlib
import hmac
import json
import secrets
import string
import time
from typing import Dict, Optional

import dotenv
from fastapi import HTTPException, status

from ..engine.exceptions import InvalidTokenError, TokenError, TokenExpiredError
from ..schemas.bases import normalize_address


def _b64encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("utf-8")


def _b64decode(data: str) -> bytes:
    padding = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding)


def _sign(private_key: str, payload_b64: str) -> bytes:
    return hmac.new(
        key=private_key.encode(),
        msg=payload_b64.encode(),
        digestmod=hashlib.sha256,
    ).digest()


def create_private_key(
    *,
    prefix: str = "",
    length: int = 32,
    use_special_chars: bool = False
) -> str:
    """
    Generate a random HMAC key for access tokens.

    Args:
        prefix: A custom string to prepend to the random key.
        length: The number of random characters to generate.
        use_special_chars: Whether to include special characters in the random part.
    """
    alphabet = string.ascii_letters + string.digits
    if use_special_chars:
        alphabet += "!@#$%^&*()_+-="

    random_part = ''.join(secrets.choice(alphabet) for _ in range(length))
    return f"{prefix}{random_part}"


def save_key_to_env(key_name: str, key_value: str, env_file: str = ".env") -> None:
    """Save or update ``key_name`` in ``env_file`` (created if missing)."""
    open(env_file, "a", encoding="utf-8").close()
    dotenv.set_key(env_file, key_name, key_value, quote_mode="never")


def generate_token(
    *,
    private_key: str,
    subject: str,
    expires_in: int = 3600,
    nonce_length: int = 16,
) -> str:
    """
    Issue a signed access token for ``subject``.

    Args:
        private_key: Secret key used to sign the token.
        subject: Address the bearer acts as (relayer or owner).
        expires_in: Token lifetime in seconds.
        nonce_length: Length of random nonce.

    Raises:
        ValueError: If ``subject`` is not a valid address.
    """
    now = int(time.time())

    payload: Dict[str, object] = {
        "iat": now,
        "exp": now + expires_in,
        "nonce": secrets.token_urlsafe(nonce_length),
        "sub": normalize_address(subject),
    }

    payload_json = json.dumps(payload, separators=(",", ":"), sort_keys=True)
    payload_b64 = _b64encode(payload_json.encode())
    signature_b64 = _b64encode(_sign(private_key, payload_b64))

    return f"{payload_b64}.{signature_b64}"


def verify_token(
    *,
    token: str,
    private_key: str,
    leeway: int = 0,
) -> Dict[str, object]:
    """
    Verify token signature and expiration.

    Returns:
        Decoded payload if valid.

    Raises:
        TokenExpiredError: If token is expired.
        InvalidTokenError: If token is malformed or signature mismatch.
    """
    try:
        payload_b64, signature_b64 = token.split(".")
    except ValueError:
        raise InvalidTokenError("Invalid token format")

    try:
        actual_sig = _b64decode(signature_b64)
    except ValueError:
        raise InvalidTokenError("Invalid token signature encoding")

    if not hmac.compare_digest(_sign(private_key, payload_b64), actual_sig):
        raise InvalidTokenError("Signature verification failed")

    try:
        payload = json.loads(_b64decode(payload_b64))
        expires_at = int(payload["exp"])
        payload["sub"] = normalize_address(payload["sub"])
    except (ValueError, KeyError, TypeError):
        raise InvalidTokenError("Malformed token payload")

    if int(time.time()) > expires_at + leeway:
        raise TokenExpiredError("Token has expired")

    return payload


def caller_from_authorization(authorization: Optional[str], private_key: str) -> str:
    """
    Resolve the caller address from an ``Authorization: Bearer <token>`` header.

    Raises:
        HTTPException: 401 when the header is missing, malformed, or carries
            an invalid or expired token.
    """
    if not authorization:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Missing authorization token")

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid authorization header format")

    try:
        payload = verify_token(token=parts[1], private_key=private_key)
    except TokenError as exc:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, str(exc)) from exc

    return str(payload["sub"])
