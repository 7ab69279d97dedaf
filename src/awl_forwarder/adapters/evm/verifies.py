"""
EVM Signature Recovery

Recovers the signing address of a 32-byte digest from a packed 65-byte
``r || s || v`` ECDSA signature. Structural validity is enforced before any
curve arithmetic:

1. **Length** -- exactly 65 bytes.
2. **Recovery id** -- ``v`` is 27 or 28.
3. **Range** -- ``0 < r < n`` and ``0 < s <= n / 2``. Upper-half ``s`` values
   are rejected so that each (digest, signer) pair has exactly one accepted
   signature (EIP-2 malleability rule).

A structurally valid signature always yields *some* address. Whether that
address is the expected signer is the caller's decision, not an error here.
"""

import logging
from typing import Union

from eth_keys import keys
from eth_keys.exceptions import BadSignature

from ...engine.exceptions import RecoveryFailure
from .constants import SECP256K1_HALF_N, SECP256K1_N, SIGNATURE_LENGTH
from .schemas import ECDSASignature, signature_to_bytes

logger = logging.getLogger(__name__)


def split_signature(signature: bytes) -> tuple:
    """
    Split and range-check a packed signature.

    Returns:
        ``(v, r, s)`` with ``v`` in {27, 28}.

    Raises:
        RecoveryFailure: On any structural defect.
    """
    if len(signature) != SIGNATURE_LENGTH:
        raise RecoveryFailure(
            f"signature must be {SIGNATURE_LENGTH} bytes, got {len(signature)}",
            length=len(signature),
        )

    r = int.from_bytes(signature[:32], "big")
    s = int.from_bytes(signature[32:64], "big")
    v = signature[64]

    if v not in (27, 28):
        raise RecoveryFailure(f"invalid recovery id: {v}", v=v)
    if not 0 < r < SECP256K1_N:
        raise RecoveryFailure("signature r out of range")
    if not 0 < s <= SECP256K1_HALF_N:
        raise RecoveryFailure("signature s out of range or in the upper half of the curve order")

    return v, r, s


def recover_signer(digest: bytes, signature: Union[bytes, str, ECDSASignature]) -> str:
    """
    Recover the checksummed address that signed ``digest``.

    Args:
        digest: 32-byte message hash (for the forwarder, the EIP-712 digest).
        signature: Packed 65-byte signature as bytes, 0x-hex or ``ECDSASignature``.

    Returns:
        EIP-55 checksum address of the recovered public key.

    Raises:
        RecoveryFailure: If the signature is malformed or no public key can
            be recovered from it.
    """
    if len(digest) != 32:
        raise RecoveryFailure(f"digest must be 32 bytes, got {len(digest)}")

    try:
        raw = signature_to_bytes(signature)
    except (ValueError, TypeError) as exc:
        raise RecoveryFailure(f"unreadable signature: {exc}") from exc

    v, r, s = split_signature(raw)

    try:
        public_key = keys.Signature(vrs=(v - 27, r, s)).recover_public_key_from_msg_hash(digest)
    except BadSignature as exc:
        raise RecoveryFailure("no public key recoverable from signature") from exc

    return public_key.to_checksum_address()


class SignatureVerifier:
    """
    Stateless signature recovery component.

    Kept as an object so the engine can be handed an alternative verifier
    (e.g. one that also accepts ERC-1271 contract wallets) without changing
    its orchestration.
    """

    def recover(self, digest: bytes, signature: Union[bytes, str, ECDSASignature]) -> str:
        """See :func:`recover_signer`."""
        return recover_signer(digest, signature)

    def is_signer(self, digest: bytes, signature: Union[bytes, str, ECDSASignature], expected: str) -> bool:
        """
        Return True when ``signature`` over ``digest`` recovers to ``expected``.

        Malformed signatures return False.
        """
        try:
            recovered = self.recover(digest, signature)
        except RecoveryFailure as exc:
            logger.debug(f"Signature recovery failed: {exc}")
            return False
        return recovered.lower() == expected.lower()
