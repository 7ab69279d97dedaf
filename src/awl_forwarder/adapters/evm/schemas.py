"""
EVM Forwarder Schema Models

Pydantic models for the forwarder's data model. All classes inherit from
``CanonicalModel`` in ``schemas.bases``.

Request classes:
    - ForwardRequest: The action a signer authorizes off-chain and a relayer
      submits on their behalf. Immutable once built.

Signature classes:
    - ECDSASignature: v/r/s view of a packed 65-byte recoverable signature.
"""

from typing import Any, Dict, Union

from pydantic import ConfigDict, Field

from ...schemas.bases import Address, CanonicalModel, HexData, Uint256
from .constants import SIGNATURE_LENGTH


class ForwardRequest(CanonicalModel):
    """
    Meta-transaction request (EIP-712 primary type ``ForwardRequest``).

    Instances are frozen: any change must go through ``model_copy(update=...)``,
    which yields a different request and therefore a different digest. The
    EIP-712 field ``from`` is a Python keyword; the attribute is ``from_`` and
    the alias ``from`` is used for construction from dicts and for output.

    Attributes:
        from_: Claimed signer / originator (alias ``from``).
        to: Destination of the forwarded call.
        value: Native currency amount attached to the forwarded call (wei).
        gas: Gas budget for the forwarded call.
        nonce: Must equal the signer's current ledger value.
        data: Calldata forwarded to ``to``.

    Example::

        request = ForwardRequest(**{
            "from": "0x5B38Da6a701c568545dCfcB03FcB875f56beddC4",
            "to": "0x0000000000000000000000000000000000000000",
            "value": 0,
            "gas": 100000,
            "nonce": 0,
            "data": "0x",
        })
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    from_: Address = Field(..., alias="from", description="Signer of the request")
    to: Address = Field(..., description="Destination address")
    value: Uint256 = Field(default=0, description="Wei attached to the forwarded call")
    gas: Uint256 = Field(..., description="Gas budget of the forwarded call")
    nonce: Uint256 = Field(..., description="Signer nonce this request consumes")
    data: HexData = Field(default=b"", description="Calldata for the destination")

    def to_message(self) -> Dict[str, Any]:
        """Return the EIP-712 ``message`` entry (wire field names, hex data)."""
        return {
            "from": self.from_,
            "to": self.to,
            "value": self.value,
            "gas": self.gas,
            "nonce": self.nonce,
            "data": "0x" + self.data.hex(),
        }


class ECDSASignature(CanonicalModel):
    """
    EVM ECDSA signature (v, r, s).

    The forwarder consumes signatures in their packed ``r || s || v`` form;
    this model is the structured view used by builders and by the HTTP layer.

    Attributes:
        v: ECDSA recovery ID (27 or 28).
        r: r component, 32 bytes as a 64-char hex string (0x prefix optional).
        s: s component, 32 bytes as a 64-char hex string (0x prefix optional).

    Example::

        sig = ECDSASignature.from_bytes(packed)
        assert sig.to_bytes() == packed
    """

    v: int = Field(..., ge=27, le=28, description="ECDSA recovery ID (27 or 28)")
    r: str = Field(..., description="Signature r component (32 bytes, 64-char hex, 0x prefix optional)")
    s: str = Field(..., description="Signature s component (32 bytes, 64-char hex, 0x prefix optional)")

    def validate_format(self) -> bool:
        """
        Validate v/r/s components.

        Returns:
            True when all components pass.

        Raises:
            ValueError: Descriptive message on the first failed check.
        """
        if self.v not in (27, 28):
            raise ValueError(f"Invalid recovery ID: {self.v}. Must be 27 or 28")

        for name, val in [("r", self.r), ("s", self.s)]:
            hex_str = val.replace("0x", "").replace("0X", "")
            if len(hex_str) != 64:
                raise ValueError(f"Invalid {name}: expected 64 hex chars, got {len(hex_str)}")
            try:
                int(hex_str, 16)
            except ValueError:
                raise ValueError(f"Invalid {name}: not valid hexadecimal")

        return True

    def to_bytes(self) -> bytes:
        """Encode v/r/s into the packed 65-byte form (``r || s || v``)."""
        self.validate_format()
        r = self.r.replace("0x", "").replace("0X", "")
        s = self.s.replace("0x", "").replace("0X", "")
        return bytes.fromhex(r) + bytes.fromhex(s) + bytes([self.v])

    def to_packed_hex(self) -> str:
        """Return ``to_bytes()`` as a 0x-prefixed 132-character hex string."""
        return "0x" + self.to_bytes().hex()

    @classmethod
    def from_bytes(cls, signature: Union[bytes, str]) -> "ECDSASignature":
        """
        Split a packed 65-byte signature into its components.

        Raises:
            ValueError: If the signature is not exactly 65 bytes.
        """
        raw = signature_to_bytes(signature)
        if len(raw) != SIGNATURE_LENGTH:
            raise ValueError(f"signature must be {SIGNATURE_LENGTH} bytes, got {len(raw)}")
        return cls(v=raw[64], r="0x" + raw[:32].hex(), s="0x" + raw[32:64].hex())


def signature_to_bytes(signature: Union[bytes, bytearray, str, ECDSASignature]) -> bytes:
    """
    Normalize a signature given as bytes, 0x-hex or ``ECDSASignature``.

    No length or range checks are made here; those belong to recovery.

    Raises:
        ValueError: If a string signature is not valid hexadecimal.
    """
    if isinstance(signature, ECDSASignature):
        return signature.to_bytes()
    if isinstance(signature, (bytes, bytearray)):
        return bytes(signature)
    if isinstance(signature, str):
        hex_str = signature[2:] if signature[:2].lower() == "0x" else signature
        return bytes.fromhex(hex_str)
    raise TypeError(f"unsupported signature type: {type(signature).__name__}")
