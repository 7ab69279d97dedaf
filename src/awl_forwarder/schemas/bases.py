"""
Base Schema Models for the AWL Forwarder

This module defines the base model and the reusable field types every other
schema builds on. The field types normalize EVM values at the boundary so
that the hasher, the ledger and the registry only ever see one canonical
representation of an address, an integer or a byte string.

Core Types:
    - CanonicalModel: RFC8785-compliant Pydantic base model
    - Address: 20-byte EVM address, normalized to its EIP-55 checksum form
    - Uint256: Unsigned 256-bit integer (accepts decimal or 0x-hex strings)
    - HexData: Arbitrary byte string (accepts bytes or 0x-hex strings,
      serialized back as 0x-hex)

Dependencies:
    - pydantic: For data validation and serialization
    - eth_utils: Address checksumming and hex codecs
"""

import json
from typing import Any, Dict, Union

from eth_utils import decode_hex, encode_hex, is_address, to_checksum_address
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, PlainSerializer
from typing_extensions import Annotated

UINT256_MAX: int = 2**256 - 1


def normalize_address(value: Union[str, bytes]) -> str:
    """
    Return the EIP-55 checksum form of ``value``.

    Accepts a 0x-prefixed hex string (any case, or a correctly checksummed
    mixed-case string) or 20 raw bytes.

    Raises:
        ValueError: If ``value`` is not a valid EVM address.
    """
    if isinstance(value, (bytes, bytearray)):
        if len(value) != 20:
            raise ValueError(f"address must be 20 bytes, got {len(value)}")
        return to_checksum_address(bytes(value))
    if not isinstance(value, str) or not is_address(value):
        raise ValueError(f"invalid EVM address: {value!r}")
    return to_checksum_address(value)


def _coerce_uint(value: Any) -> Any:
    if isinstance(value, str) and value.lower().startswith("0x"):
        return int(value, 16)
    return value


def _coerce_bytes(value: Any) -> Any:
    if isinstance(value, str):
        return decode_hex(value)
    if isinstance(value, bytearray):
        return bytes(value)
    return value


Address = Annotated[str, BeforeValidator(normalize_address)]

Uint256 = Annotated[int, BeforeValidator(_coerce_uint), Field(ge=0, le=UINT256_MAX)]

HexData = Annotated[
    bytes,
    BeforeValidator(_coerce_bytes),
    PlainSerializer(encode_hex, return_type=str, when_used="json"),
]


class CanonicalModel(BaseModel):
    """
    RFC8785-compliant Pydantic base model with canonical JSON serialization.

    This model ensures consistent, deterministic JSON representation suitable
    for logging, transport and hashing. Field aliases (e.g. ``from``) are used
    on output so the JSON matches the wire names expected by EIP-712 tooling.

    Example:
        class MyModel(CanonicalModel):
            name: str
            value: int

        model = MyModel(name="test", value=123)
        canonical_json = model.to_canonical_json()  # '{"name":"test","value":123}'
    """

    model_config = ConfigDict(populate_by_name=True)

    def to_canonical_json(self) -> str:
        """
        Convert model to RFC8785-compliant canonical JSON string.

        Returns:
            str: JSON string with sorted keys and no extra whitespace.
        """
        data = self.model_dump(mode="json", by_alias=True)
        return json.dumps(
            data,
            separators=(",", ":"),
            sort_keys=True,
            ensure_ascii=False
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert model to a JSON-compatible dictionary using wire names.

        Returns:
            Dict[str, Any]: Dictionary with all model fields.
        """
        return self.model_dump(mode="json", by_alias=True)
