"""
EVM constants shared by the typed-data hasher, the signature verifier and
the call dispatchers.
"""

from typing import Dict, List

# ---------------------------------------------------------------------------
# secp256k1
# ---------------------------------------------------------------------------

#: Order of the secp256k1 base point.
SECP256K1_N: int = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141

#: Largest ``s`` accepted by recovery (EIP-2 lower half of the curve order).
SECP256K1_HALF_N: int = SECP256K1_N // 2

#: Packed ``r || s || v`` signature length in bytes.
SIGNATURE_LENGTH: int = 65

ZERO_ADDRESS: str = "0x0000000000000000000000000000000000000000"

# ---------------------------------------------------------------------------
# EIP-712 schema
# ---------------------------------------------------------------------------

#: EIP-191 prefix for structured data (version byte 0x01).
EIP712_PREFIX: bytes = b"\x19\x01"

FORWARD_REQUEST_PRIMARY_TYPE: str = "ForwardRequest"

EIP712_DOMAIN_FIELDS: List[Dict[str, str]] = [
    {"name": "name", "type": "string"},
    {"name": "version", "type": "string"},
    {"name": "chainId", "type": "uint256"},
    {"name": "verifyingContract", "type": "address"},
]

FORWARD_REQUEST_FIELDS: List[Dict[str, str]] = [
    {"name": "from", "type": "address"},
    {"name": "to", "type": "address"},
    {"name": "value", "type": "uint256"},
    {"name": "gas", "type": "uint256"},
    {"name": "nonce", "type": "uint256"},
    {"name": "data", "type": "bytes"},
]

EIP712_DOMAIN_TYPE: str = (
    "EIP712Domain(string name,string version,uint256 chainId,address verifyingContract)"
)

FORWARD_REQUEST_TYPE: str = (
    "ForwardRequest(address from,address to,uint256 value,uint256 gas,uint256 nonce,bytes data)"
)

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DEFAULT_DOMAIN_NAME: str = "AwlForwarder"
DEFAULT_DOMAIN_VERSION: str = "1"
DEFAULT_FORWARD_GAS: int = 100_000
