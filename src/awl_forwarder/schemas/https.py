"""
HTTP Request/Response Schema Models for the Forwarder Relay API

Pydantic models exchanged between ``ForwarderClient`` and ``ForwarderServer``.

Relay flow:
1. Signer builds a ``ForwardRequest`` with their current nonce
   (``GET /nonce/{address}``) and signs its EIP-712 digest.
2. Anyone can dry-run the pair with ``POST /verify``.
3. A whitelisted relayer submits it with ``POST /execute``, authenticated by
   a bearer access token whose subject is the relayer address.

Administrative calls (``/admin/...``) use the same bearer tokens; the engine
enforces that the token subject is the owner.
"""

from typing import Any, Dict, List

from pydantic import BaseModel, Field

from ..adapters.evm.schemas import ForwardRequest
from .bases import Address, HexData, Uint256


# ============================================================================
# Relay
# ============================================================================

class VerifyRequest(BaseModel):
    """
    Attributes:
        request: Forward request to check.
        signature: Packed 65-byte signature, 0x-hex.
    """
    request: ForwardRequest
    signature: HexData


class VerifyResponse(BaseModel):
    valid: bool
    digest: HexData = Field(..., description="EIP-712 digest the signature must cover")


class ExecuteRequest(BaseModel):
    """
    Attributes:
        request: Signed forward request.
        signature: Packed 65-byte signature, 0x-hex.
        attached_value: Wei the relayer sends along with the submission.
    """
    request: ForwardRequest
    signature: HexData
    attached_value: Uint256 = 0


class ExecuteResponse(BaseModel):
    """Outcome of the forwarded call. ``success`` False is still a relayed request."""
    success: bool
    return_data: HexData
    signer: Address
    target: Address
    nonce: Uint256


class NonceResponse(BaseModel):
    address: Address
    nonce: Uint256


class StatusResponse(BaseModel):
    state: str
    owner: Address
    forwarder: Address
    balance: Uint256
    domain: Dict[str, Any]
    relayers: List[Address]


# ============================================================================
# Administration
# ============================================================================

class WhitelistRequest(BaseModel):
    address: Address


class OwnershipRequest(BaseModel):
    new_owner: Address


class KillRequest(BaseModel):
    recipient: Address


class KillResponse(BaseModel):
    recipient: Address
    amount: Uint256


class AdminResponse(BaseModel):
    """Generic acknowledgement of an administrative call."""
    ok: bool = True
    state: str
