from dataclasses import dataclass, field
from typing import Dict, Any, List

from .constants import (
    EIP712_DOMAIN_FIELDS,
    FORWARD_REQUEST_FIELDS,
    FORWARD_REQUEST_PRIMARY_TYPE,
)
from .schemas import ForwardRequest


# -----------------------------
# EIP-712 Domain
# -----------------------------

@dataclass(frozen=True)
class EIP712Domain:
    """
    EIP-712 domain separator.
    Used to prevent signature replay across forwarder instances and chains.
    """
    name: str
    version: str
    chainId: int
    verifyingContract: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "version": self.version,
            "chainId": self.chainId,
            "verifyingContract": self.verifyingContract,
        }


# -----------------------------
# ForwardRequest typed data
# -----------------------------

@dataclass
class ForwardRequestTypedData:
    """
    Container for a ``ForwardRequest`` usable with EIP-712 signing routines.

    ``to_dict()`` produces the ``{types, primaryType, domain, message}``
    layout consumed by ``eth_account.Account.sign_typed_data`` and by
    wallets implementing ``eth_signTypedData_v4``.

    Attributes:
        domain: EIP712Domain of the forwarder instance that will verify.
        request: The request being authorized.
        primary_type: Always ``"ForwardRequest"``.
        types: The typed definitions required by EIP-712 (automatically set).
    """
    domain: EIP712Domain
    request: ForwardRequest

    primary_type: str = FORWARD_REQUEST_PRIMARY_TYPE

    types: Dict[str, List[Dict[str, str]]] = field(
        default_factory=lambda: {
            "EIP712Domain": [dict(f) for f in EIP712_DOMAIN_FIELDS],
            FORWARD_REQUEST_PRIMARY_TYPE: [dict(f) for f in FORWARD_REQUEST_FIELDS],
        }
    )

    def to_dict(self) -> Dict[str, Any]:
        """Return a dictionary compatible with EIP-712 structured signing."""
        return {
            "types": self.types,
            "primaryType": self.primary_type,
            "domain": self.domain.to_dict(),
            "message": self.request.to_message(),
        }
