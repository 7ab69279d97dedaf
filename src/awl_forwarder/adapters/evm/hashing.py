"""
EIP-712 Typed-Data Hashing

Computes the domain separator, the ``ForwardRequest`` struct hash and the
final signing digest exactly as an EIP-712 verifying contract does:

    domainSeparator = keccak(abi.encode(
        typeHash(EIP712Domain), keccak(name), keccak(version), chainId, verifyingContract))
    requestHash     = keccak(abi.encode(
        typeHash(ForwardRequest), from, to, value, gas, nonce, keccak(data)))
    digest          = keccak(0x1901 || domainSeparator || requestHash)

Everything here is pure: equal inputs always give equal outputs, which is
what lets an off-process signer (``eth_account``, a wallet's
``eth_signTypedData_v4``) and this verifier agree on the digest.
"""

from eth_abi import encode
from eth_account.messages import SignableMessage
from eth_utils import keccak, to_checksum_address

from .constants import EIP712_DOMAIN_TYPE, EIP712_PREFIX, FORWARD_REQUEST_TYPE
from .schemas import ForwardRequest
from .standards import EIP712Domain

EIP712_DOMAIN_TYPEHASH: bytes = keccak(text=EIP712_DOMAIN_TYPE)
FORWARD_REQUEST_TYPEHASH: bytes = keccak(text=FORWARD_REQUEST_TYPE)


def hash_domain(domain: EIP712Domain) -> bytes:
    """Return the 32-byte EIP-712 domain separator of ``domain``."""
    return keccak(
        encode(
            ["bytes32", "bytes32", "bytes32", "uint256", "address"],
            [
                EIP712_DOMAIN_TYPEHASH,
                keccak(text=domain.name),
                keccak(text=domain.version),
                domain.chainId,
                to_checksum_address(domain.verifyingContract),
            ],
        )
    )


def hash_forward_request(request: ForwardRequest) -> bytes:
    """Return the 32-byte EIP-712 struct hash of ``request``."""
    return keccak(
        encode(
            ["bytes32", "address", "address", "uint256", "uint256", "uint256", "bytes32"],
            [
                FORWARD_REQUEST_TYPEHASH,
                request.from_,
                request.to,
                request.value,
                request.gas,
                request.nonce,
                keccak(request.data),
            ],
        )
    )


def forward_request_digest(domain: EIP712Domain, request: ForwardRequest) -> bytes:
    """Return ``keccak(0x1901 || domainSeparator || requestHash)``."""
    return keccak(EIP712_PREFIX + hash_domain(domain) + hash_forward_request(request))


class TypedDataHasher:
    """
    Digest calculator bound to one forwarder domain.

    The domain is fixed at deployment, so its separator is computed once.
    Instances hold no mutable state.

    Example::

        hasher = TypedDataHasher(domain)
        digest = hasher.digest(request)
    """

    def __init__(self, domain: EIP712Domain) -> None:
        self._domain = domain
        self._domain_separator = hash_domain(domain)

    @property
    def domain(self) -> EIP712Domain:
        return self._domain

    @property
    def domain_separator(self) -> bytes:
        return self._domain_separator

    def request_hash(self, request: ForwardRequest) -> bytes:
        return hash_forward_request(request)

    def digest(self, request: ForwardRequest) -> bytes:
        """Return the 32-byte digest a signer of ``request`` signs."""
        return keccak(EIP712_PREFIX + self._domain_separator + hash_forward_request(request))

    def signable(self, request: ForwardRequest) -> SignableMessage:
        """
        Wrap the request as an ``eth_account`` ``SignableMessage``.

        ``Account.sign_message(hasher.signable(request), key)`` produces the
        same signature as ``Account.sign_typed_data`` over the typed data.
        """
        return SignableMessage(
            version=EIP712_PREFIX[1:],
            header=self._domain_separator,
            body=hash_forward_request(request),
        )
