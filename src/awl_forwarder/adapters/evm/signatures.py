"""
Forward Request Signing Utilities

Local EIP-712 signing helpers for ``ForwardRequest`` meta-transactions and
calldata encoding for the forwarded call. All cryptographic operations are
performed in-process using ``eth_account``; no RPC calls are made.

Exported helpers
----------------
build_forward_request_typed_data
    Wrap a ``ForwardRequest`` in a ``ForwardRequestTypedData`` envelope
    without signing. Useful when the signing step is handled externally
    (e.g. a browser wallet via ``eth_signTypedData_v4``).

sign_forward_request
    Build the EIP-712 payload, sign it with a private key and return the
    packed 65-byte signature the forwarder consumes.

encode_calldata / decode_calldata
    Function selector + ABI argument encoding for the ``data`` field.
"""

from typing import Any, List, Optional, Sequence, Tuple

from eth_abi import decode, encode
from eth_account import Account
from eth_utils import function_signature_to_4byte_selector

from .constants import DEFAULT_FORWARD_GAS
from .schemas import ECDSASignature, ForwardRequest
from .standards import EIP712Domain, ForwardRequestTypedData


def build_forward_request_typed_data(
    domain: EIP712Domain,
    request: ForwardRequest,
) -> ForwardRequestTypedData:
    """
    Wrap a ``ForwardRequest`` in an EIP-712 envelope without signing.

    Args:
        domain:  Domain of the forwarder that will verify the request.
        request: The request to authorize.

    Returns:
        ``ForwardRequestTypedData`` whose ``to_dict()`` is compatible with
        ``eth_account.Account.sign_typed_data`` and ``eth_signTypedData_v4``.

    Example::

        payload = build_forward_request_typed_data(domain, request).to_dict()
        # hand off to an external signer
    """
    return ForwardRequestTypedData(domain=domain, request=request)


def sign_forward_request(
    *,
    private_key: str,
    domain: EIP712Domain,
    request: ForwardRequest,
) -> bytes:
    """
    Sign a ``ForwardRequest`` and return the packed ``r || s || v`` signature.

    The signer address derived from ``private_key`` should equal
    ``request.from_``; a mismatch still produces a signature, which the
    forwarder will then reject.

    Args:
        private_key: Hex-encoded secp256k1 private key (with or without ``0x``).
        domain:      Domain of the verifying forwarder.
        request:     Request to sign.

    Returns:
        65 bytes; ``v`` is 27 or 28 and ``s`` is in the lower half order.

    Example::

        signature = sign_forward_request(
            private_key="0xYOUR_PRIVATE_KEY",
            domain=settings.domain(),
            request=request,
        )
    """
    typed_data = build_forward_request_typed_data(domain, request)
    signed = Account.sign_typed_data(private_key, full_message=typed_data.to_dict())
    return ECDSASignature(
        v=signed.v,
        r="0x" + signed.r.to_bytes(32, "big").hex(),
        s="0x" + signed.s.to_bytes(32, "big").hex(),
    ).to_bytes()


def build_forward_request(
    *,
    sender: str,
    to: str,
    nonce: int,
    data: bytes = b"",
    value: int = 0,
    gas: Optional[int] = None,
) -> ForwardRequest:
    """
    Convenience constructor mirroring the argument order of signing scripts.

    ``gas`` defaults to ``DEFAULT_FORWARD_GAS``.
    """
    return ForwardRequest(
        from_=sender,
        to=to,
        value=value,
        gas=DEFAULT_FORWARD_GAS if gas is None else gas,
        nonce=nonce,
        data=data,
    )


def encode_calldata(function_signature: str, arg_types: Sequence[str], args: Sequence[Any]) -> bytes:
    """
    Encode a call as ``selector || abi.encode(args)``.

    The selector is the first four bytes of ``keccak(function_signature)``.

    Args:
        function_signature: Canonical signature, e.g.
            ``"transferFrom(address,address,uint256)"``.
        arg_types: ABI types of ``args``, e.g. ``["address", "address", "uint256"]``.
        args: Argument values.

    Returns:
        Calldata bytes for ``ForwardRequest.data``.

    Raises:
        ValueError: If the number of types and values differ.

    Example::

        data = encode_calldata(
            "transferFrom(address,address,uint256)",
            ["address", "address", "uint256"],
            [owner, recipient, 10**18],
        )
    """
    if len(arg_types) != len(args):
        raise ValueError(f"expected {len(arg_types)} arguments, got {len(args)}")
    selector = function_signature_to_4byte_selector(function_signature)
    return selector + encode(list(arg_types), list(args))


def decode_calldata(calldata: bytes, arg_types: Sequence[str]) -> Tuple[bytes, List[Any]]:
    """
    Split calldata into its selector and decoded arguments.

    Raises:
        ValueError: If ``calldata`` is shorter than a selector.
    """
    if len(calldata) < 4:
        raise ValueError("calldata shorter than a function selector")
    return calldata[:4], list(decode(list(arg_types), calldata[4:]))
