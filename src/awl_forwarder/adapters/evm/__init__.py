from .schemas import ForwardRequest, ECDSASignature, signature_to_bytes
from .standards import EIP712Domain, ForwardRequestTypedData
from .hashing import TypedDataHasher, hash_domain, hash_forward_request, forward_request_digest
from .verifies import SignatureVerifier, recover_signer, split_signature
from .signatures import (
    build_forward_request,
    build_forward_request_typed_data,
    sign_forward_request,
    encode_calldata,
    decode_calldata,
)

__all__ = [
    "ForwardRequest",
    "ECDSASignature",
    "signature_to_bytes",
    "EIP712Domain",
    "ForwardRequestTypedData",
    "TypedDataHasher",
    "hash_domain",
    "hash_forward_request",
    "forward_request_digest",
    "SignatureVerifier",
    "recover_signer",
    "split_signature",
    "build_forward_request",
    "build_forward_request_typed_data",
    "sign_forward_request",
    "encode_calldata",
    "decode_calldata",
]
