"""
AWL Forwarder

Trusted meta-transaction forwarder: signers authorize calls off-chain with
EIP-712 ``ForwardRequest`` signatures, whitelisted relayers submit them, and
the engine verifies, consumes the signer's nonce and performs the call.
"""

from .adapters import CallContext, CallDispatcher, ChainDispatcher, LocalDispatcher, Revert
from .adapters.evm import (
    ECDSASignature,
    EIP712Domain,
    ForwardRequest,
    SignatureVerifier,
    TypedDataHasher,
    build_forward_request,
    decode_calldata,
    encode_calldata,
    sign_forward_request,
)
from .config import ForwarderSettings
from .engine.events import EventBus
from .engine.forwarder import ExecutionResult, ForwarderEngine
from .engine.ledger import NonceLedger
from .engine.lifecycle import LifecycleGuard, LifecycleState
from .engine.ownership import Ownership
from .engine.registry import RelayerRegistry
from .logs import setup_logger

__all__ = [
    "CallContext",
    "CallDispatcher",
    "ChainDispatcher",
    "LocalDispatcher",
    "Revert",
    "ECDSASignature",
    "EIP712Domain",
    "ForwardRequest",
    "SignatureVerifier",
    "TypedDataHasher",
    "build_forward_request",
    "decode_calldata",
    "encode_calldata",
    "sign_forward_request",
    "ForwarderSettings",
    "EventBus",
    "ExecutionResult",
    "ForwarderEngine",
    "NonceLedger",
    "LifecycleGuard",
    "LifecycleState",
    "Ownership",
    "RelayerRegistry",
    "setup_logger",
]
