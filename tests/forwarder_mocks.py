"""
Forwarder Test Mocks Module

Shared constants, factories and fake infrastructure for the forwarder test
suite. Keys are real secp256k1 keys so signatures are produced and recovered
with the actual ``eth_account`` / ``eth_keys`` code paths.

Usage:
    from forwarder_mocks import (
        MOCK_SIGNER_ADDRESS,
        create_engine,
        create_request,
        sign_request,
    )

    engine = create_engine()
    request = create_request()
    result = await engine.execute(request, sign_request(request), caller=MOCK_RELAYER_ADDRESS)
"""

from typing import Any, Dict, Optional
from unittest.mock import AsyncMock, MagicMock

from eth_account import Account
from eth_utils import to_checksum_address

from awl_forwarder.adapters.bases import CallDispatcher
from awl_forwarder.adapters.local import LocalDispatcher
from awl_forwarder.adapters.evm.schemas import ForwardRequest
from awl_forwarder.adapters.evm.signatures import sign_forward_request
from awl_forwarder.adapters.evm.standards import EIP712Domain
from awl_forwarder.engine.events import EventBus
from awl_forwarder.engine.forwarder import ForwarderEngine


# ========================================================================
# Mock Accounts
# ========================================================================

# Test private keys (do not use in production!)
MOCK_OWNER_PRIVATE_KEY = "0xabcdefabcdefabcdefabcdefabcdefabcdefabcdefabcdefabcdefabcdefabcd"
MOCK_SIGNER_PRIVATE_KEY = "0x1234567890123456789012345678901234567890123456789012345678901234"
MOCK_RELAYER_PRIVATE_KEY = "0x" + "11" * 32
MOCK_OUTSIDER_PRIVATE_KEY = "0x" + "22" * 32

MOCK_OWNER_ADDRESS = Account.from_key(MOCK_OWNER_PRIVATE_KEY).address
MOCK_SIGNER_ADDRESS = Account.from_key(MOCK_SIGNER_PRIVATE_KEY).address
MOCK_RELAYER_ADDRESS = Account.from_key(MOCK_RELAYER_PRIVATE_KEY).address
MOCK_OUTSIDER_ADDRESS = Account.from_key(MOCK_OUTSIDER_PRIVATE_KEY).address

# Destinations
MOCK_FORWARDER_ADDRESS = to_checksum_address("0x5fbdb2315678afecb367f032d93f642f64180aa3")
MOCK_TARGET_ADDRESS = to_checksum_address("0x00000000000000000000000000000000000000aa")
MOCK_OTHER_TARGET_ADDRESS = to_checksum_address("0x00000000000000000000000000000000000000bb")
MOCK_RECIPIENT_ADDRESS = to_checksum_address("0x00000000000000000000000000000000000000cc")

# Domain
MOCK_CHAIN_ID = 1337
MOCK_OTHER_CHAIN_ID = 11155111
MOCK_DOMAIN_NAME = "AwlForwarder"
MOCK_DOMAIN_VERSION = "1"

# Request defaults
MOCK_GAS = 100000
MOCK_TX_HASH = "0xabcdef1234567890abcdef1234567890abcdef1234567890abcdef1234567890"
MOCK_BLOCK_NUMBER = 12345678
MOCK_GAS_PRICE = 20000000000  # 20 Gwei


# ========================================================================
# Factories
# ========================================================================

def create_domain(
    chain_id: int = MOCK_CHAIN_ID,
    verifying_contract: str = MOCK_FORWARDER_ADDRESS,
    name: str = MOCK_DOMAIN_NAME,
    version: str = MOCK_DOMAIN_VERSION,
) -> EIP712Domain:
    return EIP712Domain(
        name=name,
        version=version,
        chainId=chain_id,
        verifyingContract=verifying_contract,
    )


def create_request(**overrides: Any) -> ForwardRequest:
    """
    Build the canonical test request: signer -> target, no value, nonce 0.

    Example:
        request = create_request(nonce=1, data=b"\\x01")
    """
    fields: Dict[str, Any] = {
        "from": MOCK_SIGNER_ADDRESS,
        "to": MOCK_TARGET_ADDRESS,
        "value": 0,
        "gas": MOCK_GAS,
        "nonce": 0,
        "data": b"",
    }
    fields.update(overrides)
    return ForwardRequest(**fields)


def sign_request(
    request: ForwardRequest,
    private_key: str = MOCK_SIGNER_PRIVATE_KEY,
    domain: Optional[EIP712Domain] = None,
) -> bytes:
    return sign_forward_request(
        private_key=private_key,
        domain=domain or create_domain(),
        request=request,
    )


def create_engine(
    dispatcher: Optional[CallDispatcher] = None,
    event_bus: Optional[EventBus] = None,
    append_sender: bool = True,
    with_relayer: bool = True,
) -> ForwarderEngine:
    """Engine owned by MOCK_OWNER_ADDRESS, optionally with MOCK_RELAYER_ADDRESS whitelisted."""
    return ForwarderEngine(
        create_domain(),
        MOCK_OWNER_ADDRESS,
        dispatcher or LocalDispatcher(),
        event_bus=event_bus,
        append_sender=append_sender,
        relayers=[MOCK_RELAYER_ADDRESS] if with_relayer else (),
    )


# ========================================================================
# Mock Web3
# ========================================================================

def create_mock_web3(
    call_result: bytes = b"",
    receipt_status: int = 1,
) -> MagicMock:
    """
    AsyncWeb3 stand-in covering the calls ChainDispatcher makes.

    Every ``eth`` coroutine is an ``AsyncMock`` so tests can override side
    effects (``w3.eth.call.side_effect = ContractLogicError(...)``).
    """
    w3 = MagicMock()
    w3.eth = MagicMock()
    w3.eth.call = AsyncMock(return_value=call_result)
    w3.eth.get_transaction_count = AsyncMock(return_value=7)
    w3.eth.fee_history = AsyncMock(return_value={
        "baseFeePerGas": [MOCK_GAS_PRICE],
        "reward": [[1000000000]],
    })
    w3.eth.send_raw_transaction = AsyncMock(return_value=bytes.fromhex(MOCK_TX_HASH[2:]))
    w3.eth.get_transaction_receipt = AsyncMock(return_value={
        "status": receipt_status,
        "blockNumber": MOCK_BLOCK_NUMBER,
        "transactionHash": MOCK_TX_HASH,
    })

    # chain_id and gas_price are awaitable properties on AsyncWeb3
    async def _chain_id():
        return MOCK_CHAIN_ID

    async def _gas_price():
        return MOCK_GAS_PRICE

    type(w3.eth).chain_id = property(lambda self: _chain_id())
    type(w3.eth).gas_price = property(lambda self: _gas_price())
    return w3
