"""
EVM Node Call Dispatcher

``ChainDispatcher`` performs forwarded calls on a live EVM network through
``AsyncWeb3``. A relayer hot wallet signs and pays for the transaction; the
forwarder engine has already authenticated the request, consumed its nonce
and decided the value to attach.

Flow per call:
    1. ``eth_call`` simulation to capture the return data. A reverting
       simulation is reported as ``(False, revert_data)`` and nothing is
       broadcast.
    2. Build, sign and broadcast the transaction (EIP-1559 fees when the node
       exposes ``eth_feeHistory``, legacy ``gasPrice`` otherwise).
    3. Poll for the receipt; ``status == 1`` is success.

Network problems are reported as ``(False, b"")`` and logged; they never
propagate into the engine.
"""

import asyncio
import logging
from typing import Any, Dict, Optional, Tuple

from eth_account import Account
from web3 import AsyncWeb3
from web3.exceptions import ContractLogicError, TransactionNotFound

from ..engine.exceptions import ConfigurationError
from .bases import CallDispatcher

logger = logging.getLogger(__name__)

PLAIN_TRANSFER_GAS = 21_000


def _revert_data(exc: ContractLogicError) -> bytes:
    data = getattr(exc, "data", None)
    if isinstance(data, str) and data.startswith("0x"):
        try:
            return bytes.fromhex(data[2:])
        except ValueError:
            return b""
    if isinstance(data, (bytes, bytearray)):
        return bytes(data)
    return b""


class ChainDispatcher(CallDispatcher):
    """
    Dispatcher that executes forwarded calls as signed transactions.

    Args:
        private_key: Relayer hot-wallet key that signs and funds transactions.
        rpc_url: JSON-RPC endpoint. Ignored when ``web3`` is given.
        web3: Pre-built ``AsyncWeb3`` instance (useful for tests and for
            sharing a provider).
        request_timeout: HTTP timeout for RPC calls, in seconds.
        max_attempts: Receipt polling attempts.
        poll_interval: Seconds between receipt polls.

    Raises:
        ConfigurationError: If no key is supplied, or neither ``rpc_url``
            nor ``web3`` is.

    Example::

        dispatcher = ChainDispatcher(
            private_key=settings.relayer_private_key,
            rpc_url=settings.rpc_url,
        )
    """

    def __init__(
        self,
        private_key: Optional[str] = None,
        rpc_url: Optional[str] = None,
        *,
        web3: Optional[AsyncWeb3] = None,
        request_timeout: int = 60,
        max_attempts: int = 60,
        poll_interval: float = 6.0,
    ) -> None:
        if not private_key:
            raise ConfigurationError(
                "ChainDispatcher requires a relayer private key (RELAYER_PRIVATE_KEY)."
            )
        if web3 is None and not rpc_url:
            raise ConfigurationError(
                "ChainDispatcher requires an RPC URL (FORWARDER_RPC_URL) or an AsyncWeb3 instance."
            )

        self.account = Account.from_key(private_key)
        self.wallet_address = AsyncWeb3.to_checksum_address(self.account.address)
        self.w3 = web3 or AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(
            rpc_url,
            request_kwargs={"timeout": request_timeout},
        ))
        self._max_attempts = max_attempts
        self._poll_interval = poll_interval

    async def invoke(
        self,
        target: str,
        value: int,
        gas_limit: int,
        payload: bytes,
        *,
        sender: str,
    ) -> Tuple[bool, bytes]:
        call_params: Dict[str, Any] = {
            "from": self.wallet_address,
            "to": AsyncWeb3.to_checksum_address(target),
            "value": value,
            "gas": gas_limit,
            "data": payload,
        }

        # ---- Simulation: capture return data, skip doomed broadcasts ----
        try:
            return_data = bytes(await self.w3.eth.call(call_params))
        except ContractLogicError as exc:
            logger.info(f"Forwarded call to {target} reverts in simulation: {exc}")
            return False, _revert_data(exc)
        except Exception as exc:
            logger.warning(f"Simulation of forwarded call to {target} failed: {exc}")
            return False, b""

        # ---- Broadcast ----
        try:
            raw_transaction = await self._build_signed_transaction(call_params)
            tx_hash = await self.w3.eth.send_raw_transaction(raw_transaction)
            tx_hash_hex = tx_hash.hex()
        except Exception as exc:
            logger.error(f"Failed to broadcast forwarded call to {target}: {exc}")
            return False, b""

        receipt = await self._wait_for_receipt(tx_hash_hex)
        if receipt is None:
            logger.warning(f"Forwarded call {tx_hash_hex} not confirmed in time")
            return False, b""

        success = receipt.get("status") == 1
        logger.info(f"Forwarded call {tx_hash_hex} mined in block {receipt.get('blockNumber')} (success={success})")
        return success, return_data if success else b""

    async def _build_signed_transaction(self, call_params: Dict[str, Any]) -> bytes:
        tx_params = dict(call_params)
        tx_params["nonce"] = await self.w3.eth.get_transaction_count(self.wallet_address, "pending")
        tx_params["chainId"] = await self.w3.eth.chain_id

        # Dynamic Gas Fee Handling (EIP-1559)
        try:
            fee_history = await self.w3.eth.fee_history(1, "latest", [25.0])
            base_fee = fee_history["baseFeePerGas"][-1]
            priority_fee = fee_history["reward"][0][0]
            tx_params["maxPriorityFeePerGas"] = priority_fee
            tx_params["maxFeePerGas"] = (base_fee * 2) + priority_fee
        except Exception:
            # Fallback to Legacy Gas Price
            tx_params["gasPrice"] = await self.w3.eth.gas_price

        signed_tx = self.account.sign_transaction(tx_params)
        return signed_tx.raw_transaction

    async def _wait_for_receipt(self, tx_hash_hex: str) -> Optional[Dict[str, Any]]:
        for _ in range(self._max_attempts):
            try:
                receipt = await self.w3.eth.get_transaction_receipt(tx_hash_hex)
                if receipt:
                    return receipt
            except TransactionNotFound:
                pass  # still pending
            except Exception as exc:
                logger.error(f"Polling receipt of {tx_hash_hex} failed: {exc}")
                return None
            await asyncio.sleep(self._poll_interval)
        return None

    async def transfer(self, recipient: str, amount: int, *, sender: str) -> bool:
        success, _ = await self.invoke(recipient, amount, PLAIN_TRANSFER_GAS, b"", sender=sender)
        return success
