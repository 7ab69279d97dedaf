"""
Call dispatcher tests: the in-process LocalDispatcher and the AsyncWeb3
backed ChainDispatcher (web3 mocked, no network).
"""

import pytest
from unittest.mock import AsyncMock

from web3.exceptions import ContractLogicError, TransactionNotFound

from awl_forwarder.adapters.chain import ChainDispatcher
from awl_forwarder.adapters.local import CallContext, LocalDispatcher, Revert
from awl_forwarder.engine.exceptions import ConfigurationError

from forwarder_mocks import (
    MOCK_FORWARDER_ADDRESS,
    MOCK_GAS,
    MOCK_RELAYER_ADDRESS,
    MOCK_RELAYER_PRIVATE_KEY,
    MOCK_SIGNER_ADDRESS,
    MOCK_TARGET_ADDRESS,
    create_mock_web3,
)


class TestLocalDispatcher:

    @pytest.mark.asyncio
    async def test_plain_account_accepts_call_and_value(self):
        host = LocalDispatcher()

        success, data = await host.invoke(MOCK_TARGET_ADDRESS, 10, MOCK_GAS, b"\x01", sender=MOCK_FORWARDER_ADDRESS)

        assert (success, data) == (True, b"")
        assert host.balance_of(MOCK_TARGET_ADDRESS) == 10
        assert host.calls[0].data == b"\x01"

    @pytest.mark.asyncio
    async def test_handler_return_data(self):
        host = LocalDispatcher()

        async def echo(ctx: CallContext) -> bytes:
            return ctx.data[::-1]

        host.deploy(MOCK_TARGET_ADDRESS, echo)
        success, data = await host.invoke(MOCK_TARGET_ADDRESS, 0, MOCK_GAS, b"\x01\x02", sender=MOCK_FORWARDER_ADDRESS)

        assert success
        assert data == b"\x02\x01"

    @pytest.mark.asyncio
    async def test_revert_keeps_value_and_returns_data(self):
        host = LocalDispatcher()

        async def reverting(ctx: CallContext) -> bytes:
            raise Revert(b"\xde\xad", reason="nope")

        host.deploy(MOCK_TARGET_ADDRESS, reverting)
        success, data = await host.invoke(MOCK_TARGET_ADDRESS, 5, MOCK_GAS, b"", sender=MOCK_FORWARDER_ADDRESS)

        assert (success, data) == (False, b"\xde\xad")
        assert host.balance_of(MOCK_TARGET_ADDRESS) == 0

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_a_failed_call(self):
        host = LocalDispatcher()

        async def broken(ctx: CallContext) -> bytes:
            raise RuntimeError("boom")

        host.deploy(MOCK_TARGET_ADDRESS, broken)

        assert await host.invoke(MOCK_TARGET_ADDRESS, 0, MOCK_GAS, b"", sender=MOCK_FORWARDER_ADDRESS) == (False, b"")

    @pytest.mark.asyncio
    async def test_gas_bound(self):
        host = LocalDispatcher()
        ran = []

        async def expensive(ctx: CallContext) -> bytes:
            ran.append(ctx)
            return b"\x01"

        host.deploy(MOCK_TARGET_ADDRESS, expensive, gas_cost=50000)

        assert await host.invoke(MOCK_TARGET_ADDRESS, 0, 49999, b"", sender=MOCK_FORWARDER_ADDRESS) == (False, b"")
        assert ran == []
        assert await host.invoke(MOCK_TARGET_ADDRESS, 0, 50000, b"", sender=MOCK_FORWARDER_ADDRESS) == (True, b"\x01")

    @pytest.mark.asyncio
    async def test_transfer_does_not_run_code(self):
        host = LocalDispatcher()

        async def reverting(ctx: CallContext) -> bytes:
            raise Revert()

        host.deploy(MOCK_TARGET_ADDRESS, reverting)

        assert await host.transfer(MOCK_TARGET_ADDRESS, 42, sender=MOCK_FORWARDER_ADDRESS)
        assert host.balance_of(MOCK_TARGET_ADDRESS) == 42
        assert host.calls == []


class TestCallContext:

    def test_original_sender_from_trusted_forwarder(self):
        suffix = bytes.fromhex(MOCK_SIGNER_ADDRESS[2:])
        ctx = CallContext(
            sender=MOCK_FORWARDER_ADDRESS,
            target=MOCK_TARGET_ADDRESS,
            value=0,
            gas_limit=MOCK_GAS,
            data=b"\xaa\xbb" + suffix,
        )

        assert ctx.original_sender(MOCK_FORWARDER_ADDRESS) == MOCK_SIGNER_ADDRESS
        assert ctx.original_data(MOCK_FORWARDER_ADDRESS) == b"\xaa\xbb"

    def test_untrusted_sender_is_msg_sender(self):
        ctx = CallContext(
            sender=MOCK_RELAYER_ADDRESS,
            target=MOCK_TARGET_ADDRESS,
            value=0,
            gas_limit=MOCK_GAS,
            data=b"\x00" * 24,
        )

        assert ctx.original_sender(MOCK_FORWARDER_ADDRESS) == MOCK_RELAYER_ADDRESS
        assert ctx.original_data(MOCK_FORWARDER_ADDRESS) == b"\x00" * 24


class TestChainDispatcherInitialization:

    def test_requires_private_key(self):
        with pytest.raises(ConfigurationError):
            ChainDispatcher(None, "http://localhost:8545")

    def test_requires_rpc_or_web3(self):
        with pytest.raises(ConfigurationError):
            ChainDispatcher(MOCK_RELAYER_PRIVATE_KEY)

    def test_wallet_address(self):
        dispatcher = ChainDispatcher(MOCK_RELAYER_PRIVATE_KEY, web3=create_mock_web3())
        assert dispatcher.wallet_address == MOCK_RELAYER_ADDRESS


class TestChainDispatcherInvoke:

    @pytest.mark.asyncio
    async def test_successful_call_is_broadcast(self):
        w3 = create_mock_web3(call_result=b"\x00" * 31 + b"\x01")
        dispatcher = ChainDispatcher(MOCK_RELAYER_PRIVATE_KEY, web3=w3, poll_interval=0)

        success, data = await dispatcher.invoke(
            MOCK_TARGET_ADDRESS, 0, MOCK_GAS, b"\x12\x34", sender=MOCK_FORWARDER_ADDRESS,
        )

        assert success
        assert data == b"\x00" * 31 + b"\x01"
        call_params = w3.eth.call.call_args.args[0]
        assert call_params["to"] == MOCK_TARGET_ADDRESS
        assert call_params["gas"] == MOCK_GAS
        assert call_params["data"] == b"\x12\x34"
        w3.eth.send_raw_transaction.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_reverting_simulation_is_not_broadcast(self):
        w3 = create_mock_web3()
        w3.eth.call.side_effect = ContractLogicError("execution reverted", data="0x08c379a0")
        dispatcher = ChainDispatcher(MOCK_RELAYER_PRIVATE_KEY, web3=w3, poll_interval=0)

        success, data = await dispatcher.invoke(MOCK_TARGET_ADDRESS, 0, MOCK_GAS, b"", sender=MOCK_FORWARDER_ADDRESS)

        assert success is False
        assert data == bytes.fromhex("08c379a0")
        w3.eth.send_raw_transaction.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failed_receipt(self):
        w3 = create_mock_web3(call_result=b"\x01", receipt_status=0)
        dispatcher = ChainDispatcher(MOCK_RELAYER_PRIVATE_KEY, web3=w3, poll_interval=0)

        assert await dispatcher.invoke(MOCK_TARGET_ADDRESS, 0, MOCK_GAS, b"", sender=MOCK_FORWARDER_ADDRESS) == (False, b"")

    @pytest.mark.asyncio
    async def test_network_error_is_reported_as_failure(self):
        w3 = create_mock_web3()
        w3.eth.send_raw_transaction.side_effect = ConnectionError("node down")
        dispatcher = ChainDispatcher(MOCK_RELAYER_PRIVATE_KEY, web3=w3, poll_interval=0)

        assert await dispatcher.invoke(MOCK_TARGET_ADDRESS, 0, MOCK_GAS, b"", sender=MOCK_FORWARDER_ADDRESS) == (False, b"")

    @pytest.mark.asyncio
    async def test_receipt_polling_error_is_reported_as_failure(self):
        w3 = create_mock_web3()
        w3.eth.get_transaction_receipt.side_effect = ConnectionError("node down")
        dispatcher = ChainDispatcher(MOCK_RELAYER_PRIVATE_KEY, web3=w3, poll_interval=0)

        assert await dispatcher.invoke(MOCK_TARGET_ADDRESS, 0, MOCK_GAS, b"", sender=MOCK_FORWARDER_ADDRESS) == (False, b"")
        assert await dispatcher.transfer(MOCK_TARGET_ADDRESS, 5, sender=MOCK_FORWARDER_ADDRESS) is False

    @pytest.mark.asyncio
    async def test_legacy_gas_price_fallback(self):
        w3 = create_mock_web3()
        w3.eth.fee_history.side_effect = ValueError("method not supported")
        dispatcher = ChainDispatcher(MOCK_RELAYER_PRIVATE_KEY, web3=w3, poll_interval=0)

        success, _ = await dispatcher.invoke(MOCK_TARGET_ADDRESS, 0, MOCK_GAS, b"", sender=MOCK_FORWARDER_ADDRESS)

        assert success
        w3.eth.send_raw_transaction.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_receipt_polling_gives_up(self):
        w3 = create_mock_web3()
        w3.eth.get_transaction_receipt = AsyncMock(side_effect=TransactionNotFound("pending"))
        dispatcher = ChainDispatcher(MOCK_RELAYER_PRIVATE_KEY, web3=w3, max_attempts=3, poll_interval=0)

        assert await dispatcher.invoke(MOCK_TARGET_ADDRESS, 0, MOCK_GAS, b"", sender=MOCK_FORWARDER_ADDRESS) == (False, b"")
        assert w3.eth.get_transaction_receipt.await_count == 3
