"""
In-Process Call Dispatcher

``LocalDispatcher`` simulates the host execution environment inside the
Python process. Destinations are either plain accounts (any call succeeds
and returns nothing) or simulated contracts: async handlers that receive a
``CallContext`` and return bytes, or raise ``Revert`` to fail the call.

The dispatcher keeps native balances for the accounts it credits and a
record of every call it delivered, which makes it the default host for tests
and for running a forwarder without a node.
"""

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

from eth_utils import to_checksum_address

from .bases import CallDispatcher

logger = logging.getLogger(__name__)


class Revert(Exception):
    """
    Raised by a simulated contract to fail the current call.

    Attributes:
        data: Revert data returned to the caller.
    """

    def __init__(self, data: bytes = b"", reason: str = "") -> None:
        super().__init__(reason or data.hex())
        self.data = data
        self.reason = reason


@dataclass(frozen=True)
class CallContext:
    """
    Everything a simulated contract can observe about the call it serves.

    Attributes:
        sender: Immediate caller (``msg.sender``), i.e. the forwarder.
        target: Address of the contract being called.
        value: Wei attached to the call.
        gas_limit: Gas bound handed down by the caller.
        data: Raw calldata, including an ERC-2771 sender suffix if the
            forwarder appends one.
    """
    sender: str
    target: str
    value: int
    gas_limit: int
    data: bytes

    def original_sender(self, trusted_forwarder: str) -> str:
        """
        ERC-2771 ``_msgSender()``.

        When the call comes from ``trusted_forwarder`` the last 20 bytes of
        the calldata name the signer of the forwarded request; otherwise the
        immediate caller is the sender.
        """
        if self.sender.lower() == trusted_forwarder.lower() and len(self.data) >= 20:
            return to_checksum_address(self.data[-20:])
        return self.sender

    def original_data(self, trusted_forwarder: str) -> bytes:
        """ERC-2771 ``_msgData()``: calldata without the sender suffix."""
        if self.sender.lower() == trusted_forwarder.lower() and len(self.data) >= 20:
            return self.data[:-20]
        return self.data


ContractHandler = Callable[[CallContext], Awaitable[Optional[bytes]]]


@dataclass
class _Deployment:
    handler: ContractHandler
    gas_cost: int = 0


class LocalDispatcher(CallDispatcher):
    """
    Dispatcher backed by simulated contracts and an in-memory balance table.

    Semantics:
        - Calls to an address without a deployed handler succeed with empty
          return data (externally owned account).
        - A deployed handler whose ``gas_cost`` exceeds the call's gas limit
          fails without running.
        - ``Revert(data)`` fails the call with ``data``; any other exception
          fails it with empty return data and is logged.
        - ``value`` is credited to ``target`` only when the call succeeds.

    Example::

        host = LocalDispatcher()

        async def echo(ctx: CallContext) -> bytes:
            return ctx.data

        host.deploy("0x00000000000000000000000000000000000000aa", echo)
    """

    def __init__(self) -> None:
        self._deployments: Dict[str, _Deployment] = {}
        self._balances: Dict[str, int] = {}
        self.calls: List[CallContext] = []

    def deploy(self, address: str, handler: ContractHandler, *, gas_cost: int = 0) -> None:
        """Install ``handler`` as the code of ``address``."""
        self._deployments[to_checksum_address(address)] = _Deployment(handler=handler, gas_cost=gas_cost)

    def balance_of(self, address: str) -> int:
        return self._balances.get(to_checksum_address(address), 0)

    async def invoke(
        self,
        target: str,
        value: int,
        gas_limit: int,
        payload: bytes,
        *,
        sender: str,
    ) -> Tuple[bool, bytes]:
        target = to_checksum_address(target)
        context = CallContext(
            sender=sender,
            target=target,
            value=value,
            gas_limit=gas_limit,
            data=payload,
        )
        self.calls.append(context)

        deployment = self._deployments.get(target)
        if deployment is None:
            self._credit(target, value)
            return True, b""

        if deployment.gas_cost > gas_limit:
            logger.info(f"Call to {target} ran out of gas ({deployment.gas_cost} > {gas_limit})")
            return False, b""

        try:
            result = await deployment.handler(context)
        except Revert as exc:
            logger.info(f"Call to {target} reverted: {exc}")
            return False, exc.data
        except Exception:
            logger.exception(f"Call to {target} failed")
            return False, b""

        self._credit(target, value)
        return True, bytes(result or b"")

    def _credit(self, address: str, amount: int) -> None:
        if amount:
            self._balances[address] = self._balances.get(address, 0) + amount

    async def transfer(self, recipient: str, amount: int, *, sender: str) -> bool:
        # Forced transfer: the recipient's handler is not executed.
        self._credit(to_checksum_address(recipient), amount)
        return True
