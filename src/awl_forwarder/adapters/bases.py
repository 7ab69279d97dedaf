"""
Abstract Base Classes for Call Dispatchers

A dispatcher is the forwarder's window onto its host execution environment:
it performs the forwarded call that a verified request authorizes. The
forwarder engine only depends on this interface, so the same engine runs
against an in-process simulation (``LocalDispatcher``) or a live EVM node
(``ChainDispatcher``).

Core Classes:
    - CallDispatcher: Generic "invoke with this byte payload, capture success
      and return bytes" capability.
"""

from abc import ABC, abstractmethod
from typing import Tuple


class CallDispatcher(ABC):
    """
    Abstract Base Class for forwarded-call execution.

    Key Responsibilities:
    1. invoke: Deliver ``payload`` and ``value`` to ``target`` under a gas bound
       and report the outcome as data, never as an exception.

    Example Implementation:
        class LocalDispatcher(CallDispatcher):
            # In-process simulated contracts
            pass

        class ChainDispatcher(CallDispatcher):
            # Transactions sent through AsyncWeb3
            pass
    """

    @abstractmethod
    async def invoke(
        self,
        target: str,
        value: int,
        gas_limit: int,
        payload: bytes,
        *,
        sender: str,
    ) -> Tuple[bool, bytes]:
        """
        Perform a call and capture its outcome.

        Args:
            target: Checksummed destination address.
            value: Wei transferred with the call.
            gas_limit: Upper bound on the resources the call may consume.
            payload: Calldata delivered to ``target``.
            sender: Address the call originates from (the forwarder).

        Returns:
            ``(success, return_data)``. On failure ``return_data`` carries the
            revert data, if any.

        Implementation Notes:
            - Must not raise because the callee failed; a reverted or
              out-of-gas call is ``(False, data)``.
            - Must not move ``value`` when the call fails.
        """
        pass

    async def transfer(self, recipient: str, amount: int, *, sender: str) -> bool:
        """
        Move ``amount`` wei to ``recipient`` without a call payload.

        Used to sweep the held balance on kill. The default sends a plain
        value-carrying call; dispatchers that can credit an account without
        running its code override this.
        """
        success, _ = await self.invoke(recipient, amount, 0, b"", sender=sender)
        return success
