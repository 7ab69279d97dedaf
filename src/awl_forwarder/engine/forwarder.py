"""
Forwarder Engine

Orchestrates the hasher, the verifier, the nonce ledger, the relayer registry
and the lifecycle guard to implement ``verify`` and ``execute``, plus the
owner-gated administration surface.

Execution order of ``execute`` (first failing step determines the error):

    1. lifecycle guard is active           -> Paused / Killed
    2. caller is a whitelisted relayer     -> NotWhitelisted
    3. verify(request, signature) is True  -> SignatureMismatch
    4. nonce ledger advances               (before any external effect)
    5. forwarded call through the dispatcher, failure captured as data
    6. RelayResultEvent

Steps 1-4 run without suspending the event loop, so concurrent or reentrant
submissions of the same request observe the advanced nonce.
"""

import logging
from typing import Iterable, List, NamedTuple, Optional, Type, TypeVar, Union

from ..adapters.bases import CallDispatcher
from ..adapters.evm.hashing import TypedDataHasher
from ..adapters.evm.schemas import ECDSASignature, ForwardRequest
from ..adapters.evm.standards import EIP712Domain
from ..adapters.evm.verifies import SignatureVerifier
from .events import (
    BaseEvent,
    EventBus,
    KilledEvent,
    OwnershipTransferredEvent,
    PausedEvent,
    RelayResultEvent,
    SenderRemovedEvent,
    SenderWhitelistedEvent,
    UnpausedEvent,
)
from .exceptions import DirectTransferRejected, NotWhitelisted, RecoveryFailure, SignatureMismatch
from .ledger import NonceLedger
from .lifecycle import LifecycleGuard, LifecycleState
from .ownership import Ownership, checked_address
from .registry import RelayerRegistry

logger = logging.getLogger(__name__)

SignatureLike = Union[bytes, str, ECDSASignature]
E = TypeVar("E", bound=BaseEvent)


class ExecutionResult(NamedTuple):
    """Outcome of the forwarded call. Failure is data, not an exception."""
    success: bool
    return_data: bytes


class ForwarderEngine:
    """
    Trusted meta-transaction forwarder.

    Each instance owns its ledger, registry and lifecycle state; nothing is
    shared between instances, so several forwarders can coexist in one
    process (for example one per domain in tests).

    Args:
        domain: EIP-712 domain; ``domain.verifyingContract`` is the forwarder's
            own address and the ``sender`` of every forwarded call.
        ownership: Owner capability, or a plain owner address.
        dispatcher: Host execution environment for forwarded calls.
        event_bus: Bus receiving every emitted event. A private bus is
            created when omitted.
        verifier: Signature recovery component.
        append_sender: Append ``bytes20(request.from)`` to the forwarded
            calldata (ERC-2771).
        relayers: Extra relayers whitelisted at construction. The owner is
            always whitelisted.

    Example::

        engine = ForwarderEngine(domain, owner_address, LocalDispatcher())
        result = await engine.execute(request, signature, caller=owner_address)
    """

    def __init__(
        self,
        domain: EIP712Domain,
        ownership: Union[Ownership, str],
        dispatcher: CallDispatcher,
        *,
        event_bus: Optional[EventBus] = None,
        verifier: Optional[SignatureVerifier] = None,
        append_sender: bool = True,
        relayers: Iterable[str] = (),
    ) -> None:
        if not isinstance(ownership, Ownership):
            ownership = Ownership(ownership)

        self._domain = domain
        self._address = checked_address(domain.verifyingContract, "verifyingContract")
        self._hasher = TypedDataHasher(domain)
        self._verifier = verifier or SignatureVerifier()
        self._ownership = ownership
        self._ledger = NonceLedger()
        self._registry = RelayerRegistry(ownership, initial=[ownership.owner, *relayers])
        self._guard = LifecycleGuard(ownership)
        self._dispatcher = dispatcher
        self._bus = event_bus or EventBus()
        self._append_sender = append_sender
        self._balance = 0
        self._kill_recipient: Optional[str] = None
        self._events: List[BaseEvent] = []

    # ==================== Read-only surface ====================

    @property
    def domain(self) -> EIP712Domain:
        return self._domain

    @property
    def address(self) -> str:
        return self._address

    @property
    def owner(self) -> str:
        return self._ownership.owner

    @property
    def state(self) -> LifecycleState:
        return self._guard.state

    @property
    def balance(self) -> int:
        """Native currency held by the forwarder (wei)."""
        return self._balance

    @property
    def event_bus(self) -> EventBus:
        return self._bus

    @property
    def events(self) -> List[BaseEvent]:
        return list(self._events)

    def get_events(self, event_class: Type[E]) -> List[E]:
        return [e for e in self._events if isinstance(e, event_class)]

    def get_nonce(self, signer: str) -> int:
        return self._ledger.current(signer)

    def is_whitelisted(self, caller: str) -> bool:
        return self._registry.is_whitelisted(caller)

    def relayers(self) -> List[str]:
        return self._registry.relayers()

    def digest(self, request: ForwardRequest) -> bytes:
        """EIP-712 digest the signer of ``request`` must sign."""
        return self._hasher.digest(request)

    def verify(self, request: ForwardRequest, signature: SignatureLike) -> bool:
        """
        Check that ``signature`` authorizes ``request`` right now.

        True only when the signature recovers to ``request.from`` and
        ``request.nonce`` is the signer's current nonce. Malformed signatures
        return False rather than raising.
        """
        digest = self._hasher.digest(request)
        try:
            recovered = self._verifier.recover(digest, signature)
        except RecoveryFailure as exc:
            logger.debug(f"Signature for {request.from_} rejected: {exc}")
            return False

        if recovered != request.from_:
            logger.debug(f"Signature recovers to {recovered}, not {request.from_}")
            return False
        return self._ledger.current(request.from_) == request.nonce

    # ==================== Relay ====================

    async def execute(
        self,
        request: ForwardRequest,
        signature: SignatureLike,
        *,
        caller: str,
        attached_value: int = 0,
    ) -> ExecutionResult:
        """
        Relay ``request`` on behalf of its signer.

        Args:
            request: Signed forward request.
            signature: Packed 65-byte signature over the request digest.
            caller: Submitting relayer.
            attached_value: Wei sent along with the submission; credited to
                the held balance once every precondition has passed.

        Returns:
            ``ExecutionResult(success, return_data)`` of the forwarded call.

        Raises:
            Paused: While paused.
            Killed: Once killed.
            NotWhitelisted: If ``caller`` is not a whitelisted relayer.
            SignatureMismatch: If ``verify`` is False for any reason.
            ValueError: If ``attached_value`` is negative.
        """
        # Steps 1-4 must not await.
        self._guard.require_active()

        if not self._registry.is_whitelisted(caller):
            logger.warning(f"Rejected submission from non-whitelisted caller {caller}")
            raise NotWhitelisted("caller is not a whitelisted relayer", caller=caller)

        if not self.verify(request, signature):
            logger.warning(f"Rejected request from {request.from_} with nonce {request.nonce}: signature mismatch")
            raise SignatureMismatch(
                "signature does not match request",
                signer=request.from_,
                nonce=request.nonce,
            )

        if attached_value < 0:
            raise ValueError("attached_value must be non-negative")

        self._ledger.advance(request.from_, request.nonce)
        self._balance += attached_value

        success, return_data = await self._forward(request)

        logger.info(
            f"Relayed request {request.nonce} of {request.from_} to {request.to} "
            f"via {caller} (success={success})"
        )
        await self._emit(RelayResultEvent(
            signer=request.from_,
            target=request.to,
            success=success,
            nonce=request.nonce,
            relayer=caller,
            return_data=return_data,
        ))
        return ExecutionResult(success, return_data)

    async def _forward(self, request: ForwardRequest) -> ExecutionResult:
        if request.value > self._balance:
            logger.info(f"Held balance {self._balance} cannot cover value {request.value} for {request.to}")
            return ExecutionResult(False, b"")

        payload = request.data
        if self._append_sender:
            payload += bytes.fromhex(request.from_[2:])

        # Value leaves before the callee runs; refunded if the call fails.
        self._balance -= request.value
        try:
            success, return_data = await self._dispatcher.invoke(
                request.to,
                request.value,
                request.gas,
                payload,
                sender=self._address,
            )
        except Exception:
            logger.exception(f"Dispatcher failed on call to {request.to}")
            success, return_data = False, b""

        if not success:
            await self._refund(request.value)
        return ExecutionResult(success, bytes(return_data))

    async def _refund(self, amount: int) -> None:
        # A kill during the forwarded call has already swept the balance.
        if self._guard.is_killed:
            await self._sweep(self._kill_recipient, amount)
        else:
            self._balance += amount

    async def _sweep(self, recipient: str, amount: int) -> None:
        if not amount:
            return
        try:
            swept = await self._dispatcher.transfer(recipient, amount, sender=self._address)
        except Exception:
            logger.exception(f"Sweeping {amount} wei to {recipient} raised")
            return
        if not swept:
            logger.error(f"Sweeping {amount} wei to {recipient} failed")

    def receive(self, value: int, *, caller: str) -> None:
        """Plain value transfer into the forwarder; always rejected."""
        raise DirectTransferRejected(
            "forwarder does not accept direct transfers",
            caller=caller,
            value=value,
        )

    # ==================== Administration ====================

    async def add_sender_to_whitelist(self, relayer: str, *, caller: str) -> None:
        self._guard.require_alive()
        relayer = self._registry.add(relayer, caller=caller)
        await self._emit(SenderWhitelistedEvent(relayer=relayer))

    async def remove_sender_from_whitelist(self, relayer: str, *, caller: str) -> None:
        self._guard.require_alive()
        was_present = self._registry.is_whitelisted(relayer)
        relayer = self._registry.remove(relayer, caller=caller)
        if was_present:
            await self._emit(SenderRemovedEvent(relayer=relayer))

    async def pause(self, *, caller: str) -> None:
        self._guard.pause(caller=caller)
        await self._emit(PausedEvent(account=caller))

    async def unpause(self, *, caller: str) -> None:
        self._guard.unpause(caller=caller)
        await self._emit(UnpausedEvent(account=caller))

    async def kill(self, recipient: str, *, caller: str) -> int:
        """
        Permanently disable the forwarder and sweep its held balance.

        Returns:
            The swept amount.

        Raises:
            Killed: If already killed.
            Unauthorized: If ``caller`` is not the owner.
            InvalidAddress: If ``recipient`` is malformed.
        """
        self._guard.require_alive()
        self._ownership.require_owner(caller)
        recipient = checked_address(recipient, "recipient")
        self._guard.kill(caller=caller)
        self._kill_recipient = recipient

        amount, self._balance = self._balance, 0
        await self._sweep(recipient, amount)
        await self._emit(KilledEvent(recipient=recipient, amount=amount))
        return amount

    async def transfer_ownership(self, new_owner: str, *, caller: str) -> None:
        self._guard.require_alive()
        previous = self._ownership.transfer(new_owner, caller=caller)
        await self._emit(OwnershipTransferredEvent(previous_owner=previous, new_owner=self._ownership.owner))

    # ==================== Events ====================

    async def _emit(self, event: BaseEvent) -> None:
        self._events.append(event)
        await self._bus.dispatch(event)
