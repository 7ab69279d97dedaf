"""
Forwarder events and the event bus that delivers them.

Every state change of a forwarder produces an event. The engine keeps the
full list (``ForwarderEngine.events``) and hands each event to an ``EventBus``
so external code (the HTTP service, tests, indexers) can react to it.
"""

import asyncio
import inspect
import logging
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Dict, List

from pydantic import ConfigDict

from ..schemas.bases import Address, CanonicalModel, HexData, Uint256

logger = logging.getLogger(__name__)


# ==================== Base Event ====================

class BaseEvent(ABC):
    """Base class for all events in the system."""

    @abstractmethod
    def __repr__(self) -> str:
        """String representation of the event."""
        pass


class ForwarderEvent(CanonicalModel, BaseEvent):
    """Common base for events emitted by a forwarder."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def __repr__(self) -> str:
        fields = ", ".join(f"{k}={v!r}" for k, v in self.model_dump().items())
        return f"{type(self).__name__}({fields})"


# ==================== Administration Events ====================

class SenderWhitelistedEvent(ForwarderEvent):
    """A relayer was added to the whitelist."""
    relayer: Address


class SenderRemovedEvent(ForwarderEvent):
    """A relayer was removed from the whitelist."""
    relayer: Address


class PausedEvent(ForwarderEvent):
    account: Address


class UnpausedEvent(ForwarderEvent):
    account: Address


class KilledEvent(ForwarderEvent):
    """The forwarder was killed and its held balance swept to ``recipient``."""
    recipient: Address
    amount: Uint256


class OwnershipTransferredEvent(ForwarderEvent):
    previous_owner: Address
    new_owner: Address


# ==================== Relay Events ====================

class RelayResultEvent(ForwarderEvent):
    """
    Outcome of one ``execute`` call.

    Emitted for successful and failed sub-calls alike; failed sub-calls still
    consume the signer's nonce.
    """
    signer: Address
    target: Address
    success: bool
    nonce: Uint256
    relayer: Address
    return_data: HexData = b""

    def __repr__(self) -> str:
        return (
            f"RelayResultEvent(signer={self.signer}, target={self.target}, "
            f"success={self.success}, nonce={self.nonce})"
        )


# ==================== Event Bus ====================

EventHandlerFunc = Callable[[BaseEvent], Awaitable[None]]


class EventBus:
    """Event dispatcher for publishing and subscribing to events."""

    def __init__(self) -> None:
        """Initialize with empty subscribers and hooks."""
        self._subscribers: Dict[type, List[EventHandlerFunc]] = {}
        self._hooks: Dict[type, List[EventHandlerFunc]] = {}

    @staticmethod
    def _check_coroutine(handler: EventHandlerFunc) -> None:
        if not inspect.iscoroutinefunction(handler):
            raise TypeError(f"Handler must be a coroutine function, got {type(handler).__name__}")

    def subscribe(self, event_class: type, handler: EventHandlerFunc) -> None:
        """
        Register an async handler for the given event class.

        Handlers registered on a base class (``ForwarderEvent``) receive every
        subclass event as well. Multiple handlers for one event run in parallel.

        Raises:
            TypeError: If handler is not a coroutine function.
        """
        self._check_coroutine(handler)
        self._subscribers.setdefault(event_class, []).append(handler)

    def hook(self, event_class: type, hook_func: EventHandlerFunc) -> None:
        """
        Register a hook for the given event class.
        Hooks run one after another, in registration order, before subscribers.
        """
        self._check_coroutine(hook_func)
        self._hooks.setdefault(event_class, []).append(hook_func)

    @staticmethod
    def _collect(registry: Dict[type, List[EventHandlerFunc]], event: BaseEvent) -> List[EventHandlerFunc]:
        return [h for cls in type(event).__mro__ for h in registry.get(cls, [])]

    async def dispatch(self, event: BaseEvent) -> None:
        """
        Deliver ``event`` to hooks, then to all subscribers in parallel.

        A failing handler is logged and never propagates: the state change
        that produced the event has already happened.
        """
        for hook in self._collect(self._hooks, event):
            try:
                await hook(event)
            except Exception:
                logger.exception(f"Event hook {getattr(hook, '__name__', hook)} failed for {event!r}")

        handlers = self._collect(self._subscribers, event)
        if not handlers:
            return

        results = await asyncio.gather(*(h(event) for h in handlers), return_exceptions=True)
        for handler, result in zip(handlers, results):
            if isinstance(result, Exception):
                logger.error(
                    f"Event handler {getattr(handler, '__name__', handler)} failed for {event!r}",
                    exc_info=result,
                )
