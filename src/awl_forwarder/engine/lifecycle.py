"""
Lifecycle guard: active, paused and killed.

    active ──pause──> paused ──unpause──> active
      │                 │
      └──────kill───────┴──────> killed (terminal)

Every transition is owner-only. Once killed, every guarded operation fails
with ``Killed`` before any other check.
"""

import logging
from enum import Enum

from .exceptions import AlreadyPaused, Killed, NotPaused, Paused
from .ownership import Ownership

logger = logging.getLogger(__name__)


class LifecycleState(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    KILLED = "killed"


class LifecycleGuard:
    """
    Tracks the lifecycle state of one forwarder.

    Args:
        ownership: Owner capability gating every transition.
    """

    def __init__(self, ownership: Ownership) -> None:
        self._ownership = ownership
        self._state = LifecycleState.ACTIVE

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def is_killed(self) -> bool:
        return self._state is LifecycleState.KILLED

    def require_alive(self) -> None:
        """Raise ``Killed`` once the forwarder has been killed."""
        if self._state is LifecycleState.KILLED:
            raise Killed("forwarder has been killed", state=self._state)

    def require_active(self) -> None:
        """
        Raises:
            Killed: Once killed.
            Paused: While paused.
        """
        self.require_alive()
        if self._state is LifecycleState.PAUSED:
            raise Paused("forwarder is paused", state=self._state)

    def pause(self, *, caller: str) -> None:
        """
        Raises:
            Killed: Once killed.
            Unauthorized: If ``caller`` is not the owner.
            AlreadyPaused: If already paused.
        """
        self.require_alive()
        self._ownership.require_owner(caller)
        if self._state is LifecycleState.PAUSED:
            raise AlreadyPaused("forwarder is already paused", state=self._state)
        self._state = LifecycleState.PAUSED
        logger.warning(f"Forwarder paused by {caller}")

    def unpause(self, *, caller: str) -> None:
        """
        Raises:
            Killed: Once killed.
            Unauthorized: If ``caller`` is not the owner.
            NotPaused: If not paused.
        """
        self.require_alive()
        self._ownership.require_owner(caller)
        if self._state is not LifecycleState.PAUSED:
            raise NotPaused("forwarder is not paused", state=self._state)
        self._state = LifecycleState.ACTIVE
        logger.info(f"Forwarder unpaused by {caller}")

    def kill(self, *, caller: str) -> None:
        """
        Move to the terminal killed state; allowed from active or paused.

        Raises:
            Killed: If already killed.
            Unauthorized: If ``caller`` is not the owner.
        """
        self.require_alive()
        self._ownership.require_owner(caller)
        self._state = LifecycleState.KILLED
        logger.warning(f"Forwarder killed by {caller}")
