"""
Relayer Registry

Owner-managed set of addresses allowed to submit ``execute`` calls.

Adding an address that is already present fails so a misconfigured rotation
is noticed; removing an absent address succeeds silently.
"""

import logging
from typing import Iterable, List, Set

from .exceptions import AlreadyWhitelisted
from .ownership import Ownership, checked_address

logger = logging.getLogger(__name__)


class RelayerRegistry:
    """
    Whitelist of relayer addresses.

    Args:
        ownership: Owner capability gating ``add`` and ``remove``.
        initial: Addresses whitelisted at construction, without owner check.

    Example::

        registry = RelayerRegistry(ownership, initial=[ownership.owner])
        registry.add(relayer, caller=ownership.owner)
        assert registry.is_whitelisted(relayer)
    """

    def __init__(self, ownership: Ownership, initial: Iterable[str] = ()) -> None:
        self._ownership = ownership
        self._relayers: Set[str] = {checked_address(a, "relayer") for a in initial}

    def is_whitelisted(self, caller: str) -> bool:
        try:
            return checked_address(caller, "caller") in self._relayers
        except ValueError:
            return False

    def add(self, relayer: str, *, caller: str) -> str:
        """
        Whitelist ``relayer``.

        Returns:
            The normalized relayer address.

        Raises:
            Unauthorized: If ``caller`` is not the owner.
            InvalidAddress: If ``relayer`` is malformed.
            AlreadyWhitelisted: If ``relayer`` is already present.
        """
        self._ownership.require_owner(caller)
        relayer = checked_address(relayer, "relayer")
        if relayer in self._relayers:
            raise AlreadyWhitelisted("sender address is already whitelisted", relayer=relayer)
        self._relayers.add(relayer)
        logger.info(f"Relayer {relayer} whitelisted")
        return relayer

    def remove(self, relayer: str, *, caller: str) -> str:
        """
        Remove ``relayer`` from the whitelist; absent addresses are a no-op.

        Raises:
            Unauthorized: If ``caller`` is not the owner.
            InvalidAddress: If ``relayer`` is malformed.
        """
        self._ownership.require_owner(caller)
        relayer = checked_address(relayer, "relayer")
        if relayer in self._relayers:
            self._relayers.discard(relayer)
            logger.info(f"Relayer {relayer} removed from whitelist")
        return relayer

    def relayers(self) -> List[str]:
        return sorted(self._relayers)
