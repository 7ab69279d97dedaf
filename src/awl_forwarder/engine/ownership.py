"""
Owner capability.

The owner is an explicit object handed to every component with owner-only
operations, so several independent forwarders can live in one process.
"""

import logging

from ..adapters.evm.constants import ZERO_ADDRESS
from ..schemas.bases import normalize_address
from .exceptions import InvalidAddress, Unauthorized

logger = logging.getLogger(__name__)


def checked_address(value: str, field: str = "address") -> str:
    """Normalize ``value`` or raise ``InvalidAddress`` naming ``field``."""
    try:
        return normalize_address(value)
    except ValueError as exc:
        raise InvalidAddress(f"invalid {field}: {value!r}", field=field, value=value) from exc


class Ownership:
    """
    Holds the owner address and gates owner-only operations.

    Example::

        ownership = Ownership("0x5B38Da6a701c568545dCfcB03FcB875f56beddC4")
        ownership.require_owner(caller)  # raises Unauthorized for anyone else
    """

    def __init__(self, owner: str) -> None:
        self._owner = checked_address(owner, "owner")

    @property
    def owner(self) -> str:
        return self._owner

    def is_owner(self, caller: str) -> bool:
        try:
            return checked_address(caller, "caller") == self._owner
        except ValueError:
            return False

    def require_owner(self, caller: str) -> None:
        """
        Raises:
            Unauthorized: If ``caller`` is not the owner.
        """
        if not self.is_owner(caller):
            raise Unauthorized("caller is not the owner", caller=caller)

    def transfer(self, new_owner: str, *, caller: str) -> str:
        """
        Hand ownership to ``new_owner``.

        Returns:
            The previous owner.

        Raises:
            Unauthorized: If ``caller`` is not the owner.
            InvalidAddress: If ``new_owner`` is malformed or the zero address.
        """
        self.require_owner(caller)
        new_owner = checked_address(new_owner, "new_owner")
        if new_owner == ZERO_ADDRESS:
            raise InvalidAddress("new owner is the zero address", field="new_owner", value=new_owner)

        previous, self._owner = self._owner, new_owner
        logger.info(f"Ownership transferred from {previous} to {new_owner}")
        return previous
