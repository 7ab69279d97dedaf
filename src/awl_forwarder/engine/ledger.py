"""
Per-signer nonce ledger.

Each signer starts at nonce 0. The only mutation is ``advance``, which moves
a signer from ``expected`` to ``expected + 1`` and nothing else: nonces are
never decremented or reset.
"""

from typing import Dict

from ..schemas.bases import normalize_address
from .exceptions import NonceMismatch


class NonceLedger:
    """
    Mapping from signer address to the next nonce it may use.

    Addresses are compared in checksum form, so ``0xab..`` and ``0xAB..`` are
    the same signer.
    """

    def __init__(self) -> None:
        self._nonces: Dict[str, int] = {}

    def current(self, signer: str) -> int:
        """Return the next valid nonce of ``signer`` (0 if never seen)."""
        return self._nonces.get(normalize_address(signer), 0)

    def advance(self, signer: str, expected: int) -> int:
        """
        Consume ``expected`` for ``signer``.

        Returns:
            The new current nonce (``expected + 1``).

        Raises:
            NonceMismatch: If ``expected`` is not the current nonce.
        """
        signer = normalize_address(signer)
        current = self._nonces.get(signer, 0)
        if expected != current:
            raise NonceMismatch(
                f"nonce {expected} is not current for {signer} (current: {current})",
                signer=signer,
                expected=expected,
                current=current,
            )
        self._nonces[signer] = current + 1
        return current + 1

    def snapshot(self) -> Dict[str, int]:
        # Return a shallow copy to avoid accidental mutation during iteration.
        return dict(self._nonces)
