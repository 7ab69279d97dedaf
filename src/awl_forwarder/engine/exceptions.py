"""
Exception and Error Definitions Module

Defines the exception hierarchy raised by the forwarder engine and its
components. Every exception inherits from ForwarderError so that callers
(and the HTTP layer) can handle the whole family in one place.

Exception Hierarchy:
    ForwarderError (root)
    ├── AuthorizationError
    │   ├── Unauthorized
    │   └── NotWhitelisted
    ├── RegistryError
    │   └── AlreadyWhitelisted
    ├── LifecycleError
    │   ├── Paused
    │   ├── AlreadyPaused
    │   ├── NotPaused
    │   └── Killed (also a Paused, AlreadyPaused and NotPaused)
    ├── VerificationError
    │   ├── SignatureMismatch
    │   ├── RecoveryFailure
    │   └── NonceMismatch
    ├── DirectTransferRejected
    ├── InvalidAddress
    ├── ConfigurationError
    └── TokenError
        ├── InvalidTokenError
        └── TokenExpiredError
"""

from typing import Any


class ForwarderError(Exception):
    """
    Root exception class for all forwarder exceptions.

    Keyword arguments passed to the constructor are kept as attributes so
    handlers can inspect the context (``caller``, ``signer``, ``state``...)
    without parsing the message.
    """

    def __init__(self, message: str = "", **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context
        for key, value in context.items():
            setattr(self, key, value)


# ==================== Authorization ====================

class AuthorizationError(ForwarderError):
    """Base exception for callers lacking the right to perform an operation."""
    pass


class Unauthorized(AuthorizationError):
    """
    Raised when an owner-only operation is invoked by another address.

    Attributes:
        caller: Address that attempted the operation
    """
    pass


class NotWhitelisted(AuthorizationError):
    """
    Raised when ``execute`` is submitted by a relayer that is not whitelisted.

    Attributes:
        caller: Submitting address
    """
    pass


# ==================== Registry ====================

class RegistryError(ForwarderError):
    """Base exception for relayer registry administration errors."""
    pass


class AlreadyWhitelisted(RegistryError):
    """
    Raised when adding a relayer that is already present.

    Removal of an absent relayer is a no-op and has no counterpart.

    Attributes:
        relayer: Address that was already whitelisted
    """
    pass


# ==================== Lifecycle ====================

class LifecycleError(ForwarderError):
    """
    Base exception for operations rejected by the lifecycle guard.

    Attributes:
        state: Lifecycle state at the time of the rejection
    """
    pass


class Paused(LifecycleError):
    """Raised when a guarded operation is attempted while paused."""
    pass


class AlreadyPaused(LifecycleError):
    """Raised by ``pause`` when the forwarder is already paused."""
    pass


class NotPaused(LifecycleError):
    """Raised by ``unpause`` when the forwarder is not paused."""
    pass


class Killed(Paused, AlreadyPaused, NotPaused):
    """
    Raised by every state-changing operation once the forwarder is killed.

    A killed forwarder is permanently paused, so handlers written for
    ``Paused``, ``AlreadyPaused`` or ``NotPaused`` also catch it.
    """
    pass


# ==================== Verification ====================

class VerificationError(ForwarderError):
    """Base exception for request authentication failures."""
    pass


class SignatureMismatch(VerificationError):
    """
    Raised by ``execute`` when ``verify`` returns False.

    Covers a wrong signer, a stale or future nonce, any tampered field and
    malformed signature bytes alike.

    Attributes:
        signer: ``request.from`` of the rejected request
        nonce: ``request.nonce`` of the rejected request
    """
    pass


class RecoveryFailure(VerificationError):
    """
    Raised when signature bytes are not a structurally valid recoverable
    signature (length, recovery id, r/s range, upper-half s).

    Only surfaces from ``SignatureVerifier.recover``; the engine folds it
    into a False verification result.
    """
    pass


class NonceMismatch(VerificationError):
    """
    Raised by ``NonceLedger.advance`` when the expected nonce is not current.

    Attributes:
        signer: Address whose nonce was checked
        expected: Nonce supplied by the caller
        current: Nonce held by the ledger
    """
    pass


# ==================== Misc ====================

class DirectTransferRejected(ForwarderError):
    """Raised when value is sent to the forwarder outside ``execute``."""
    pass


class InvalidAddress(ForwarderError, ValueError):
    """Raised when an administrative operation receives an unusable address."""
    pass


class ConfigurationError(ForwarderError):
    """
    Raised when configuration is missing or invalid.

    This includes scenarios such as:
    - Missing required environment variables
    - Invalid chain id or contract address
    - Chain dispatcher used without RPC URL or relayer key
    """
    pass


# ==================== Access Tokens ====================

class TokenError(ForwarderError):
    """Base exception for HTTP access token problems."""
    pass


class InvalidTokenError(TokenError):
    """Raised when a token is malformed or its signature does not verify."""
    pass


class TokenExpiredError(TokenError):
    """Raised when a token is past its expiry time."""
    pass
