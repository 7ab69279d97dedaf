from .bases import CallDispatcher
from .local import CallContext, LocalDispatcher, Revert
from .chain import ChainDispatcher

__all__ = [
    "CallDispatcher",
    "CallContext",
    "LocalDispatcher",
    "Revert",
    "ChainDispatcher",
]
