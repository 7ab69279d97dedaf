from .bases import CanonicalModel, Address, HexData, Uint256, UINT256_MAX, normalize_address

__all__ = [
    "CanonicalModel",
    "Address",
    "HexData",
    "Uint256",
    "UINT256_MAX",
    "normalize_address",
]
