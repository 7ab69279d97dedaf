from .apps import ForwarderServer
from .security import generate_token, verify_token, create_private_key, save_key_to_env

__all__ = [
    "ForwarderServer",
    "generate_token",
    "verify_token",
    "create_private_key",
    "save_key_to_env"
]
