"""
Client module for the forwarder relay API.

Provides an httpx-based client for nonce lookup, signature dry-runs,
request submission and owner administration.
"""

from .http_client import ForwarderClient

__all__ = ["ForwarderClient"]
