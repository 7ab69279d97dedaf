"""
Forwarder engine: nonce ledger, relayer registry, lifecycle guard, ownership,
events and the ``ForwarderEngine`` that orchestrates them.

Import the components from their modules; this package module stays empty
so that adapters can import ``engine.exceptions`` without pulling in the
engine itself.
"""
