"""
Forwarder Relay Client

httpx-based client for ``ForwarderServer``. Signers use it to look up their
nonce and dry-run signatures; relayers and the owner use it with a bearer
access token to submit requests and administer the forwarder.
"""

from typing import Any, Dict, Optional, Union

import httpx

from ..adapters.evm.schemas import ECDSASignature, ForwardRequest, signature_to_bytes
from ..adapters.evm.signatures import build_forward_request, sign_forward_request
from ..adapters.evm.standards import EIP712Domain
from ..schemas.https import (
    AdminResponse,
    ExecuteResponse,
    KillResponse,
    NonceResponse,
    StatusResponse,
    VerifyResponse,
)

SignatureLike = Union[bytes, str, ECDSASignature]


class ForwarderClient(httpx.AsyncClient):
    """
    Extended httpx.AsyncClient speaking the forwarder relay API.

    Every helper raises ``httpx.HTTPStatusError`` on a non-2xx response; the
    JSON body of an error carries ``{"error": <exception name>, "detail": ...}``.

    Usage:
        ```python
        async with ForwarderClient(base_url="http://localhost:8000", access_token=token) as client:
            nonce = await client.get_nonce(signer)
            result = await client.execute(request, signature)
        ```
    """

    def __init__(self, access_token: Optional[str] = None, **kwargs):
        """
        Args:
            access_token: Bearer token for ``/execute`` and ``/admin`` calls.
            **kwargs: All standard httpx.AsyncClient arguments (base_url, transport, timeout...)
        """
        super().__init__(**kwargs)
        self.access_token = access_token

    # =========================================================================
    # Relay
    # =========================================================================

    async def status(self) -> StatusResponse:
        response = await self.get("/status")
        return StatusResponse.model_validate(self._checked(response))

    async def get_nonce(self, address: str) -> int:
        response = await self.get(f"/nonce/{address}")
        return NonceResponse.model_validate(self._checked(response)).nonce

    async def verify(self, request: ForwardRequest, signature: SignatureLike) -> bool:
        response = await self.post("/verify", json=self._relay_body(request, signature))
        return VerifyResponse.model_validate(self._checked(response)).valid

    async def execute(
        self,
        request: ForwardRequest,
        signature: SignatureLike,
        attached_value: int = 0,
    ) -> ExecuteResponse:
        body = self._relay_body(request, signature)
        body["attached_value"] = attached_value
        response = await self.post("/execute", json=body, headers=self._auth_headers())
        return ExecuteResponse.model_validate(self._checked(response))

    async def sign_and_execute(
        self,
        *,
        private_key: str,
        domain: EIP712Domain,
        sender: str,
        to: str,
        data: bytes = b"",
        value: int = 0,
        gas: Optional[int] = None,
        attached_value: int = 0,
    ) -> ExecuteResponse:
        """
        Fetch the signer's nonce, build and sign the request, then relay it.

        ``private_key`` is the signer's key; the relayer is identified by the
        client's access token.
        """
        nonce = await self.get_nonce(sender)
        request = build_forward_request(
            sender=sender,
            to=to,
            nonce=nonce,
            data=data,
            value=value,
            gas=gas,
        )
        signature = sign_forward_request(private_key=private_key, domain=domain, request=request)
        return await self.execute(request, signature, attached_value=attached_value)

    # =========================================================================
    # Administration (owner token)
    # =========================================================================

    async def add_relayer(self, address: str) -> AdminResponse:
        response = await self.post("/admin/whitelist", json={"address": address}, headers=self._auth_headers())
        return AdminResponse.model_validate(self._checked(response))

    async def remove_relayer(self, address: str) -> AdminResponse:
        response = await self.delete(f"/admin/whitelist/{address}", headers=self._auth_headers())
        return AdminResponse.model_validate(self._checked(response))

    async def pause(self) -> AdminResponse:
        response = await self.post("/admin/pause", headers=self._auth_headers())
        return AdminResponse.model_validate(self._checked(response))

    async def unpause(self) -> AdminResponse:
        response = await self.post("/admin/unpause", headers=self._auth_headers())
        return AdminResponse.model_validate(self._checked(response))

    async def transfer_ownership(self, new_owner: str) -> AdminResponse:
        response = await self.post("/admin/owner", json={"new_owner": new_owner}, headers=self._auth_headers())
        return AdminResponse.model_validate(self._checked(response))

    async def kill(self, recipient: str) -> KillResponse:
        response = await self.post("/admin/kill", json={"recipient": recipient}, headers=self._auth_headers())
        return KillResponse.model_validate(self._checked(response))

    # =========================================================================
    # Utility Methods
    # =========================================================================

    @staticmethod
    def _relay_body(request: ForwardRequest, signature: SignatureLike) -> Dict[str, Any]:
        return {
            "request": request.to_dict(),
            "signature": "0x" + signature_to_bytes(signature).hex(),
        }

    def _auth_headers(self) -> Dict[str, str]:
        if self.access_token:
            return {"Authorization": f"Bearer {self.access_token}"}
        return {}

    @staticmethod
    def _checked(response: httpx.Response) -> Dict[str, Any]:
        response.raise_for_status()
        return response.json()
