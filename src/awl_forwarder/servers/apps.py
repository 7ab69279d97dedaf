"""
Forwarder Relay Server - FastAPI wrapper around one ``ForwarderEngine``.

Exposes the relay surface (nonce lookup, verify, execute) and the owner
administration surface over HTTP. Engine exceptions are mapped to status
codes by a single exception handler; the engine itself decides who may do
what, the server only authenticates the caller address.
"""

import logging
from typing import Callable, Optional, Tuple, Type

from fastapi import Depends, FastAPI, Header, Request
from fastapi.responses import JSONResponse

from ..config import ForwarderSettings
from ..adapters.bases import CallDispatcher
from ..engine.events import BaseEvent
from ..engine.exceptions import (
    AuthorizationError,
    ConfigurationError,
    DirectTransferRejected,
    ForwarderError,
    InvalidAddress,
    LifecycleError,
    RegistryError,
    TokenError,
    VerificationError,
)
from ..engine.forwarder import ForwarderEngine
from ..engine.ownership import checked_address
from ..schemas.https import (
    AdminResponse,
    ExecuteRequest,
    ExecuteResponse,
    KillRequest,
    KillResponse,
    NonceResponse,
    OwnershipRequest,
    StatusResponse,
    VerifyRequest,
    VerifyResponse,
    WhitelistRequest,
)
from .security import caller_from_authorization

logger = logging.getLogger(__name__)

# Checked in order; the first matching class decides the status code.
ERROR_STATUS: Tuple[Tuple[Type[ForwarderError], int], ...] = (
    (TokenError, 401),
    (AuthorizationError, 403),
    (LifecycleError, 409),
    (RegistryError, 409),
    (VerificationError, 400),
    (InvalidAddress, 422),
    (DirectTransferRejected, 405),
)


def status_for(exc: ForwarderError) -> int:
    for error_class, status_code in ERROR_STATUS:
        if isinstance(exc, error_class):
            return status_code
    return 500


class ForwarderServer(FastAPI):
    """FastAPI server relaying signed forward requests through one engine."""

    def __init__(
        self,
        engine: ForwarderEngine,
        token_key: str,
        **fastapi_kwargs
    ):
        """Initialize the relay server.

        Args:
            engine: Forwarder engine served by this app.
            token_key: Secret key verifying bearer access tokens.
            **fastapi_kwargs: FastAPI arguments (title, version, etc.)
        """
        if not token_key:
            raise ConfigurationError("access token key is required")

        self.engine = engine
        self.token_key = token_key

        super().__init__(**fastapi_kwargs)

        self.add_exception_handler(ForwarderError, self._handle_forwarder_error)
        self._setup_relay_endpoints()
        self._setup_admin_endpoints()

    @classmethod
    def from_settings(
        cls,
        settings: ForwarderSettings,
        dispatcher: Optional[CallDispatcher] = None,
        **fastapi_kwargs
    ) -> "ForwarderServer":
        if not settings.access_token_key:
            raise ConfigurationError("ACCESS_TOKEN_KEY is required to serve the relay API")
        return cls(
            settings.build_engine(dispatcher),
            settings.access_token_key,
            **fastapi_kwargs
        )

    def subscribe(self, event_class: Type[BaseEvent], handler: Callable) -> None:
        """Register an async event handler on the engine's event bus.

        Example:
            ```python
            async def index_relay(event: RelayResultEvent):
                await store.save(event.to_dict())

            app.subscribe(RelayResultEvent, index_relay)
            ```
        """
        self.engine.event_bus.subscribe(event_class, handler)

    def hook(self, event_class: Type[BaseEvent]) -> Callable:
        """Decorator for registering event hooks.

        Example:
            @app.hook(KilledEvent)
            async def on_killed(event):
                await notify_operators(event)
        """
        def decorator(hook_func: Callable) -> Callable:
            self.engine.event_bus.hook(event_class, hook_func)
            return hook_func
        return decorator

    async def _handle_forwarder_error(self, request: Request, exc: ForwarderError) -> JSONResponse:
        status_code = status_for(exc)
        if status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc!r}")
        return JSONResponse(
            status_code=status_code,
            content={"error": type(exc).__name__, "detail": str(exc)},
        )

    def _caller_dependency(self) -> Callable:
        async def authenticated_caller(authorization: Optional[str] = Header(None)) -> str:
            return caller_from_authorization(authorization, self.token_key)
        return authenticated_caller

    def _setup_relay_endpoints(self) -> None:
        engine = self.engine
        caller_dependency = self._caller_dependency()

        @self.get("/status", response_model=StatusResponse)
        async def forwarder_status() -> StatusResponse:
            return StatusResponse(
                state=engine.state.value,
                owner=engine.owner,
                forwarder=engine.address,
                balance=engine.balance,
                domain=engine.domain.to_dict(),
                relayers=engine.relayers(),
            )

        @self.get("/nonce/{address}", response_model=NonceResponse)
        async def nonce(address: str) -> NonceResponse:
            address = checked_address(address)
            return NonceResponse(address=address, nonce=engine.get_nonce(address))

        @self.post("/verify", response_model=VerifyResponse)
        async def verify(body: VerifyRequest) -> VerifyResponse:
            return VerifyResponse(
                valid=engine.verify(body.request, body.signature),
                digest=engine.digest(body.request),
            )

        @self.post("/execute", response_model=ExecuteResponse)
        async def execute(body: ExecuteRequest, caller: str = Depends(caller_dependency)) -> ExecuteResponse:
            result = await engine.execute(
                body.request,
                body.signature,
                caller=caller,
                attached_value=body.attached_value,
            )
            return ExecuteResponse(
                success=result.success,
                return_data=result.return_data,
                signer=body.request.from_,
                target=body.request.to,
                nonce=body.request.nonce,
            )

    def _setup_admin_endpoints(self) -> None:
        engine = self.engine
        caller_dependency = self._caller_dependency()

        def acknowledge() -> AdminResponse:
            return AdminResponse(state=engine.state.value)

        @self.post("/admin/whitelist", response_model=AdminResponse)
        async def add_relayer(body: WhitelistRequest, caller: str = Depends(caller_dependency)) -> AdminResponse:
            await engine.add_sender_to_whitelist(body.address, caller=caller)
            return acknowledge()

        @self.delete("/admin/whitelist/{address}", response_model=AdminResponse)
        async def remove_relayer(address: str, caller: str = Depends(caller_dependency)) -> AdminResponse:
            await engine.remove_sender_from_whitelist(address, caller=caller)
            return acknowledge()

        @self.post("/admin/pause", response_model=AdminResponse)
        async def pause(caller: str = Depends(caller_dependency)) -> AdminResponse:
            await engine.pause(caller=caller)
            return acknowledge()

        @self.post("/admin/unpause", response_model=AdminResponse)
        async def unpause(caller: str = Depends(caller_dependency)) -> AdminResponse:
            await engine.unpause(caller=caller)
            return acknowledge()

        @self.post("/admin/owner", response_model=AdminResponse)
        async def transfer_ownership(body: OwnershipRequest, caller: str = Depends(caller_dependency)) -> AdminResponse:
            await engine.transfer_ownership(body.new_owner, caller=caller)
            return acknowledge()

        @self.post("/admin/kill", response_model=KillResponse)
        async def kill(body: KillRequest, caller: str = Depends(caller_dependency)) -> KillResponse:
            amount = await engine.kill(body.recipient, caller=caller)
            return KillResponse(recipient=body.recipient, amount=amount)
