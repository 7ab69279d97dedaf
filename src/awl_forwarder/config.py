"""
Forwarder configuration.

Settings are read from the process environment, optionally seeded from a
``.env`` file through python-dotenv. Variables already present in the
environment win over the file.

    FORWARDER_NAME           EIP-712 domain name        (default AwlForwarder)
    FORWARDER_VERSION        EIP-712 domain version     (default 1)
    FORWARDER_CHAIN_ID       chain id                   (required)
    FORWARDER_ADDRESS        verifying contract         (required)
    FORWARDER_OWNER          owner address              (required)
    FORWARDER_APPEND_SENDER  ERC-2771 sender suffix     (default true)
    FORWARDER_RPC_URL        EVM node for ChainDispatcher
    RELAYER_PRIVATE_KEY      hot wallet for ChainDispatcher
    ACCESS_TOKEN_KEY         HMAC key of the HTTP access tokens
    ACCESS_TOKEN_EXPIRES_IN  token lifetime in seconds  (default 3600)
    LOG_LEVEL                logging level              (default INFO)
"""

import os
from typing import Any, Dict, Mapping, Optional

import dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .adapters.bases import CallDispatcher
from .adapters.chain import ChainDispatcher
from .adapters.evm.constants import DEFAULT_DOMAIN_NAME, DEFAULT_DOMAIN_VERSION
from .adapters.evm.standards import EIP712Domain
from .adapters.local import LocalDispatcher
from .engine.events import EventBus
from .engine.exceptions import ConfigurationError
from .engine.forwarder import ForwarderEngine
from .schemas.bases import Address

ENV_FIELDS: Dict[str, str] = {
    "FORWARDER_NAME": "name",
    "FORWARDER_VERSION": "version",
    "FORWARDER_CHAIN_ID": "chain_id",
    "FORWARDER_ADDRESS": "verifying_contract",
    "FORWARDER_OWNER": "owner",
    "FORWARDER_APPEND_SENDER": "append_sender",
    "FORWARDER_RPC_URL": "rpc_url",
    "RELAYER_PRIVATE_KEY": "relayer_private_key",
    "ACCESS_TOKEN_KEY": "access_token_key",
    "ACCESS_TOKEN_EXPIRES_IN": "token_expires_in",
    "LOG_LEVEL": "log_level",
}

REQUIRED_ENV = ("FORWARDER_CHAIN_ID", "FORWARDER_ADDRESS", "FORWARDER_OWNER")


class ForwarderSettings(BaseModel):
    """
    Deployment settings of one forwarder instance.

    Example::

        settings = ForwarderSettings.from_env(".env")
        engine = settings.build_engine()
    """

    model_config = ConfigDict(frozen=True)

    name: str = DEFAULT_DOMAIN_NAME
    version: str = DEFAULT_DOMAIN_VERSION
    chain_id: int = Field(..., gt=0)
    verifying_contract: Address
    owner: Address
    append_sender: bool = True
    rpc_url: Optional[str] = None
    relayer_private_key: Optional[str] = Field(default=None, repr=False)
    access_token_key: Optional[str] = Field(default=None, repr=False)
    token_expires_in: int = Field(default=3600, gt=0)
    log_level: str = "INFO"

    @classmethod
    def from_env(
        cls,
        env_file: Optional[str] = None,
        *,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "ForwarderSettings":
        """
        Load settings from the environment.

        Args:
            env_file: ``.env`` file to load first. ``None`` lets python-dotenv
                search for one from the current directory.
            environ: Mapping used instead of ``os.environ`` (no file loading).

        Raises:
            ConfigurationError: If a required variable is missing or a value
                is invalid.
        """
        if environ is None:
            dotenv.load_dotenv(env_file, override=False)
            environ = os.environ

        missing = [key for key in REQUIRED_ENV if not environ.get(key)]
        if missing:
            raise ConfigurationError(
                f"missing required environment variables: {', '.join(missing)}",
                missing=missing,
            )

        values: Dict[str, Any] = {
            field: environ[key]
            for key, field in ENV_FIELDS.items()
            if environ.get(key) not in (None, "")
        }
        try:
            return cls(**values)
        except ValidationError as exc:
            raise ConfigurationError(f"invalid forwarder configuration: {exc}") from exc

    def domain(self) -> EIP712Domain:
        return EIP712Domain(
            name=self.name,
            version=self.version,
            chainId=self.chain_id,
            verifyingContract=self.verifying_contract,
        )

    def build_dispatcher(self) -> CallDispatcher:
        """``ChainDispatcher`` when a node and a relayer key are configured, else ``LocalDispatcher``."""
        if self.rpc_url and self.relayer_private_key:
            return ChainDispatcher(self.relayer_private_key, self.rpc_url)
        if self.rpc_url or self.relayer_private_key:
            raise ConfigurationError("FORWARDER_RPC_URL and RELAYER_PRIVATE_KEY must be set together")
        return LocalDispatcher()

    def build_engine(
        self,
        dispatcher: Optional[CallDispatcher] = None,
        event_bus: Optional[EventBus] = None,
    ) -> ForwarderEngine:
        return ForwarderEngine(
            self.domain(),
            self.owner,
            dispatcher or self.build_dispatcher(),
            event_bus=event_bus,
            append_sender=self.append_sender,
        )
