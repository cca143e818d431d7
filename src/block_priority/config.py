"""
Inspector Configuration

Defaults for talking to a Solana RPC node. The values mirror what the
inspection needs from getBlock: full transaction detail, binary (base58)
encoding, confirmed commitment and v0 transaction support.
"""

import os
from dataclasses import dataclass, replace
from typing import Optional

from .errors import ConfigError

MAINNET_RPC_URL = "https://api.mainnet-beta.solana.com"


@dataclass(frozen=True)
class InspectorConfig:
    rpc_url: str = MAINNET_RPC_URL
    commitment: str = "confirmed"
    encoding: str = "binary"
    transaction_details: str = "full"
    include_rewards: bool = False
    max_supported_transaction_version: int = 0
    # Seconds; a slow response is still a retrieval failure, never retried.
    request_timeout: float = 30.0

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> 'InspectorConfig':
        """Build a config from SOLANA_RPC_URL / SOLANA_RPC_TIMEOUT."""
        environ = os.environ if environ is None else environ
        config = cls()

        url = environ.get("SOLANA_RPC_URL")
        if url:
            config = replace(config, rpc_url=url)

        timeout = environ.get("SOLANA_RPC_TIMEOUT")
        if timeout:
            try:
                config = replace(config, request_timeout=float(timeout))
            except ValueError:
                raise ConfigError(f"SOLANA_RPC_TIMEOUT must be a number, got {timeout!r}")

        return config

    def with_url(self, rpc_url: Optional[str]) -> 'InspectorConfig':
        """Return a copy pointing at another endpoint (None keeps this one)."""
        if not rpc_url:
            return self
        return replace(self, rpc_url=rpc_url)


CONFIG = InspectorConfig()
