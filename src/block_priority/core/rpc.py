"""
Solana JSON-RPC Block Source

Fetches a single block over HTTP with getBlock. There is exactly one
request per run: no retries, no pagination. Anything short of a usable
block object is a BlockFetchError carrying the slot.

Based on: https://solana.com/docs/rpc/http/getblock
"""

import itertools
from typing import Any, Dict, Optional

import requests

from ..config import CONFIG, InspectorConfig
from ..errors import BlockFetchError
from .blocks import ConfirmedBlock


class RpcClient:
    """Minimal JSON-RPC client for the block endpoint."""

    def __init__(self, config: InspectorConfig = CONFIG,
                 session: Optional[requests.Session] = None):
        self.config = config
        self.session = session or requests.Session()
        self._request_ids = itertools.count(1)

    def __enter__(self) -> 'RpcClient':
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self.session.close()

    def block_config(self) -> Dict[str, Any]:
        """getBlock options: full transactions, binary encoding, no rewards."""
        return {
            "encoding": self.config.encoding,
            "transactionDetails": self.config.transaction_details,
            "rewards": self.config.include_rewards,
            "commitment": self.config.commitment,
            "maxSupportedTransactionVersion": self.config.max_supported_transaction_version,
        }

    def call(self, slot: int, method: str, params: list) -> Any:
        """Send one JSON-RPC request and return its result field."""
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._request_ids),
            "method": method,
            "params": params,
        }
        try:
            response = self.session.post(
                self.config.rpc_url,
                json=payload,
                timeout=self.config.request_timeout,
            )
            response.raise_for_status()
            body = response.json()
        except requests.RequestException as e:
            raise BlockFetchError(slot, str(e))
        except ValueError as e:
            raise BlockFetchError(slot, f"invalid JSON response: {e}")

        if not isinstance(body, dict):
            raise BlockFetchError(slot, "response is not a JSON-RPC object")

        error = body.get("error")
        if error is not None:
            if isinstance(error, dict):
                raise BlockFetchError(
                    slot, f"RPC response error {error.get('code')}: {error.get('message')}"
                )
            raise BlockFetchError(slot, f"RPC response error: {error}")

        if "result" not in body:
            raise BlockFetchError(slot, "response has neither result nor error")
        return body["result"]

    def get_block(self, slot: int) -> ConfirmedBlock:
        """Fetch the block produced at slot."""
        if slot < 0:
            raise BlockFetchError(slot, "slot must be non-negative")
        result = self.call(slot, "getBlock", [slot, self.block_config()])
        if result is None:
            raise BlockFetchError(slot, "block not available")
        return ConfirmedBlock.from_rpc(slot, result)
