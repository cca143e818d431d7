"""
Solana Block Structure

A block as an RPC node describes it (getBlock):
- Block metadata: slot, blockhash, parent slot, block time and height
- An ordered list of transactions; list order is execution order
- Per-transaction status metadata, including the accounts a v0
  transaction loaded through address lookup tables

Transactions stay in their encoded form until the inspector walks them,
so a decoding problem surfaces as part of the single inspection pass.
"""

import base64
import binascii
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

import base58

from ..errors import MalformedBlockError, TransactionDecodeError
from .transactions import SolanaTransaction


@dataclass
class LoadedAddresses:
    """Accounts loaded from lookup tables, still as base58 strings."""
    writable: List[str] = field(default_factory=list)
    readonly: List[str] = field(default_factory=list)

    @classmethod
    def from_rpc(cls, data: Dict[str, Any]) -> 'LoadedAddresses':
        if not isinstance(data, dict):
            raise MalformedBlockError("Transaction loaded addresses are not an object")
        for key in ("writable", "readonly"):
            if not isinstance(data.get(key) or [], list):
                raise MalformedBlockError(f"Transaction loaded {key} addresses are not a list")
        return cls(
            writable=list(data.get("writable") or []),
            readonly=list(data.get("readonly") or []),
        )


@dataclass
class TransactionMeta:
    """
    Status metadata for one transaction in a block.

    loaded_addresses is None when the node did not report it, which
    happens when the request did not ask for full transaction detail.
    """
    err: Optional[Any] = None
    fee: int = 0
    compute_units_consumed: Optional[int] = None
    loaded_addresses: Optional[LoadedAddresses] = None

    @classmethod
    def from_rpc(cls, data: Dict[str, Any]) -> 'TransactionMeta':
        if not isinstance(data, dict):
            raise MalformedBlockError("Transaction metadata is not an object")
        loaded = data.get("loadedAddresses")
        return cls(
            err=data.get("err"),
            fee=data.get("fee", 0),
            compute_units_consumed=data.get("computeUnitsConsumed"),
            loaded_addresses=LoadedAddresses.from_rpc(loaded) if loaded is not None else None,
        )

    @property
    def success(self) -> bool:
        return self.err is None


EncodedTransaction = Union[str, List[str]]


@dataclass
class BlockTransaction:
    """
    One entry of a block's transaction list.

    encoded is either a bare base58 string (encoding="binary") or a
    [data, encoding] pair for base58/base64.
    """
    encoded: EncodedTransaction
    meta: Optional[TransactionMeta] = None
    version: Optional[Union[int, str]] = None

    @classmethod
    def from_rpc(cls, data: Dict[str, Any]) -> 'BlockTransaction':
        if not isinstance(data, dict):
            raise MalformedBlockError(f"Block transaction entry is not an object: {data!r}")
        meta = data.get("meta")
        return cls(
            encoded=data.get("transaction"),
            meta=TransactionMeta.from_rpc(meta) if meta is not None else None,
            version=data.get("version"),
        )

    def raw_bytes(self) -> bytes:
        """Undo the RPC text encoding."""
        encoded = self.encoded
        if isinstance(encoded, str):
            data, encoding = encoded, "base58"
        elif isinstance(encoded, (list, tuple)) and len(encoded) == 2:
            data, encoding = encoded
        else:
            raise TransactionDecodeError("Failed to decode transaction: not a binary encoding")

        try:
            if encoding == "base58":
                return base58.b58decode(data)
            if encoding == "base64":
                return base64.b64decode(data, validate=True)
        except (ValueError, binascii.Error) as e:
            raise TransactionDecodeError(f"Failed to decode transaction: {e}")
        raise TransactionDecodeError(f"Failed to decode transaction: unsupported encoding {encoding!r}")

    def decode(self) -> SolanaTransaction:
        """Decode the wire-format transaction this entry carries."""
        return SolanaTransaction.from_bytes(self.raw_bytes())


@dataclass
class ConfirmedBlock:
    """
    A block fetched at a given slot.

    transactions is None when the node returned no transaction list,
    which only happens with a misconfigured request.
    """
    slot: int
    blockhash: str = ""
    previous_blockhash: str = ""
    parent_slot: int = 0
    block_time: Optional[int] = None
    block_height: Optional[int] = None
    transactions: Optional[List[BlockTransaction]] = None

    @classmethod
    def from_rpc(cls, slot: int, data: Dict[str, Any]) -> 'ConfirmedBlock':
        if not isinstance(data, dict):
            raise MalformedBlockError(f"Block at slot {slot} is not an object, something is misconfigured")
        transactions = data.get("transactions")
        if transactions is not None and not isinstance(transactions, list):
            raise MalformedBlockError(f"Block at slot {slot} has a transaction list that is not a list")
        return cls(
            slot=slot,
            blockhash=data.get("blockhash", ""),
            previous_blockhash=data.get("previousBlockhash", ""),
            parent_slot=data.get("parentSlot", 0),
            block_time=data.get("blockTime"),
            block_height=data.get("blockHeight"),
            transactions=(
                [BlockTransaction.from_rpc(tx) for tx in transactions]
                if transactions is not None else None
            ),
        )

    @property
    def transaction_count(self) -> int:
        return len(self.transactions or [])
