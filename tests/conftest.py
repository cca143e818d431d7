"""Shared fixtures: signed transactions and getBlock-shaped responses."""

from typing import Iterable, List, Optional

import base58
import pytest

from block_priority.core.accounts import AccountMeta, COMPUTE_BUDGET_PROGRAM_ID, Pubkey
from block_priority.core.blocks import ConfirmedBlock
from block_priority.core.transactions import (
    Instruction,
    SolanaTransaction,
    TransactionBuilder,
    generate_keypair,
    sign_transaction,
)
from block_priority.priority.compute_budget import set_compute_unit_price

DUMMY_PROGRAM_ID = Pubkey(bytes([7]) * 32)


def account(n: int) -> Pubkey:
    """A deterministic non-signer account address."""
    return Pubkey(bytes([n]) + bytes(30) + bytes([n]))


def make_transaction(payer_seed: int, priority: Optional[int] = None,
                     writes: Iterable[Pubkey] = (), reads: Iterable[Pubkey] = (),
                     lookups: Optional[list] = None) -> SolanaTransaction:
    """
    A signed transaction from its own fee payer.

    Every payer is distinct, so the only shared accounts are the ones
    passed in plus the (readonly) program ids.
    """
    signing_key, payer = generate_keypair(bytes([payer_seed]) * 32)
    builder = TransactionBuilder(payer)

    if priority is not None:
        builder.add_instruction(
            Instruction(COMPUTE_BUDGET_PROGRAM_ID, [], set_compute_unit_price(priority))
        )

    metas = [AccountMeta(key, is_signer=False, is_writable=True) for key in writes]
    metas += [AccountMeta(key, is_signer=False, is_writable=False) for key in reads]
    builder.add_instruction(Instruction(DUMMY_PROGRAM_ID, metas, b"\x01"))

    for table, writable_indexes, readonly_indexes in lookups or []:
        builder.add_lookup(table, writable_indexes, readonly_indexes)

    return sign_transaction(builder.build(), [signing_key])


def rpc_entry(transaction: SolanaTransaction, loaded_writable: List[str] = (),
              loaded_readonly: List[str] = (), meta: bool = True) -> dict:
    entry = {
        "transaction": base58.b58encode(transaction.serialize()).decode(),
        "version": transaction.message.version if transaction.message.version is not None else "legacy",
    }
    if meta:
        entry["meta"] = {
            "err": None,
            "fee": 5000,
            "loadedAddresses": {
                "writable": list(loaded_writable),
                "readonly": list(loaded_readonly),
            },
        }
    return entry


def rpc_block(entries: List[dict]) -> dict:
    return {
        "blockhash": "11111111111111111111111111111111",
        "previousBlockhash": "11111111111111111111111111111111",
        "parentSlot": 99,
        "blockTime": 1_700_000_000,
        "blockHeight": 90,
        "transactions": entries,
    }


def block_of(transactions: List[SolanaTransaction], slot: int = 100) -> ConfirmedBlock:
    return ConfirmedBlock.from_rpc(slot, rpc_block([rpc_entry(tx) for tx in transactions]))


@pytest.fixture
def account_a() -> Pubkey:
    return account(1)


@pytest.fixture
def account_b() -> Pubkey:
    return account(2)
