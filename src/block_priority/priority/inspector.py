"""
Block Priority Inspection

The single pass over a block: decode each transaction, work out its
priority and the accounts it writes and reads, and feed them to the
access tracker in block order. Any problem with any transaction aborts
the whole pass, so a report only exists for a block that was fully
understood.
"""

import sys
from dataclasses import dataclass
from typing import List

from ..core.accounts import Pubkey, Signature
from ..core.blocks import BlockTransaction, ConfirmedBlock
from ..errors import MalformedBlockError
from .access_tracker import AccessTracker
from .compute_budget import resolve_priority
from .reporter import ViolationReport


@dataclass
class TransactionAccess:
    """What the tracker needs to know about one transaction."""
    signature: Signature
    priority: int
    writable_accounts: List[Pubkey]
    readonly_accounts: List[Pubkey]


def parse_addresses(addresses: List[str]) -> List[Pubkey]:
    return [Pubkey.from_string(address) for address in addresses]


def transaction_access(entry: BlockTransaction) -> TransactionAccess:
    """
    Resolve one block entry into its signature, priority and accounts.

    Static keys come first, split by the message header, followed by
    the accounts the node reports as loaded from lookup tables.
    """
    if entry.meta is None:
        raise MalformedBlockError("Transactions do not have metadata, something is misconfigured")
    loaded = entry.meta.loaded_addresses
    if loaded is None:
        raise MalformedBlockError(
            "Transactions do not have loaded addresses, something is misconfigured"
        )

    transaction = entry.decode()
    transaction.sanitize()
    message = transaction.message

    priority = resolve_priority(
        (program_id, instruction.data)
        for program_id, instruction in message.program_instructions()
    )

    writable, readonly = message.resolve_accounts(
        parse_addresses(loaded.writable), parse_addresses(loaded.readonly)
    )
    return TransactionAccess(
        signature=transaction.signature,
        priority=priority,
        writable_accounts=writable,
        readonly_accounts=readonly,
    )


class BlockInspector:
    """Runs the priority check over one block at a time."""

    def __init__(self, verbose: bool = False):
        self.verbose = verbose

    def log(self, message: str) -> None:
        if self.verbose:
            print(message, file=sys.stderr)

    def inspect(self, block: ConfirmedBlock) -> ViolationReport:
        if block.transactions is None:
            raise MalformedBlockError("Block does not have transactions, something is misconfigured")

        self.log(f"🔍 Inspecting {block.transaction_count} transactions in slot {block.slot}")

        tracker = AccessTracker()
        for position, entry in enumerate(block.transactions):
            access = transaction_access(entry)
            if tracker.process_transaction(
                access.signature,
                access.priority,
                access.writable_accounts,
                access.readonly_accounts,
            ):
                self.log(f"⚠️  Transaction {position} ({access.signature}) "
                         f"at priority {access.priority} violates ordering")

        report = ViolationReport.from_tracker(block.slot, block.transaction_count, tracker)
        self.log(f"✅ Inspection done: {report.violation_count} violations on "
                 f"{report.account_count} accounts")
        return report


def inspect_block(block: ConfirmedBlock, verbose: bool = False) -> ViolationReport:
    """Check one block and report its priority violations."""
    return BlockInspector(verbose=verbose).inspect(block)
