"""
Per-Account Access Tracking

Walks a block's transactions in execution order and remembers, for every
account, who touched it last and with what priority. A touch is a
violation when a higher-priority transaction conflicts with an access a
lower-priority transaction already made:

- write after any access (write-write, read-then-write)
- read after a write

Reads after reads never conflict. Within one transaction all writes are
applied before any read, so a transaction's reads see its own writes.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, NamedTuple, Optional

from ..core.accounts import Pubkey, Signature


class AccessKind(Enum):
    READ = "read"
    WRITE = "write"


@dataclass
class AccessRecord:
    """The most recent access to one account."""
    last_access: AccessKind
    priority: int


class ViolationEntry(NamedTuple):
    """An access by new_priority after a conflicting access by old_priority."""
    old_priority: int
    new_priority: int

    def __str__(self) -> str:
        return f"{self.old_priority} -> {self.new_priority}"


class AccessTracker:
    """
    Single-pass state for one block.

    Holds the last-access map, the violations found per account (in
    discovery order) and the signatures of violating transactions.
    """

    def __init__(self):
        self.last_access: Dict[Pubkey, AccessRecord] = {}
        self.violated_accounts: Dict[Pubkey, List[ViolationEntry]] = {}
        self.violating_signatures: List[Signature] = []

    def record_write(self, account: Pubkey, priority: int) -> bool:
        """Apply a write touch; True if it was a violation."""
        record = self.last_access.get(account)
        violation = record is not None and record.priority < priority
        if violation:
            self._add_violation(account, record.priority, priority)
        self.last_access[account] = AccessRecord(AccessKind.WRITE, priority)
        return violation

    def record_read(self, account: Pubkey, priority: int) -> bool:
        """Apply a read touch; True if it was a violation."""
        record = self.last_access.get(account)
        violation = (
            record is not None
            and record.last_access is AccessKind.WRITE
            and record.priority < priority
        )
        if violation:
            self._add_violation(account, record.priority, priority)
        self.last_access[account] = AccessRecord(AccessKind.READ, priority)
        return violation

    def process_transaction(self, signature: Signature, priority: int,
                            writable_accounts: Iterable[Pubkey],
                            readonly_accounts: Iterable[Pubkey]) -> bool:
        """
        Apply every touch of one transaction, writes first.

        Returns True if the transaction raised at least one violation;
        its signature is then recorded once.
        """
        is_violation = False
        for account in writable_accounts:
            is_violation |= self.record_write(account, priority)
        for account in readonly_accounts:
            is_violation |= self.record_read(account, priority)

        if is_violation:
            self.violating_signatures.append(signature)
        return is_violation

    def record_for(self, account: Pubkey) -> Optional[AccessRecord]:
        return self.last_access.get(account)

    def violation_count(self) -> int:
        return sum(len(entries) for entries in self.violated_accounts.values())

    def _add_violation(self, account: Pubkey, old_priority: int, new_priority: int) -> None:
        self.violated_accounts.setdefault(account, []).append(
            ViolationEntry(old_priority, new_priority)
        )
