"""
Violation Reporting

Turns the tracker's final state into a report and renders it as the
line-oriented text the command line prints.
"""

from dataclasses import dataclass, field
from typing import Dict, List

from ..core.accounts import Pubkey, Signature
from .access_tracker import AccessTracker, ViolationEntry

NO_VIOLATIONS = "No priority violations found"


@dataclass
class ViolationReport:
    """
    Violations found in one block.

    violation_count is the number of violation entries across all
    accounts; a transaction that conflicts on three accounts counts three
    times. violating_transaction_count counts each transaction once.
    """
    slot: int
    transaction_count: int = 0
    violated_accounts: Dict[Pubkey, List[ViolationEntry]] = field(default_factory=dict)
    violating_signatures: List[Signature] = field(default_factory=list)

    @classmethod
    def from_tracker(cls, slot: int, transaction_count: int,
                     tracker: AccessTracker) -> 'ViolationReport':
        return cls(
            slot=slot,
            transaction_count=transaction_count,
            violated_accounts={
                account: list(entries)
                for account, entries in tracker.violated_accounts.items()
            },
            violating_signatures=list(tracker.violating_signatures),
        )

    @property
    def violation_count(self) -> int:
        return sum(len(entries) for entries in self.violated_accounts.values())

    @property
    def account_count(self) -> int:
        return len(self.violated_accounts)

    @property
    def violating_transaction_count(self) -> int:
        return len(self.violating_signatures)

    @property
    def has_violations(self) -> bool:
        return bool(self.violated_accounts)

    def render_count(self) -> str:
        return str(self.violation_count)

    def render_lines(self) -> List[str]:
        """The full report, one output line per element."""
        if not self.has_violations:
            return [NO_VIOLATIONS]

        lines = [
            f"{self.violation_count} priority violations found on "
            f"{self.account_count} accounts:"
        ]
        for account, entries in self.violated_accounts.items():
            lines.append(f"Account: {account}")
            lines.extend(f"  {entry.old_priority} -> {entry.new_priority}" for entry in entries)

        lines.append("Violating transactions:")
        lines.extend(str(signature) for signature in self.violating_signatures)
        return lines

    def render(self, count_only: bool = False) -> str:
        if count_only:
            return self.render_count()
        return "\n".join(self.render_lines())
