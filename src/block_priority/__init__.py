"""
Block Priority Inspector

Checks whether a Solana block respected fee priority: a transaction that
paid more per compute unit should reach a contended account before a
transaction that paid less. The inspector fetches one block, walks its
transactions in execution order and reports every account where a
higher-priority transaction had to follow a conflicting lower-priority one.

Key Features:
- ✅ Binary transaction decoding (legacy and v0 messages)
- ✅ Compute budget priority resolution
- ✅ Per-account read/write conflict tracking
- ✅ Per-account violation report
- ✅ Command line interface
"""

__version__ = "1.0.0"

from .core import *
from .errors import PriorityCheckError
from .priority import *

__all__ = [
    # Data model
    'Pubkey',
    'Signature',
    'ConfirmedBlock',
    'BlockTransaction',
    'SolanaTransaction',
    'TransactionBuilder',
    'RpcClient',

    # Inspection
    'AccessTracker',
    'BlockInspector',
    'inspect_block',
    'resolve_priority',
    'ViolationReport',
    'PriorityCheckError',
]
