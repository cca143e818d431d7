"""
Priority Violation Detection

This package implements the check itself:
- Compute budget decoding: what priority a transaction asked for
- Access tracking: which account touches conflict with earlier ones
- Reporting: summarizing violations per account and per transaction
- Inspection: the single pass tying the three together over a block
"""

from .access_tracker import AccessKind, AccessRecord, AccessTracker, ViolationEntry
from .compute_budget import decode_instruction, resolve_priority
from .inspector import BlockInspector, inspect_block
from .reporter import ViolationReport

__all__ = [
    'AccessKind',
    'AccessRecord',
    'AccessTracker',
    'ViolationEntry',
    'decode_instruction',
    'resolve_priority',
    'BlockInspector',
    'inspect_block',
    'ViolationReport',
]
