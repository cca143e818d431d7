"""
Error Types for Block Priority Inspection

Every failure mode of a run is fatal: fetching, block shape, transaction
decoding, address parsing and priority arithmetic all raise one of these.
The command line catches PriorityCheckError once, prints it and exits 1.
"""


class PriorityCheckError(Exception):
    """Base class for everything that aborts a priority check."""


class BlockFetchError(PriorityCheckError):
    """The RPC node could not deliver the block."""

    def __init__(self, slot: int, reason: str):
        self.slot = slot
        self.reason = reason
        super().__init__(f"Failed to fetch block at slot {slot}: {reason}")


class MalformedBlockError(PriorityCheckError):
    """The block response is missing data the inspection needs."""


class TransactionDecodeError(PriorityCheckError, ValueError):
    """Transaction bytes do not follow the wire format."""


class SanitizeError(PriorityCheckError, ValueError):
    """A decoded transaction breaks a structural message rule."""


class PubkeyParseError(PriorityCheckError, ValueError):
    """A string is not a valid base58-encoded 32-byte public key."""


class InstructionDecodeError(PriorityCheckError, ValueError):
    """A compute-budget directive has a truncated payload."""


class PriorityCalculationError(PriorityCheckError, ArithmeticError):
    """Priority arithmetic divided by zero or overflowed u64."""


class ConfigError(PriorityCheckError, ValueError):
    """An environment override has an unusable value."""
